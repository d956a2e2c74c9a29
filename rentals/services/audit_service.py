"""Audit trail for invoice and invoice item changes."""

from enum import Enum

from sqlalchemy import select
from sqlalchemy.orm import Session

from rentals.models.audit_log import AuditLog


class AuditAction(str, Enum):
    """Recorded billing actions."""

    CREATE = "create"
    CONFIRM_READING = "confirm_reading"
    CONFIRM = "confirm"
    MARK_PAID = "mark_paid"
    VOID = "void"


class AuditService:
    """Writes and reads audit entries.

    Entries join the caller's unit of work; nothing here commits.
    """

    @staticmethod
    def log(
        db: Session,
        entity_type: str,
        entity_id: int,
        action: AuditAction,
        actor_id: str | None = None,
        changes: dict | None = None,
    ) -> AuditLog:
        """Add an audit entry.

        Args:
            db: Database session of the surrounding unit of work
            entity_type: "invoice" or "invoice_item"
            entity_id: Primary key of the entity
            action: What happened to the entity
            actor_id: User who did it (None for billing runs)
            changes: JSON snapshot of the values written

        Returns:
            The pending AuditLog
        """
        entry = AuditLog(
            entity_type=entity_type,
            entity_id=entity_id,
            action=AuditAction(action).value,
            actor_id=actor_id,
            changes=changes,
        )
        db.add(entry)
        return entry

    @staticmethod
    def history(db: Session, entity_type: str, entity_id: int) -> list[AuditLog]:
        """Audit entries of one entity, oldest first."""
        stmt = (
            select(AuditLog)
            .where(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
            .order_by(AuditLog.id)
        )
        return list(db.execute(stmt).scalars().all())


__all__ = ["AuditAction", "AuditService"]
