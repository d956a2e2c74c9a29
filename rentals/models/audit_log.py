"""Audit log model: who changed which invoice, when and how."""

from typing import Any

from sqlalchemy import JSON, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from rentals.models import Base, BaseModel


class AuditLog(Base, BaseModel):
    """One recorded change to an invoice or invoice item.

    Written in the same transaction as the change itself, so an entry exists
    exactly when the change was committed.
    """

    __tablename__ = "audit_logs"

    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    """"invoice" or "invoice_item"."""

    entity_id: Mapped[int] = mapped_column(nullable=False)

    action: Mapped[str] = mapped_column(String(50), nullable=False)
    """One of AuditAction: create, confirm_reading, confirm, mark_paid, void."""

    actor_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    """Opaque user ID; None when a billing run made the change."""

    changes: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    """Values written, e.g. {"from": "ISSUED", "paid_at": "..."}."""

    __table_args__ = (Index("idx_audit_entity", "entity_type", "entity_id"),)

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, {self.entity_type}:{self.entity_id}, "
            f"action={self.action}, actor_id={self.actor_id})>"
        )


__all__ = ["AuditLog"]
