"""Notification service for creating in-app notifications about billing events."""

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from rentals.models.invoice import Invoice
from rentals.models.membership import BILLING_MANAGE_PERMISSION, Membership, MembershipStatus
from rentals.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)

INVOICE_CREATED_TITLE = "New invoice generated"


def format_period(period_start: date, period_end: date) -> str:
    """Format an invoice period for notification bodies."""
    return f"Period: {period_start.isoformat()} ~ {period_end.isoformat()}"


class NotificationService:
    """Creates notification rows for organization members.

    Rows are added to the caller's session so they commit together with the
    entity they describe. Delivery (push, email, etc.) is someone else's job.
    """

    def __init__(self, db: Session):
        self.db = db

    def get_billing_manager_ids(self, organization_id: str) -> list[str]:
        """Get user IDs of active members allowed to manage billing.

        Args:
            organization_id: Organization to look in

        Returns:
            User IDs ordered by membership creation
        """
        memberships = (
            self.db.execute(
                select(Membership)
                .where(
                    Membership.organization_id == organization_id,
                    Membership.status == MembershipStatus.ACTIVE,
                )
                .order_by(Membership.id)
            )
            .scalars()
            .all()
        )
        return [m.user_id for m in memberships if m.has_permission(BILLING_MANAGE_PERMISSION)]

    def create_notification(
        self,
        organization_id: str,
        user_id: str,
        type: str,
        title: str,
        body: str | None = None,
        entity_type: str | None = None,
        entity_id: int | None = None,
    ) -> Notification:
        notification = Notification(
            organization_id=organization_id,
            user_id=user_id,
            type=type,
            title=title,
            body=body,
            entity_type=entity_type,
            entity_id=entity_id,
        )
        self.db.add(notification)
        return notification

    def notify_invoice_created(self, invoice: Invoice) -> int:
        """Notify every billing manager of the invoice's organization.

        Args:
            invoice: Newly created invoice (must already have an ID)

        Returns:
            Count of notifications created
        """
        manager_ids = self.get_billing_manager_ids(invoice.organization_id)
        for user_id in manager_ids:
            self.create_notification(
                organization_id=invoice.organization_id,
                user_id=user_id,
                type=NotificationType.INVOICE_CREATED.value,
                title=INVOICE_CREATED_TITLE,
                body=format_period(invoice.period_start, invoice.period_end),
                entity_type="Invoice",
                entity_id=invoice.id,
            )

        if not manager_ids:
            logger.debug("No billing managers in organization %s", invoice.organization_id)

        return len(manager_ids)


__all__ = ["NotificationService", "format_period", "INVOICE_CREATED_TITLE"]
