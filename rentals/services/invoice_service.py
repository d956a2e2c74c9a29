"""Invoice lifecycle service: confirm, pay and void invoices, and read them back."""

import logging
from datetime import date, datetime, timezone

from sqlalchemy import or_
from sqlalchemy.orm import Session

from rentals.models.invoice import Invoice, InvoiceStatus
from rentals.services.audit_service import AuditAction, AuditService
from rentals.services.errors import (
    InvoiceAlreadyPaidError,
    InvoiceNotFoundError,
    InvoiceVoidedError,
    PendingReadingsError,
)
from rentals.services.unit_of_work import unit_of_work

logger = logging.getLogger(__name__)


def effective_status(invoice: Invoice, today: date) -> InvoiceStatus:
    """Status as shown to readers: ISSUED past its due date reads as OVERDUE."""
    if (
        invoice.status == InvoiceStatus.ISSUED
        and invoice.due_date is not None
        and invoice.due_date < today
    ):
        return InvoiceStatus.OVERDUE
    return invoice.status


class InvoiceService:
    """Service for invoice lifecycle operations.

    Transitions only move forward: DRAFT -> ISSUED -> PAID, with VOID reachable
    from any state except PAID. Each transition commits with its audit entry.
    """

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def get_invoice(self, organization_id: str, invoice_id: int) -> Invoice:
        """Get an invoice of an organization.

        Raises:
            InvoiceNotFoundError: If no such invoice exists in the organization
        """
        invoice = (
            self.db.query(Invoice)
            .filter(Invoice.id == invoice_id, Invoice.organization_id == organization_id)
            .first()
        )
        if invoice is None:
            raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")
        return invoice

    def list_invoices(
        self,
        organization_id: str,
        status: InvoiceStatus | None = None,
        lease_id: int | None = None,
        now: datetime | None = None,
    ) -> list[Invoice]:
        """List invoices of an organization, newest period first.

        Filtering by OVERDUE selects ISSUED invoices past their due date;
        filtering by ISSUED leaves those out.

        Args:
            organization_id: Organization to list
            status: Effective status to filter by
            lease_id: Only invoices of this lease
            now: Current time for the overdue cut-off (default: now, UTC)

        Returns:
            List of Invoice objects
        """
        today = (now or datetime.now(timezone.utc)).date()
        query = self.db.query(Invoice).filter(Invoice.organization_id == organization_id)

        if lease_id is not None:
            query = query.filter(Invoice.lease_id == lease_id)

        if status == InvoiceStatus.OVERDUE:
            query = query.filter(
                Invoice.status == InvoiceStatus.ISSUED,
                Invoice.due_date < today,
            )
        elif status == InvoiceStatus.ISSUED:
            query = query.filter(
                Invoice.status == InvoiceStatus.ISSUED,
                or_(Invoice.due_date.is_(None), Invoice.due_date >= today),
            )
        elif status is not None:
            query = query.filter(Invoice.status == status)

        return query.order_by(Invoice.period_start.desc(), Invoice.id.desc()).all()

    def confirm_invoice(
        self,
        organization_id: str,
        invoice_id: int,
        actor_id: str | None = None,
        now: datetime | None = None,
    ) -> Invoice:
        """Issue a DRAFT invoice once every item has its amount.

        Already ISSUED invoices are returned unchanged.

        Raises:
            InvoiceNotFoundError: If the invoice does not exist
            InvoiceAlreadyPaidError: If the invoice is PAID
            InvoiceVoidedError: If the invoice is VOID
            PendingReadingsError: If an item still waits for a meter reading
        """
        invoice = self.get_invoice(organization_id, invoice_id)
        self._ensure_open(invoice)
        if invoice.has_pending_readings:
            raise PendingReadingsError(f"Invoice {invoice_id} has items waiting for meter readings")
        if invoice.status == InvoiceStatus.ISSUED:
            return invoice

        with unit_of_work(self.db):
            invoice.status = InvoiceStatus.ISSUED
            invoice.issued_at = now or datetime.now(timezone.utc)
            AuditService.log(
                self.db,
                "invoice",
                invoice.id,
                AuditAction.CONFIRM,
                actor_id,
                {"status": InvoiceStatus.ISSUED.value},
            )

        logger.info("Issued invoice %d", invoice_id)
        return invoice

    def mark_invoice_as_paid(
        self,
        organization_id: str,
        invoice_id: int,
        actor_id: str | None = None,
        now: datetime | None = None,
    ) -> Invoice:
        """Mark an invoice as paid.

        Raises:
            InvoiceNotFoundError: If the invoice does not exist
            InvoiceAlreadyPaidError: If the invoice is already PAID
            InvoiceVoidedError: If the invoice is VOID
        """
        invoice = self.get_invoice(organization_id, invoice_id)
        self._ensure_open(invoice)

        paid_at = now or datetime.now(timezone.utc)
        with unit_of_work(self.db):
            previous = invoice.status
            invoice.status = InvoiceStatus.PAID
            invoice.paid_at = paid_at
            AuditService.log(
                self.db,
                "invoice",
                invoice.id,
                AuditAction.MARK_PAID,
                actor_id,
                {"from": previous.value, "paid_at": paid_at.isoformat()},
            )

        logger.info("Marked invoice %d as paid", invoice_id)
        return invoice

    def void_invoice(
        self,
        organization_id: str,
        invoice_id: int,
        actor_id: str | None = None,
    ) -> Invoice:
        """Void an invoice. Voiding a VOID invoice does nothing.

        Raises:
            InvoiceNotFoundError: If the invoice does not exist
            InvoiceAlreadyPaidError: If the invoice is PAID
        """
        invoice = self.get_invoice(organization_id, invoice_id)
        if invoice.status == InvoiceStatus.VOID:
            return invoice
        if invoice.status == InvoiceStatus.PAID:
            raise InvoiceAlreadyPaidError(f"Invoice {invoice_id} is paid and cannot be voided")

        with unit_of_work(self.db):
            previous = invoice.status
            invoice.status = InvoiceStatus.VOID
            AuditService.log(
                self.db,
                "invoice",
                invoice.id,
                AuditAction.VOID,
                actor_id,
                {"from": previous.value},
            )

        logger.info("Voided invoice %d", invoice_id)
        return invoice

    def _ensure_open(self, invoice: Invoice) -> None:
        if invoice.status == InvoiceStatus.PAID:
            raise InvoiceAlreadyPaidError(f"Invoice {invoice.id} is already paid")
        if invoice.status == InvoiceStatus.VOID:
            raise InvoiceVoidedError(f"Invoice {invoice.id} is void")


__all__ = ["InvoiceService", "effective_status"]
