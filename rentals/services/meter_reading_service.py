"""Confirm meter readings on metered invoice items."""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from rentals.models.invoice import Invoice, InvoiceItem, InvoiceItemStatus, InvoiceStatus
from rentals.services.audit_service import AuditAction, AuditService
from rentals.services.errors import (
    InvalidItemError,
    InvalidReadingError,
    InvalidStatusError,
    InvoiceAlreadyPaidError,
    InvoiceItemNotFoundError,
    InvoiceVoidedError,
)
from rentals.services.invoice_builder import get_previous_meter_end
from rentals.services.rent_calculator import round_cents
from rentals.services.unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

# Matches the scale of the Numeric(12, 3) reading columns
READING_PRECISION = Decimal("0.001")


def to_reading(value: Decimal | int | float, field: str) -> Decimal:
    """Convert a meter reading to Decimal, rejecting finer than stored precision."""
    reading = Decimal(str(value))
    if reading != reading.quantize(READING_PRECISION):
        raise InvalidReadingError(f"{field} ({reading}) has more than 3 decimal places")
    return reading


def confirmed_total_cents(invoice: Invoice) -> int:
    """Sum of CONFIRMED item amounts; pending items count as zero."""
    return sum(
        item.amount_cents or 0
        for item in invoice.items
        if item.status == InvoiceItemStatus.CONFIRMED
    )


class MeterReadingService:
    """Turns PENDING_READING items into priced CONFIRMED items."""

    def __init__(self, db: Session):
        self.db = db

    def get_item(self, organization_id: str, invoice_id: int, item_id: int) -> InvoiceItem | None:
        """Get an invoice item scoped to its invoice and organization."""
        stmt = (
            select(InvoiceItem)
            .join(Invoice, Invoice.id == InvoiceItem.invoice_id)
            .where(
                InvoiceItem.id == item_id,
                InvoiceItem.invoice_id == invoice_id,
                Invoice.organization_id == organization_id,
            )
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def resolve_meter_start(self, item: InvoiceItem, meter_start: Decimal | None) -> Decimal:
        """Starting reading for an item.

        Priority: explicit value, the value pre-filled when the invoice was
        built, the previous confirmed reading of the same charge, then 0.
        """
        if meter_start is not None:
            return Decimal(meter_start)
        if item.meter_start is not None:
            return Decimal(item.meter_start)
        if item.lease_charge_id is not None:
            invoice = item.invoice
            previous = get_previous_meter_end(
                self.db, invoice.lease_id, item.lease_charge_id, invoice.period_start
            )
            if previous is not None:
                return Decimal(previous)
        return Decimal(0)

    def confirm_invoice_item_reading(
        self,
        organization_id: str,
        invoice_id: int,
        item_id: int,
        meter_end: Decimal | int | float,
        meter_start: Decimal | int | float | None = None,
        actor_id: str | None = None,
    ) -> dict:
        """Record a meter reading, price the item and refresh the invoice total.

        Args:
            organization_id: Organization owning the invoice
            invoice_id: Invoice the item belongs to
            item_id: Item to confirm
            meter_end: Reading at the end of the period
            meter_start: Reading at the start (default: resolved from history)
            actor_id: User confirming the reading

        Returns:
            {"ok": True}

        Raises:
            InvoiceItemNotFoundError: If the item is not on that invoice in that organization
            InvoiceAlreadyPaidError: If the invoice is PAID
            InvoiceVoidedError: If the invoice is VOID
            InvalidStatusError: If the item is not waiting for a reading
            InvalidItemError: If the item has no unit price
            InvalidReadingError: If a reading is negative, has more than 3 decimal
                places or meter_end < meter_start
        """
        item = self.get_item(organization_id, invoice_id, item_id)
        if item is None:
            raise InvoiceItemNotFoundError(f"Invoice item {item_id} not found on invoice {invoice_id}")
        if item.invoice.status == InvoiceStatus.PAID:
            raise InvoiceAlreadyPaidError(f"Invoice {invoice_id} is paid; readings are closed")
        if item.invoice.status == InvoiceStatus.VOID:
            raise InvoiceVoidedError(f"Invoice {invoice_id} is void; readings are closed")
        if item.status != InvoiceItemStatus.PENDING_READING:
            raise InvalidStatusError(f"Invoice item {item_id} does not need a meter reading")
        if item.unit_price_cents is None:
            raise InvalidItemError(f"Invoice item {item_id} has no unit price")

        end = to_reading(meter_end, "meter_end")
        start = self.resolve_meter_start(
            item, to_reading(meter_start, "meter_start") if meter_start is not None else None
        )
        if start < 0 or end < 0:
            raise InvalidReadingError("Meter readings must not be negative")
        if end < start:
            raise InvalidReadingError(
                f"meter_end ({end}) must be greater than or equal to meter_start ({start})"
            )

        quantity = end - start
        amount_cents = round_cents(quantity * item.unit_price_cents)

        with unit_of_work(self.db):
            item.meter_start = start
            item.meter_end = end
            item.quantity = quantity
            item.amount_cents = amount_cents
            item.status = InvoiceItemStatus.CONFIRMED
            self.db.flush()

            invoice = item.invoice
            invoice.total_amount_cents = confirmed_total_cents(invoice)

            AuditService.log(
                self.db,
                "invoice_item",
                item.id,
                AuditAction.CONFIRM_READING,
                actor_id,
                {
                    "meter_start": str(start),
                    "meter_end": str(end),
                    "amount_cents": amount_cents,
                    "invoice_total_cents": invoice.total_amount_cents,
                },
            )

        logger.info(
            "Confirmed reading for item %d on invoice %d: %s -> %s, amount=%d",
            item_id,
            invoice_id,
            start,
            end,
            amount_cents,
        )

        return {"ok": True}


__all__ = ["MeterReadingService", "READING_PRECISION", "confirmed_total_cents", "to_reading"]
