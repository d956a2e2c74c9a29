"""Assemble and persist a priced invoice for one lease period."""

import logging
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from rentals.models.invoice import (
    Invoice,
    InvoiceItem,
    InvoiceItemKind,
    InvoiceItemStatus,
    InvoiceStatus,
)
from rentals.models.lease import Lease
from rentals.models.lease_charge import ChargeMode, LeaseCharge
from rentals.services.audit_service import AuditAction, AuditService
from rentals.services.charge_timing import ChargePeriod, charge_is_due
from rentals.services.notification_service import NotificationService
from rentals.services.rent_calculator import compute_rent_cents

logger = logging.getLogger(__name__)

RENT_ITEM_NAME = "Rent"


def get_previous_meter_end(
    db: Session,
    lease_id: int,
    lease_charge_id: int,
    before: date,
) -> Decimal | None:
    """Get the meter_end of the latest confirmed reading for a charge.

    Only invoices of the lease ending on or before `before` are considered, so
    the reading found is the one immediately preceding a period that starts
    at `before`.

    Args:
        db: Database session
        lease_id: Lease the charge belongs to
        lease_charge_id: Charge whose reading history is searched
        before: Start of the period that needs a starting reading

    Returns:
        Previous meter_end, or None if the charge has no confirmed history
    """
    stmt = (
        select(InvoiceItem.meter_end)
        .join(Invoice, Invoice.id == InvoiceItem.invoice_id)
        .where(
            Invoice.lease_id == lease_id,
            Invoice.period_end <= before,
            InvoiceItem.lease_charge_id == lease_charge_id,
            InvoiceItem.status == InvoiceItemStatus.CONFIRMED,
            InvoiceItem.meter_end.is_not(None),
        )
        .order_by(Invoice.period_end.desc(), InvoiceItem.id.desc())
        .limit(1)
    )
    return db.execute(stmt).scalar_one_or_none()


class InvoiceBuilder:
    """Builds one invoice with its rent line and due charge lines.

    Everything is added to the session passed in; the caller owns the unit of
    work and decides when to commit. The (lease_id, period_start, period_end)
    unique constraint fires on the first flush, before any item is added.
    """

    def __init__(self, db: Session):
        self.db = db
        self.notifications = NotificationService(db)

    def due_charges(
        self,
        lease: Lease,
        charges: list[LeaseCharge],
        period_start: date,
        period_end: date,
    ) -> list[tuple[LeaseCharge, ChargePeriod]]:
        """Charges that bill on the invoice for [period_start, period_end), with their periods."""
        due = []
        for charge in charges:
            charge_period = charge_is_due(lease, charge, period_start, period_end)
            if charge_period is not None:
                due.append((charge, charge_period))
        return due

    def build(
        self,
        lease: Lease,
        period_start: date,
        period_end: date,
        status: InvoiceStatus = InvoiceStatus.ISSUED,
        charges: list[LeaseCharge] | None = None,
        now: datetime | None = None,
    ) -> Invoice:
        """Create the invoice for one lease period.

        Args:
            lease: Lease being billed
            period_start: First day of the period
            period_end: Exclusive end of the period
            status: ISSUED for billing runs, DRAFT for manually created invoices
            charges: Charges to consider (default: the lease's active charges)
            now: Timestamp for issued_at

        Returns:
            The flushed Invoice with its items

        Raises:
            ValueError: If the period is empty or status is not DRAFT/ISSUED
            InvalidChargeError: If a due charge lacks the pricing fields of its mode
            sqlalchemy.exc.IntegrityError: If the lease period is already invoiced
        """
        if period_end <= period_start:
            raise ValueError(f"Empty invoice period: {period_start} to {period_end}")
        if status not in (InvoiceStatus.DRAFT, InvoiceStatus.ISSUED):
            raise ValueError(f"New invoices must be DRAFT or ISSUED, got {status}")

        now = now or datetime.now(timezone.utc)
        if charges is None:
            charges = lease.active_charges

        rent_cents = compute_rent_cents(lease, period_start)
        fixed: list[tuple[LeaseCharge, ChargePeriod]] = []
        metered: list[tuple[LeaseCharge, ChargePeriod]] = []
        for charge, charge_period in self.due_charges(lease, charges, period_start, period_end):
            charge.validate()
            if charge.mode == ChargeMode.FIXED:
                fixed.append((charge, charge_period))
            else:
                metered.append((charge, charge_period))

        total_amount_cents = rent_cents + sum(c.fixed_amount_cents or 0 for c, _ in fixed)

        invoice = Invoice(
            organization_id=lease.organization_id,
            lease_id=lease.id,
            status=status,
            period_start=period_start,
            period_end=period_end,
            due_date=period_start,
            total_amount_cents=total_amount_cents,
            issued_at=now if status == InvoiceStatus.ISSUED else None,
        )
        self.db.add(invoice)
        self.db.flush()

        items = [
            InvoiceItem(
                invoice_id=invoice.id,
                name=RENT_ITEM_NAME,
                kind=InvoiceItemKind.RENT,
                mode=ChargeMode.FIXED,
                status=InvoiceItemStatus.CONFIRMED,
                service_start=period_start,
                service_end=period_end,
                amount_cents=rent_cents,
            )
        ]
        for charge, charge_period in fixed:
            items.append(
                InvoiceItem(
                    invoice_id=invoice.id,
                    lease_charge_id=charge.id,
                    name=charge.name,
                    kind=InvoiceItemKind.CHARGE,
                    mode=ChargeMode.FIXED,
                    status=InvoiceItemStatus.CONFIRMED,
                    service_start=charge_period.start,
                    service_end=charge_period.end,
                    amount_cents=charge.fixed_amount_cents or 0,
                )
            )
        for charge, charge_period in metered:
            items.append(
                InvoiceItem(
                    invoice_id=invoice.id,
                    lease_charge_id=charge.id,
                    name=charge.name,
                    kind=InvoiceItemKind.CHARGE,
                    mode=ChargeMode.METERED,
                    status=InvoiceItemStatus.PENDING_READING,
                    service_start=charge_period.start,
                    service_end=charge_period.end,
                    amount_cents=None,
                    unit_price_cents=charge.unit_price_cents,
                    unit_name=charge.unit_name,
                    meter_start=get_previous_meter_end(self.db, lease.id, charge.id, period_start),
                )
            )
        invoice.items.extend(items)

        notified = self.notifications.notify_invoice_created(invoice)
        AuditService.log(
            self.db,
            "invoice",
            invoice.id,
            AuditAction.CREATE,
            changes={
                "status": status.value,
                "period_start": period_start.isoformat(),
                "period_end": period_end.isoformat(),
                "total_amount_cents": total_amount_cents,
            },
        )
        self.db.flush()

        logger.info(
            "Built invoice %d for lease %d (%s to %s): rent=%d, fixed=%d, metered=%d, total=%d, notified=%d",
            invoice.id,
            lease.id,
            period_start,
            period_end,
            rent_cents,
            len(fixed),
            len(metered),
            total_amount_cents,
            notified,
        )

        return invoice


__all__ = ["InvoiceBuilder", "get_previous_meter_end", "RENT_ITEM_NAME"]
