"""Billing runs: catch every active lease up on the invoices it is due.

A billing run walks each ACTIVE lease from its last invoiced period (or its
start date) towards today, creating one invoice per billing cycle. Each
invoice is its own unit of work. The (lease_id, period_start, period_end)
unique constraint makes runs idempotent: a period that is already invoiced,
including one inserted by a concurrent run, stops that lease's catch-up
without failing the run.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Callable

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rentals.models.invoice import Invoice, InvoiceStatus
from rentals.models.lease import Lease, LeaseStatus
from rentals.services.config import Settings, get_settings
from rentals.services.errors import DuplicateInvoiceError, LeaseNotFoundError
from rentals.services.invoice_builder import InvoiceBuilder
from rentals.services.rent_calculator import add_months
from rentals.services.unit_of_work import unit_of_work

logger = logging.getLogger(__name__)

INVOICE_PERIOD_CONSTRAINT = "uq_invoice_lease_period"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_date(value: datetime | date) -> date:
    """Calendar date of a timestamp (dates pass through)."""
    if isinstance(value, datetime):
        return value.date()
    return value


def is_duplicate_period_error(error: IntegrityError) -> bool:
    """Whether an IntegrityError is the invoice lease-period uniqueness violation."""
    message = str(error.orig)
    if INVOICE_PERIOD_CONSTRAINT in message:
        return True
    # SQLite names the columns instead of the constraint
    return "UNIQUE" in message and "invoices.lease_id" in message


@dataclass
class LeaseFailure:
    """A lease whose catch-up stopped on an unexpected error."""

    lease_id: int
    error: str


@dataclass
class BillingRunResult:
    """Outcome of one billing run."""

    created_count: int = 0
    created_invoice_ids: list[int] = field(default_factory=list)
    failed_leases: list[LeaseFailure] = field(default_factory=list)

    def record(self, invoice_id: int) -> None:
        self.created_count += 1
        self.created_invoice_ids.append(invoice_id)

    def to_dict(self) -> dict:
        return asdict(self)


class BillingService:
    """Generates due invoices for active leases.

    Args:
        db: Database session; every invoice is committed through it
        settings: Billing settings (default: environment settings)
        clock: Returns the current time when a run is not given `now`
    """

    def __init__(
        self,
        db: Session,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.settings = settings or get_settings()
        self.clock = clock or utc_now
        self.builder = InvoiceBuilder(db)

    def get_active_leases(self, organization_id: str | None = None) -> list[Lease]:
        """Get ACTIVE leases, oldest first, optionally for one organization."""
        stmt = select(Lease).where(Lease.status == LeaseStatus.ACTIVE)
        if organization_id is not None:
            stmt = stmt.where(Lease.organization_id == organization_id)
        stmt = stmt.order_by(Lease.created_at.asc(), Lease.id.asc())
        return list(self.db.execute(stmt).scalars().all())

    def get_billing_start(self, lease: Lease) -> date:
        """First day not yet covered by an invoice: the latest period_end, or the lease start."""
        last_period_end = self.db.execute(
            select(func.max(Invoice.period_end)).where(Invoice.lease_id == lease.id)
        ).scalar()
        return last_period_end or lease.start_date

    def generate_due_invoices(
        self,
        organization_id: str | None = None,
        now: datetime | date | None = None,
    ) -> BillingRunResult:
        """Create every invoice that is due up to `now`.

        A period is due once its start date is on or before today. Each lease
        creates at most `billing_max_periods_per_lease` invoices per run; a
        lease with a longer backlog is finished by later runs.

        Args:
            organization_id: Only bill leases of this organization (default: all)
            now: Current time (default: the service clock)

        Returns:
            BillingRunResult with created invoice IDs and leases that failed

        Raises:
            Exception: The first unexpected failure, when billing_stop_on_lease_error is set
        """
        now = now or self.clock()
        today = as_date(now)
        issued_at = now if isinstance(now, datetime) else self.clock()

        result = BillingRunResult()
        leases = self.get_active_leases(organization_id)
        logger.info(
            "Billing run started: organization=%s, today=%s, leases=%d",
            organization_id or "*",
            today,
            len(leases),
        )

        for lease in leases:
            lease_id = lease.id
            try:
                self._catch_up_lease(lease, today, issued_at, result)
            except Exception as e:
                if self.settings.billing_stop_on_lease_error:
                    logger.error("Billing run aborted on lease %d: %s", lease_id, e, exc_info=True)
                    raise
                logger.error("Billing failed for lease %d: %s", lease_id, e, exc_info=True)
                result.failed_leases.append(LeaseFailure(lease_id=lease_id, error=str(e)))

        logger.info(
            "Billing run finished: created=%d, failed_leases=%d",
            result.created_count,
            len(result.failed_leases),
        )
        return result

    def _catch_up_lease(
        self,
        lease: Lease,
        today: date,
        issued_at: datetime,
        result: BillingRunResult,
    ) -> None:
        period_start = self.get_billing_start(lease)
        max_periods = self.settings.billing_max_periods_per_lease

        for _ in range(max_periods):
            if period_start > today or period_start >= lease.end_date:
                return

            period_end = min(add_months(period_start, lease.billing_cycle_months or 1), lease.end_date)
            if period_end <= period_start:
                return

            try:
                with unit_of_work(self.db):
                    invoice = self.builder.build(
                        lease,
                        period_start,
                        period_end,
                        status=InvoiceStatus.ISSUED,
                        now=issued_at,
                    )
                    invoice_id = invoice.id
            except IntegrityError as e:
                if not is_duplicate_period_error(e):
                    raise
                logger.info(
                    "Lease %d already billed for %s to %s; stopping catch-up",
                    lease.id,
                    period_start,
                    period_end,
                )
                return

            result.record(invoice_id)
            period_start = period_end

        if period_start <= today and period_start < lease.end_date:
            logger.warning(
                "Lease %d still has unbilled periods from %s after %d invoices; "
                "the next billing run continues from there",
                lease.id,
                period_start,
                max_periods,
            )

    def create_invoice_for_period(
        self,
        organization_id: str,
        lease_id: int,
        period_start: date,
        period_end: date,
        status: InvoiceStatus = InvoiceStatus.DRAFT,
        now: datetime | None = None,
    ) -> Invoice:
        """Create one invoice for an explicit lease period (manual path).

        Args:
            organization_id: Organization the lease must belong to
            lease_id: Lease to bill
            period_start: First day of the period
            period_end: Exclusive end of the period
            status: DRAFT (default) or ISSUED
            now: Timestamp for issued_at (default: the service clock)

        Returns:
            Created Invoice

        Raises:
            LeaseNotFoundError: If the lease does not exist in the organization
            DuplicateInvoiceError: If the period is already invoiced
        """
        lease = self.db.execute(
            select(Lease).where(Lease.id == lease_id, Lease.organization_id == organization_id)
        ).scalar_one_or_none()
        if lease is None:
            raise LeaseNotFoundError(f"Lease {lease_id} not found")

        try:
            with unit_of_work(self.db):
                invoice = self.builder.build(
                    lease,
                    period_start,
                    period_end,
                    status=status,
                    now=now or self.clock(),
                )
        except IntegrityError as e:
            if is_duplicate_period_error(e):
                raise DuplicateInvoiceError(
                    f"Lease {lease_id} already has an invoice for {period_start} to {period_end}"
                ) from e
            raise

        logger.info("Created %s invoice %d for lease %d", status.value, invoice.id, lease_id)
        return invoice


__all__ = [
    "BillingService",
    "BillingRunResult",
    "LeaseFailure",
    "as_date",
    "is_duplicate_period_error",
    "utc_now",
]
