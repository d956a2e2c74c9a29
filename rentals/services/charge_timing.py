"""Resolve which period a lease charge bills for and whether it is due."""

from datetime import date, timedelta
from typing import NamedTuple

from rentals.models.lease import Lease
from rentals.models.lease_charge import BillingTiming, FeeType, LeaseCharge
from rentals.services.rent_calculator import add_months, months_between

# Consumption is only known after the fact, so utilities bill in arrears
POSTPAID_FEE_TYPES = frozenset({FeeType.WATER, FeeType.ELECTRICITY})


class ChargePeriod(NamedTuple):
    """Service period a charge pays for."""

    start: date
    end: date


def resolve_billing_timing(charge: LeaseCharge) -> BillingTiming:
    """Explicit timing wins; otherwise utilities are POSTPAID and the rest PREPAID."""
    if charge.billing_timing is not None:
        return BillingTiming(charge.billing_timing)
    if charge.fee_type is not None and FeeType(charge.fee_type) in POSTPAID_FEE_TYPES:
        return BillingTiming.POSTPAID
    return BillingTiming.PREPAID


def resolve_charge_period(
    charge: LeaseCharge,
    invoice_period_start: date,
    invoice_period_end: date,
) -> ChargePeriod:
    """Period a charge covers on the invoice for [invoice_period_start, invoice_period_end).

    PREPAID charges cover the invoice period unchanged. POSTPAID charges cover
    the cycle that ends the day before the invoice period starts.
    """
    timing = resolve_billing_timing(charge)
    if timing == BillingTiming.PREPAID:
        return ChargePeriod(invoice_period_start, invoice_period_end)
    if timing == BillingTiming.POSTPAID:
        cycle = max(charge.billing_cycle_months or 1, 1)
        return ChargePeriod(
            add_months(invoice_period_start, -cycle),
            invoice_period_start - timedelta(days=1),
        )
    raise ValueError(f"Unknown billing timing: {timing}")


def should_bill_charge(lease_start: date, charge_period_start: date, charge_cycle_months: int) -> bool:
    """Whether a charge with its own cycle falls due in the period starting at charge_period_start.

    Monthly charges always bill; longer cycles bill every charge_cycle_months
    months counted from the lease start.
    """
    cycle = charge_cycle_months or 1
    if cycle <= 1:
        return True
    return months_between(lease_start, charge_period_start) % cycle == 0


def charge_is_due(
    lease: Lease,
    charge: LeaseCharge,
    invoice_period_start: date,
    invoice_period_end: date,
) -> ChargePeriod | None:
    """Billable period of a charge on this invoice, or None if it is not due.

    A POSTPAID charge whose period starts before the lease is skipped: nothing
    was consumed before move-in.
    """
    if not charge.is_active:
        return None

    period = resolve_charge_period(charge, invoice_period_start, invoice_period_end)
    if period.start < lease.start_date:
        return None
    if not should_bill_charge(lease.start_date, period.start, charge.billing_cycle_months):
        return None
    return period


__all__ = [
    "ChargePeriod",
    "POSTPAID_FEE_TYPES",
    "resolve_billing_timing",
    "resolve_charge_period",
    "should_bill_charge",
    "charge_is_due",
]
