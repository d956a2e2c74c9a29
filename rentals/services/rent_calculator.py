"""Rent escalation and calendar-month arithmetic.

All functions here are pure: no database access and no clock.
"""

from datetime import date
from decimal import ROUND_HALF_EVEN, Decimal

from dateutil.relativedelta import relativedelta

from rentals.models.lease import Lease, RentIncreaseType


def months_between(start: date, end: date) -> int:
    """Whole calendar months from start to end, floored at 0.

    Jan 15 -> Mar 14 is 1 month, Jan 15 -> Mar 15 is 2 months.
    """
    if end <= start:
        return 0
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def add_months(d: date, months: int) -> date:
    """Shift a date by whole months, clamping to the last day of short months."""
    return d + relativedelta(months=months)


def round_cents(value: Decimal) -> int:
    """Round a decimal amount to whole cents (half to even)."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_EVEN))


def compute_rent_cents(lease: Lease, period_start: date) -> int:
    """Rent due for the invoice period starting at period_start.

    The number of completed escalation intervals is
    k = months_between(lease.start_date, period_start) // interval.
    FIXED adds k * rent_increase_value cents; PERCENT compounds
    rent_increase_value percent k times and rounds to the nearest cent.

    Args:
        lease: Lease providing base rent and escalation terms
        period_start: First day of the invoice period

    Returns:
        Rent in cents
    """
    base = lease.base_rent_cents
    increase_type = lease.rent_increase_type
    if increase_type == RentIncreaseType.NONE:
        return base

    interval = lease.rent_increase_interval_months
    if interval is None or interval <= 0:
        return base

    elapsed = months_between(lease.start_date, period_start)
    k = elapsed // interval
    if k <= 0:
        return base

    value = lease.rent_increase_value or 0
    if increase_type == RentIncreaseType.FIXED:
        return base + k * value
    if increase_type == RentIncreaseType.PERCENT:
        factor = (Decimal(1) + Decimal(value) / Decimal(100)) ** k
        return round_cents(Decimal(base) * factor)

    raise ValueError(f"Unknown rent increase type: {increase_type}")


__all__ = ["compute_rent_cents", "months_between", "add_months", "round_cents"]
