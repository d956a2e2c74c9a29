"""Unit tests for charge_timing.py."""

from datetime import date

import pytest

from rentals.models.lease import Lease
from rentals.models.lease_charge import BillingTiming, ChargeMode, FeeType, LeaseCharge
from rentals.services.charge_timing import (
    ChargePeriod,
    charge_is_due,
    resolve_billing_timing,
    resolve_charge_period,
    should_bill_charge,
)

LEASE_START = date(2026, 1, 15)


def make_charge(fee_type=None, timing=None, cycle=1, is_active=True):
    return LeaseCharge(
        name="Charge",
        fee_type=fee_type,
        mode=ChargeMode.FIXED,
        fixed_amount_cents=1000,
        billing_cycle_months=cycle,
        billing_timing=timing,
        is_active=is_active,
    )


@pytest.fixture
def lease():
    return Lease(start_date=LEASE_START, end_date=date(2027, 1, 15), base_rent_cents=250000)


@pytest.mark.unit
@pytest.mark.parametrize(
    "fee_type,expected",
    [
        (FeeType.WATER, BillingTiming.POSTPAID),
        (FeeType.ELECTRICITY, BillingTiming.POSTPAID),
        (FeeType.MANAGEMENT, BillingTiming.PREPAID),
        (FeeType.INTERNET, BillingTiming.PREPAID),
        (None, BillingTiming.PREPAID),
    ],
)
def test_default_timing_from_fee_type(fee_type, expected):
    assert resolve_billing_timing(make_charge(fee_type=fee_type)) == expected


@pytest.mark.unit
def test_explicit_timing_wins_over_fee_type():
    charge = make_charge(fee_type=FeeType.WATER, timing=BillingTiming.PREPAID)
    assert resolve_billing_timing(charge) == BillingTiming.PREPAID


@pytest.mark.unit
class TestResolveChargePeriod:
    def test_prepaid_covers_invoice_period(self):
        charge = make_charge(timing=BillingTiming.PREPAID)
        period = resolve_charge_period(charge, date(2026, 2, 15), date(2026, 3, 15))
        assert period == ChargePeriod(date(2026, 2, 15), date(2026, 3, 15))

    def test_postpaid_covers_preceding_month(self):
        charge = make_charge(fee_type=FeeType.WATER)
        period = resolve_charge_period(charge, date(2026, 2, 15), date(2026, 3, 15))
        assert period == ChargePeriod(date(2026, 1, 15), date(2026, 2, 14))

    def test_postpaid_covers_preceding_cycle(self):
        charge = make_charge(timing=BillingTiming.POSTPAID, cycle=3)
        period = resolve_charge_period(charge, date(2026, 4, 15), date(2026, 5, 15))
        assert period == ChargePeriod(date(2026, 1, 15), date(2026, 4, 14))


@pytest.mark.unit
class TestShouldBillCharge:
    def test_monthly_always_bills(self):
        assert should_bill_charge(LEASE_START, date(2026, 7, 15), 1)

    def test_annual_bills_on_lease_anniversary(self):
        assert should_bill_charge(LEASE_START, LEASE_START, 12)
        assert should_bill_charge(LEASE_START, date(2027, 1, 15), 12)

    def test_annual_skips_other_months(self):
        assert not should_bill_charge(LEASE_START, date(2026, 2, 15), 12)
        assert not should_bill_charge(LEASE_START, date(2026, 12, 15), 12)


@pytest.mark.unit
class TestChargeIsDue:
    def test_inactive_charge_never_due(self, lease):
        charge = make_charge(is_active=False)
        assert charge_is_due(lease, charge, LEASE_START, date(2026, 2, 15)) is None

    def test_postpaid_not_due_on_first_period(self, lease):
        charge = make_charge(fee_type=FeeType.WATER)
        assert charge_is_due(lease, charge, LEASE_START, date(2026, 2, 15)) is None

    def test_postpaid_due_from_second_period(self, lease):
        charge = make_charge(fee_type=FeeType.WATER)
        period = charge_is_due(lease, charge, date(2026, 2, 15), date(2026, 3, 15))
        assert period == ChargePeriod(LEASE_START, date(2026, 2, 14))

    def test_prepaid_due_on_first_period(self, lease):
        charge = make_charge(fee_type=FeeType.MANAGEMENT)
        period = charge_is_due(lease, charge, LEASE_START, date(2026, 2, 15))
        assert period == ChargePeriod(LEASE_START, date(2026, 2, 15))
