"""Pytest configuration: in-memory databases and billing fixtures."""

import os
from datetime import date

# Set test database URL BEFORE any imports from rentals.services
# This ensures the module-level engine and SessionLocal use an in-memory database
os.environ["DATABASE_URL"] = "sqlite:///:memory:"

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from rentals.models import Base  # noqa: E402
from rentals.models.lease import Lease, LeaseStatus, RentIncreaseType  # noqa: E402
from rentals.models.membership import (  # noqa: E402
    BILLING_MANAGE_PERMISSION,
    Membership,
    MembershipStatus,
)
from rentals.services.config import Settings  # noqa: E402

ORG_ID = "org-1"
OTHER_ORG_ID = "org-2"

# Billing tests run at 2026-03-14, just under two months after this start
LEASE_START = date(2026, 1, 15)


@pytest.fixture
def db_session():
    """Create test database session."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    session = Session()
    yield session
    session.close()
    engine.dispose()


@pytest.fixture
def billing_settings():
    """Billing settings independent of the environment and .env."""
    return Settings(
        _env_file=None,
        billing_max_periods_per_lease=24,
        billing_stop_on_lease_error=False,
    )


@pytest.fixture
def make_lease(db_session):
    """Factory creating an ACTIVE monthly lease with optional charges."""

    def _make_lease(charges=(), **overrides) -> Lease:
        values = {
            "organization_id": ORG_ID,
            "room_id": "room-101",
            "tenant_id": "tenant-1",
            "status": LeaseStatus.ACTIVE,
            "start_date": LEASE_START,
            "end_date": date(2027, 1, 15),
            "billing_cycle_months": 1,
            "base_rent_cents": 250000,
            "rent_increase_type": RentIncreaseType.NONE,
            "rent_increase_value": 0,
            "rent_increase_interval_months": 12,
        }
        values.update(overrides)
        lease = Lease(**values)
        lease.charges.extend(charges)
        db_session.add(lease)
        db_session.commit()
        return lease

    return _make_lease


@pytest.fixture
def billing_managers(db_session):
    """Members of ORG_ID: two billing managers, one plain member, one disabled manager."""
    memberships = [
        Membership(
            organization_id=ORG_ID,
            user_id="manager-1",
            permissions=["billing.read", BILLING_MANAGE_PERMISSION],
        ),
        Membership(
            organization_id=ORG_ID,
            user_id="manager-2",
            permissions=[BILLING_MANAGE_PERMISSION],
        ),
        Membership(organization_id=ORG_ID, user_id="viewer", permissions=["billing.read"]),
        Membership(
            organization_id=ORG_ID,
            user_id="former-manager",
            status=MembershipStatus.DISABLED,
            permissions=[BILLING_MANAGE_PERMISSION],
        ),
        Membership(
            organization_id=OTHER_ORG_ID,
            user_id="outsider",
            permissions=[BILLING_MANAGE_PERMISSION],
        ),
    ]
    db_session.add_all(memberships)
    db_session.commit()
    return ["manager-1", "manager-2"]
