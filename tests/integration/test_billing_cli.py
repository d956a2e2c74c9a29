"""Integration tests for the billing CLI entry point."""

import json
from datetime import date

import pytest

from rentals.cli import billing as billing_cli
from rentals.models import Base
from rentals.models.invoice import Invoice
from rentals.models.lease import Lease, LeaseStatus
from rentals.services import SessionLocal, engine

pytestmark = pytest.mark.integration


@pytest.fixture
def app_db(monkeypatch):
    """Fresh schema on the application engine (in-memory, see conftest)."""
    monkeypatch.setattr(billing_cli, "load_dotenv", lambda: None)
    monkeypatch.setattr("rentals.services.logging.setup_logging", lambda *args, **kwargs: None)
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    db = SessionLocal()
    yield db
    db.close()
    Base.metadata.drop_all(engine)


def add_lease(db, organization_id="org-1"):
    lease = Lease(
        organization_id=organization_id,
        room_id="room-101",
        tenant_id="tenant-1",
        status=LeaseStatus.ACTIVE,
        start_date=date(2026, 1, 15),
        end_date=date(2027, 1, 15),
        base_rent_cents=250000,
    )
    db.add(lease)
    db.commit()
    return lease


def test_cli_runs_billing(app_db, capsys):
    add_lease(app_db)

    exit_code = billing_cli.main(["--now", "2026-03-14T09:00:00+00:00"])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["created_count"] == 2
    assert len(output["created_invoice_ids"]) == 2
    assert output["failed_leases"] == []
    assert app_db.query(Invoice).count() == 2


def test_cli_is_idempotent(app_db, capsys):
    add_lease(app_db)

    billing_cli.main(["--now", "2026-03-14T09:00:00"])
    capsys.readouterr()
    exit_code = billing_cli.main(["--now", "2026-03-14T09:00:00"])

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out)["created_count"] == 0


def test_cli_organization_filter(app_db, capsys):
    add_lease(app_db, organization_id="org-1")
    add_lease(app_db, organization_id="org-2")

    billing_cli.main(["--org", "org-2", "--now", "2026-02-01"])

    assert json.loads(capsys.readouterr().out)["created_count"] == 1
    invoices = app_db.query(Invoice).all()
    assert [inv.organization_id for inv in invoices] == ["org-2"]


def test_cli_rejects_bad_timestamp(app_db):
    with pytest.raises(SystemExit) as exc_info:
        billing_cli.main(["--now", "yesterday"])

    assert exc_info.value.code == 2


def test_parse_now_assumes_utc():
    parsed = billing_cli.parse_now("2026-03-14T09:00:00")

    assert parsed.tzinfo is not None
    assert parsed.utcoffset().total_seconds() == 0
