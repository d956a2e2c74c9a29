"""CLI entry point for one billing run.

Generates every invoice that is due for active leases, once. A scheduler
(cron, a job queue) calls this periodically; re-running it with the same
time creates nothing.

Usage:
    python -m rentals.cli.billing
    python -m rentals.cli.billing --org ORG --now 2026-03-14T09:00:00+00:00

Exit Codes:
    0 - Success: every lease was caught up (or had nothing due)
    1 - Failure: at least one lease failed, or the run aborted

Logging:
    LOG_LEVEL (default INFO) to both stdout and LOG_FILE (logs/billing.log)
"""

import argparse
import json
import logging
import sys
from datetime import datetime, timezone

from dateutil import parser as date_parser
from dotenv import load_dotenv


def parse_now(value: str) -> datetime:
    """Parse an ISO timestamp; naive values are taken as UTC."""
    try:
        parsed = date_parser.isoparse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid ISO timestamp: {value}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="python -m rentals.cli.billing",
        description="Generate due invoices for active leases.",
    )
    parser.add_argument("--org", dest="organization_id", help="Only bill this organization")
    parser.add_argument(
        "--now",
        type=parse_now,
        help="Bill as of this ISO timestamp (default: current time)",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Run one billing pass.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    args = build_parser().parse_args(argv)

    load_dotenv()

    from rentals.models import Base
    from rentals.services import SessionLocal, engine
    from rentals.services.billing_service import BillingService
    from rentals.services.config import get_settings
    from rentals.services.logging import setup_logging

    settings = get_settings()
    setup_logging(settings.log_file, settings.log_level)
    logger = logging.getLogger(__name__)

    try:
        Base.metadata.create_all(engine)

        db = SessionLocal()
        try:
            result = BillingService(db, settings=settings).generate_due_invoices(
                organization_id=args.organization_id,
                now=args.now,
            )
        finally:
            db.close()

        print(json.dumps(result.to_dict()))
        return 1 if result.failed_leases else 0

    except KeyboardInterrupt:
        logger.warning("Billing run interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Billing run failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
