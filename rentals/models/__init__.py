"""SQLAlchemy base model with common fields and model exports."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# Base class for all models
Base = declarative_base()


class BaseModel:
    """Base model with common timestamp fields."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


# Import models to register them with Base (after Base is defined)
# This must be after Base declaration to avoid circular imports
from rentals.models.audit_log import AuditLog  # noqa: E402
from rentals.models.invoice import (  # noqa: E402
    Invoice,
    InvoiceItem,
    InvoiceItemKind,
    InvoiceItemStatus,
    InvoiceStatus,
)
from rentals.models.lease import Lease, LeaseStatus, RentIncreaseType  # noqa: E402
from rentals.models.lease_charge import (  # noqa: E402
    BillingTiming,
    ChargeMode,
    FeeType,
    LeaseCharge,
)
from rentals.models.membership import BILLING_MANAGE_PERMISSION, Membership, MembershipStatus  # noqa: E402
from rentals.models.notification import Notification, NotificationType  # noqa: E402

__all__ = [
    "Base",
    "BaseModel",
    "AuditLog",
    "Lease",
    "LeaseStatus",
    "RentIncreaseType",
    "LeaseCharge",
    "ChargeMode",
    "FeeType",
    "BillingTiming",
    "Invoice",
    "InvoiceStatus",
    "InvoiceItem",
    "InvoiceItemKind",
    "InvoiceItemStatus",
    "Membership",
    "MembershipStatus",
    "BILLING_MANAGE_PERMISSION",
    "Notification",
    "NotificationType",
]
