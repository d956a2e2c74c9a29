"""Lease ORM model: a tenant's contract for one room with its rent schedule."""

from datetime import date
from enum import Enum

from sqlalchemy import CheckConstraint, Date, Index, Integer, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentals.models import Base, BaseModel


class LeaseStatus(str, Enum):
    """Lease lifecycle status. Only ACTIVE leases are billed."""

    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    ENDED = "ENDED"
    TERMINATED = "TERMINATED"


class RentIncreaseType(str, Enum):
    """How base rent escalates over the life of a lease."""

    NONE = "NONE"
    """Rent stays at base_rent_cents"""

    FIXED = "FIXED"
    """Flat increment of rent_increase_value cents per interval"""

    PERCENT = "PERCENT"
    """Compounding increase of rent_increase_value percent per interval"""


class Lease(Base, BaseModel):
    """
    Rental contract between an organization and a tenant for a room.

    Organization, room and tenant are owned by external collaborators and are
    referenced by opaque string identifiers. The billing engine only reads
    leases; lease management mutates them.
    """

    __tablename__ = "leases"

    organization_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        comment="Owning organization",
    )
    room_id: Mapped[str] = mapped_column(String(64), nullable=False, comment="Rented room")
    tenant_id: Mapped[str] = mapped_column(String(64), nullable=False, comment="Tenant")

    status: Mapped[LeaseStatus] = mapped_column(
        SQLEnum(LeaseStatus),
        nullable=False,
        default=LeaseStatus.DRAFT,
    )

    start_date: Mapped[date] = mapped_column(Date, nullable=False, comment="First day of the lease")
    end_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        comment="Day the lease ends (exclusive upper bound for billing)",
    )

    billing_cycle_months: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Length of one rent invoice period in months",
    )
    deposit_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    base_rent_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Rent per billing cycle before escalation",
    )

    # Escalation
    rent_increase_type: Mapped[RentIncreaseType] = mapped_column(
        SQLEnum(RentIncreaseType),
        nullable=False,
        default=RentIncreaseType.NONE,
    )
    rent_increase_value: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Cents for FIXED, integer percent for PERCENT",
    )
    rent_increase_interval_months: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=12,
    )

    notes: Mapped[str | None] = mapped_column(Text(), nullable=True)

    # Relationships
    charges: Mapped[list["LeaseCharge"]] = relationship(  # noqa: F821
        "LeaseCharge",
        back_populates="lease",
        cascade="all, delete-orphan",
        order_by="LeaseCharge.id",
    )
    invoices: Mapped[list["Invoice"]] = relationship(  # noqa: F821
        "Invoice",
        back_populates="lease",
        order_by="Invoice.period_start",
    )

    __table_args__ = (
        CheckConstraint("start_date < end_date", name="ck_lease_dates"),
        CheckConstraint("billing_cycle_months >= 1", name="ck_lease_billing_cycle"),
        CheckConstraint("base_rent_cents >= 0", name="ck_lease_base_rent"),
        Index("idx_lease_org_status", "organization_id", "status"),
    )

    @property
    def active_charges(self) -> list["LeaseCharge"]:  # noqa: F821
        return [charge for charge in self.charges if charge.is_active]

    def __repr__(self) -> str:
        return (
            f"<Lease(id={self.id}, organization_id={self.organization_id}, "
            f"status={self.status}, start_date={self.start_date}, end_date={self.end_date})>"
        )


__all__ = ["Lease", "LeaseStatus", "RentIncreaseType"]
