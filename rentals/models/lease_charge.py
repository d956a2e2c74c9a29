"""Lease charge ORM model for recurring fees attached to a lease."""

from enum import Enum

from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentals.models import Base, BaseModel


class FeeType(str, Enum):
    """Kind of fee a charge represents."""

    WATER = "WATER"
    ELECTRICITY = "ELECTRICITY"
    MANAGEMENT = "MANAGEMENT"
    INTERNET = "INTERNET"
    GAS = "GAS"
    OTHER = "OTHER"


class ChargeMode(str, Enum):
    """How a charge is priced."""

    FIXED = "FIXED"
    """Same amount every cycle (fixed_amount_cents)"""

    METERED = "METERED"
    """Consumption times unit price, known only after a meter reading"""


class BillingTiming(str, Enum):
    """Which period a charge pays for relative to the invoice period."""

    PREPAID = "PREPAID"
    """The invoice's own period"""

    POSTPAID = "POSTPAID"
    """The period immediately preceding the invoice period"""


class LeaseCharge(Base, BaseModel):
    """
    Recurring charge billed alongside rent.

    FIXED charges require fixed_amount_cents; METERED charges require
    unit_price_cents and unit_name. Each charge has its own billing cycle, so
    an annual fee can skip eleven of twelve monthly invoices.
    """

    __tablename__ = "lease_charges"

    lease_id: Mapped[int] = mapped_column(
        ForeignKey("leases.id"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    fee_type: Mapped[FeeType | None] = mapped_column(SQLEnum(FeeType), nullable=True)
    mode: Mapped[ChargeMode] = mapped_column(SQLEnum(ChargeMode), nullable=False)

    fixed_amount_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    unit_price_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    unit_name: Mapped[str | None] = mapped_column(String(20), nullable=True)

    billing_cycle_months: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    billing_timing: Mapped[BillingTiming | None] = mapped_column(
        SQLEnum(BillingTiming),
        nullable=True,
        comment="Explicit timing; when null it is defaulted from fee_type",
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Relationships
    lease: Mapped["Lease"] = relationship("Lease", back_populates="charges")  # noqa: F821

    def validate(self) -> None:
        """Check that the pricing fields required by the mode are present.

        Raises:
            InvalidChargeError: If a FIXED charge has no amount or a METERED charge
                has no unit price or unit name
        """
        from rentals.services.errors import InvalidChargeError

        if self.mode == ChargeMode.FIXED:
            if self.fixed_amount_cents is None or self.fixed_amount_cents < 0:
                raise InvalidChargeError(f"Fixed charge '{self.name}' requires fixed_amount_cents")
        elif self.mode == ChargeMode.METERED:
            if self.unit_price_cents is None or self.unit_price_cents < 0:
                raise InvalidChargeError(f"Metered charge '{self.name}' requires unit_price_cents")
            if not self.unit_name:
                raise InvalidChargeError(f"Metered charge '{self.name}' requires unit_name")
        else:
            raise InvalidChargeError(f"Unknown charge mode: {self.mode}")

    def __repr__(self) -> str:
        return (
            f"<LeaseCharge(id={self.id}, lease_id={self.lease_id}, name={self.name}, "
            f"mode={self.mode}, fee_type={self.fee_type})>"
        )


__all__ = ["LeaseCharge", "FeeType", "ChargeMode", "BillingTiming"]
