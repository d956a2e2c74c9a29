"""Invoice and invoice item ORM models."""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentals.models import Base, BaseModel
from rentals.models.lease_charge import ChargeMode


class InvoiceStatus(str, Enum):
    """Invoice status. Transitions only move forward."""

    DRAFT = "DRAFT"
    ISSUED = "ISSUED"
    PAID = "PAID"
    VOID = "VOID"
    OVERDUE = "OVERDUE"
    """Read-side view of ISSUED past its due date; never persisted"""


class InvoiceItemKind(str, Enum):
    """What an invoice line bills for."""

    RENT = "RENT"
    CHARGE = "CHARGE"
    DEPOSIT = "DEPOSIT"


class InvoiceItemStatus(str, Enum):
    """Whether a line's amount is final."""

    PENDING_READING = "PENDING_READING"
    CONFIRMED = "CONFIRMED"


class Invoice(Base, BaseModel):
    """
    Bill for one lease period [period_start, period_end).

    (lease_id, period_start, period_end) is unique; billing runs rely on this
    constraint to stay idempotent. total_amount_cents is always the sum of the
    CONFIRMED items' amounts.
    """

    __tablename__ = "invoices"

    organization_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    lease_id: Mapped[int] = mapped_column(
        ForeignKey("leases.id"),
        nullable=False,
        index=True,
    )

    status: Mapped[InvoiceStatus] = mapped_column(
        SQLEnum(InvoiceStatus),
        nullable=False,
        default=InvoiceStatus.DRAFT,
        index=True,
    )

    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    total_amount_cents: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    issued_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Relationships
    lease: Mapped["Lease"] = relationship("Lease", back_populates="invoices")  # noqa: F821
    items: Mapped[list["InvoiceItem"]] = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.id",
    )

    __table_args__ = (
        UniqueConstraint("lease_id", "period_start", "period_end", name="uq_invoice_lease_period"),
        Index("idx_invoice_lease_period_end", "lease_id", "period_end"),
    )

    @property
    def has_pending_readings(self) -> bool:
        return any(item.status == InvoiceItemStatus.PENDING_READING for item in self.items)

    def __repr__(self) -> str:
        return (
            f"<Invoice(id={self.id}, lease_id={self.lease_id}, status={self.status}, "
            f"period={self.period_start}..{self.period_end}, total={self.total_amount_cents})>"
        )


class InvoiceItem(Base, BaseModel):
    """
    One line of an invoice.

    FIXED lines carry their amount from creation. METERED lines start as
    PENDING_READING with no amount; confirming a reading fills meter_end,
    quantity and amount_cents and moves them to CONFIRMED.
    """

    __tablename__ = "invoice_items"

    invoice_id: Mapped[int] = mapped_column(
        ForeignKey("invoices.id"),
        nullable=False,
        index=True,
    )
    lease_charge_id: Mapped[int | None] = mapped_column(
        ForeignKey("lease_charges.id"),
        nullable=True,
        index=True,
        comment="Charge that generated this line (null for rent)",
    )

    name: Mapped[str] = mapped_column(String(50), nullable=False)
    kind: Mapped[InvoiceItemKind] = mapped_column(SQLEnum(InvoiceItemKind), nullable=False)
    mode: Mapped[ChargeMode] = mapped_column(SQLEnum(ChargeMode), nullable=False)
    status: Mapped[InvoiceItemStatus] = mapped_column(
        SQLEnum(InvoiceItemStatus),
        nullable=False,
        default=InvoiceItemStatus.CONFIRMED,
    )

    # Period of service this line pays for
    service_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    service_end: Mapped[date | None] = mapped_column(Date, nullable=True)

    amount_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Metered fields
    unit_price_cents: Mapped[int | None] = mapped_column(Integer, nullable=True)
    unit_name: Mapped[str | None] = mapped_column(String(20), nullable=True)
    meter_start: Mapped[Decimal | None] = mapped_column(Numeric(12, 3), nullable=True)
    meter_end: Mapped[Decimal | None] = mapped_column(Numeric(12, 3), nullable=True)
    quantity: Mapped[Decimal | None] = mapped_column(Numeric(12, 3), nullable=True)

    # Relationships
    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="items")
    lease_charge: Mapped["LeaseCharge | None"] = relationship("LeaseCharge")  # noqa: F821

    def __repr__(self) -> str:
        return (
            f"<InvoiceItem(id={self.id}, invoice_id={self.invoice_id}, kind={self.kind}, "
            f"mode={self.mode}, status={self.status}, amount_cents={self.amount_cents})>"
        )


__all__ = ["Invoice", "InvoiceStatus", "InvoiceItem", "InvoiceItemKind", "InvoiceItemStatus"]
