"""Notification ORM model for in-app messages addressed to organization members."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from rentals.models import Base, BaseModel


class NotificationType(str, Enum):
    """Kinds of notification the billing engine creates."""

    INVOICE_CREATED = "INVOICE_CREATED"


class Notification(Base, BaseModel):
    """In-app notification. Delivery is handled outside the billing engine."""

    __tablename__ = "notifications"

    organization_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    body: Mapped[str | None] = mapped_column(Text(), nullable=True)

    entity_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    """Referenced entity: "Invoice", etc."""

    entity_id: Mapped[int | None] = mapped_column(nullable=True)

    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (Index("idx_notification_org_user", "organization_id", "user_id"),)

    def __repr__(self) -> str:
        return (
            f"<Notification(id={self.id}, user_id={self.user_id}, type={self.type}, "
            f"entity={self.entity_type}:{self.entity_id})>"
        )


__all__ = ["Notification", "NotificationType"]
