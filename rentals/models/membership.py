"""Membership ORM model: which users belong to an organization and what they may do."""

from enum import Enum
from typing import Any

from sqlalchemy import JSON, Index, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import Mapped, mapped_column

from rentals.models import Base, BaseModel

BILLING_MANAGE_PERMISSION = "billing.manage"


class MembershipStatus(str, Enum):
    """Membership status. Only ACTIVE members receive notifications."""

    ACTIVE = "ACTIVE"
    DISABLED = "DISABLED"


class Membership(Base, BaseModel):
    """
    A user's membership in an organization.

    Role and permission management live outside the billing engine; the
    resolved permission keys are mirrored into `permissions` so billing can
    address notifications to members holding `billing.manage`.
    """

    __tablename__ = "memberships"

    organization_id: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[MembershipStatus] = mapped_column(
        SQLEnum(MembershipStatus),
        nullable=False,
        default=MembershipStatus.ACTIVE,
    )
    permissions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    """Resolved permission keys, e.g. ["billing.read", "billing.manage"]."""

    __table_args__ = (Index("idx_membership_org_user", "organization_id", "user_id", unique=True),)

    def has_permission(self, key: str) -> bool:
        permissions: Any = self.permissions or []
        return key in permissions

    def __repr__(self) -> str:
        return (
            f"<Membership(id={self.id}, organization_id={self.organization_id}, "
            f"user_id={self.user_id}, status={self.status})>"
        )


__all__ = ["Membership", "MembershipStatus", "BILLING_MANAGE_PERMISSION"]
