"""Staff user model and zone assignments."""
from __future__ import annotations

import enum
import uuid

from sqlalchemy import Boolean, Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from glamping_admin.db.base import Base
from glamping_admin.models.mixins import TimestampMixin


class UserRole(str, enum.Enum):
    """Staff roles of the back-office."""

    ADMIN = "admin"
    SALE = "sale"
    OPERATIONS = "operations"
    GLAMPING_OWNER = "glamping_owner"


ZONE_RESTRICTED_ROLES = frozenset({UserRole.GLAMPING_OWNER})


class User(TimestampMixin, Base):
    """A back-office staff member."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False)
    first_name: Mapped[str] = mapped_column(String(120), nullable=False)
    last_name: Mapped[str] = mapped_column(String(120), nullable=False, default="")
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    zone_assignments: Mapped[list["UserZone"]] = relationship(
        "UserZone", back_populates="user", cascade="all, delete-orphan"
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


class UserZone(Base):
    """Grants a zone-restricted user access to one zone."""

    __tablename__ = "user_zones"
    __table_args__ = (UniqueConstraint("user_id", "zone_id", name="uq_user_zone"),)

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True, default=uuid.uuid4, unique=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    zone_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("zones.id", ondelete="CASCADE"), nullable=False
    )

    user: Mapped[User] = relationship("User", back_populates="zone_assignments")
