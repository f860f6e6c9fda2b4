"""User and AccessToken ORM models.

Users cover every actor: admins, agents (who own customers and log in through
the agent endpoint) and regular web users. Access tokens are stored as
sha256 digests; the plain token is only ever returned once, at issue time.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, Session, mapped_column, relationship

from agentdesk.db.base import Base, SoftDeleteMixin, TimestampMixin
from agentdesk.resources.contract import ResourceMixin

ROLE_ADMIN = "admin"
ROLE_AGENT = "agent"
ROLE_USER = "user"
ROLES = (ROLE_ADMIN, ROLE_AGENT, ROLE_USER)


class User(ResourceMixin, SoftDeleteMixin, TimestampMixin, Base):
    """An account that can log in; agents additionally own customers."""

    __tablename__ = "users"

    __resource_relations__ = ("customers",)
    __search_fields__ = ("name", "username", "email")
    __name_field__ = "name"
    __hidden_fields__ = ("password_hash",)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    username: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    email: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    password_hash: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(String, default=ROLE_USER, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    photo: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    customers: Mapped[list["Customer"]] = relationship(  # noqa: F821
        "Customer", back_populates="agent"
    )
    access_tokens: Mapped[list["AccessToken"]] = relationship(
        "AccessToken", back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (Index("ix_users_role_active", "role", "is_active"),)

    def is_agent(self) -> bool:
        return self.role == ROLE_AGENT

    def can_be_deleted(self, db: Session) -> bool:
        """Users still assigned to active customers cannot be deleted."""
        return not any(customer.deleted_at is None for customer in self.customers)


class AccessToken(TimestampMixin, Base):
    """Personal access token issued at login."""

    __tablename__ = "access_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    last_used_at: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="access_tokens")
