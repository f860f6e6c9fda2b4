"""Customer and CustomerNote ORM models."""

from typing import Optional

from sqlalchemy import ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from agentdesk.db.base import Base, SoftDeleteMixin, TimestampMixin
from agentdesk.resources.contract import ResourceMixin


class Customer(ResourceMixin, SoftDeleteMixin, TimestampMixin, Base):
    """A customer, optionally assigned to an agent."""

    __tablename__ = "customers"

    __resource_relations__ = ("agent", "notes")
    __search_fields__ = ("name", "email", "phone")
    __name_field__ = "name"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    address: Mapped[Optional[str]] = mapped_column(String, nullable=True)
    agent_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("users.id"), nullable=True, index=True
    )
    photo: Mapped[Optional[str]] = mapped_column(String, nullable=True)

    agent: Mapped[Optional["User"]] = relationship(  # noqa: F821
        "User", back_populates="customers"
    )
    notes: Mapped[list["CustomerNote"]] = relationship(
        "CustomerNote",
        back_populates="customer",
        cascade="all, delete-orphan",
        order_by="CustomerNote.id",
    )


class CustomerNote(ResourceMixin, TimestampMixin, Base):
    """Free-text note on a customer. Notes are deleted permanently."""

    __tablename__ = "customer_notes"

    __resource_relations__ = ("customer",)
    __search_fields__ = ("body",)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    customer_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("customers.id"), nullable=False, index=True
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)

    customer: Mapped["Customer"] = relationship("Customer", back_populates="notes")
