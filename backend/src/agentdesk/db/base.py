"""Declarative base and column mixins shared by every AgentDesk model.

TimestampMixin: created_at / updated_at, filled by the database.
SoftDeleteMixin: deleted_at marker; the row stays in the table and is
hidden from default listings until restored.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base; Base.metadata is the schema Alembic migrates."""


class TimestampMixin:
    """Creation and modification times.

    created_at may be set explicitly (imports, fixtures); otherwise the
    database default applies. updated_at is refreshed on every UPDATE.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )


class SoftDeleteMixin:
    """Nullable deleted_at; a non-null value marks the row inactive."""

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime, nullable=True, index=True
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
