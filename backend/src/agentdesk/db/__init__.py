"""Database layer: declarative base, mixins, engine and session management."""

from agentdesk.db.base import Base, SoftDeleteMixin, TimestampMixin

__all__ = [
    "Base",
    "SoftDeleteMixin",
    "TimestampMixin",
]
