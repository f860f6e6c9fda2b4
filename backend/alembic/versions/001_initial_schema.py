"""Initial schema: users, access tokens, customers and customer notes.

Revision ID: 001
Revises: None
Create Date: 2026-10-18

Creates: users, access_tokens, customers, customer_notes
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime,
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime,
            nullable=False,
            server_default=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    """Create all tables."""

    # -- users --
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("username", sa.String, nullable=False, unique=True),
        sa.Column("email", sa.String, nullable=False, unique=True),
        sa.Column("password_hash", sa.String, nullable=True),
        sa.Column("role", sa.String, nullable=False, server_default="user"),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default="1"),
        sa.Column("phone", sa.String, nullable=True),
        sa.Column("photo", sa.String, nullable=True),
        sa.Column("deleted_at", sa.DateTime, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_users_role_active", "users", ["role", "is_active"])
    op.create_index("ix_users_deleted_at", "users", ["deleted_at"])

    # -- access_tokens --
    op.create_table(
        "access_tokens",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer,
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("token_hash", sa.String(64), nullable=False, unique=True),
        sa.Column("last_used_at", sa.DateTime, nullable=True),
        *_timestamps(),
    )

    # -- customers --
    op.create_table(
        "customers",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.String, nullable=False),
        sa.Column("email", sa.String, nullable=True),
        sa.Column("phone", sa.String, nullable=True),
        sa.Column("address", sa.String, nullable=True),
        sa.Column("agent_id", sa.Integer, sa.ForeignKey("users.id"), nullable=True),
        sa.Column("photo", sa.String, nullable=True),
        sa.Column("deleted_at", sa.DateTime, nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_customers_agent_id", "customers", ["agent_id"])
    op.create_index("ix_customers_deleted_at", "customers", ["deleted_at"])

    # -- customer_notes --
    op.create_table(
        "customer_notes",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "customer_id", sa.Integer, sa.ForeignKey("customers.id"), nullable=False
        ),
        sa.Column("body", sa.Text, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_customer_notes_customer_id", "customer_notes", ["customer_id"])


def downgrade() -> None:
    """Drop all tables in reverse dependency order."""
    op.drop_index("ix_customer_notes_customer_id", table_name="customer_notes")
    op.drop_table("customer_notes")
    op.drop_index("ix_customers_deleted_at", table_name="customers")
    op.drop_index("ix_customers_agent_id", table_name="customers")
    op.drop_table("customers")
    op.drop_table("access_tokens")
    op.drop_index("ix_users_deleted_at", table_name="users")
    op.drop_index("ix_users_role_active", table_name="users")
    op.drop_table("users")
