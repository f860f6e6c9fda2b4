"""Alembic migration runner for the AgentDesk schema.

Online mode reuses agentdesk.db.engine (PRAGMAs included). Offline mode
renders SQL for the configured AGENTDESK_DATABASE_URL without connecting.
SQLite cannot ALTER most constraints in place, so migrations run in batch mode.
"""

from logging.config import fileConfig

from alembic import context

# Model modules must be imported for Base.metadata to know their tables
import agentdesk.customers.models  # noqa: F401
import agentdesk.users.models  # noqa: F401
from agentdesk.config import get_settings
from agentdesk.db.base import Base

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def run_migrations_offline() -> None:
    """Emit migration SQL to stdout for the configured database URL."""
    context.configure(
        url=get_settings().database_url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        render_as_batch=True,
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    """Apply migrations through the application engine."""
    from agentdesk.db.engine import engine

    with engine.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=True,
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
