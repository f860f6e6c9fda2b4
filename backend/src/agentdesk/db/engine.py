"""SQLite engine factory with PRAGMA injection.

Creates the SQLAlchemy engine from settings.database_url.
Every SQLite connection automatically receives the foreign-key and busy-timeout PRAGMAs.
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import Session, sessionmaker

from agentdesk.config import get_settings


def create_db_engine(database_url: str | None = None) -> Engine:
    """Create the SQLAlchemy engine.

    - Creates the parent directory of a file-backed SQLite database
    - Event listener sets foreign keys and busy timeout on each SQLite connection
    """
    settings = get_settings()
    url = make_url(database_url or settings.database_url)

    is_sqlite = url.get_backend_name() == "sqlite"
    if is_sqlite and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(
        url,
        pool_pre_ping=True,
        echo=settings.debug,
    )

    if is_sqlite:

        @event.listens_for(engine, "connect")
        def set_sqlite_pragmas(dbapi_connection, connection_record):
            """Set SQLite PRAGMAs on every new connection."""
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

    return engine


# Module-level singleton engine
engine = create_db_engine()

# Session factory bound to the engine
SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def get_db() -> Generator[Session, None, None]:
    """Context manager yielding a database session.

    Usage:
        with get_db() as db:
            customers = db.query(Customer).all()
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
