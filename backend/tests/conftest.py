"""Test fixtures for AgentDesk integration tests.

Uses a temp-file SQLite database with the same PRAGMAs as the production
engine. Every test runs inside a transaction that is rolled back afterwards.
"""

import os
import tempfile
from datetime import datetime

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session

from agentdesk.auth.security import hash_password
from agentdesk.config import Settings
from agentdesk.customers.models import Customer, CustomerNote
from agentdesk.db.base import Base
from agentdesk.users.models import ROLE_AGENT, User


AGENT_PASSWORD = "agent-secret-1"


@pytest.fixture(scope="session")
def test_engine():
    """Create a temp-file SQLite test database with all tables."""
    tmpfile = tempfile.NamedTemporaryFile(
        suffix=".db", dir=tempfile.gettempdir(), delete=False, prefix="agentdesk_test_"
    )
    db_path = tmpfile.name
    tmpfile.close()

    engine = create_engine(
        f"sqlite:///{db_path}",
        echo=False,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def set_pragmas(dbapi_conn, conn_rec):
        # BEGIN is emitted by do_begin below.
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    @event.listens_for(engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(engine)

    yield engine

    Base.metadata.drop_all(engine)
    engine.dispose()
    try:
        os.unlink(db_path)
    except OSError:
        pass


@pytest.fixture
def db_session(test_engine):
    """Create a database session for each test.

    Service commits release savepoints only; the outer transaction is
    rolled back after each test to maintain isolation.
    """
    connection = test_engine.connect()
    transaction = connection.begin()
    session = Session(
        bind=connection,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def settings(tmp_path):
    """Settings with uploads redirected to a per-test directory."""
    return Settings(upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def agent(db_session):
    """Active agent: Amara Okafor."""
    user = User(
        name="Amara Okafor",
        username="amara",
        email="amara@example.com",
        password_hash=hash_password(AGENT_PASSWORD),
        role=ROLE_AGENT,
        is_active=True,
    )
    db_session.add(user)
    db_session.flush()
    return user


@pytest.fixture
def second_agent(db_session):
    """Active agent: Bruno Tavares."""
    user = User(
        name="Bruno Tavares",
        username="bruno",
        email="bruno@example.com",
        password_hash=hash_password(AGENT_PASSWORD),
        role=ROLE_AGENT,
        is_active=True,
    )
    db_session.add(user)
    db_session.flush()
    return user


@pytest.fixture
def customers(db_session, agent, second_agent):
    """Three customers with distinct names and creation times.

    Alpha Foods (Amara, Jan 10), Beta Books (Bruno, Feb 15),
    Gamma Garage (unassigned, Mar 20).
    """
    rows = [
        Customer(
            name="Alpha Foods",
            email="orders@alpha.example",
            phone="555-0101",
            agent_id=agent.id,
            created_at=datetime(2024, 1, 10, 9, 0),
        ),
        Customer(
            name="Beta Books",
            email="shop@beta.example",
            phone="555-0202",
            agent_id=second_agent.id,
            created_at=datetime(2024, 2, 15, 14, 30),
        ),
        Customer(
            name="Gamma Garage",
            email="desk@gamma.example",
            phone="555-0303",
            created_at=datetime(2024, 3, 20, 23, 30),
        ),
    ]
    db_session.add_all(rows)
    db_session.flush()
    return rows


@pytest.fixture
def notes(db_session, customers):
    """Notes: two on Beta Books, one on Gamma Garage."""
    rows = [
        CustomerNote(customer_id=customers[1].id, body="Prefers invoices by email"),
        CustomerNote(customer_id=customers[1].id, body="Renewal due in spring"),
        CustomerNote(customer_id=customers[2].id, body="Loyal customer since 2019"),
    ]
    db_session.add_all(rows)
    db_session.flush()
    db_session.expire_all()
    return rows
