"""Test fixtures and configuration."""

import logging
import os
import sys
from collections.abc import AsyncIterator
from pathlib import Path
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
import structlog
from httpx import ASGITransport, AsyncClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Set ENVIRONMENT for pydantic settings before the app is imported
os.environ["ENVIRONMENT"] = "testing"

from recon import database  # noqa: E402
from recon.database import Base  # noqa: E402
from recon.main import app  # noqa: E402
from recon.models import User  # noqa: E402
from recon.services import match_evaluator  # noqa: E402
from recon.services.notifications import clear_listeners  # noqa: E402
from tests.factories import make_access_token  # noqa: E402


# --- Structlog Configuration for Tests ---
@pytest.fixture(autouse=True, scope="session")
def configure_structlog_for_tests():
    """Configure structlog for proper capsys capture in tests."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.format_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.dev.ConsoleRenderer(),
        foreign_pre_chain=processors[:-1],
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG)

    yield

    structlog.reset_defaults()


# --- Module state cleanup ---
@pytest.fixture(autouse=True)
def reset_reconciliation_state(monkeypatch):
    """Drop listeners and cached thresholds so tests cannot leak into each other."""
    monkeypatch.delenv("RECONCILIATION_SUGGESTION_FLOOR", raising=False)
    monkeypatch.delenv("RECONCILIATION_BULK_FLOOR", raising=False)
    clear_listeners()
    match_evaluator._config_cache = None
    yield
    clear_listeners()
    match_evaluator._config_cache = None


# --- SQLite database ---
def _sqlite_engine(db_path: Path, begin_statement: str) -> AsyncEngine:
    """Build an aiosqlite engine whose transactions are opened explicitly.

    pysqlite's implicit transaction handling breaks SAVEPOINT, so the driver is
    put in autocommit mode and BEGIN is emitted from the "begin" event instead.
    ``BEGIN IMMEDIATE`` takes the write lock up front, which stands in for
    row locks when two sessions race on the same rows.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA busy_timeout=5000")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql(begin_statement)

    return engine


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "reconciliation.db"


@pytest_asyncio.fixture
async def db_engine(db_path: Path) -> AsyncIterator[AsyncEngine]:
    """Per-test SQLite file with the full schema created."""
    engine = _sqlite_engine(db_path, "BEGIN")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session_maker(db_engine: AsyncEngine) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Session maker bound to the test engine, also injected into get_db."""
    maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    previous = database.set_test_session_maker(maker)
    yield maker
    database.set_test_session_maker(previous)


@pytest_asyncio.fixture
async def locking_session_maker(db_engine: AsyncEngine, db_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Sessions whose transactions take the database write lock on BEGIN."""
    engine = _sqlite_engine(db_path, "BEGIN IMMEDIATE")
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """A session for arranging and asserting state.

    Operations under test commit their own work, so each test gets a fresh
    database file instead of a rolled-back outer transaction.
    """
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def service_db(session_maker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    """A second session for the operation under test.

    A rollback inside the operation expires everything in its session, so the
    objects arranged through ``db`` must live elsewhere.
    """
    async with session_maker() as session:
        yield session


@pytest.fixture
def workspace_id() -> UUID:
    return uuid4()


@pytest_asyncio.fixture
async def test_user(db: AsyncSession) -> User:
    """Create and commit a user so every session can resolve it."""
    user = User(email=f"test-{uuid4()}@example.com", name="Test User")
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def client(session_maker, test_user: User) -> AsyncIterator[AsyncClient]:
    """Async test client authenticated as test_user."""
    token = make_access_token(test_user.id)
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"Authorization": f"Bearer {token}"},
    ) as client_instance:
        yield client_instance


@pytest_asyncio.fixture
async def public_client(session_maker) -> AsyncIterator[AsyncClient]:
    """Async test client without auth headers."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client_instance:
        yield client_instance
