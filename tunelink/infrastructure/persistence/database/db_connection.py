"""SQLAlchemy database configuration and connection management.

This module is responsible for:
- Engine creation and configuration
- Connection pooling
- Session management
- Transaction handling
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tunelink.config import get_logger, settings

# Create module logger
logger = get_logger(__name__)


def _is_memory_sqlite(db_url: str) -> bool:
    return db_url.startswith("sqlite") and (":memory:" in db_url or db_url.endswith("://"))


def create_db_engine(connection_string: str | None = None) -> AsyncEngine:
    """Create async SQLAlchemy engine.

    SQLite connections take the write lock at the start of every transaction
    (``BEGIN IMMEDIATE``) so concurrent writers from any process serialise on
    the database instead of failing on a stale read snapshot. Other backends
    rely on row locks and constraints.
    """
    db_url = connection_string or settings.database.url
    is_sqlite = db_url.startswith("sqlite")

    engine_kwargs: dict[str, Any] = {
        "echo": settings.database.echo,
        "pool_pre_ping": True,
    }

    if is_sqlite:
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.database.busy_timeout_ms / 1000,
        }

    if _is_memory_sqlite(db_url):
        # One shared connection, otherwise each checkout gets an empty database
        engine_kwargs["poolclass"] = StaticPool
    else:
        engine_kwargs.update(
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
            pool_timeout=settings.database.pool_timeout,
            pool_recycle=settings.database.pool_recycle,
        )

    engine = create_async_engine(db_url, **engine_kwargs)

    if is_sqlite:
        busy_timeout = settings.database.busy_timeout_ms

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, _):  # type: ignore # pragma: no cover
            """Take over transaction control from the driver and set PRAGMAs."""
            # Stop the driver from emitting its own BEGIN so savepoints nest properly
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute(f"PRAGMA busy_timeout = {busy_timeout}")
            cursor.execute("PRAGMA journal_mode = WAL")
            cursor.execute("PRAGMA synchronous = NORMAL")
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.close()

        @event.listens_for(engine.sync_engine, "begin")
        def _begin_immediate(conn):  # type: ignore # pragma: no cover
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    logger.info(f"Created database engine for {engine.url.get_backend_name()}")
    return engine


# Global engine singleton
_engine: AsyncEngine | None = None

# Global session factory singleton
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Get or create the global database engine singleton."""
    global _engine
    if _engine is None:
        _engine = create_db_engine()
    return _engine


def configure_database(connection_string: str) -> AsyncEngine:
    """Replace the global engine, e.g. when the CLI is pointed at another database."""
    global _engine, _session_factory
    _engine = create_db_engine(connection_string)
    _session_factory = None
    return _engine


def create_session_factory(
    engine: AsyncEngine | None = None,
) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory for the given engine."""
    return async_sessionmaker(
        bind=engine or get_engine(),
        expire_on_commit=False,  # Domain objects are mapped before commit anyway
        autoflush=True,
    )


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the global session factory singleton."""
    global _session_factory
    if _session_factory is None:
        _session_factory = create_session_factory()
    return _session_factory


@asynccontextmanager
async def get_session(
    rollback: bool = True,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[AsyncSession]:
    """Get an asynchronous database session with automatic transaction management.

    Commits when the block exits cleanly.

    Args:
        rollback: If True (default), automatically rolls back on exception.
        session_factory: Factory to use instead of the global one.
    """
    session = (session_factory or get_session_factory())()
    try:
        yield session
        await session.commit()
    except Exception:
        if rollback:
            await session.rollback()
        raise
    finally:
        await session.close()


@asynccontextmanager
async def transaction(session: AsyncSession) -> AsyncGenerator[AsyncSession]:
    """Create a nested transaction (savepoint) inside the session's transaction.

    Statements inside the block are applied together or not at all; a
    failing block rolls back to the savepoint and leaves the outer
    transaction usable.

    Example:
        ```python
        async with transaction(session):
            await session.execute(insert_forward_edge)
            await session.execute(insert_reverse_edge)
        ```
    """
    async with session.begin_nested():
        yield session
