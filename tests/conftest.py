"""Shared fixtures: a fresh in-memory database per test.

Each test gets its own engine, so nothing leaks between tests. In-memory
SQLite lives on a single shared connection; a test must therefore use
either ``db_session`` or ``uow``, never both at once.
"""

from datetime import UTC, datetime, timedelta
from itertools import count

import pytest
from sqlalchemy import update

from tunelink.domain.entities import Account, Playlist, Track
from tunelink.infrastructure.persistence.database.db_connection import (
    create_db_engine,
    create_session_factory,
)
from tunelink.infrastructure.persistence.database.db_models import DBAccount, init_db
from tunelink.infrastructure.persistence.unit_of_work import unit_of_work

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
async def engine():
    """Fresh in-memory database with the schema created."""
    engine = create_db_engine(MEMORY_URL)
    try:
        await init_db(engine)
    except Exception as e:
        pytest.fail(f"Database initialization failed: {e}")
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
async def db_session(session_factory):
    """Provide database session with automatic rollback."""
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
async def uow(session_factory):
    """Unit of work over the test database; use cases commit through it."""
    async with unit_of_work(session_factory) as uow:
        yield uow


@pytest.fixture
def seed(uow):
    """Helpers that write fixture data through the unit of work.

    Accounts get strictly increasing creation times one minute apart so
    recency ordering is deterministic.
    """
    clock = count()
    base_time = datetime(2024, 1, 1, tzinfo=UTC)

    class Seeder:
        async def account(
            self, username: str, is_active: bool = True, **kwargs
        ) -> Account:
            async with uow:
                repo = uow.get_account_repository()
                account = await repo.create_account(
                    username, display_name=kwargs.get("display_name"), is_active=is_active
                )
                await uow._session.execute(
                    update(DBAccount)
                    .where(DBAccount.id == account.id)
                    .values(created_at=base_time + timedelta(minutes=next(clock)))
                )
            return account

        async def playlist(
            self, owner_id: int, name: str = "Mix", is_public: bool = False
        ) -> Playlist:
            async with uow:
                return await uow.get_playlist_repository().create_playlist(
                    Playlist(owner_id=owner_id, name=name, is_public=is_public)
                )

        async def track(
            self, title: str = "Song", artist: str = "Artist", external_id: str | None = None
        ) -> Track:
            async with uow:
                return await uow.get_track_repository().create_track(
                    Track(title=title, artist=artist, external_id=external_id)
                )

    return Seeder()
