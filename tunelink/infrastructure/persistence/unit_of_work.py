"""Transaction boundary shared by every repository of one request.

All repositories handed out by a ``DatabaseUnitOfWork`` wrap the same
session, so everything a use case does inside ``async with uow:`` commits
or rolls back together.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Self

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tunelink.domain.repositories.interfaces import (
    AccountRepositoryProtocol,
    FriendshipRepositoryProtocol,
    PlaylistEntryRepositoryProtocol,
    PlaylistRepositoryProtocol,
    TrackIdentityServiceProtocol,
    TrackRepositoryProtocol,
)
from tunelink.infrastructure.persistence.database.db_connection import (
    get_session_factory,
)
from tunelink.infrastructure.persistence.repositories.account import AccountRepository
from tunelink.infrastructure.persistence.repositories.friendship import (
    FriendshipRepository,
)
from tunelink.infrastructure.persistence.repositories.playlist import (
    PlaylistEntryRepository,
    PlaylistRepository,
)
from tunelink.infrastructure.persistence.repositories.track import TrackRepository
from tunelink.infrastructure.services.track_identity_resolver import (
    TrackIdentityResolver,
)


class DatabaseUnitOfWork:
    """Session-backed unit of work.

    Leaving the ``async with`` block normally commits, unless ``commit()``
    was already called inside it; leaving it with an exception rolls back.
    The same instance can be entered again for a further transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._committed = False

    async def __aenter__(self) -> Self:
        self._committed = False
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: object,
    ) -> None:
        if exc_type is not None:
            await self.rollback()
        elif not self._committed:
            await self.commit()

    async def commit(self) -> None:
        await self._session.commit()
        self._committed = True

    async def rollback(self) -> None:
        await self._session.rollback()

    def get_account_repository(self) -> AccountRepositoryProtocol:
        return AccountRepository(self._session)

    def get_friendship_repository(self) -> FriendshipRepositoryProtocol:
        return FriendshipRepository(self._session)

    def get_playlist_repository(self) -> PlaylistRepositoryProtocol:
        return PlaylistRepository(self._session)

    def get_playlist_entry_repository(self) -> PlaylistEntryRepositoryProtocol:
        return PlaylistEntryRepository(self._session)

    def get_track_repository(self) -> TrackRepositoryProtocol:
        return TrackRepository(self._session)

    def get_track_identity_service(self) -> TrackIdentityServiceProtocol:
        """Identity resolver writing through this unit of work's track repository."""
        return TrackIdentityResolver(self.get_track_repository())


@asynccontextmanager
async def unit_of_work(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncGenerator[DatabaseUnitOfWork]:
    """Open a session and hand out a unit of work bound to it.

    Use cases enter the unit of work themselves; the session is closed when
    this block exits.

    Example:
        ```python
        async with unit_of_work() as uow:
            await AddFriendUseCase().execute(AddFriendCommand(1, 2), uow)
        ```
    """
    async with (session_factory or get_session_factory())() as session:
        yield DatabaseUnitOfWork(session)
