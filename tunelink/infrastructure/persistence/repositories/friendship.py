"""Friendship edge repository.

Edges are stored twice, once per direction, and always written or deleted
as a pair inside a savepoint so no reader observes half a friendship.
"""

from sqlalchemy import and_, delete, insert, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tunelink.config import get_logger
from tunelink.infrastructure.persistence.database.db_connection import transaction
from tunelink.infrastructure.persistence.database.db_models import DBFriendship
from tunelink.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)

logger = get_logger(__name__)


class FriendshipRepository:
    """Repository for symmetric friendship edges."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    @db_operation("edge_exists")
    async def edge_exists(self, owner_id: int, friend_id: int) -> bool:
        stmt = select(DBFriendship.id).where(
            DBFriendship.owner_id == owner_id,
            DBFriendship.friend_id == friend_id,
        )
        return (await self.session.scalar(stmt.limit(1))) is not None

    @db_operation("add_edge_pair")
    async def add_edge_pair(self, owner_id: int, friend_id: int) -> None:
        """Insert (owner, friend) and (friend, owner) in one savepoint.

        A unique-constraint violation on either row rolls back both. The row
        whose owner has the lower ID is always written first, so two writers
        adding the same pair from opposite ends contend on the same index key
        and cannot deadlock on a row-locking backend.
        """
        low, high = sorted((owner_id, friend_id))
        async with transaction(self.session):
            await self.session.execute(
                insert(DBFriendship),
                [
                    {"owner_id": low, "friend_id": high},
                    {"owner_id": high, "friend_id": low},
                ],
            )
        logger.debug("Friendship edge pair written", owner_id=owner_id, friend_id=friend_id)

    @db_operation("remove_edge_pair")
    async def remove_edge_pair(self, owner_id: int, friend_id: int) -> int:
        """Delete both directions; returns the number of rows removed."""
        stmt = delete(DBFriendship).where(
            or_(
                and_(
                    DBFriendship.owner_id == owner_id,
                    DBFriendship.friend_id == friend_id,
                ),
                and_(
                    DBFriendship.owner_id == friend_id,
                    DBFriendship.friend_id == owner_id,
                ),
            )
        )
        result = await self.session.execute(
            stmt.execution_options(synchronize_session=False)
        )
        return result.rowcount

    @db_operation("list_friend_ids")
    async def list_friend_ids(self, owner_id: int) -> list[int]:
        """Friend IDs ordered by edge creation time, then edge ID."""
        stmt = (
            select(DBFriendship.friend_id)
            .where(DBFriendship.owner_id == owner_id)
            .order_by(DBFriendship.created_at.asc(), DBFriendship.id.asc())
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
