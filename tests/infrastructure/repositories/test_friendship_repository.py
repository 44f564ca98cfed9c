"""Tests for FriendshipRepository against an in-memory database."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from tunelink.infrastructure.persistence.database.db_models import DBFriendship
from tunelink.infrastructure.persistence.repositories import (
    AccountRepository,
    FriendshipRepository,
)


@pytest.fixture
def repo(db_session):
    return FriendshipRepository(db_session)


@pytest.fixture
async def account_ids(db_session):
    accounts = AccountRepository(db_session)
    return [(await accounts.create_account(f"user{i}")).id for i in range(4)]


async def edge_count(db_session) -> int:
    return await db_session.scalar(select(func.count(DBFriendship.id)))


class TestFriendshipRepository:
    async def test_pair_written_in_both_directions(self, repo, account_ids, db_session):
        a, b = account_ids[:2]

        await repo.add_edge_pair(a, b)

        assert await repo.edge_exists(a, b)
        assert await repo.edge_exists(b, a)
        assert await edge_count(db_session) == 2

    async def test_duplicate_pair_rejected_atomically(
        self, repo, account_ids, db_session
    ):
        a, b = account_ids[:2]
        await repo.add_edge_pair(a, b)

        # Reverse direction collides on both rows
        with pytest.raises(IntegrityError):
            await repo.add_edge_pair(b, a)

        # Savepoint rolled back; the session is still usable
        assert await edge_count(db_session) == 2

    async def test_self_edge_rejected_by_schema(self, repo, account_ids):
        with pytest.raises(IntegrityError):
            await repo.add_edge_pair(account_ids[0], account_ids[0])

    async def test_remove_both_directions(self, repo, account_ids, db_session):
        a, b = account_ids[:2]
        await repo.add_edge_pair(a, b)

        removed = await repo.remove_edge_pair(b, a)

        assert removed == 2
        assert not await repo.edge_exists(a, b)
        assert await edge_count(db_session) == 0

    async def test_remove_absent_pair(self, repo, account_ids):
        assert await repo.remove_edge_pair(*account_ids[:2]) == 0

    async def test_list_friend_ids_in_creation_order(self, repo, account_ids):
        owner, x, y, z = account_ids
        await repo.add_edge_pair(owner, z)
        await repo.add_edge_pair(x, owner)
        await repo.add_edge_pair(owner, y)

        assert await repo.list_friend_ids(owner) == [z, x, y]
        assert await repo.list_friend_ids(x) == [owner]

    @pytest.mark.parametrize(("owner", "friend"), [(3, 7), (7, 3)])
    async def test_lower_owner_row_written_first(self, owner, friend):
        session = MagicMock()
        session.execute = AsyncMock()

        await FriendshipRepository(session).add_edge_pair(owner, friend)

        _, rows = session.execute.await_args.args
        assert rows == [
            {"owner_id": 3, "friend_id": 7},
            {"owner_id": 7, "friend_id": 3},
        ]

    async def test_reverse_request_stores_same_row_order(
        self, repo, account_ids, db_session
    ):
        a, b = account_ids[:2]

        await repo.add_edge_pair(b, a)

        result = await db_session.execute(
            select(DBFriendship.owner_id, DBFriendship.friend_id).order_by(
                DBFriendship.id
            )
        )
        assert result.all() == [(a, b), (b, a)]
