"""Account lookup repository.

Accounts are owned by an external account service; this repository only
answers the point lookups and aggregate queries the relationship graph needs.
"""

from collections.abc import Sequence

from attrs import define
from sqlalchemy import Exists, exists, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import InstrumentedAttribute

from tunelink.config import get_logger
from tunelink.domain.entities import Account, ensure_utc
from tunelink.infrastructure.persistence.database.db_models import (
    DBAccount,
    DBFriendship,
    DBPlaylist,
)
from tunelink.infrastructure.persistence.repositories.base_repo import (
    BaseModelMapper,
    BaseRepository,
    filter_active,
)
from tunelink.infrastructure.persistence.repositories.repo_decorator import (
    db_operation,
)

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class AccountMapper(BaseModelMapper[DBAccount, Account]):
    """Bidirectional mapper between account rows and domain accounts."""

    @staticmethod
    async def to_domain(db_model: DBAccount) -> Account:
        return Account(
            id=db_model.id,
            username=db_model.username,
            display_name=db_model.display_name,
            is_active=db_model.is_active,
            created_at=ensure_utc(db_model.created_at),
        )

    @staticmethod
    def to_db(domain_model: Account) -> DBAccount:
        return DBAccount(
            username=domain_model.username,
            display_name=domain_model.display_name,
            is_active=domain_model.is_active,
        )


def _public_playlist_exists(account_id_column: InstrumentedAttribute[int]) -> Exists:
    """Correlated EXISTS for 'owns at least one public, non-deleted playlist'."""
    return exists().where(
        DBPlaylist.owner_id == account_id_column,
        DBPlaylist.is_public == True,  # noqa: E712
        filter_active(DBPlaylist),
    )


class AccountRepository(BaseRepository[DBAccount, Account]):
    """Repository for account lookups and account-level aggregates."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session=session, model_class=DBAccount, mapper=AccountMapper())

    @db_operation("get_account")
    async def get_account(self, account_id: int) -> Account | None:
        """Get an account by ID regardless of its active status."""
        db_account = await self._execute_query_one(self.select_by_id(account_id))
        if db_account is None:
            return None
        return await self.mapper.to_domain(db_account)

    @db_operation("create_account")
    async def create_account(
        self,
        username: str,
        display_name: str | None = None,
        is_active: bool = True,
    ) -> Account:
        """Create an account record."""
        return await self.create(
            Account(username=username, display_name=display_name, is_active=is_active)
        )

    @db_operation("get_accounts")
    async def get_accounts(self, account_ids: Sequence[int]) -> dict[int, Account]:
        """Batch lookup of accounts keyed by ID. Missing IDs are absent."""
        if not account_ids:
            return {}
        stmt = self.select().where(DBAccount.id.in_(account_ids))
        db_accounts = await self._execute_query(stmt)
        accounts = await self.mapper.map_collection(db_accounts)
        return {account.id: account for account in accounts}

    @db_operation("get_public_playlist_counts")
    async def get_public_playlist_counts(
        self, account_ids: Sequence[int]
    ) -> dict[int, int]:
        """Count public, non-deleted playlists for each account (zero-filled)."""
        counts = dict.fromkeys(account_ids, 0)
        if not account_ids:
            return counts

        stmt = (
            select(DBPlaylist.owner_id, func.count(DBPlaylist.id))
            .where(
                DBPlaylist.owner_id.in_(account_ids),
                DBPlaylist.is_public == True,  # noqa: E712
                filter_active(DBPlaylist),
            )
            .group_by(DBPlaylist.owner_id)
        )
        result = await self.session.execute(stmt)
        for owner_id, count in result.all():
            counts[owner_id] = count
        return counts

    @db_operation("find_recommendation_candidates")
    async def find_recommendation_candidates(
        self, owner_id: int, limit: int
    ) -> list[Account]:
        """Active non-friends owning a public playlist, most recently created first."""
        already_friends = select(DBFriendship.friend_id).where(
            DBFriendship.owner_id == owner_id
        )

        stmt = (
            self.select()
            .where(
                DBAccount.id != owner_id,
                DBAccount.is_active == True,  # noqa: E712
                DBAccount.id.not_in(already_friends),
                _public_playlist_exists(DBAccount.id),
            )
            .order_by(DBAccount.created_at.desc(), DBAccount.id.asc())
            .limit(limit)
        )

        db_accounts = await self._execute_query(stmt)
        return await self.mapper.map_collection(db_accounts)
