"""Friendship use cases: the symmetric relationship graph between accounts.

Each friendship is stored as two directed edges written and deleted
together. Uniqueness of each directed edge is enforced by the database;
these use cases translate constraint violations into domain errors and
retry the pair write a bounded number of times when a concurrent writer
interferes.
"""

from attrs import define, evolve, field, validators
from sqlalchemy.exc import IntegrityError

from tunelink.config import get_logger, settings
from tunelink.domain.entities import Account, FriendshipStatus
from tunelink.domain.exceptions import (
    AlreadyExistsError,
    ConflictError,
    InvalidOperationError,
    NotFoundError,
)
from tunelink.domain.repositories import UnitOfWorkProtocol

logger = get_logger(__name__)


@define(frozen=True, slots=True)
class AddFriendCommand:
    """Command for creating a friendship between two accounts."""

    owner_id: int
    other_id: int


@define(frozen=True, slots=True)
class RemoveFriendCommand:
    """Command for dissolving a friendship. Absent friendships are not an error."""

    owner_id: int
    other_id: int


@define(frozen=True, slots=True)
class GetFriendStatusCommand:
    owner_id: int
    other_id: int


@define(frozen=True, slots=True)
class ListFriendsCommand:
    owner_id: int


@define(frozen=True, slots=True)
class RecommendFriendsCommand:
    """Command for friend recommendations.

    ``limit`` defaults to the configured recommendation limit and must be
    positive.
    """

    owner_id: int
    limit: int = field(
        factory=lambda: settings.consistency.recommendation_limit,
        validator=validators.instance_of(int),
    )

    def __attrs_post_init__(self) -> None:
        if self.limit <= 0:
            raise InvalidOperationError(
                f"Recommendation limit must be positive, got {self.limit}"
            )


async def _require_active_account(uow: UnitOfWorkProtocol, account_id: int) -> Account:
    account = await uow.get_account_repository().get_account(account_id)
    if account is None or not account.is_active:
        raise NotFoundError(f"Account {account_id} not found")
    return account


@define(slots=True)
class AddFriendUseCase:
    """Create both directed edges of a friendship atomically."""

    async def execute(self, command: AddFriendCommand, uow: UnitOfWorkProtocol) -> None:
        owner_id, other_id = command.owner_id, command.other_id

        if owner_id == other_id:
            raise InvalidOperationError("An account cannot befriend itself")

        with logger.contextualize(
            operation="add_friend", owner_id=owner_id, other_id=other_id
        ):
            async with uow:
                await _require_active_account(uow, owner_id)
                await _require_active_account(uow, other_id)

                friendships = uow.get_friendship_repository()
                # Edges always exist in pairs, so one direction answers for both
                if await friendships.edge_exists(owner_id, other_id):
                    raise AlreadyExistsError(
                        f"Accounts {owner_id} and {other_id} are already friends"
                    )

                retries = settings.consistency.write_conflict_retries
                last_error: IntegrityError | None = None
                for attempt in range(1, retries + 1):
                    try:
                        await friendships.add_edge_pair(owner_id, other_id)
                    except IntegrityError as e:
                        if await friendships.edge_exists(owner_id, other_id):
                            raise AlreadyExistsError(
                                f"Accounts {owner_id} and {other_id} are already friends"
                            ) from e
                        logger.warning(
                            f"Friendship write conflict, attempt {attempt}/{retries}"
                        )
                        last_error = e
                        continue
                    logger.info("Friendship created")
                    return

                raise ConflictError(
                    f"Could not create friendship between {owner_id} and {other_id}"
                ) from last_error


@define(slots=True)
class RemoveFriendUseCase:
    """Delete both directed edges; succeeds whether or not they existed."""

    async def execute(
        self, command: RemoveFriendCommand, uow: UnitOfWorkProtocol
    ) -> None:
        with logger.contextualize(
            operation="remove_friend",
            owner_id=command.owner_id,
            other_id=command.other_id,
        ):
            async with uow:
                removed = await uow.get_friendship_repository().remove_edge_pair(
                    command.owner_id, command.other_id
                )
                logger.info(f"Removed {removed} friendship edges")


@define(slots=True)
class GetFriendStatusUseCase:
    async def execute(
        self, command: GetFriendStatusCommand, uow: UnitOfWorkProtocol
    ) -> FriendshipStatus:
        if command.owner_id == command.other_id:
            return FriendshipStatus(is_friend=False, can_add_friend=False)

        async with uow:
            is_friend = await uow.get_friendship_repository().edge_exists(
                command.owner_id, command.other_id
            )
        return FriendshipStatus(is_friend=is_friend, can_add_friend=not is_friend)


@define(slots=True)
class ListFriendsUseCase:
    """List an account's friends with their public playlist counts.

    Friends come back in the order their edges were created.
    """

    async def execute(
        self, command: ListFriendsCommand, uow: UnitOfWorkProtocol
    ) -> list[Account]:
        with logger.contextualize(operation="list_friends", owner_id=command.owner_id):
            async with uow:
                friend_ids = await uow.get_friendship_repository().list_friend_ids(
                    command.owner_id
                )
                if not friend_ids:
                    return []

                accounts_repo = uow.get_account_repository()
                accounts = await accounts_repo.get_accounts(friend_ids)
                counts = await accounts_repo.get_public_playlist_counts(friend_ids)

            return [
                _with_playlist_count(accounts[friend_id], counts.get(friend_id, 0))
                for friend_id in friend_ids
                if friend_id in accounts
            ]


@define(slots=True)
class RecommendFriendsUseCase:
    """Suggest active accounts with public playlists that aren't friends yet.

    Most recently created accounts come first; ties are broken by ID.
    """

    async def execute(
        self, command: RecommendFriendsCommand, uow: UnitOfWorkProtocol
    ) -> list[Account]:
        with logger.contextualize(
            operation="recommend_friends", owner_id=command.owner_id
        ):
            async with uow:
                accounts_repo = uow.get_account_repository()
                candidates = await accounts_repo.find_recommendation_candidates(
                    command.owner_id, command.limit
                )
                if not candidates:
                    return []
                counts = await accounts_repo.get_public_playlist_counts(
                    [c.id for c in candidates if c.id is not None]
                )

            logger.debug(f"Found {len(candidates)} recommendations")
            return [
                _with_playlist_count(candidate, counts.get(candidate.id, 0))
                for candidate in candidates
            ]


def _with_playlist_count(account: Account, count: int) -> Account:
    return evolve(account, public_playlist_count=count)
