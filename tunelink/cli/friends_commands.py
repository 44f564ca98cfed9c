"""Friendship commands for the tunelink CLI."""

from typing import Annotated

import typer

from tunelink.application.use_cases import (
    AddFriendCommand,
    AddFriendUseCase,
    GetFriendStatusCommand,
    GetFriendStatusUseCase,
    ListFriendsCommand,
    ListFriendsUseCase,
    RecommendFriendsCommand,
    RecommendFriendsUseCase,
    RemoveFriendCommand,
    RemoveFriendUseCase,
)
from tunelink.cli.async_helpers import async_db_operation
from tunelink.cli.ui import console, render_accounts, success
from tunelink.domain.repositories import UnitOfWorkProtocol

# Create friends subcommand app
app = typer.Typer(help="Manage friendships between accounts")

OwnerArg = Annotated[int, typer.Argument(help="Account performing the operation")]
OtherArg = Annotated[int, typer.Argument(help="The other account")]


@app.command(name="add")
def add_friend(owner_id: OwnerArg, other_id: OtherArg) -> None:
    """Make two accounts friends."""
    _add_friend(owner_id, other_id)
    success(f"Accounts {owner_id} and {other_id} are now friends")


@app.command(name="remove")
def remove_friend(owner_id: OwnerArg, other_id: OtherArg) -> None:
    """Remove a friendship (no error if there is none)."""
    _remove_friend(owner_id, other_id)
    success(f"Accounts {owner_id} and {other_id} are not friends")


@app.command(name="status")
def friend_status(owner_id: OwnerArg, other_id: OtherArg) -> None:
    """Show whether two accounts are friends."""
    status = _friend_status(owner_id, other_id)
    console.print(
        f"is_friend: [bold]{str(status.is_friend).lower()}[/bold]  "
        f"can_add_friend: [bold]{str(status.can_add_friend).lower()}[/bold]"
    )


@app.command(name="list")
def list_friends(owner_id: OwnerArg) -> None:
    """List an account's friends."""
    render_accounts(f"Friends of {owner_id}", _list_friends(owner_id))


@app.command(name="recommend")
def recommend_friends(
    owner_id: OwnerArg,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-l", help="Maximum number of suggestions"),
    ] = None,
) -> None:
    """Suggest accounts to befriend."""
    render_accounts(f"Suggested for {owner_id}", _recommend_friends(owner_id, limit))


@async_db_operation
async def _add_friend(uow: UnitOfWorkProtocol, owner_id: int, other_id: int) -> None:
    await AddFriendUseCase().execute(AddFriendCommand(owner_id, other_id), uow)


@async_db_operation
async def _remove_friend(uow: UnitOfWorkProtocol, owner_id: int, other_id: int) -> None:
    await RemoveFriendUseCase().execute(RemoveFriendCommand(owner_id, other_id), uow)


@async_db_operation
async def _friend_status(uow: UnitOfWorkProtocol, owner_id: int, other_id: int):
    return await GetFriendStatusUseCase().execute(
        GetFriendStatusCommand(owner_id, other_id), uow
    )


@async_db_operation
async def _list_friends(uow: UnitOfWorkProtocol, owner_id: int):
    return await ListFriendsUseCase().execute(ListFriendsCommand(owner_id), uow)


@async_db_operation
async def _recommend_friends(uow: UnitOfWorkProtocol, owner_id: int, limit: int | None):
    command = (
        RecommendFriendsCommand(owner_id)
        if limit is None
        else RecommendFriendsCommand(owner_id, limit)
    )
    return await RecommendFriendsUseCase().execute(command, uow)
