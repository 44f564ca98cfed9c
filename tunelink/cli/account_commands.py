"""Account commands for the tunelink CLI.

Accounts are normally managed by the account service; this command exists
so a local database can be seeded.
"""

from typing import Annotated

import typer

from tunelink.cli.async_helpers import async_db_operation
from tunelink.cli.ui import success
from tunelink.domain.repositories import UnitOfWorkProtocol

app = typer.Typer(help="Seed accounts in a local database")


@app.command(name="create")
def create_account(
    username: Annotated[str, typer.Argument(help="Unique username")],
    display_name: Annotated[
        str | None, typer.Option("--display-name", "-n", help="Display name")
    ] = None,
    active: Annotated[
        bool, typer.Option("--active/--inactive", help="Account status")
    ] = True,
) -> None:
    """Create an account."""
    account = _create_account(username, display_name, active)
    success(f"Created account {account.id} '{account.username}'")


@async_db_operation
async def _create_account(
    uow: UnitOfWorkProtocol, username: str, display_name: str | None, active: bool
):
    async with uow:
        return await uow.get_account_repository().create_account(
            username, display_name=display_name, is_active=active
        )
