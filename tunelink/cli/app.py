"""tunelink CLI - Main application entry point and app structure."""

import asyncio
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated

from rich.console import Console
import typer

from tunelink.cli import account_commands, friends_commands, playlist_commands
from tunelink.cli.ui import command_error_handler, success
from tunelink.config import get_logger, setup_loguru_logger
from tunelink.infrastructure.persistence.database.db_connection import (
    configure_database,
    get_engine,
)
from tunelink.infrastructure.persistence.database.db_models import init_db

try:
    VERSION = version("tunelink")
except PackageNotFoundError:
    VERSION = "0.0.0"

console = Console(width=80)
logger = get_logger(__name__)

app = typer.Typer(
    help=f"🎵 tunelink v{VERSION} - Friends, playlists and catalog imports",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
    pretty_exceptions_enable=True,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
)

app.add_typer(
    account_commands.app,
    name="accounts",
    help="Seed accounts",
    rich_help_panel="👤 Accounts",
)
app.add_typer(
    friends_commands.app,
    name="friends",
    help="Manage friendships",
    rich_help_panel="🤝 Social",
)
app.add_typer(
    playlist_commands.app,
    name="playlists",
    help="Manage playlists and their tracks",
    rich_help_panel="🎵 Playlists",
)


@app.command(name="version", rich_help_panel="⚙️ System")
def version_command() -> None:
    """Show version information."""
    console.print(
        f"[bold bright_blue]🎵 tunelink[/bold bright_blue] [dim]v{VERSION}[/dim]"
    )


@app.command(name="init-db", rich_help_panel="⚙️ System")
@command_error_handler
def init_db_command() -> None:
    """Create the database schema (safe to run repeatedly)."""

    async def _init() -> None:
        try:
            await init_db()
        finally:
            await get_engine().dispose()

    asyncio.run(_init())
    success("Database initialized")


@app.callback()
def init_cli(
    ctx: typer.Context,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output"),
    ] = False,
    database_url: Annotated[
        str | None,
        typer.Option(
            "--database-url",
            envvar="TUNELINK_DATABASE_URL",
            help="SQLAlchemy URL overriding the configured database",
        ),
    ] = None,
) -> None:
    """Initialize tunelink CLI."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose

    setup_loguru_logger(verbose)

    # Default SQLite database and log file live here
    Path("data").mkdir(exist_ok=True)

    if database_url:
        configure_database(database_url)


def main() -> int:
    """Application entry point."""
    try:
        return app() or 0
    except Exception:
        logger.exception("Unhandled exception")
        return 1
