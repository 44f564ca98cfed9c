"""UI helpers for CLI interaction.

This module provides reusable UI components and helpers for the CLI,
keeping the presentation logic separate from business logic.
"""

from collections.abc import Callable, Sequence
import functools

from rich.console import Console
from rich.table import Table
import typer

from tunelink.config import get_logger
from tunelink.domain.entities import Account, Playlist, PlaylistEntry
from tunelink.domain.exceptions import (
    ConflictError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
    TunelinkError,
    UnavailableError,
)

# Initialize console and logger
console = Console()
logger = get_logger(__name__)

_ERROR_LABELS: dict[type[TunelinkError], str] = {
    NotFoundError: "Not found",
    ForbiddenError: "Forbidden",
    ConflictError: "Conflict",
    InvalidOperationError: "Invalid operation",
    UnavailableError: "Unavailable",
}


def _error_label(error: TunelinkError) -> str:
    for error_type, label in _ERROR_LABELS.items():
        if isinstance(error, error_type):
            return label
    return "Error"


def command_error_handler[**P, R](func: Callable[P, R]) -> Callable[P, R]:
    """Decorator to standardize error handling for CLI commands.

    Domain errors are shown as a one-line message; anything else is logged
    with its traceback. Either way the command exits with code 1.
    """

    @functools.wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        operation = func.__name__.strip("_").replace("_", " ")

        with logger.contextualize(operation=operation):
            try:
                logger.debug(f"Executing {operation}")
                return func(*args, **kwargs)

            except (typer.Exit, typer.Abort):
                raise

            except TunelinkError as e:
                logger.info(f"{operation} failed: {e}")
                console.print(f"[bold red]✗ {_error_label(e)}:[/bold red] {e}")
                raise typer.Exit(code=1) from e

            except Exception as e:
                logger.exception(f"Error during {operation}")
                console.print(f"\n[bold red]✗ Error during {operation}:[/bold red] {e}")
                raise typer.Exit(code=1) from e

    return wrapper


def success(message: str) -> None:
    console.print(f"[green]✓[/green] {message}")


def render_accounts(title: str, accounts: Sequence[Account]) -> None:
    """Print accounts with their public playlist counts."""
    if not accounts:
        console.print(f"[dim]{title}: none[/dim]")
        return

    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Username")
    table.add_column("Display name", style="dim")
    table.add_column("Public playlists", justify="right")

    for account in accounts:
        table.add_row(
            str(account.id),
            account.username,
            account.display_name or "",
            str(account.public_playlist_count),
        )
    console.print(table)


def render_playlists(playlists: Sequence[Playlist]) -> None:
    if not playlists:
        console.print("[dim]No playlists[/dim]")
        return

    table = Table(title="Playlists", show_header=True, header_style="bold")
    table.add_column("ID", justify="right", style="cyan")
    table.add_column("Name")
    table.add_column("Owner", justify="right")
    table.add_column("Visibility")

    for playlist in playlists:
        table.add_row(
            str(playlist.id),
            playlist.name,
            str(playlist.owner_id),
            "public" if playlist.is_public else "private",
        )
    console.print(table)


def render_entries(playlist_id: int, entries: Sequence[PlaylistEntry]) -> None:
    """Print playlist entries in display order."""
    if not entries:
        console.print(f"[dim]Playlist {playlist_id} is empty[/dim]")
        return

    table = Table(title=f"Playlist {playlist_id}", show_header=True, header_style="bold")
    table.add_column("Order", justify="right", style="cyan")
    table.add_column("Track ID", justify="right")
    table.add_column("Title")
    table.add_column("Artist", style="dim")

    for entry in entries:
        track = entry.track
        table.add_row(
            str(entry.order),
            str(entry.track_id),
            track.title if track else "",
            track.artist if track else "",
        )
    console.print(table)
