"""Playlist commands for the tunelink CLI."""

from typing import Annotated

import typer

from tunelink.application.use_cases import (
    AddTrackCommand,
    AddTrackUseCase,
    CreatePlaylistCommand,
    CreatePlaylistUseCase,
    DeletePlaylistCommand,
    DeletePlaylistUseCase,
    ImportExternalTrackCommand,
    ImportExternalTrackUseCase,
    ListPlaylistTracksCommand,
    ListPlaylistTracksUseCase,
    ListVisiblePlaylistsCommand,
    ListVisiblePlaylistsUseCase,
    RemoveTrackCommand,
    RemoveTrackUseCase,
    ReorderTracksCommand,
    ReorderTracksUseCase,
    UpdatePlaylistCommand,
    UpdatePlaylistUseCase,
)
from tunelink.cli.async_helpers import async_db_operation
from tunelink.cli.ui import render_entries, render_playlists, success
from tunelink.domain.entities import TrackOrder
from tunelink.domain.repositories import UnitOfWorkProtocol
from tunelink.infrastructure.connectors import SpotifyCatalogConnector

# Create playlists subcommand app
app = typer.Typer(help="Manage playlists and their tracks")

PlaylistArg = Annotated[int, typer.Argument(help="Playlist ID")]
TrackArg = Annotated[int, typer.Argument(help="Local track ID")]
OwnerOpt = Annotated[
    int, typer.Option("--owner", "-o", help="Account that owns the playlist")
]
ViewerOpt = Annotated[
    int | None, typer.Option("--viewer", help="Account viewing the playlist")
]


def parse_track_orders(items: list[str]) -> list[TrackOrder]:
    """Parse ``TRACK_ID:ORDER`` pairs."""
    orders = []
    for item in items:
        track_id, sep, order = item.partition(":")
        if not sep:
            raise typer.BadParameter(f"Expected TRACK_ID:ORDER, got '{item}'")
        try:
            orders.append(TrackOrder(track_id=int(track_id), order=int(order)))
        except ValueError as e:
            raise typer.BadParameter(f"Expected integers in '{item}'") from e
    return orders


@app.command(name="create")
def create_playlist(
    owner_id: Annotated[int, typer.Argument(help="Owning account ID")],
    name: Annotated[str, typer.Argument(help="Playlist name")],
    description: Annotated[
        str | None, typer.Option("--description", "-d", help="Playlist description")
    ] = None,
    public: Annotated[
        bool, typer.Option("--public/--private", help="Playlist visibility")
    ] = False,
) -> None:
    """Create a playlist."""
    playlist = _create_playlist(owner_id, name, description, public)
    success(f"Created playlist {playlist.id} '{playlist.name}'")


@app.command(name="update")
def update_playlist(
    playlist_id: PlaylistArg,
    owner_id: OwnerOpt,
    name: Annotated[str | None, typer.Option("--name", "-n", help="New name")] = None,
    description: Annotated[
        str | None, typer.Option("--description", "-d", help="New description")
    ] = None,
    public: Annotated[
        bool | None, typer.Option("--public/--private", help="New visibility")
    ] = None,
) -> None:
    """Change a playlist's name, description or visibility."""
    playlist = _update_playlist(playlist_id, owner_id, name, description, public)
    visibility = "public" if playlist.is_public else "private"
    success(f"Updated playlist {playlist.id} '{playlist.name}' ({visibility})")


@app.command(name="delete")
def delete_playlist(playlist_id: PlaylistArg, owner_id: OwnerOpt) -> None:
    """Delete a playlist."""
    _delete_playlist(playlist_id, owner_id)
    success(f"Deleted playlist {playlist_id}")


@app.command(name="list")
def list_playlists(viewer_id: ViewerOpt = None) -> None:
    """List playlists visible to a viewer."""
    render_playlists(_list_playlists(viewer_id))


@app.command(name="tracks")
def list_tracks(playlist_id: PlaylistArg, viewer_id: ViewerOpt = None) -> None:
    """Show a playlist's tracks in order."""
    render_entries(playlist_id, _list_tracks(playlist_id, viewer_id))


@app.command(name="add")
def add_track(playlist_id: PlaylistArg, track_id: TrackArg, owner_id: OwnerOpt) -> None:
    """Append a local track to a playlist."""
    entry = _add_track(playlist_id, track_id, owner_id)
    success(f"Added track {entry.track_id} at position {entry.order}")


@app.command(name="remove")
def remove_track(
    playlist_id: PlaylistArg, track_id: TrackArg, owner_id: OwnerOpt
) -> None:
    """Remove a track from a playlist."""
    removed = _remove_track(playlist_id, track_id, owner_id)
    success(
        f"Removed track {track_id}" if removed else f"Track {track_id} was not in the playlist"
    )


@app.command(name="reorder")
def reorder_tracks(
    playlist_id: PlaylistArg,
    owner_id: OwnerOpt,
    items: Annotated[
        list[str], typer.Argument(help="New positions as TRACK_ID:ORDER pairs")
    ],
) -> None:
    """Assign new order values to playlist tracks."""
    orders = parse_track_orders(items)
    render_entries(playlist_id, _reorder_tracks(playlist_id, owner_id, orders))


@app.command(name="import")
def import_track(
    playlist_id: PlaylistArg,
    external_id: Annotated[str, typer.Argument(help="Spotify track ID")],
    owner_id: OwnerOpt,
) -> None:
    """Import a Spotify track and append it to a playlist."""
    entry = _import_track(playlist_id, external_id, owner_id)
    success(f"Imported {external_id} as track {entry.track_id} at position {entry.order}")


@async_db_operation
async def _create_playlist(
    uow: UnitOfWorkProtocol,
    owner_id: int,
    name: str,
    description: str | None,
    public: bool,
):
    command = CreatePlaylistCommand(
        owner_id=owner_id, name=name, description=description, is_public=public
    )
    return await CreatePlaylistUseCase().execute(command, uow)


@async_db_operation
async def _update_playlist(
    uow: UnitOfWorkProtocol,
    playlist_id: int,
    owner_id: int,
    name: str | None,
    description: str | None,
    public: bool | None,
):
    command = UpdatePlaylistCommand(
        playlist_id=playlist_id,
        owner_id=owner_id,
        name=name,
        description=description,
        is_public=public,
    )
    return await UpdatePlaylistUseCase().execute(command, uow)


@async_db_operation
async def _delete_playlist(uow: UnitOfWorkProtocol, playlist_id: int, owner_id: int):
    await DeletePlaylistUseCase().execute(
        DeletePlaylistCommand(playlist_id=playlist_id, owner_id=owner_id), uow
    )


@async_db_operation
async def _list_playlists(uow: UnitOfWorkProtocol, viewer_id: int | None):
    return await ListVisiblePlaylistsUseCase().execute(
        ListVisiblePlaylistsCommand(viewer_id=viewer_id), uow
    )


@async_db_operation
async def _list_tracks(uow: UnitOfWorkProtocol, playlist_id: int, viewer_id: int | None):
    return await ListPlaylistTracksUseCase().execute(
        ListPlaylistTracksCommand(playlist_id=playlist_id, viewer_id=viewer_id), uow
    )


@async_db_operation
async def _add_track(
    uow: UnitOfWorkProtocol, playlist_id: int, track_id: int, owner_id: int
):
    return await AddTrackUseCase().execute(
        AddTrackCommand(playlist_id=playlist_id, track_id=track_id, owner_id=owner_id),
        uow,
    )


@async_db_operation
async def _remove_track(
    uow: UnitOfWorkProtocol, playlist_id: int, track_id: int, owner_id: int
):
    return await RemoveTrackUseCase().execute(
        RemoveTrackCommand(playlist_id=playlist_id, track_id=track_id, owner_id=owner_id),
        uow,
    )


@async_db_operation
async def _reorder_tracks(
    uow: UnitOfWorkProtocol, playlist_id: int, owner_id: int, orders: list[TrackOrder]
):
    return await ReorderTracksUseCase().execute(
        ReorderTracksCommand(playlist_id=playlist_id, owner_id=owner_id, orders=orders),
        uow,
    )


@async_db_operation
async def _import_track(
    uow: UnitOfWorkProtocol, playlist_id: int, external_id: str, owner_id: int
):
    use_case = ImportExternalTrackUseCase(catalog=SpotifyCatalogConnector())
    return await use_case.execute(
        ImportExternalTrackCommand(
            playlist_id=playlist_id, external_track_id=external_id, owner_id=owner_id
        ),
        uow,
    )
