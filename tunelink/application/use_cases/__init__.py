"""Application use cases - orchestrate business operations."""

from .import_external_track import (
    ImportExternalTrackCommand,
    ImportExternalTrackUseCase,
)
from .manage_friendships import (
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
from .manage_playlist_tracks import (
    AddTrackCommand,
    AddTrackUseCase,
    CreatePlaylistCommand,
    CreatePlaylistUseCase,
    DeletePlaylistCommand,
    DeletePlaylistUseCase,
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

__all__ = [
    "AddFriendCommand",
    "AddFriendUseCase",
    "AddTrackCommand",
    "AddTrackUseCase",
    "CreatePlaylistCommand",
    "CreatePlaylistUseCase",
    "DeletePlaylistCommand",
    "DeletePlaylistUseCase",
    "GetFriendStatusCommand",
    "GetFriendStatusUseCase",
    "ImportExternalTrackCommand",
    "ImportExternalTrackUseCase",
    "ListFriendsCommand",
    "ListFriendsUseCase",
    "ListPlaylistTracksCommand",
    "ListPlaylistTracksUseCase",
    "ListVisiblePlaylistsCommand",
    "ListVisiblePlaylistsUseCase",
    "RecommendFriendsCommand",
    "RecommendFriendsUseCase",
    "RemoveFriendCommand",
    "RemoveFriendUseCase",
    "RemoveTrackCommand",
    "RemoveTrackUseCase",
    "ReorderTracksCommand",
    "ReorderTracksUseCase",
    "UpdatePlaylistCommand",
    "UpdatePlaylistUseCase",
]
