"""Use case test fixtures - a mocked unit of work with mocked repositories.

Use cases only talk to repositories through the unit of work, so mocking at
that boundary keeps these tests free of any database.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import IntegrityError

from tunelink.domain.entities import Account, Playlist, Track
from tunelink.domain.repositories import UnitOfWorkProtocol


@pytest.fixture
def integrity_error():
    """Factory for the IntegrityError the driver raises on a unique constraint."""
    return lambda: IntegrityError(
        "INSERT ...", {}, Exception("UNIQUE constraint failed")
    )


@pytest.fixture
def accounts_repo():
    mock = AsyncMock()
    mock.get_account.return_value = None
    mock.get_accounts.return_value = {}
    mock.get_public_playlist_counts.return_value = {}
    mock.find_recommendation_candidates.return_value = []
    return mock


@pytest.fixture
def friendships_repo():
    mock = AsyncMock()
    mock.edge_exists.return_value = False
    mock.remove_edge_pair.return_value = 0
    mock.list_friend_ids.return_value = []
    return mock


@pytest.fixture
def playlists_repo():
    mock = AsyncMock()
    mock.get_playlist.return_value = None
    return mock


@pytest.fixture
def entries_repo():
    mock = AsyncMock()
    mock.has_entry.return_value = False
    mock.get_entries.return_value = []
    return mock


@pytest.fixture
def tracks_repo():
    mock = AsyncMock()
    mock.get_track.return_value = None
    return mock


@pytest.fixture
def identity_service():
    return AsyncMock()


@pytest.fixture
def mock_uow(
    accounts_repo,
    friendships_repo,
    playlists_repo,
    entries_repo,
    tracks_repo,
    identity_service,
):
    """Mock UnitOfWork wired to the repository mocks above."""
    uow = MagicMock(spec=UnitOfWorkProtocol)
    uow.__aenter__.return_value = uow
    # Exceptions raised inside ``async with uow`` must propagate
    uow.__aexit__.return_value = False
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.get_account_repository.return_value = accounts_repo
    uow.get_friendship_repository.return_value = friendships_repo
    uow.get_playlist_repository.return_value = playlists_repo
    uow.get_playlist_entry_repository.return_value = entries_repo
    uow.get_track_repository.return_value = tracks_repo
    uow.get_track_identity_service.return_value = identity_service
    return uow


@pytest.fixture
def alice():
    return Account(id=1, username="alice", display_name="Alice")


@pytest.fixture
def bob():
    return Account(id=2, username="bob", display_name="Bob")


@pytest.fixture
def owned_playlist():
    return Playlist(id=10, owner_id=1, name="Road Trip", is_public=False)


@pytest.fixture
def track():
    return Track(id=100, title="Paranoid Android", artist="Radiohead")
