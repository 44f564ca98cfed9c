"""End-to-end use case flows against a real database.

Only the external catalog is faked; everything else runs through the real
unit of work, repositories and schema constraints.
"""

import pytest

from tunelink.application.use_cases import (
    AddFriendCommand,
    AddFriendUseCase,
    AddTrackCommand,
    AddTrackUseCase,
    CreatePlaylistCommand,
    CreatePlaylistUseCase,
    DeletePlaylistCommand,
    DeletePlaylistUseCase,
    GetFriendStatusCommand,
    GetFriendStatusUseCase,
    ImportExternalTrackCommand,
    ImportExternalTrackUseCase,
    ListFriendsCommand,
    ListFriendsUseCase,
    ListPlaylistTracksCommand,
    ListPlaylistTracksUseCase,
    RecommendFriendsCommand,
    RecommendFriendsUseCase,
    RemoveFriendCommand,
    RemoveFriendUseCase,
    RemoveTrackCommand,
    RemoveTrackUseCase,
    ReorderTracksCommand,
    ReorderTracksUseCase,
    UpdatePlaylistCommand,
    UpdatePlaylistUseCase,
)
from tunelink.domain.entities import ExternalTrack, TrackOrder
from tunelink.domain.exceptions import (
    AlreadyExistsError,
    ConflictError,
    ForbiddenError,
    InvalidOperationError,
    NotFoundError,
)


class FakeCatalog:
    def __init__(self, *tracks: ExternalTrack) -> None:
        self.tracks = {t.external_id: t for t in tracks}
        self.requests: list[str] = []

    async def get_track(self, external_id: str) -> ExternalTrack:
        self.requests.append(external_id)
        if external_id not in self.tracks:
            raise NotFoundError(f"Unknown track {external_id}")
        return self.tracks[external_id]


@pytest.fixture
def catalog():
    return FakeCatalog(
        ExternalTrack(
            external_id="ext-123",
            title="Pyramid Song",
            artists=["Radiohead"],
            duration_ms=289_000,
            release_date="2001-06-05",
        )
    )


def listed(entries) -> list[tuple[int, int]]:
    return [(e.track_id, e.order) for e in entries]


async def test_friend_playlist_import_reorder_flow(uow, seed, catalog):
    u1 = await seed.account("u1")
    u2 = await seed.account("u2")

    await AddFriendUseCase().execute(AddFriendCommand(u1.id, u2.id), uow)
    status = await GetFriendStatusUseCase().execute(
        GetFriendStatusCommand(u1.id, u2.id), uow
    )
    assert (status.is_friend, status.can_add_friend) == (True, False)

    p1 = await CreatePlaylistUseCase().execute(
        CreatePlaylistCommand(owner_id=u1.id, name="p1"), uow
    )

    imported = await ImportExternalTrackUseCase(catalog=catalog).execute(
        ImportExternalTrackCommand(
            playlist_id=p1.id, external_track_id="ext-123", owner_id=u1.id
        ),
        uow,
    )
    t1 = imported.track_id
    entries = await ListPlaylistTracksUseCase().execute(
        ListPlaylistTracksCommand(playlist_id=p1.id, viewer_id=u1.id), uow
    )
    assert listed(entries) == [(t1, 1)]
    assert entries[0].track.title == "Pyramid Song"
    assert entries[0].track.artist == "Radiohead"

    t2 = (await seed.track(title="Local Song")).id
    await AddTrackUseCase().execute(
        AddTrackCommand(playlist_id=p1.id, track_id=t2, owner_id=u1.id), uow
    )
    entries = await ListPlaylistTracksUseCase().execute(
        ListPlaylistTracksCommand(playlist_id=p1.id, viewer_id=u1.id), uow
    )
    assert listed(entries) == [(t1, 1), (t2, 2)]

    entries = await ReorderTracksUseCase().execute(
        ReorderTracksCommand(
            playlist_id=p1.id,
            owner_id=u1.id,
            orders=[TrackOrder(t2, 1), TrackOrder(t1, 2)],
        ),
        uow,
    )
    assert listed(entries) == [(t2, 1), (t1, 2)]


async def test_move_last_track_to_front(uow, seed):
    owner = await seed.account("owner")
    playlist = await seed.playlist(owner.id)
    t1, t2, t3 = [(await seed.track(title=f"T{i}")).id for i in (1, 2, 3)]
    for track_id in (t1, t2, t3):
        await AddTrackUseCase().execute(
            AddTrackCommand(playlist_id=playlist.id, track_id=track_id, owner_id=owner.id),
            uow,
        )

    entries = await ReorderTracksUseCase().execute(
        ReorderTracksCommand(
            playlist_id=playlist.id, owner_id=owner.id, orders=[TrackOrder(t3, 0)]
        ),
        uow,
    )

    assert [e.track_id for e in entries] == [t3, t1, t2]


async def test_reimport_reuses_track_and_rejects_duplicate(uow, seed, catalog):
    owner = await seed.account("owner")
    first = await seed.playlist(owner.id, name="first")
    second = await seed.playlist(owner.id, name="second")
    use_case = ImportExternalTrackUseCase(catalog=catalog)

    a = await use_case.execute(
        ImportExternalTrackCommand(first.id, "ext-123", owner.id), uow
    )
    b = await use_case.execute(
        ImportExternalTrackCommand(second.id, "ext-123", owner.id), uow
    )
    assert a.track_id == b.track_id

    with pytest.raises(ConflictError):
        await use_case.execute(
            ImportExternalTrackCommand(first.id, "ext-123", owner.id), uow
        )


async def test_failed_import_leaves_no_track(uow, seed, catalog):
    owner = await seed.account("owner")
    intruder = await seed.account("intruder")
    playlist = await seed.playlist(owner.id)

    with pytest.raises(ForbiddenError):
        await ImportExternalTrackUseCase(catalog=catalog).execute(
            ImportExternalTrackCommand(playlist.id, "ext-123", intruder.id), uow
        )

    assert catalog.requests == []
    async with uow:
        assert await uow.get_track_repository().find_by_external_id("ext-123") is None


async def test_playlist_deleted_during_import_rolls_back_track(uow, seed, catalog):
    owner = await seed.account("owner")
    playlist = await seed.playlist(owner.id)
    fetch = catalog.get_track

    async def fetch_then_delete(external_id):
        await DeletePlaylistUseCase().execute(
            DeletePlaylistCommand(playlist_id=playlist.id, owner_id=owner.id), uow
        )
        return await fetch(external_id)

    catalog.get_track = fetch_then_delete

    with pytest.raises(NotFoundError):
        await ImportExternalTrackUseCase(catalog=catalog).execute(
            ImportExternalTrackCommand(playlist.id, "ext-123", owner.id), uow
        )

    async with uow:
        assert await uow.get_track_repository().find_by_external_id("ext-123") is None


async def test_import_of_deactivated_track_is_not_found(uow, seed, catalog):
    owner = await seed.account("owner")
    playlist = await seed.playlist(owner.id)
    withdrawn = await seed.track(title="Pyramid Song", external_id="ext-123")
    async with uow:
        await uow.get_track_repository().soft_delete(withdrawn.id)

    # The deactivated row keeps its external ID, so no replacement is created
    with pytest.raises(NotFoundError, match=f"Track {withdrawn.id}"):
        await ImportExternalTrackUseCase(catalog=catalog).execute(
            ImportExternalTrackCommand(playlist.id, "ext-123", owner.id), uow
        )

    async with uow:
        found = await uow.get_track_repository().find_by_external_id("ext-123")
    assert found.id == withdrawn.id


async def test_friendship_lifecycle(uow, seed):
    alice = await seed.account("alice")
    bob = await seed.account("bob")
    add = AddFriendUseCase()

    with pytest.raises(InvalidOperationError):
        await add.execute(AddFriendCommand(alice.id, alice.id), uow)
    with pytest.raises(NotFoundError):
        await add.execute(AddFriendCommand(alice.id, 9999), uow)

    await add.execute(AddFriendCommand(alice.id, bob.id), uow)
    with pytest.raises(AlreadyExistsError):
        await add.execute(AddFriendCommand(bob.id, alice.id), uow)

    bob_friends = await ListFriendsUseCase().execute(ListFriendsCommand(bob.id), uow)
    assert [f.username for f in bob_friends] == ["alice"]

    await RemoveFriendUseCase().execute(RemoveFriendCommand(bob.id, alice.id), uow)
    await RemoveFriendUseCase().execute(RemoveFriendCommand(bob.id, alice.id), uow)

    status = await GetFriendStatusUseCase().execute(
        GetFriendStatusCommand(alice.id, bob.id), uow
    )
    assert (status.is_friend, status.can_add_friend) == (False, True)


async def test_recommendations(uow, seed):
    viewer = await seed.account("viewer")
    quiet = await seed.account("quiet")
    older = await seed.account("older")
    friend = await seed.account("friend")
    newer = await seed.account("newer")
    await seed.playlist(quiet.id, is_public=False)
    for account in (older, friend, newer):
        await seed.playlist(account.id, is_public=True)
    await seed.playlist(newer.id, name="second", is_public=True)
    await AddFriendUseCase().execute(AddFriendCommand(viewer.id, friend.id), uow)

    suggestions = await RecommendFriendsUseCase().execute(
        RecommendFriendsCommand(viewer.id), uow
    )

    assert [(s.username, s.public_playlist_count) for s in suggestions] == [
        ("newer", 2),
        ("older", 1),
    ]


async def test_deleted_playlist_behaves_as_missing(uow, seed):
    owner = await seed.account("owner")
    playlist = await seed.playlist(owner.id, is_public=True)
    track = await seed.track()
    await AddTrackUseCase().execute(
        AddTrackCommand(playlist_id=playlist.id, track_id=track.id, owner_id=owner.id),
        uow,
    )

    await DeletePlaylistUseCase().execute(
        DeletePlaylistCommand(playlist_id=playlist.id, owner_id=owner.id), uow
    )

    with pytest.raises(NotFoundError):
        await ListPlaylistTracksUseCase().execute(
            ListPlaylistTracksCommand(playlist_id=playlist.id), uow
        )
    with pytest.raises(NotFoundError):
        await RemoveTrackUseCase().execute(
            RemoveTrackCommand(playlist_id=playlist.id, track_id=track.id, owner_id=owner.id),
            uow,
        )


async def test_visibility_change_hides_tracks_and_recommendation(uow, seed):
    viewer = await seed.account("viewer")
    curator = await seed.account("curator")
    playlist = await seed.playlist(curator.id, name="Crate", is_public=True)
    track = await seed.track()
    await AddTrackUseCase().execute(
        AddTrackCommand(playlist_id=playlist.id, track_id=track.id, owner_id=curator.id),
        uow,
    )
    recommend = RecommendFriendsUseCase()

    before = await recommend.execute(RecommendFriendsCommand(viewer.id), uow)
    assert [a.username for a in before] == ["curator"]

    updated = await UpdatePlaylistUseCase().execute(
        UpdatePlaylistCommand(playlist_id=playlist.id, owner_id=curator.id, is_public=False),
        uow,
    )
    assert updated.is_public is False
    assert updated.name == "Crate"

    with pytest.raises(ForbiddenError):
        await ListPlaylistTracksUseCase().execute(
            ListPlaylistTracksCommand(playlist_id=playlist.id, viewer_id=viewer.id), uow
        )
    owner_view = await ListPlaylistTracksUseCase().execute(
        ListPlaylistTracksCommand(playlist_id=playlist.id, viewer_id=curator.id), uow
    )
    assert [e.track_id for e in owner_view] == [track.id]
    assert await recommend.execute(RecommendFriendsCommand(viewer.id), uow) == []

    with pytest.raises(ForbiddenError):
        await UpdatePlaylistUseCase().execute(
            UpdatePlaylistCommand(playlist_id=playlist.id, owner_id=viewer.id, is_public=True),
            uow,
        )


async def test_update_deleted_playlist_not_found(uow, seed):
    owner = await seed.account("owner")
    playlist = await seed.playlist(owner.id)
    await DeletePlaylistUseCase().execute(
        DeletePlaylistCommand(playlist_id=playlist.id, owner_id=owner.id), uow
    )

    with pytest.raises(NotFoundError):
        await UpdatePlaylistUseCase().execute(
            UpdatePlaylistCommand(playlist_id=playlist.id, owner_id=owner.id, name="Back"),
            uow,
        )
