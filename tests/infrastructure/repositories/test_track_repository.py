"""Tests for TrackRepository and the track mapper."""

from datetime import date

import pytest
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from tunelink.domain.entities import Track
from tunelink.infrastructure.persistence.database.db_models import DBTrack
from tunelink.infrastructure.persistence.repositories import TrackRepository


@pytest.fixture
def repo(db_session):
    return TrackRepository(db_session)


class TestTrackRepository:
    async def test_create_round_trips_all_fields(self, repo):
        created = await repo.create_track(
            Track(
                title="Teardrop",
                artist="Massive Attack",
                album="Mezzanine",
                duration_seconds=330,
                release_date=date(1998, 4, 20),
                artwork_url="https://img.example/mezzanine.jpg",
                popularity=71,
                external_id="ext-1",
            )
        )

        fetched = await repo.get_track(created.id)

        assert fetched == created
        assert fetched.release_date == date(1998, 4, 20)

    async def test_find_by_external_id(self, repo):
        created = await repo.create_track(
            Track(title="A", artist="B", external_id="ext-2")
        )

        assert await repo.find_by_external_id("ext-2") == created
        assert await repo.find_by_external_id("missing") is None

    async def test_external_id_unique(self, repo):
        await repo.create_track(Track(title="A", artist="B", external_id="dup"))

        with pytest.raises(IntegrityError):
            await repo.create_track(Track(title="C", artist="D", external_id="dup"))

        # The failed insert only rolled back its savepoint
        assert (await repo.find_by_external_id("dup")).title == "A"

    async def test_tracks_without_external_id_coexist(self, repo):
        first = await repo.create_track(Track(title="Local", artist="X"))
        second = await repo.create_track(Track(title="Local", artist="X"))

        assert first.id != second.id

    async def test_deleted_track_still_owns_external_id(self, repo, db_session):
        created = await repo.create_track(
            Track(title="Gone", artist="X", external_id="ext-gone")
        )
        await db_session.execute(
            update(DBTrack).where(DBTrack.id == created.id).values(is_deleted=True)
        )

        assert await repo.get_track(created.id) is None
        assert (await repo.find_by_external_id("ext-gone")).id == created.id
