"""SQLAlchemy database models for the tunelink store.

Relational invariants live in the schema: uniqueness of friendship pairs,
playlist memberships, playlist order values and external track IDs are all
enforced by constraints so concurrent writers cannot violate them.
"""

from datetime import UTC, date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    MetaData,
    String,
    UniqueConstraint,
)
from sqlalchemy.ext.asyncio import AsyncAttrs, AsyncEngine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from tunelink.config import get_logger

logger = get_logger(__name__)

# Constraint names: uq_<table>_<columns>, ck_<table>_<name>, ...
convention = {
    "ix": "ix_%(table_name)s_%(column_0_N_name)s",
    "uq": "uq_%(table_name)s_%(column_0_N_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)


class TunelinkDBBase(AsyncAttrs, DeclarativeBase):
    """Columns shared by every table: surrogate key and timestamps."""

    metadata = metadata

    id: Mapped[int] = mapped_column(primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )


class SoftDeleteMixin:
    """Rows that are flagged deleted instead of removed.

    Friendship edges and playlist entries are hard-deleted and do not use it.
    """

    is_deleted: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )


class DBAccount(SoftDeleteMixin, TunelinkDBBase):
    """Account record. Managed by the account service; read by this core."""

    __tablename__ = "accounts"

    username: Mapped[str] = mapped_column(String(64), unique=True)
    display_name: Mapped[str | None] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    playlists: Mapped[list["DBPlaylist"]] = relationship(
        back_populates="owner",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index(None, "created_at"),)


class DBFriendship(TunelinkDBBase):
    """One directed friendship edge; every edge has its reverse twin."""

    __tablename__ = "friendships"

    owner_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE")
    )
    friend_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE")
    )

    __table_args__ = (
        UniqueConstraint("owner_id", "friend_id"),
        CheckConstraint("owner_id <> friend_id", name="no_self_edge"),
        Index(None, "friend_id"),
    )


class DBTrack(SoftDeleteMixin, TunelinkDBBase):
    """Catalog track, optionally mapped to one external catalog track."""

    __tablename__ = "tracks"

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    artist: Mapped[str] = mapped_column(String(512), nullable=False)
    album: Mapped[str | None] = mapped_column(String(255))
    duration_seconds: Mapped[int | None]
    release_date: Mapped[date | None] = mapped_column(Date)
    artwork_url: Mapped[str | None] = mapped_column(String(1024))
    preview_url: Mapped[str | None] = mapped_column(String(1024))
    external_url: Mapped[str | None] = mapped_column(String(1024))
    popularity: Mapped[int | None]
    external_id: Mapped[str | None] = mapped_column(String(64))

    playlist_entries: Mapped[list["DBPlaylistEntry"]] = relationship(
        back_populates="track",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("external_id"),
        Index(None, "title"),
    )


class DBPlaylist(SoftDeleteMixin, TunelinkDBBase):
    """Playlist header; membership lives in playlist_entries."""

    __tablename__ = "playlists"

    owner_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE")
    )
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(String(1000))
    is_public: Mapped[bool] = mapped_column(Boolean, default=False)

    owner: Mapped[DBAccount] = relationship(
        back_populates="playlists",
        passive_deletes=True,
    )
    entries: Mapped[list["DBPlaylistEntry"]] = relationship(
        back_populates="playlist",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (Index(None, "owner_id", "is_public"),)


class DBPlaylistEntry(TunelinkDBBase):
    """Playlist membership with its display order."""

    __tablename__ = "playlist_entries"

    playlist_id: Mapped[int] = mapped_column(
        ForeignKey("playlists.id", ondelete="CASCADE"),
    )
    track_id: Mapped[int] = mapped_column(ForeignKey("tracks.id", ondelete="CASCADE"))
    sort_order: Mapped[int] = mapped_column(nullable=False)
    added_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
    )

    playlist: Mapped[DBPlaylist] = relationship(
        back_populates="entries",
        passive_deletes=True,
    )
    track: Mapped[DBTrack] = relationship(
        back_populates="playlist_entries",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("playlist_id", "track_id"),
        UniqueConstraint("playlist_id", "sort_order"),
    )


async def init_db(engine: AsyncEngine | None = None) -> None:
    """Create any missing tables. Existing tables and rows are left alone."""
    from tunelink.infrastructure.persistence.database.db_connection import get_engine

    engine = engine or get_engine()

    try:
        async with engine.begin() as conn:
            await conn.run_sync(TunelinkDBBase.metadata.create_all)
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
    else:
        logger.info("Database schema initialization complete")
