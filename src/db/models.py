"""
SQLAlchemy ORM models for the transcript worker.

This module defines the database schema using SQLAlchemy's declarative base.
All models inherit from Base and use consistent naming conventions.

Models:
    Show: Podcast show with its RSS feed URL (maintained by the feed sync)
    Episode: Podcast episode metadata (maintained by the feed sync)
    Transcript: Transcript status row owned by the transcript worker
    WorkerLock: Named lock row for backends without advisory locks
    TimestampMixin: Provides automatic created_at/updated_at timestamps

Enums:
    TranscriptStatus: Outcome of a transcript acquisition attempt
"""

from datetime import datetime, timezone
from enum import Enum as PyEnum

from sqlalchemy import (
    Column,
    Integer,
    Enum,
    ForeignKey,
    String,
    Text,
    DateTime,
)
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class TimestampMixin:
    """
    Mixin to add automatic timestamp tracking to models.

    Provides:
        created_at: Timestamp when record was created (set automatically)
        updated_at: Timestamp when record was last modified (updated automatically)

    Both fields use database-level defaults (func.now()) for consistency.
    """

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )


class TranscriptStatus(str, PyEnum):
    """
    Enum representing the stored outcome of a transcript lookup.

        PROCESSING: Provider is still generating the transcript (retried next run)
        FULL: Complete transcript stored
        PARTIAL: Incomplete transcript stored
        NOT_FOUND: Episode known to the provider, no transcript available
        NO_MATCH: Show or episode unknown to the provider
        ERROR: Lookup or storage failed

    Every status except PROCESSING is terminal: episodes carrying one are no
    longer candidates for the worker.
    """

    PROCESSING = "processing"
    FULL = "full"
    PARTIAL = "partial"
    NOT_FOUND = "not_found"
    NO_MATCH = "no_match"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self is not TranscriptStatus.PROCESSING


TERMINAL_STATUSES = [status for status in TranscriptStatus if status.is_terminal]


class Show(Base, TimestampMixin):
    """
    Represents a podcast show.

    Attributes:
        id: Primary key (UUID string)
        title: Show title from the RSS feed
        rss_url: RSS feed URL, used to resolve the show with the transcript provider
    """

    __tablename__ = "podcast_shows"

    id = Column(String, primary_key=True)
    title = Column(String, nullable=True)
    rss_url = Column(String, nullable=True)

    episodes = relationship("Episode", back_populates="show")

    def __repr__(self):
        return f"<Show(id={self.id}, title='{self.title}', rss_url='{self.rss_url}')>"


class Episode(Base):
    """
    Represents a podcast episode. Read-only for the transcript worker.

    Attributes:
        id: Primary key (UUID string)
        show_id: Owning show
        guid: Episode GUID from the RSS feed (provider lookup key)
        title: Episode title
        episode_url: Enclosure URL
        pub_date: Publication timestamp (UTC)
        created_at: Timestamp when the episode was synced
    """

    __tablename__ = "podcast_episodes"

    id = Column(String, primary_key=True)
    show_id = Column(String, ForeignKey("podcast_shows.id"), nullable=False)
    guid = Column(String, nullable=True)
    title = Column(String, nullable=True)
    episode_url = Column(String, nullable=True)
    pub_date = Column(DateTime, nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, server_default=func.now())

    show = relationship("Show", back_populates="episodes")
    transcript = relationship("Transcript", back_populates="episode", uselist=False)

    def __repr__(self):
        return (
            f"<Episode(id={self.id}, show_id={self.show_id}, guid='{self.guid}', "
            f"pub_date='{self.pub_date}')>"
        )


class Transcript(Base, TimestampMixin):
    """
    Transcript status row, one per episode.

    Attributes:
        id: Autoincrement primary key
        episode_id: Episode this transcript belongs to (unique)
        status: TranscriptStatus, stored as its lowercase value
        storage_path: Object key of the artifact, only for FULL/PARTIAL
        word_count: Whitespace token count of the stored transcript
        source: Transcript provider tag ("taddy")
        error_details: Last error message for ERROR rows
        deleted_at: Soft-delete marker, never set by the worker

    Storage Path Convention:
        <show_id>/<episode_id>.jsonl.gz
    """

    __tablename__ = "transcripts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    episode_id = Column(
        String,
        ForeignKey("podcast_episodes.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    status = Column(
        Enum(
            TranscriptStatus,
            name="transcript_status",
            values_callable=lambda enum: [member.value for member in enum],
        ),
        nullable=False,
        index=True,
    )
    storage_path = Column(String, nullable=True)
    word_count = Column(Integer, nullable=True)
    source = Column(String, nullable=True)
    error_details = Column(Text, nullable=True)
    deleted_at = Column(DateTime, nullable=True)

    episode = relationship("Episode", back_populates="transcript")

    def __repr__(self):
        return (
            f"<Transcript(episode_id={self.episode_id}, status={self.status.value}, "
            f"storage_path='{self.storage_path}', word_count={self.word_count})>"
        )


class WorkerLock(Base):
    """Named lock row, used when the database has no advisory locks."""

    __tablename__ = "worker_locks"

    name = Column(String, primary_key=True)
    holder = Column(String, nullable=False)
    acquired_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<WorkerLock(name={self.name}, holder={self.holder}, acquired_at={self.acquired_at})>"
