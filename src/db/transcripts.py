"""
Database helpers for transcript rows and transcript worker candidates.

All functions take an open session and leave committing to the caller, so a
single ``get_db_session()`` block can group related reads and writes.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import exists
from sqlalchemy.orm import Session

from src.logger import log_function
from .models import Episode, Show, Transcript, TranscriptStatus, TERMINAL_STATUSES, utcnow


logger = logging.getLogger("database")


@dataclass(frozen=True)
class EpisodeCandidate:
    """An episode the worker should fetch a transcript for, joined to its show."""

    id: str
    show_id: str
    guid: str
    feed_url: str
    title: Optional[str] = None
    pub_date: Optional[datetime] = None


@log_function(logger_name="database", log_execution_time=True)
def fetch_candidate_episodes(
    session: Session,
    lookback_hours: int,
    limit: int,
    include_existing: bool = False,
    now: Optional[datetime] = None,
) -> list[EpisodeCandidate]:
    """
    Select episodes needing a transcript.

    Episodes published within the lookback window that have a GUID and a show
    with an RSS URL. Episodes with a non-deleted terminal transcript row are
    excluded; a ``processing`` row keeps the episode eligible.

    Args:
        session: Open database session.
        lookback_hours: Publication window in hours.
        limit: Maximum number of candidates.
        include_existing: Re-check mode. Ignore existing transcript rows and
            return the ``limit`` most recent episodes instead of the oldest.
        now: Reference time (naive UTC), defaults to the current time.

    Returns:
        list[EpisodeCandidate]: Oldest first, or most recent first when
        ``include_existing`` is set.
    """
    cutoff = (now or utcnow()) - timedelta(hours=lookback_hours)

    query = (
        session.query(
            Episode.id,
            Episode.show_id,
            Episode.guid,
            Episode.title,
            Episode.pub_date,
            Show.rss_url,
        )
        .join(Show, Episode.show_id == Show.id)
        .filter(Episode.pub_date >= cutoff)
        .filter(Episode.guid.isnot(None), Episode.guid != "")
        .filter(Show.rss_url.isnot(None), Show.rss_url != "")
    )

    if include_existing:
        query = query.order_by(Episode.pub_date.desc(), Episode.id)
    else:
        has_terminal_transcript = exists().where(
            Transcript.episode_id == Episode.id,
            Transcript.deleted_at.is_(None),
            Transcript.status.in_(TERMINAL_STATUSES),
        )
        query = query.filter(~has_terminal_transcript).order_by(
            Episode.pub_date.asc(), Episode.id
        )

    rows = query.limit(limit).all()
    logger.info(
        f"Selected {len(rows)} candidate episodes (lookback_hours={lookback_hours}, "
        f"limit={limit}, include_existing={include_existing})"
    )
    return [
        EpisodeCandidate(
            id=row.id,
            show_id=row.show_id,
            guid=row.guid,
            feed_url=row.rss_url,
            title=row.title,
            pub_date=row.pub_date,
        )
        for row in rows
    ]


def get_transcript(session: Session, episode_id: str) -> Optional[Transcript]:
    """Return the transcript row for an episode, deleted or not."""
    return session.query(Transcript).filter_by(episode_id=episode_id).one_or_none()


def upsert_transcript(
    session: Session,
    episode_id: str,
    status: TranscriptStatus,
    storage_path: Optional[str] = None,
    word_count: Optional[int] = None,
    source: Optional[str] = None,
    error_details: Optional[str] = None,
) -> Transcript:
    """
    Insert or overwrite the transcript row of an episode.

    The row is rewritten as a whole: fields not passed are cleared, and a
    soft-deleted row is revived.

    Args:
        session: Open database session (caller commits).
        episode_id: Episode the row belongs to.
        status: New status.
        storage_path: Artifact key, only meaningful for FULL/PARTIAL.
        word_count: Word count of the stored transcript.
        source: Provider tag.
        error_details: Error message for ERROR rows.

    Returns:
        Transcript: The inserted or updated row (flushed, not committed).
    """
    transcript = get_transcript(session, episode_id)
    if transcript is None:
        transcript = Transcript(episode_id=episode_id)
        session.add(transcript)
        action = "Inserted"
    else:
        action = "Updated"

    transcript.status = status
    transcript.storage_path = storage_path
    transcript.word_count = word_count
    transcript.source = source
    transcript.error_details = error_details
    transcript.deleted_at = None
    session.flush()

    logger.debug(
        f"{action} transcript row: episode_id={episode_id} status={status.value} "
        f"storage_path={storage_path} word_count={word_count}"
    )
    return transcript
