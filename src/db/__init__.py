"""
Database package for the transcript worker.

This package contains all database-related functionality including:
- SQLAlchemy models and table definitions
- Database connection and session management
- Transcript row helpers and candidate episode selection
- Cross-instance worker locks

Structure:
- models.py: SQLAlchemy ORM models (Show, Episode, Transcript, WorkerLock)
- database.py: Database connection, engine, and session factory
- transcripts.py: Candidate selection and transcript upserts
- locks.py: PostgreSQL advisory lock and table-backed lock
- __init__.py: Package initialization and exports

Database Patterns:
- Session-per-operation with get_db_session() context manager
- Helpers take a session and leave commits to the caller
"""

from .models import (
    Base,
    Show,
    Episode,
    Transcript,
    TranscriptStatus,
    TERMINAL_STATUSES,
    TimestampMixin,
    WorkerLock,
    utcnow,
)
from .database import (
    get_db_session,
    REQUIRED_TABLES,
    check_database_connection,
    configure_database,
    get_engine,
)
from .transcripts import (
    EpisodeCandidate,
    fetch_candidate_episodes,
    get_transcript,
    upsert_transcript,
)
from .locks import (
    BaseLock,
    PostgresAdvisoryLock,
    TableLock,
    create_worker_lock,
)

__all__ = [
    # Models
    "Base",
    "Show",
    "Episode",
    "Transcript",
    "TranscriptStatus",
    "TERMINAL_STATUSES",
    "TimestampMixin",
    "WorkerLock",
    "utcnow",
    # Database utilities
    "get_db_session",
    "REQUIRED_TABLES",
    "check_database_connection",
    "configure_database",
    "get_engine",
    # Transcript helpers
    "EpisodeCandidate",
    "fetch_candidate_episodes",
    "get_transcript",
    "upsert_transcript",
    # Locks
    "BaseLock",
    "PostgresAdvisoryLock",
    "TableLock",
    "create_worker_lock",
]
