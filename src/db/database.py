"""
Database engine and session management for the transcript worker.

This module provides database connectivity with:
- Lazy engine creation from DATABASE_URL (PostgreSQL in production, SQLite for local runs)
- Session-per-operation pattern for the worker's blocking calls
- NullPool connection pooling to avoid SQLite locking issues
- A readiness check for the tables a worker run needs
- SQLite optimization settings (WAL mode, foreign keys, timeouts)
"""

import os
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv
from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool

from src.logger import setup_logging, log_function, default_log_file


# Initialize logger using centralized logging setup
db_logger = setup_logging(
    logger_name="database",
    log_file=default_log_file("database"),
    verbose=False,  # Only file logging, no console output
)

SUPPORTED_SCHEMES = ("sqlite", "postgresql")

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def validate_database_url(url: Optional[str]) -> tuple[bool, str]:
    """Validate the database URL format (and, for SQLite, its directory)."""
    if not url:
        return False, "DATABASE_URL is not set"
    try:
        parsed = urlparse(url)
        scheme = parsed.scheme.split("+", 1)[0]
        if scheme not in SUPPORTED_SCHEMES:
            return False, f"Unsupported database scheme: {parsed.scheme}"

        if scheme == "postgresql":
            if not parsed.hostname:
                return False, "PostgreSQL URL has no host"
            return True, f"{parsed.hostname}{parsed.path}"

        # Extract database file path (remove leading /)
        db_path = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
        if not db_path:
            return False, "Database file path is empty"

        # Check if parent directory exists (but don't create it)
        parent_dir = Path(db_path).parent
        if not parent_dir.exists():
            return False, f"Database directory does not exist: {parent_dir}"

        return True, db_path

    except Exception as e:
        return False, f"Invalid database URL format: {e}"


def optimize_sqlite_connection(dbapi_connection, connection_record):
    """Apply SQLite-specific optimizations when connection is created."""
    cursor = dbapi_connection.cursor()

    # Enable WAL mode for better concurrent access
    cursor.execute("PRAGMA journal_mode=WAL")

    # Set busy timeout to 30 seconds to handle locks
    cursor.execute("PRAGMA busy_timeout=30000")

    # Enable foreign key constraints
    cursor.execute("PRAGMA foreign_keys=ON")

    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.close()


def create_db_engine(url: str) -> Engine:
    """
    Create a SQLAlchemy engine for the given URL.

    Raises:
        ValueError: If the URL is not a supported/valid database URL.
    """
    is_valid, db_info = validate_database_url(url)
    if not is_valid:
        db_logger.error(f"Database configuration error: {db_info}")
        raise ValueError(f"Database configuration error: {db_info}")

    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            poolclass=NullPool,  # Avoid connection pooling issues with SQLite
            echo=False,
            connect_args={
                "check_same_thread": False,  # Worker writes from a thread pool
                "timeout": 30,
            },
        )
        event.listen(engine, "connect", optimize_sqlite_connection)
    else:
        engine = create_engine(url, pool_pre_ping=True, echo=False)

    db_logger.info(f"Database engine created: {engine.dialect.name} {db_info}")
    return engine


def configure_database(url: Optional[str] = None) -> Engine:
    """
    (Re)configure the module-level engine and session factory.

    Args:
        url: Database URL. If None, reads DATABASE_URL from the environment/.env.

    Returns:
        Engine: The configured engine.
    """
    global _engine, _session_factory

    if url is None:
        load_dotenv()
        url = os.getenv("DATABASE_URL")

    engine = create_db_engine(url)
    if _engine is not None:
        _engine.dispose()
    _engine = engine
    _session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    return engine


def get_engine() -> Engine:
    """Return the configured engine, configuring it from DATABASE_URL if needed."""
    if _engine is None:
        configure_database()
    return _engine


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Session-per-operation context manager. The caller commits.

    Usage:
        with get_db_session() as session:
            upsert_transcript(session, episode_id, TranscriptStatus.FULL)
            session.commit()
    """
    get_engine()
    session = _session_factory()
    try:
        yield session

    except OperationalError as e:
        session.rollback()
        error_msg = str(e.orig if e.orig is not None else e).lower()
        db_logger.error(f"Database operational error: {error_msg}")
        if "no such table" in error_msg or "does not exist" in error_msg:
            raise OperationalError(
                "Transcript tables are missing. Run `alembic upgrade head` first.",
                None,
                None,
            ) from e
        raise

    except Exception as e:
        db_logger.error(f"Database error: {type(e).__name__}: {e}")
        session.rollback()
        raise

    finally:
        session.close()


# Tables read or written by a worker run
REQUIRED_TABLES = ("podcast_shows", "podcast_episodes", "transcripts")


@log_function(logger_name="database", log_execution_time=True)
def check_database_connection() -> tuple[bool, str]:
    """
    Check that the database answers and holds the tables a worker run needs.

    ``worker_locks`` is only required off PostgreSQL, where the table lock is
    used instead of advisory locks.

    Returns:
        tuple[bool, str]: Readiness and a human-readable detail.
    """
    try:
        engine = get_engine()
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
            existing = set(inspect(connection).get_table_names())
    except Exception as e:
        db_logger.error(f"Database connection check failed: {e}")
        return False, f"Database unreachable: {e}"

    required = list(REQUIRED_TABLES)
    if engine.dialect.name != "postgresql":
        required.append("worker_locks")
    missing = [table for table in required if table not in existing]
    if missing:
        db_logger.warning(f"Database reachable but tables are missing: {missing}")
        return False, f"Missing tables: {', '.join(missing)} (run `alembic upgrade head`)"

    db_logger.info(f"Database check passed: dialect={engine.dialect.name}")
    return True, f"Connected ({engine.dialect.name}), all worker tables present"
