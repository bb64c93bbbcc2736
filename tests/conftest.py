"""
Shared fixtures for the transcript worker test suite.

Database tests run against a temporary SQLite file (the worker writes from
threads, so an in-memory database is not an option).
"""

import os
import tempfile

# Keep module-level log files out of the working tree
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="transcript-worker-logs-"))

from contextlib import contextmanager
from datetime import timedelta

import pytest
from sqlalchemy.orm import sessionmaker

from src.db import Base, Episode, Show, Transcript, utcnow
from src.db.database import create_db_engine
from src.storage import BaseStorage, StorageError


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Context manager factory with the same contract as ``get_db_session``."""
    factory = sessionmaker(bind=engine, autoflush=False)

    @contextmanager
    def session_scope():
        session = factory()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    return session_scope


@pytest.fixture
def add_episode(session_factory):
    """Insert a show (if needed) and an episode published ``hours_ago``."""

    def _add_episode(
        episode_id,
        show_id="show-1",
        hours_ago=1,
        guid="default",
        rss_url="https://feeds.example.com/show.rss",
        transcript_status=None,
        transcript_deleted=False,
    ):
        with session_factory() as session:
            if session.get(Show, show_id) is None:
                session.add(Show(id=show_id, title=f"Show {show_id}", rss_url=rss_url))
            session.add(
                Episode(
                    id=episode_id,
                    show_id=show_id,
                    guid=f"guid-{episode_id}" if guid == "default" else guid,
                    title=f"Episode {episode_id}",
                    pub_date=utcnow() - timedelta(hours=hours_ago),
                )
            )
            if transcript_status is not None:
                session.add(
                    Transcript(
                        episode_id=episode_id,
                        status=transcript_status,
                        deleted_at=utcnow() if transcript_deleted else None,
                    )
                )
            session.commit()

    return _add_episode


@pytest.fixture
def get_row(session_factory):
    def _get_row(episode_id):
        with session_factory() as session:
            row = session.query(Transcript).filter_by(episode_id=episode_id).one_or_none()
            if row is not None:
                session.expunge(row)
            return row

    return _get_row


class RecordingStorage(BaseStorage):
    """In-memory storage remembering every upload."""

    def __init__(self):
        self.objects = {}
        self.uploads = []

    def upload(self, path, data, content_type):
        self.uploads.append({"path": path, "data": data, "content_type": content_type})
        self.objects[path] = data
        return path

    def exists(self, path):
        return path in self.objects

    def download(self, path):
        if path not in self.objects:
            raise StorageError(f"No such object: {path}")
        return self.objects[path]


class FailingStorage(RecordingStorage):
    def upload(self, path, data, content_type):
        raise StorageError("bucket unavailable")


@pytest.fixture
def storage():
    return RecordingStorage()


@pytest.fixture
def failing_storage():
    return FailingStorage()


@pytest.fixture
def configured_database(engine, monkeypatch):
    """Point the module-level engine used by ``get_db_session`` at the test database."""
    from src.db import database

    monkeypatch.setattr(database, "_engine", None)
    monkeypatch.setattr(database, "_session_factory", None)
    configured = database.configure_database(engine.url.render_as_string(hide_password=False))
    yield configured
    configured.dispose()
