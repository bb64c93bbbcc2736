"""
Cross-instance mutual exclusion for batch jobs.

A lock is a named, non-blocking mutex mediated by the database:

- PostgresAdvisoryLock: session-level ``pg_try_advisory_lock`` held on a
  dedicated connection. If the holder crashes, the lock goes away with its
  connection.
- TableLock: a row in ``worker_locks`` keyed by name, for databases without
  advisory locks (SQLite). A crashed holder keeps the row until it is released
  by hand or becomes older than ``stale_after``.
"""

import logging
import os
import socket
import uuid
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Optional

from sqlalchemy import text
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .models import WorkerLock, utcnow


logger = logging.getLogger("database")


class BaseLock(ABC):
    """Abstract named lock: ``try_acquire`` never blocks."""

    @abstractmethod
    def try_acquire(self, name: str) -> bool:
        """Try to take the lock.

        Args:
            name (str): Lock name.

        Returns:
            bool: True if the lock is now held by this process.
        """

    @abstractmethod
    def release(self, name: str) -> None:
        """Release a lock previously acquired by this instance. No-op otherwise."""


class PostgresAdvisoryLock(BaseLock):
    """Session-level PostgreSQL advisory lock keyed by ``hashtext(name)``."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._connections: dict[str, Connection] = {}

    def try_acquire(self, name: str) -> bool:
        if name in self._connections:
            return True

        connection = self.engine.connect()
        try:
            acquired = bool(
                connection.execute(
                    text("SELECT pg_try_advisory_lock(hashtext(:name))"),
                    {"name": name},
                ).scalar()
            )
            connection.commit()
        except Exception:
            connection.invalidate()
            connection.close()
            raise

        if acquired:
            self._connections[name] = connection
        else:
            connection.close()

        logger.debug(f"Advisory lock '{name}' {'acquired' if acquired else 'not acquired'}")
        return acquired

    def release(self, name: str) -> None:
        connection = self._connections.pop(name, None)
        if connection is None:
            return
        try:
            connection.execute(
                text("SELECT pg_advisory_unlock(hashtext(:name))"), {"name": name}
            )
            connection.commit()
            logger.debug(f"Advisory lock '{name}' released")
        except Exception as e:
            # Dropping the session is the only other way to free the lock
            logger.error(f"Error releasing advisory lock '{name}': {e}")
            connection.invalidate()
        finally:
            connection.close()


class TableLock(BaseLock):
    """Lock backed by a unique row in the ``worker_locks`` table."""

    def __init__(
        self,
        engine: Engine,
        holder: Optional[str] = None,
        stale_after: Optional[timedelta] = None,
    ):
        self.engine = engine
        self.holder = holder or f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"
        self.stale_after = stale_after

    def try_acquire(self, name: str) -> bool:
        with Session(self.engine) as session:
            if self.stale_after is not None:
                expired = (
                    session.query(WorkerLock)
                    .filter(
                        WorkerLock.name == name,
                        WorkerLock.acquired_at < utcnow() - self.stale_after,
                    )
                    .delete(synchronize_session=False)
                )
                if expired:
                    logger.warning(f"Removed stale lock row '{name}'")
                session.commit()

            session.add(WorkerLock(name=name, holder=self.holder, acquired_at=utcnow()))
            try:
                session.commit()
            except IntegrityError:
                session.rollback()
                logger.debug(f"Table lock '{name}' is held by another instance")
                return False

        logger.debug(f"Table lock '{name}' acquired by {self.holder}")
        return True

    def release(self, name: str) -> None:
        with Session(self.engine) as session:
            deleted = (
                session.query(WorkerLock)
                .filter_by(name=name, holder=self.holder)
                .delete(synchronize_session=False)
            )
            session.commit()
        if deleted:
            logger.debug(f"Table lock '{name}' released by {self.holder}")


def create_worker_lock(engine: Engine, stale_after: Optional[timedelta] = None) -> BaseLock:
    """Pick the lock implementation matching the engine's dialect."""
    if engine.dialect.name == "postgresql":
        return PostgresAdvisoryLock(engine)
    return TableLock(engine, stale_after=stale_after)
