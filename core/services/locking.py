"""
Per-key write serialization for read-check-write sequences.

Within one process a keyed threading lock orders callers; on postgres a
session-level advisory lock additionally orders callers across processes.
"""

from __future__ import annotations

import hashlib
import threading
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import text

from core.db import DB, is_postgres


class KeyedLock:
    """One threading.Lock per key, dropped once no caller holds or waits on it."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict = {}

    @contextmanager
    def hold(self, key) -> Iterator[None]:
        with self._guard:
            lock, waiters = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, waiters + 1)
        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                current, waiters = self._locks[key]
                if waiters <= 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (current, waiters - 1)


_locks = KeyedLock()


def advisory_key(*parts: str) -> int:
    digest = hashlib.blake2b(":".join(parts).encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big", signed=True)


@contextmanager
def serialized_session(scope: str, *parts: str):
    """
    Session whose writes are exclusive for (scope, *parts).

    On postgres the advisory lock is session-level and held on a dedicated
    connection, so it survives intermediate commits made through the session.
    """
    key = (scope,) + tuple(parts)
    with _locks.hold(key):
        if not is_postgres():
            db = DB.SessionLocal()
            try:
                yield db
            finally:
                db.close()
            return

        lock_key = advisory_key(*key)
        with DB.engine.connect() as conn:
            conn.execute(text("SELECT pg_advisory_lock(:key)"), {"key": lock_key})
            conn.commit()
            db = DB.SessionLocal(bind=conn)
            try:
                yield db
            finally:
                db.close()
                conn.rollback()
                conn.execute(text("SELECT pg_advisory_unlock(:key)"), {"key": lock_key})
                conn.commit()


__all__ = ["KeyedLock", "advisory_key", "serialized_session"]
