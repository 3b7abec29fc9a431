# Overview: Service-layer concurrency helpers; row locks, per-key critical sections and retries.

from __future__ import annotations

import threading
import time
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


# key -> [lock, holders + waiters]
_key_locks: dict[str, list] = {}
_key_locks_guard = threading.Lock()


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def key_lock(key: str):
    """
    Hold an in-process mutex for one logical key (e.g. a factory code).

    Serializes read-check-write sequences on the same key across request
    threads. Combined with lock_for_update this covers both SQLite (no row
    locks) and multi-process deployments on databases that honor FOR UPDATE.

    Entries are reference counted and dropped once no thread holds or waits
    on them, so the registry only contains keys currently in use.
    """
    with _key_locks_guard:
        entry = _key_locks.get(key)
        if entry is None:
            entry = [threading.Lock(), 0]
            _key_locks[key] = entry
        entry[1] += 1
    try:
        with entry[0]:
            yield
    finally:
        with _key_locks_guard:
            entry[1] -= 1
            if entry[1] == 0:
                del _key_locks[key]


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts).
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc

