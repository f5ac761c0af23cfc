# Overview: Row locking and retry helpers for shift writes.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Lock the selected shift rows until commit.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; PostgreSQL and MySQL honor it.
    The version_id column still catches a lost update on SQLite.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run a write transaction, retrying on lock timeouts/deadlocks
    (OperationalError) and version conflicts (StaleDataError).

    The session is rolled back before every retry. The last error is
    re-raised once attempts are exhausted.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
