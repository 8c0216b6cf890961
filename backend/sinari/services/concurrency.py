# Overview: Row locking and bounded retry for read-modify-write operations.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Product.version_id still catches lost updates there.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.05):
    """
    Execute an atomic DB operation, retrying on concurrency failures.

    ATOMICITY: any exception rolls the session back before it propagates, so
    a failed operation never leaves a half-written product or log behind.

    Only OperationalError (locks, deadlocks) and StaleDataError (optimistic
    version mismatch) are retried; business errors surface immediately.
    """
    for attempt in range(attempts):
        try:
            return func()
        except RETRYABLE_ERRORS as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Concurrent update detected (attempt %s/%s): %s",
                attempt + 1, attempts, exc.__class__.__name__,
            )
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
