# Overview: Transaction helpers shared by the stock-moving services.

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def guarded_update(stmt) -> bool:
    """
    Execute a conditional UPDATE and report whether it matched a row.

    Stock decrements are written as
    ``UPDATE ... SET quantity = quantity - :q WHERE id = :id AND quantity >= :q``
    so the availability check and the write are one statement. A False
    return means the guard failed and nothing was written.

    In-session objects are not synchronized; callers refresh what they hold.
    """
    result = db.session.execute(stmt.execution_options(synchronize_session=False))
    return bool(result.rowcount)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, "database is locked") and
    StaleDataError. Domain errors raised by func propagate untouched.
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
            logger.warning("Retrying after concurrency failure (attempt %d): %s", attempt + 1, exc)
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
