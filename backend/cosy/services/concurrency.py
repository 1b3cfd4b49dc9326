# Overview: Transaction helpers shared by multi-step service writes.

from __future__ import annotations

import time
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


@contextmanager
def atomic():
    """
    Run a multi-step write as one database transaction.

    Commits when the block exits cleanly; any exception rolls back every
    row written inside the block and is re-raised. Steps inside should
    flush(), never commit().
    """
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on lock contention.

    Retries on OperationalError (database is locked) and StaleDataError.
    Anything else propagates on the first failure.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
