# Overview: Transaction boundary helpers shared by the stock-mutating services.

from __future__ import annotations

import time

from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


class StoreError(RuntimeError):
    """Persistence failure surfaced to callers as a 500."""


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


def begin_write():
    """
    Take the database write lock up front on SQLite.

    Without it two SQLite connections can both read stock under a SHARED lock
    and deadlock when upgrading to write.
    """
    if db.engine.dialect.name == "sqlite":
        db.session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, context: str = "Database operation failed"):
    """
    Execute a unit of work as one transaction, with retry on concurrency failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Any other exception rolls the session back
    and propagates; SQLAlchemy errors are wrapped in StoreError with `context`.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise StoreError(f"{context}: {exc}") from exc
            time.sleep(backoff_base * (2 ** attempt))
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StoreError(f"{context}: {exc}") from exc
        except Exception:
            db.session.rollback()
            raise


def commit_or_raise(context: str) -> None:
    """Commit the current session, wrapping store failures."""
    try:
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StoreError(f"{context}: {exc}") from exc
