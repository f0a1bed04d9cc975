"""Per-call time budgets for store operations.

A Deadline is bound to the session's connection so the database itself
aborts statements that run past it:
- SQLite: a progress handler interrupts the running statement
- PostgreSQL: SET LOCAL statement_timeout for the transaction
The store also checks the deadline explicitly before committing.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm import Session

from reelshelf.core.errors import StoreTimeout

# SQLite VM instructions between progress-handler callbacks
_SQLITE_PROGRESS_STEPS = 1000

# SQLSTATE query_canceled
_PG_QUERY_CANCELED = "57014"


class Deadline:
    """A fixed point in monotonic time after which an operation has failed."""

    def __init__(self, operation: str, seconds: float):
        self.operation = operation
        self.seconds = seconds
        self.expires_at = time.monotonic() + seconds

    def remaining(self) -> float:
        return max(self.expires_at - time.monotonic(), 0.0)

    def expired(self) -> bool:
        return time.monotonic() >= self.expires_at

    def check(self) -> None:
        """Raise StoreTimeout if the deadline has passed."""
        if self.expired():
            raise StoreTimeout(self.operation, self.seconds)

    def timeout_error(self) -> StoreTimeout:
        return StoreTimeout(self.operation, self.seconds)


@contextmanager
def bind_deadline(session: Session, deadline: Deadline) -> Iterator[Deadline]:
    """Enforce deadline on the connection used by session.

    Begins the session's transaction if it has not started yet.
    """
    conn = session.connection()
    dialect = conn.dialect.name

    if dialect == "sqlite":
        raw = conn.connection.driver_connection
        raw.set_progress_handler(lambda: int(deadline.expired()), _SQLITE_PROGRESS_STEPS)
        try:
            yield deadline
        finally:
            raw.set_progress_handler(None, _SQLITE_PROGRESS_STEPS)
    elif dialect == "postgresql":
        millis = max(int(deadline.remaining() * 1000), 1)
        conn.exec_driver_sql(f"SET LOCAL statement_timeout = {millis}")
        yield deadline
    else:
        yield deadline


def is_timeout(exc: DBAPIError) -> bool:
    """Return True if a driver error means the statement was cut off by a deadline."""
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if code == _PG_QUERY_CANCELED:
        return True
    return "interrupted" in str(orig).lower()
