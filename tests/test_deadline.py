"""Tests for per-call deadlines."""

import sqlite3

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from reelshelf.core.errors import StoreTimeout
from reelshelf.store.deadline import Deadline, bind_deadline, is_timeout

# Recursive CTE that keeps SQLite busy well past any short deadline
_SLOW_QUERY = text(
    "WITH RECURSIVE n(i) AS (SELECT 1 UNION ALL SELECT i + 1 FROM n WHERE i < 50000000) "
    "SELECT count(*) FROM n"
)


class FakePgError(Exception):
    pgcode = "57014"


class TestDeadline:
    """Test Deadline bookkeeping."""

    def test_fresh_deadline_not_expired(self):
        deadline = Deadline("get", 10)
        assert not deadline.expired()
        assert 0 < deadline.remaining() <= 10
        deadline.check()

    def test_zero_budget_is_expired(self):
        deadline = Deadline("search", 0)
        assert deadline.expired()
        assert deadline.remaining() == 0.0
        with pytest.raises(StoreTimeout) as exc_info:
            deadline.check()
        assert exc_info.value.operation == "search"
        assert exc_info.value.timeout is True


class TestBindDeadline:
    """Test driver-level enforcement on SQLite."""

    def test_interrupts_long_statement(self, session_factory):
        """The SQLite progress handler aborts a statement past its deadline."""
        with session_factory() as session:
            with pytest.raises(OperationalError) as exc_info:
                with bind_deadline(session, Deadline("search", 0.05)):
                    session.execute(_SLOW_QUERY).scalar()
        assert is_timeout(exc_info.value)

    def test_handler_removed_afterwards(self, session_factory):
        with session_factory() as session:
            with bind_deadline(session, Deadline("get", 0)):
                pass
            assert session.execute(text("SELECT 1")).scalar() == 1


class TestIsTimeout:
    """Test classification of driver errors."""

    def test_sqlite_interrupt(self):
        err = OperationalError("SELECT 1", {}, sqlite3.OperationalError("interrupted"))
        assert is_timeout(err)

    def test_postgres_query_canceled(self):
        err = OperationalError("SELECT 1", {}, FakePgError("canceling statement due to statement timeout"))
        assert is_timeout(err)

    def test_other_errors(self):
        err = OperationalError("SELECT 1", {}, sqlite3.OperationalError("no such table: records"))
        assert not is_timeout(err)
