"""Shared pytest fixtures for reelshelf tests."""

import pytest

from reelshelf.db.schema import Base
from reelshelf.db.session import create_db_engine, get_session_factory
from reelshelf.models.domain import RecordEntity
from reelshelf.store import SqlRecordStore


@pytest.fixture
def engine():
    """Create an in-memory SQLite engine for testing."""
    engine = create_db_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory bound to the test engine."""
    return get_session_factory(engine)


@pytest.fixture
def session(session_factory):
    """Create a database session for testing."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def store(session_factory):
    """Record store backed by the in-memory database."""
    return SqlRecordStore(session_factory)


@pytest.fixture
def make_record():
    """Build an unsaved record with sensible defaults."""

    def _make(**overrides) -> RecordEntity:
        fields = {
            "title": "X",
            "release_year": 2000,
            "duration_minutes": 90,
            "tags": ["a", "b"],
        }
        fields.update(overrides)
        return RecordEntity(**fields)

    return _make
