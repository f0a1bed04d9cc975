"""Database engine and session management.

Engines are cached by URL so repeated lookups share one connection pool.
In-memory SQLite uses a single shared connection (StaticPool); every other
URL gets a bounded pool sized from PoolSettings.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import Engine, create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from reelshelf.db.schema import Base

logger = logging.getLogger(__name__)

# Default database location
DEFAULT_DB_URL = "sqlite:///data/reelshelf.db"

# Module-level engine cache for connection pooling
_engine_cache: dict[str, Engine] = {}


@dataclass(frozen=True)
class PoolSettings:
    """Connection pool limits.

    max_open_conns bounds in-use plus idle connections, max_idle_conns bounds
    the idle ones kept around, and max_idle_time (seconds) recycles
    connections older than that.
    """

    max_open_conns: int = 25
    max_idle_conns: int = 25
    max_idle_time: float = 15 * 60


def _is_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def create_db_engine(url: str = DEFAULT_DB_URL, pool: PoolSettings | None = None) -> Engine:
    """Create a new SQLAlchemy engine (uncached).

    Args:
        url: Database URL.
        pool: Pool limits for non in-memory databases.

    Returns:
        SQLAlchemy engine instance.
    """
    pool = pool or PoolSettings()
    parsed = make_url(url)
    backend = parsed.get_backend_name()

    if _is_memory_sqlite(url):
        # SQLite thread-safety config for FastAPI concurrency:
        # - check_same_thread=False: Allow multi-threaded access
        # - StaticPool: Single connection shared across threads
        engine = create_engine(
            url,
            echo=False,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        if backend == "sqlite" and parsed.database:
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

        connect_args = {"check_same_thread": False} if backend == "sqlite" else {}
        engine = create_engine(
            url,
            echo=False,
            connect_args=connect_args,
            pool_size=max(pool.max_idle_conns, 1),
            max_overflow=max(pool.max_open_conns - pool.max_idle_conns, 0),
            pool_recycle=int(pool.max_idle_time) if pool.max_idle_time > 0 else -1,
            pool_pre_ping=True,
        )

    if backend == "sqlite":
        _enable_sqlite_foreign_keys(engine)

    return engine


def get_engine(url: str = DEFAULT_DB_URL, pool: PoolSettings | None = None) -> Engine:
    """Get a cached SQLAlchemy engine for url.

    Subsequent calls with the same URL return the cached engine, whatever
    pool settings they pass.

    Args:
        url: Database URL.
        pool: Pool limits used when the engine is first created.

    Returns:
        SQLAlchemy engine instance (cached).
    """
    if url in _engine_cache:
        return _engine_cache[url]

    engine = create_db_engine(url, pool)
    _engine_cache[url] = engine
    return engine


def get_session_factory(engine: Engine) -> sessionmaker:
    """Return a session factory bound to engine."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def ping(engine: Engine, timeout: float = 5.0) -> None:
    """Verify the database is reachable.

    Args:
        engine: Engine to check.
        timeout: Seconds allowed for the round trip.

    Raises:
        TimeoutError: If the check took longer than timeout.
        sqlalchemy.exc.OperationalError: If the database is unreachable.
    """
    started = time.monotonic()
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    elapsed = time.monotonic() - started
    if elapsed > timeout:
        raise TimeoutError(f"database ping took {elapsed:.2f}s (limit {timeout:g}s)")


def init_db(engine: Engine) -> None:
    """Initialize database schema.

    Call this once during application startup to create tables.

    Args:
        engine: Engine to create the tables on.
    """
    Base.metadata.create_all(engine)
    logger.info("database schema ready", extra={"properties": {"url": str(engine.url)}})
