"""Runtime configuration.

Settings are read from REELSHELF_* environment variables and may be
overridden by command-line flags. Nothing here is global: the app and the
store receive the values they need through their constructors.
"""

from __future__ import annotations

import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field

from reelshelf.db.session import DEFAULT_DB_URL, PoolSettings

ENVIRONMENTS = ("development", "staging", "production")

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s|m|h)\s*$")
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}

_DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
)


def parse_duration(value: str) -> float:
    """Parse a duration like "15m", "30s" or "250ms" into seconds.

    Raises:
        ValueError: If value is not a number followed by ms, s, m or h.
    """
    match = _DURATION_RE.match(value)
    if match is None:
        raise ValueError(f"invalid duration: {value!r}")
    amount, unit = match.groups()
    return float(amount) * _DURATION_UNITS[unit]


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e


@dataclass
class Settings:
    """Server, database and logging settings."""

    port: int = 4000
    env: str = "development"
    db_url: str = DEFAULT_DB_URL
    db_max_open_conns: int = 25
    db_max_idle_conns: int = 25
    db_max_idle_time: str = "15m"
    query_timeout: float = 3.0
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = field(default_factory=lambda: _DEFAULT_CORS_ORIGINS)

    def __post_init__(self) -> None:
        if self.env not in ENVIRONMENTS:
            raise ValueError(f"env must be one of {', '.join(ENVIRONMENTS)}, got {self.env!r}")
        if self.query_timeout <= 0:
            raise ValueError("query_timeout must be positive")
        parse_duration(self.db_max_idle_time)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Build settings from REELSHELF_* variables, falling back to defaults."""
        environ = os.environ if environ is None else environ
        defaults = cls()

        origins_raw = environ.get("REELSHELF_CORS_ORIGINS")
        origins = (
            tuple(o.strip() for o in origins_raw.split(",") if o.strip())
            if origins_raw is not None
            else defaults.cors_origins
        )

        return cls(
            port=_env_int(environ, "REELSHELF_PORT", defaults.port),
            env=environ.get("REELSHELF_ENV", defaults.env),
            db_url=environ.get("REELSHELF_DB_URL", defaults.db_url),
            db_max_open_conns=_env_int(
                environ, "REELSHELF_DB_MAX_OPEN_CONNS", defaults.db_max_open_conns
            ),
            db_max_idle_conns=_env_int(
                environ, "REELSHELF_DB_MAX_IDLE_CONNS", defaults.db_max_idle_conns
            ),
            db_max_idle_time=environ.get("REELSHELF_DB_MAX_IDLE_TIME", defaults.db_max_idle_time),
            query_timeout=_env_float(environ, "REELSHELF_QUERY_TIMEOUT", defaults.query_timeout),
            log_level=environ.get("REELSHELF_LOG_LEVEL", defaults.log_level),
            cors_origins=origins,
        )

    def pool_settings(self) -> PoolSettings:
        return PoolSettings(
            max_open_conns=self.db_max_open_conns,
            max_idle_conns=self.db_max_idle_conns,
            max_idle_time=parse_duration(self.db_max_idle_time),
        )
