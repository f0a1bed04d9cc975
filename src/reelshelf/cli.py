"""Command-line entry point.

    reelshelf serve [--port N] [--env NAME] [--db-url URL] ...
    reelshelf init-db [--db-url URL]

Flags override the REELSHELF_* environment variables.
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys

from reelshelf.config import ENVIRONMENTS, Settings
from reelshelf.db.session import get_engine, init_db, ping
from reelshelf.logs import configure_logging

logger = logging.getLogger(__name__)


def _settings_from_args(args: argparse.Namespace) -> Settings:
    """Overlay explicitly passed flags on the environment settings."""
    settings = Settings.from_env()
    overrides = {
        name: getattr(args, name)
        for name in (
            "port",
            "env",
            "db_url",
            "db_max_open_conns",
            "db_max_idle_conns",
            "db_max_idle_time",
            "query_timeout",
        )
        if getattr(args, name, None) is not None
    }
    return dataclasses.replace(settings, **overrides)


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the HTTP API server."""
    import uvicorn

    from reelshelf.api.app import create_app

    settings = _settings_from_args(args)
    configure_logging(settings.log_level)

    engine = get_engine(settings.db_url, settings.pool_settings())
    ping(engine)
    logger.info("database connection pool established")

    app = create_app(settings)
    logger.info(
        "starting server",
        extra={"properties": {"addr": f":{settings.port}", "env": settings.env}},
    )
    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_config=None)


def cmd_init_db(args: argparse.Namespace) -> None:
    """Create the database schema."""
    settings = _settings_from_args(args)
    configure_logging(settings.log_level)
    init_db(get_engine(settings.db_url, settings.pool_settings()))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="reelshelf",
        description="Catalog service for titled media records",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve = subparsers.add_parser("serve", help="Run the HTTP API server")
    serve.add_argument("--port", type=int, help="API server port (default 4000)")
    serve.add_argument("--env", choices=ENVIRONMENTS, help="Environment name")
    serve.add_argument("--db-url", dest="db_url", help="Database URL")
    serve.add_argument(
        "--db-max-open-conns", dest="db_max_open_conns", type=int,
        help="Maximum open database connections",
    )
    serve.add_argument(
        "--db-max-idle-conns", dest="db_max_idle_conns", type=int,
        help="Maximum idle database connections",
    )
    serve.add_argument(
        "--db-max-idle-time", dest="db_max_idle_time",
        help="Maximum connection idle time, e.g. 15m",
    )
    serve.add_argument(
        "--query-timeout", dest="query_timeout", type=float,
        help="Per-call database time budget in seconds",
    )
    serve.set_defaults(func=cmd_serve)

    init = subparsers.add_parser("init-db", help="Create the database schema")
    init.add_argument("--db-url", dest="db_url", help="Database URL")
    init.set_defaults(func=cmd_init_db)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 1

    try:
        args.func(args)
    except Exception:
        logger.critical("fatal error", exc_info=True)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
