"""FastAPI application factory.

Routes live under /v1. Catalog errors raised anywhere below a route are
turned into {"error": ...} envelopes here, so handlers only deal with the
success path.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from reelshelf import __version__
from reelshelf.config import Settings
from reelshelf.core.errors import CatalogError, ErrorKind, StoreError, ValidationError
from reelshelf.core.filters import FilterConfig
from reelshelf.db.session import get_engine, get_session_factory, init_db
from reelshelf.store import RecordStore, SqlRecordStore

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "the requested resource could not be found"
EDIT_CONFLICT_MESSAGE = "unable to update the record due to an edit conflict, please try again"
SERVER_ERROR_MESSAGE = "the server encountered a problem and could not process your request"
TIMEOUT_MESSAGE = "the service is taking too long to respond, please try again later"


def get_record_store(request: Request) -> RecordStore:
    """Dependency returning the application's record store."""
    return request.app.state.store


def get_filter_config(request: Request) -> FilterConfig:
    """Dependency returning the search limits and sort safelist."""
    return request.app.state.filter_config


def error_response(status_code: int, error: object) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error})


def catalog_error_response(request: Request, exc: CatalogError) -> JSONResponse:
    """Map a catalog error to its HTTP envelope."""
    if isinstance(exc, ValidationError):
        return error_response(422, exc.errors)
    if exc.kind == ErrorKind.NOT_FOUND:
        return error_response(404, NOT_FOUND_MESSAGE)
    if exc.kind == ErrorKind.EDIT_CONFLICT:
        return error_response(409, EDIT_CONFLICT_MESSAGE)

    properties = {"request_method": request.method, "request_url": str(request.url)}
    if isinstance(exc, StoreError) and exc.timeout:
        logger.warning(str(exc), extra={"properties": properties})
        return error_response(503, TIMEOUT_MESSAGE)

    logger.error(str(exc), exc_info=exc, extra={"properties": properties})
    return error_response(500, SERVER_ERROR_MESSAGE)


def request_validation_response(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report body shape errors field by field, like record validation does."""
    errors: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        errors.setdefault(".".join(loc) or "body", err.get("msg", "is invalid"))
    return error_response(422, errors)


def http_error_response(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return error_response(404, NOT_FOUND_MESSAGE)
    if exc.status_code == 405:
        return error_response(
            405, f"the {request.method} method is not supported for this resource"
        )
    return error_response(exc.status_code, exc.detail)


def create_app(settings: Settings | None = None, store: RecordStore | None = None) -> FastAPI:
    """Create FastAPI application.

    Args:
        settings: Runtime settings. Defaults to Settings.from_env().
        store: Record store to serve. When omitted one is built from
            settings.db_url and its schema is created at startup.

    Returns:
        Configured FastAPI application.
    """
    settings = settings or Settings.from_env()
    filter_config = FilterConfig()
    engine = None

    if store is None:
        engine = get_engine(settings.db_url, settings.pool_settings())
        store = SqlRecordStore(
            get_session_factory(engine),
            timeout=settings.query_timeout,
            filter_config=filter_config,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if engine is not None:
            init_db(engine)
        yield

    app = FastAPI(
        title="Reelshelf API",
        description="Catalog of titled media records",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.filter_config = filter_config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(CatalogError, catalog_error_response)
    app.add_exception_handler(RequestValidationError, request_validation_response)
    app.add_exception_handler(StarletteHTTPException, http_error_response)

    # Include routes
    from reelshelf.api.routes import health, records

    app.include_router(health.router, prefix="/v1")
    app.include_router(records.router, prefix="/v1")

    return app
