"""SketchSite: FastAPI application entry point."""

import uuid
from contextlib import asynccontextmanager

# configure_structlog must run before the other sketchsite imports: structlog
# caches the processor chain on first use.
from sketchsite.core.config import get_settings as _get_settings_early
from sketchsite.core.logging import configure_structlog

_early_settings = _get_settings_early()
configure_structlog(
    log_level="DEBUG" if _early_settings.debug else "INFO",
    json_logs=not _early_settings.debug,
)

import structlog

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sketchsite.api.routes import api_router
from sketchsite.core.config import get_settings
from sketchsite.core.exceptions import (
    EmptyCanvasError,
    GenerationError,
    GenerationErrorReason,
    GenerationInProgressError,
    NotFoundError,
    NothingToEditError,
    ParseError,
    PersistenceFailure,
    SketchSiteError,
    WorkspaceStateError,
)
from sketchsite.db import close_db, init_db
from sketchsite.middleware.correlation import get_correlation_id, setup_correlation_middleware

logger = structlog.get_logger(__name__)

RETRY_HINT = "Try generating again."


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("startup_begin", app_name=settings.app_name, debug=settings.debug)

    await init_db()
    logger.info("db_initialized")

    yield

    logger.info("shutdown_begin")
    await close_db()
    logger.info("shutdown_complete")


def _domain_error_status(exc: SketchSiteError) -> int:
    if isinstance(exc, (EmptyCanvasError, NothingToEditError, ParseError)):
        return 422
    if isinstance(exc, GenerationError):
        return 504 if exc.reason is GenerationErrorReason.TIMEOUT else 502
    if isinstance(exc, (GenerationInProgressError, WorkspaceStateError)):
        return 409
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, PersistenceFailure):
        return 503
    return 500


async def domain_exception_handler(request: Request, exc: SketchSiteError) -> JSONResponse:
    """Map domain exceptions to JSON errors with a debug_id.

    Model output and tracebacks stay in the server log.
    """
    debug_id = str(uuid.uuid4())
    status_code = _domain_error_status(exc)

    content = {"detail": str(exc), "debug_id": debug_id}
    if isinstance(exc, GenerationError):
        content["reason"] = exc.reason.value
    if isinstance(exc, (ParseError, GenerationError)):
        content["hint"] = RETRY_HINT

    log = logger.warning if status_code < 500 else logger.error
    log(
        "domain_exception",
        status_code=status_code,
        error_type=type(exc).__name__,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        detail=str(exc),
    )
    return JSONResponse(status_code=status_code, content=content)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """HTTPException with debug_id tracking."""
    debug_id = str(uuid.uuid4())

    logger.error(
        "http_exception",
        status_code=exc.status_code,
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        detail=exc.detail,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "debug_id": debug_id},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unhandled errors: full traceback in the log, generic 500 to the client."""
    debug_id = str(uuid.uuid4())

    logger.error(
        "unhandled_exception",
        debug_id=debug_id,
        correlation_id=get_correlation_id(),
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
        exc_info=True,
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "debug_id": debug_id},
    )


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Turn canvas sketches into websites, with version history",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(dict.fromkeys([settings.frontend_url, *settings.cors_origins])),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Added last so it runs first on incoming requests
    setup_correlation_middleware(app)

    app.exception_handler(SketchSiteError)(domain_exception_handler)
    app.exception_handler(HTTPException)(http_exception_handler)
    app.exception_handler(Exception)(generic_exception_handler)

    app.include_router(api_router, prefix="/api")

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "sketchsite.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
