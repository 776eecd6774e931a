"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. The Settings object is passed in explicitly; from it the
factory builds the app's database engine, TokenIssuer and PhotoStorage
and puts them on app.state, where the request dependencies find them.
Nothing touches the disk or the database until the lifespan starts.

Error translation lives here too: every TrailSyncError raised by a
service becomes its status code plus {"error": message}.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from trailsync import __version__
from trailsync.api import api_router
from trailsync.auth.jwt import TokenIssuer
from trailsync.config import Settings, settings as default_settings
from trailsync.db.engine import build_engine, build_session_factory
from trailsync.errors import TrailSyncError
from trailsync.middleware.request_id import RequestIdMiddleware
from trailsync.middleware.security import SecurityHeadersMiddleware
from trailsync.storage.photos import PhotoStorage

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at shutdown.
    Startup creates the upload folders; shutdown closes the app's own engine.
    """
    app_settings: Settings = app.state.settings
    app.state.photos.ensure_dirs()
    logger.info(
        "trailsync.starting",
        version=__version__,
        environment=app_settings.environment,
        port=app_settings.port,
    )

    yield

    logger.info("trailsync.shutdown")
    await app.state.engine.dispose()


# ─── Error translation ──────────────────────────────────


async def _trailsync_error(request: Request, exc: TrailSyncError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("http.internal_error", error=exc.message, path=request.url.path)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.message},
        headers=exc.headers,
    )


async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": errors or "Invalid request"})


async def _storage_error(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("http.storage_error", error=str(exc), path=request.url.path)
    return JSONResponse(status_code=500, content={"error": "An unknown error occurred"})


def create_app(app_settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    app_settings = app_settings or default_settings

    app = FastAPI(
        title="TrailSync API",
        description="Travel sharing platform — trip posts, photos, and comments",
        version=__version__,
        lifespan=lifespan,
    )

    photos = PhotoStorage(app_settings.upload_dir, app_settings.max_file_size)
    engine = build_engine(app_settings.database_url, echo=app_settings.debug)

    app.state.settings = app_settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.token_issuer = TokenIssuer(app_settings)
    app.state.photos = photos

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: CORS → Security → RequestId → handler
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(TrailSyncError, _trailsync_error)
    app.add_exception_handler(RequestValidationError, _validation_error)
    app.add_exception_handler(SQLAlchemyError, _storage_error)

    app.include_router(api_router)

    # Uploaded photos, addressed by their stored reference
    app.mount(
        "/uploads",
        StaticFiles(directory=photos.root, check_dir=False),
        name="uploads",
    )

    return app


# Default app instance (used by uvicorn: trailsync.main:app)
app = create_app()
