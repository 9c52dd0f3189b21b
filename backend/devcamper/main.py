"""
DevCamper Backend: FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance;
       the lifespan builds the engine, session factory and collaborators and
       keeps them on app.state.
Who:   uvicorn (`uvicorn devcamper.main:app`), tests (create_app + manual state).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────────┐ ┌──────────┐ ┌─────────┐ ┌──────┐       │
    │  │ Rate Limit │→│ Req ID   │→│ Logging │→│ CORS │       │
    │  └────────────┘ └──────────┘ └─────────┘ └──────┘       │
    │                                                          │
    │  Routes (/api/v1):                                       │
    │  auth │ bootcamps │ courses │ reviews │ users            │
    │  Routes (root): /uploads/{filename} │ /health            │
    │                                                          │
    │  Exception Handlers → {"success": false, "error": ...}   │
    │  400 Validation │ 401 Auth │ 403 Forbidden │ 404 │ 5xx   │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config check → engine + session factory → geocoder
              → photo storage
    Shutdown: close geocoder client → dispose engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from devcamper import __version__
from devcamper.config import settings
from devcamper.database import build_engine, build_session_factory, dispose_engine
from devcamper.exceptions import (
    DatabaseError,
    DevCamperError,
    RateLimitExceededError,
    UpstreamServiceError,
)
from devcamper.middleware.logging import RequestLoggingMiddleware
from devcamper.middleware.rate_limit import RateLimitMiddleware
from devcamper.middleware.request_id import RequestIDMiddleware, request_id_var
from devcamper.routes import auth, bootcamps, courses, health, reviews, uploads, users
from devcamper.services.geocoder_service import MapQuestGeocoder
from devcamper.services.photo_service import PhotoStorage

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure the root logger once, at startup.

    Format: 2024-01-15T12:00:00 [INFO] devcamper.access: GET /api/v1/bootcamps 200 ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("DevCamper API starting up...")

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: reads and health checks work without these settings
        logger.error("Configuration error: %s", str(e))

    app.state.engine = build_engine()
    app.state.session_factory = build_session_factory(app.state.engine)
    app.state.geocoder = MapQuestGeocoder()
    app.state.photo_storage = PhotoStorage()

    logger.info("Photo storage: %s", app.state.photo_storage.storage_root)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("DevCamper API shutting down...")
    await app.state.geocoder.aclose()
    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
        headers=headers,
    )


def _validation_message(exc: RequestValidationError) -> str:
    """Join pydantic errors into one line: "name: String should have at most 50 characters"."""
    messages = []
    for err in exc.errors():
        location = [str(part) for part in err.get("loc", ()) if part not in ("body", "query", "path")]
        message = err.get("msg", "Invalid value")
        messages.append(f"{'.'.join(location)}: {message}" if location else message)
    return ", ".join(messages) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to `{"success": false, "error": <message>}` responses.

    Handler hierarchy:
        DevCamperError subclasses  → exc.status_code (400/401/403/404/429/500)
        DatabaseError              → 500 with a generic message
        RequestValidationError     → 400 (FastAPI's default would be 422)
        HTTPException              → its own status (unknown routes, 405)
        Exception (fallback)       → 500, traceback logged server-side only
    """

    @app.exception_handler(DevCamperError)
    async def handle_app_error(request: Request, exc: DevCamperError):
        rid = request_id_var.get("")
        headers = None

        if isinstance(exc, DatabaseError):
            logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
            return _error(exc.status_code, "A server error occurred. Please try again later.")

        if isinstance(exc, UpstreamServiceError):
            logger.error("[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context)
        elif exc.status_code >= 500:
            logger.error("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        if isinstance(exc, RateLimitExceededError):
            headers = {"Retry-After": str(exc.retry_after)}

        return _error(exc.status_code, exc.message, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        message = _validation_message(exc)
        logger.warning("[%s] Request validation failed: %s", request_id_var.get(""), message)
        return _error(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _error(500, "Server Error")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="DevCamper API",
        description=(
            "Bootcamp directory API: bootcamps, courses, reviews and users with "
            "filtering, field selection, sorting and pagination on every list."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Count", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(auth.router, prefix=API_PREFIX)
    app.include_router(bootcamps.router, prefix=API_PREFIX)
    app.include_router(courses.router, prefix=API_PREFIX)
    app.include_router(reviews.router, prefix=API_PREFIX)
    app.include_router(users.router, prefix=API_PREFIX)
    app.include_router(uploads.router)
    app.include_router(health.router)

    return app


# uvicorn imports `devcamper.main:app`
app = create_app()
