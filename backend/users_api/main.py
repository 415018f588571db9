"""
Users API: FastAPI Application Factory
=======================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() assembles settings, middleware, exception handlers and
       routes; the lifespan owns the database engine.
Who:   uvicorn imports `users_api.main:app`; tests call create_app() with
       their own settings and engine.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐ ┌──────────────┐  │
    │  │ Req ID   │→│  Logging        │→│  CORS        │  │
    │  └──────────┘ └─────────────────┘ └──────────────┘  │
    │                                                     │
    │  Routes:                                            │
    │  ┌──────────────────────────────┐ ┌──────────────┐  │
    │  │ GET/POST/PUT/DELETE users    │ │ GET /health  │  │
    │  └──────────────────────────────┘ └──────────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Validation→400 │ NotFound→404 │ DB/other→500 │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Configure logging
    2. Create the engine (connection pool) unless one was injected
    3. Ensure the users table exists; on failure log it and abort startup
       (uvicorn then exits with a non-zero status)
    4. Store the session factory on app.state

    Shutdown:
    1. Dispose the engine if the lifespan created it
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from users_api import __version__
from users_api.config import Settings, get_settings
from users_api.database import (
    create_db_engine,
    create_session_factory,
    dispose_engine,
    ensure_schema,
)
from users_api.exceptions import (
    DatabaseError,
    NotFoundError,
    StartupError,
    UsersApiError,
    ValidationError,
)
from users_api.middleware.logging import RequestLoggingMiddleware
from users_api.middleware.request_id import (
    UNEXPECTED_ERROR_MESSAGE,
    RequestIDMiddleware,
    request_id_var,
)
from users_api.routes import health, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure logging for the entire application.

    Format: 2024-01-15T12:00:00 [INFO] users_api.services.user_service: Created user 1
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Per-request access lines come from RequestLoggingMiddleware
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    if level != "DEBUG":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Run schema initialization before serving and release the pool afterwards.

    An engine injected through create_app(engine=...) belongs to the caller
    and is not disposed here.
    """
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)
    logger.info("Users API %s starting up...", __version__)

    engine: Optional[AsyncEngine] = app.state.engine
    owns_engine = engine is None
    if owns_engine:
        try:
            engine = create_db_engine(settings)
        except Exception as e:
            # Malformed DATABASE_URL or missing driver
            error = StartupError(
                message="Could not create the database engine",
                context={"error_type": type(e).__name__, "error": str(e)},
            )
            logger.critical(
                "Error starting the application: %s | Context: %s", error.message, error.context
            )
            raise error from e
        app.state.engine = engine

    try:
        await ensure_schema(engine)
    except StartupError as e:
        logger.critical("Error starting the application: %s | Context: %s", e.message, e.context)
        if owns_engine:
            await dispose_engine(engine)
            app.state.engine = None
        raise

    app.state.session_factory = create_session_factory(engine)
    logger.info("Server ready on port %d", settings.port)

    yield

    logger.info("Users API shutting down...")
    if owns_engine:
        await dispose_engine(engine)
        app.state.engine = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and the {error, request_id} envelope.

    Handler hierarchy:
        ValidationError         → 400
        RequestValidationError  → 400 (malformed body, non-integer id)
        NotFoundError           → 404
        DatabaseError           → 500, generic message
        UsersApiError (base)    → 500
        Exception (fallback)    → 500, stack trace logged
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": exc.message,
                "details": [{"field": field, "msg": "required"} for field in exc.fields],
                "request_id": rid,
            },
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        errors = exc.errors()
        if any(err.get("loc", ("",))[0] == "path" for err in errors):
            message = "Invalid user id"
        else:
            message = "Invalid request body"
        logger.warning("[%s] Request validation error: %s", rid, message)
        return JSONResponse(
            status_code=400,
            content={
                "error": message,
                "details": jsonable_encoder(errors, exclude={"input", "ctx"}),
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={"error": exc.message, "request_id": rid},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        """Details stay in the server log; the client gets the generic message."""
        rid = request_id_var.get("")
        logger.error("[%s] Database error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={"error": exc.message, "request_id": rid},
        )

    @app.exception_handler(UsersApiError)
    async def handle_app_error(request: Request, exc: UsersApiError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={"error": exc.message, "request_id": rid},
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Last resort, run by Starlette's outermost ServerErrorMiddleware.

        Errors raised by route handlers are already converted by
        RequestIDMiddleware (with the X-Request-ID header); this only sees
        failures from the middleware chain itself, so no header is set here.
        """
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"error": UNEXPECTED_ERROR_MESSAGE, "request_id": rid},
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[AsyncEngine] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration; defaults to the environment (get_settings()).
        engine:   Pre-built engine to use instead of creating one from settings.
                  The caller keeps ownership and disposes it.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Users API",
        description="CRUD operations over a PostgreSQL users table.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added executes first: RequestID → Logging → CORS
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject credentialed responses with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(users.router)
    app.include_router(health.router)

    return app


# uvicorn entry point: `uvicorn users_api.main:app`
app = create_app()
