"""
MouzaForm Backend — FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires the Database handle, middleware, exception handlers
       and routers; uvicorn serves the module-level `app`
       (uvicorn mouzaform.main:app --port 3000, or python -m mouzaform).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request Context → Timeout → CORS      │
    │                                                     │
    │  Routes:                                            │
    │    POST /submit          GET /data                  │
    │    DELETE /data/{id}     DELETE /delete-mouza-info  │
    │    GET /health                                      │
    │                                                     │
    │  Exception Handlers:                                │
    │    ValidationError→400 │ Store errors→500           │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → open Database → ensure tables exist
    Shutdown: close Database (dispose pool)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from mouzaform import __version__
from mouzaform.config import settings
from mouzaform.database import Database
from mouzaform.exceptions import MouzaFormError, ValidationError
from mouzaform.middleware.request_context import (
    RequestContextMiddleware,
    RequestIDLogFilter,
)
from mouzaform.middleware.timeout import RequestTimeoutMiddleware
from mouzaform.routes import form_data, health, submit

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] [%(request_id)s] %(name)s: %(message)s
    The request id comes from RequestIDLogFilter on the handler, so lines
    from services and the store gateway correlate with the access line.
    Called once during startup, before anything else logs.
    """
    log_format = (
        "%(asctime)s [%(levelname)s] [%(request_id)s] %(name)s: %(message)s"
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIDLogFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    # Third-party libraries are noisy at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    if settings.log_level != "DEBUG":
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Open the store and create the tables on startup; close it on shutdown.

    A schema failure other than "already exists" aborts startup: every
    request would fail against missing tables anyway.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("MouzaForm Backend starting up...")

    database: Database = app.state.database
    database.open()
    await database.ensure_schema()

    logger.info("Server is running on http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("MouzaForm Backend shutting down...")
    await database.close()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(request: Request, message: str, error: dict) -> dict:
    return {
        "message": message,
        "error": error,
        # request.state outlives the request-context middleware, so the
        # id is still known when the fallback handler runs outside it
        "request_id": getattr(request.state, "request_id", ""),
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to JSON error responses.

    Handler hierarchy:
        ValidationError          → 400 (workflow-level payload check)
        RequestValidationError   → 400 (FastAPI body/path coercion)
        MouzaFormError (stores)  → 500
        Exception (fallback)     → 500

    Every body is {message, error:{code, ...}, request_id}. Driver error text
    is logged here, never returned.

    The fallback is only reached by programming errors. Starlette runs it in
    ServerErrorMiddleware, which sends the 500 body and then re-raises so the
    server logs the traceback.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error: %s", exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.message, exc.to_error_payload()),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": [str(part) for part in err.get("loc", ())], "msg": str(err.get("msg", ""))}
            for err in exc.errors()
        ]
        logger.warning("Malformed request: %s", errors)
        return JSONResponse(
            status_code=400,
            content=_error_body(
                request,
                "Invalid request",
                {"code": ValidationError.code, "errors": errors},
            ),
        )

    @app.exception_handler(MouzaFormError)
    async def handle_store_error(request: Request, exc: MouzaFormError):
        logger.error("%s: %s | Context: %s", exc.code, exc.message, exc.context)
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(request, exc.message, exc.to_error_payload()),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", exc, exc_info=True)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                request,
                "An unexpected error occurred",
                {"code": "internal_server_error", "original_error": type(exc).__name__},
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    database: Optional[Database] = None,
    request_timeout: Optional[float] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        database:        store handle to serve from; defaults to one built
                         from settings. Tests pass their own.
        request_timeout: per-request deadline override (seconds).
    """
    app = FastAPI(
        title="MouzaForm API",
        description=(
            "Stores location forms (division, district, upazila, union) together "
            "with their mouza survey-sheet entries."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.database = database or Database.from_settings(settings)

    # Middleware executes in REVERSE order of addition
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestTimeoutMiddleware, timeout=request_timeout)
    app.add_middleware(RequestContextMiddleware)

    register_exception_handlers(app)

    app.include_router(submit.router)
    app.include_router(form_data.router)
    app.include_router(health.router)

    return app


# uvicorn expects `mouzaform.main:app` to be importable
app = create_app()
