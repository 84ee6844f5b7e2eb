"""
FastAPI Application Entry Point

This module creates and configures the FastAPI application.

Key Concepts:
=============

1. Application Factory Pattern
   - create_app() returns a configured app
   - Tests build their own app around an in-memory Database

2. Lifespan Events
   - startup: build the connection pool (unless one was injected)
   - shutdown: dispose of the pool

3. Startup Validation
   - Settings are validated when the app is built; a missing SECRET_KEY
     stops the process before it serves a single request

4. Exception Handlers
   - Errors raised outside a transaction (identity gate, request
     validation, unknown routes, rate limiting) are rendered in the same
     {"msg": "error", "error": ...} envelope the transaction runner uses
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from bookshelf.config import Settings, get_settings
from bookshelf.database import Database
from bookshelf.errors import AppError, ValidationError
from bookshelf.routers import auth_router, books_router, reviews_router, search_router
from bookshelf.services.rate_limiter import limiter, rate_limit_exceeded_handler
from bookshelf.services.security import TokenManager
from bookshelf.transaction import (
    DATABASE_ERROR_MESSAGE,
    INTERNAL_ERROR_MESSAGE,
    error_response,
)

# =============================================================================
# Logging Configuration
# =============================================================================
# Configure logging before creating the app
settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


# =============================================================================
# Lifespan Events
# =============================================================================
@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan context manager.

    Code before yield: Runs on startup
    Code after yield: Runs on shutdown

    The pool is only created (and later disposed) here when create_app()
    was not handed a Database; an injected Database belongs to its caller.
    """
    app_settings: Settings = app.state.settings

    # ----- STARTUP -----
    logger.info(f"Starting {app_settings.app_name}...")
    logger.info(f"Debug mode: {app_settings.debug}")

    owns_database = app.state.database is None
    if owns_database:
        app.state.database = Database.from_settings(app_settings)
    logger.info(f"Using {app.state.database!r}")

    yield  # Application runs here

    # ----- SHUTDOWN -----
    logger.info(f"Shutting down {app_settings.app_name}...")

    if owns_database:
        app.state.database.dispose()
        app.state.database = None


# =============================================================================
# Error Rendering
# =============================================================================
def _validation_message(exc: RequestValidationError) -> str:
    """
    Turn FastAPI's validation errors into one readable message.

    Messages raised by our own validators (ValueError) are used as-is;
    other errors are prefixed with the field name.
    """
    for error in exc.errors():
        raised = (error.get("ctx") or {}).get("error")
        if isinstance(raised, Exception):
            return str(raised)

        fields = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        message = error.get("msg", "Invalid request")
        return f"{'.'.join(fields)}: {message}" if fields else message

    return "Invalid request"


def register_exception_handlers(app: FastAPI, app_settings: Settings) -> None:
    """Render every error response in the standard envelope."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        return error_response(exc.message, exc.status_code, exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        error = ValidationError(_validation_message(exc))
        logger.info(f"Rejected request to {request.url.path}: {error.message}")
        return error_response(error.message, error.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        return error_response(str(exc.detail), exc.status_code, exc.headers)

    @app.exception_handler(SQLAlchemyError)
    async def sqlalchemy_exception_handler(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        """
        Handle database errors raised outside a transaction.

        Logs the actual error while hiding details from users.
        """
        logger.error(f"Database error: {exc}")
        return error_response(DATABASE_ERROR_MESSAGE, 500)

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        """
        Catch-all exception handler.

        In production, hide internal errors from users.
        In debug mode, show more details.
        """
        logger.error(f"Unhandled error: {exc}", exc_info=True)
        message = str(exc) if app_settings.debug else INTERNAL_ERROR_MESSAGE
        return error_response(message, 500)


# =============================================================================
# Application Factory
# =============================================================================
def create_app(
    app_settings: Settings | None = None,
    database: Database | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        app_settings: Settings to use (defaults to get_settings())
        database: Connection pool to use; when omitted, the lifespan
            builds one from settings and disposes of it on shutdown

    Returns:
        Configured FastAPI application instance

    Raises:
        ConfigurationError: if the token signing secret is missing
    """
    app_settings = app_settings or get_settings()

    app = FastAPI(
        title=app_settings.app_name,
        description="""
## Bookshelf API

A REST API for a book catalog with user reviews.

### Features
- **Accounts**: Sign up and log in
- **Books**: Add, list, filter and search books
- **Reviews**: One review per book per user, editable by its author

### Authentication
Log in to receive a token, then send `Authorization: Bearer <token>`.

### Responses
Every response is an envelope: `{"msg": "success", "data": ...}` or
`{"msg": "error", "error": "..."}`.
        """,
        version=app_settings.api_version,
        # Interactive docs are not served in production
        docs_url=None if app_settings.is_production else "/docs",
        redoc_url=None if app_settings.is_production else "/redoc",
        openapi_url=None if app_settings.is_production else "/openapi.json",
        lifespan=lifespan,
    )

    # -------------------------------------------------------------------------
    # Application State
    # -------------------------------------------------------------------------
    # Built once per application; dependencies read them from app.state
    app.state.settings = app_settings
    app.state.database = database
    app.state.tokens = TokenManager(
        app_settings.secret_key,
        lifetime=timedelta(hours=app_settings.access_token_expire_hours),
    )

    # -------------------------------------------------------------------------
    # Rate Limiting
    # -------------------------------------------------------------------------
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # -------------------------------------------------------------------------
    # CORS Middleware
    # -------------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app, app_settings)

    # -------------------------------------------------------------------------
    # Register Routers
    # -------------------------------------------------------------------------
    api_prefix = app_settings.api_prefix

    app.include_router(auth_router, prefix=api_prefix)
    app.include_router(books_router, prefix=api_prefix)
    app.include_router(reviews_router, prefix=api_prefix)
    app.include_router(search_router, prefix=api_prefix)

    # -------------------------------------------------------------------------
    # Health Check Endpoint
    # -------------------------------------------------------------------------
    @app.get(
        "/health",
        tags=["Health"],
        summary="Health check",
        description="Check if the API is running and the database is reachable.",
    )
    def health_check(request: Request) -> dict:
        """
        Health check endpoint.

        Used by load balancers and monitoring systems.
        """
        try:
            database_ok = request.app.state.database.ping()
        except SQLAlchemyError as e:
            logger.warning(f"Health check database ping failed: {e}")
            database_ok = False

        return {
            "status": "healthy" if database_ok else "degraded",
            "app": app_settings.app_name,
            "version": app_settings.api_version,
            "database": database_ok,
        }

    @app.get(
        "/",
        tags=["Root"],
        summary="API root",
        description="Welcome message and API information.",
    )
    def root() -> dict:
        """Root endpoint with API information."""
        return {
            "message": f"{app_settings.app_name} is running. Please use the {api_prefix} endpoint for requests.",
            "version": app_settings.api_version,
            "docs": None if app_settings.is_production else "/docs",
            "health": "/health",
        }

    return app


# =============================================================================
# Application Instance
# =============================================================================
# This is what uvicorn imports: uvicorn bookshelf.main:app

app = create_app()


# =============================================================================
# Development Server
# =============================================================================
# python -m bookshelf.main

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "bookshelf.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
