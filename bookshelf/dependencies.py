"""
FastAPI Dependencies Module

Dependencies are reusable components injected into route handlers.
FastAPI's Depends() function manages their lifecycle.

Dependencies in this module:
- get_database / get_token_manager: objects built at startup and kept on
  app.state (no module-level singletons)
- get_transaction_runner: a fresh, one-shot TransactionRunner per request
- require_identity: the identity gate for protected routes
- PaginationParams: lenient page/limit parsing for list endpoints
"""

from typing import Annotated

from fastapi import Depends, Path, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bookshelf.config import Settings
from bookshelf.database import Database
from bookshelf.errors import AuthenticationError
from bookshelf.schemas.user import TokenIdentity
from bookshelf.services.security import InvalidTokenError, TokenManager
from bookshelf.transaction import TransactionRunner


# =============================================================================
# Application State
# =============================================================================
def get_settings_from_app(request: Request) -> Settings:
    """Settings the running application was built with."""
    return request.app.state.settings


def get_database(request: Request) -> Database:
    """The connection pool created in the application lifespan."""
    return request.app.state.database


def get_token_manager(request: Request) -> TokenManager:
    """The token manager created in create_app()."""
    return request.app.state.tokens


AppSettings = Annotated[Settings, Depends(get_settings_from_app)]


# =============================================================================
# Transaction Runner
# =============================================================================
def get_transaction_runner(
    request: Request,
    settings: AppSettings,
    database: Database = Depends(get_database),
) -> TransactionRunner:
    """
    Provide a TransactionRunner for this request.

    Nothing touches the pool until the route calls run(), so a request
    rejected by the identity gate never opens a transaction.
    """
    return TransactionRunner(
        database,
        request,
        expose_internal_errors=settings.debug,
    )


# Type alias for cleaner route signatures:
#   def get_books(tx: Transaction): return tx.run(...)
Transaction = Annotated[TransactionRunner, Depends(get_transaction_runner)]


# =============================================================================
# Identity Gate
# =============================================================================
# HTTPBearer extracts the token from "Authorization: Bearer <token>".
# auto_error=False: we raise our own AuthenticationError so the 401 uses
# the standard error envelope. It also adds the "Authorize" button to
# Swagger UI.
bearer_scheme = HTTPBearer(auto_error=False)


def require_identity(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenManager = Depends(get_token_manager),
) -> TokenIdentity:
    """
    Verify the bearer token and attach the caller to the request.

    This dependency:
    1. Rejects requests without an "Authorization: Bearer <token>" header
    2. Verifies the token signature and expiry
    3. Stores the identity on request.state.identity, where the
       transaction runner picks it up for the handler

    Raises:
        AuthenticationError: 401 if the header is missing or malformed,
            or the token is invalid or expired
    """
    if credentials is None:
        raise AuthenticationError("Authorization token required")

    try:
        identity = tokens.verify(credentials.credentials)
    except InvalidTokenError:
        raise AuthenticationError("Invalid or expired token")

    request.state.identity = identity
    return identity


# Route-level dependency: dependencies=[Authenticated]
Authenticated = Depends(require_identity)


# =============================================================================
# Path Parameters
# =============================================================================
# Largest value an Integer column (and so any row ID) can hold
MAX_DB_INT = 2**31 - 1

# IDs outside this range are rejected with 400 before any query runs
ResourceId = Annotated[int, Path(gt=0, le=MAX_DB_INT, description="Numeric ID")]


# =============================================================================
# Pagination Parameters
# =============================================================================
def _positive_int(raw: str | None) -> int | None:
    if raw is None:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


class PaginationParams:
    """
    Page/limit pagination for list endpoints.

    Parsing is lenient: anything that is not a positive integer falls back
    to the default (page 1, default_page_size items). limit is capped at
    max_page_size and page at MAX_DB_INT, so a huge page is simply empty.

        GET /api/books?page=2&limit=5   -> offset 5, 5 items
        GET /api/books?page=abc         -> page 1

    Usage in route:
        def get_books(tx: Transaction, pagination: Pagination):
            ...
    """

    def __init__(
        self,
        settings: AppSettings,
        page: str | None = Query(
            default=None,
            description="Page number (1-indexed)",
            examples=["1", "2"],
        ),
        limit: str | None = Query(
            default=None,
            description="Number of items per page",
            examples=["10", "25"],
        ),
    ) -> None:
        # Bounded so offset = (page - 1) * limit fits the database's BIGINT
        self.page = min(_positive_int(page) or 1, MAX_DB_INT)
        self.limit = min(
            _positive_int(limit) or settings.default_page_size,
            settings.max_page_size,
        )

    @property
    def offset(self) -> int:
        """
        Number of records to skip.

        Page 1 -> 0, page 2 -> limit, page 3 -> 2 * limit.
        """
        return (self.page - 1) * self.limit

    def __repr__(self) -> str:
        return f"PaginationParams(page={self.page}, limit={self.limit})"


Pagination = Annotated[PaginationParams, Depends()]
