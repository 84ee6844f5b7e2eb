"""
Authentication Router

Handles user authentication endpoints:
- POST /signup: register with username, email and password
- POST /login: exchange credentials for an identity token

Both are public and rate limited per client IP.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from bookshelf.config import get_settings
from bookshelf.dependencies import Transaction, get_token_manager
from bookshelf.schemas.envelope import ErrorEnvelope
from bookshelf.schemas.user import LoginRequest, SignupRequest
from bookshelf.services import accounts
from bookshelf.services.rate_limiter import limiter
from bookshelf.services.security import TokenManager

settings = get_settings()

router = APIRouter(
    tags=["Authentication"],
    responses={
        400: {"model": ErrorEnvelope, "description": "Missing or invalid fields"},
        429: {"model": ErrorEnvelope, "description": "Too many requests"},
    },
)


@router.post(
    "/signup",
    summary="Register a new user",
    description="Create an account. Username and email must be unique.",
    responses={409: {"model": ErrorEnvelope, "description": "User already exists"}},
)
@limiter.limit(settings.rate_limit_auth)
def signup(
    request: Request,
    payload: SignupRequest,
    tx: Transaction,
) -> JSONResponse:
    """Returns {message, userId}."""
    return tx.run(accounts.signup, payload)


@router.post(
    "/login",
    summary="Login with username and password",
    description="""
    Authenticate and receive an identity token valid for 24 hours.

    **Usage:**
    Include the token in the Authorization header:
    ```
    Authorization: Bearer <token>
    ```
    """,
    responses={401: {"model": ErrorEnvelope, "description": "Invalid username or password"}},
)
@limiter.limit(settings.rate_limit_auth)
def login(
    request: Request,
    payload: LoginRequest,
    tx: Transaction,
    tokens: TokenManager = Depends(get_token_manager),
) -> JSONResponse:
    """Returns {token}."""
    return tx.run(accounts.login, payload, tokens)
