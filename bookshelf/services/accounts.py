"""
Account Handlers

Business handlers for registration and login. Like every handler, they
run inside a transaction owned by the TransactionRunner and never commit,
roll back or close the session themselves.

Security:
=========
- Passwords are hashed with bcrypt before storage
- Plain text passwords are never logged or stored
- Login failures return one generic message whether the username is
  unknown or the password is wrong, and take the same time
"""

import logging

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from bookshelf.errors import AuthenticationError, ConflictError
from bookshelf.models import User
from bookshelf.schemas.user import LoginRequest, SignupRequest, SignupResponse, TokenResponse
from bookshelf.services.security import TokenManager, dummy_verify, hash_password, verify_password
from bookshelf.transaction import RequestContext

logger = logging.getLogger(__name__)

DUPLICATE_USER_MESSAGE = "User already exists with this username or email"
INVALID_CREDENTIALS_MESSAGE = "Invalid username or password"


def signup(ctx: RequestContext, payload: SignupRequest) -> SignupResponse:
    """
    Register a new user.

    1. Check for an existing user with the same username or email
    2. Hash the password with bcrypt
    3. Insert the user (the unique indexes catch a concurrent duplicate)

    Raises:
        ConflictError: username or email already registered
    """
    stmt = select(User.id).where(
        or_(User.username == payload.username, User.email == payload.email)
    )
    if ctx.session.execute(stmt).first() is not None:
        raise ConflictError(DUPLICATE_USER_MESSAGE)

    user = User(
        username=payload.username,
        email=str(payload.email),
        hashed_password=hash_password(payload.password),
    )
    ctx.session.add(user)

    try:
        ctx.session.flush()
    except IntegrityError as e:
        raise ConflictError(DUPLICATE_USER_MESSAGE) from e

    logger.info(f"New user registered: {user.username}")

    return SignupResponse(user_id=user.id)


def login(ctx: RequestContext, payload: LoginRequest, tokens: TokenManager) -> TokenResponse:
    """
    Check credentials and issue an identity token.

    Raises:
        AuthenticationError: unknown username or wrong password
            (same message for both)
    """
    stmt = select(User).where(User.username == payload.username)
    user = ctx.session.execute(stmt).scalar_one_or_none()

    if user is None:
        dummy_verify()
        logger.warning(f"Login failed: user not found for {payload.username}")
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    if not verify_password(payload.password, user.hashed_password):
        logger.warning(f"Login failed: incorrect password for {payload.username}")
        raise AuthenticationError(INVALID_CREDENTIALS_MESSAGE)

    return TokenResponse(token=tokens.issue(user.id, user.username))
