"""
Security Service

Handles password hashing and identity tokens.

Security Features:
==================
1. Password hashing with bcrypt (passlib)
2. Signed, time-limited identity tokens (JWT, HS256)
3. Constant-time password verification, including for unknown users

Identity tokens are stateless: nothing is stored server-side, so a token
stays valid until its expiry (24 hours by default). Its claims are:

    sub       user ID (string, as JWT requires)
    username  username at the time of login
    iat       issued-at timestamp
    exp       expiry timestamp
    type      always "access"

Usage:
    from bookshelf.services.security import TokenManager, hash_password

    tokens = TokenManager(settings.secret_key)
    token = tokens.issue(user.id, user.username)
    identity = tokens.verify(token)  # TokenIdentity(id=..., username=...)
"""

import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from bookshelf.errors import ConfigurationError
from bookshelf.schemas.user import TokenIdentity

logger = logging.getLogger(__name__)

# -------------------------------------------------------------------------
# Password Hashing Configuration
# -------------------------------------------------------------------------
# CryptContext handles password hashing with bcrypt
# - deprecated: "auto" means old hashes are automatically upgraded
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    """
    Hash a plain text password using bcrypt.

    Example:
        >>> hashed = hash_password("SecurePass123")
        >>> hashed.startswith("$2b$")
        True
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain password against a hashed password.

    Uses constant-time comparison to prevent timing attacks.
    """
    return pwd_context.verify(plain_password, hashed_password)


def dummy_verify() -> None:
    """
    Spend the same time as a real password check.

    Called when the username does not exist, so a failed login takes
    the same time whether or not the account exists.
    """
    pwd_context.dummy_verify()


# -------------------------------------------------------------------------
# Identity Tokens
# -------------------------------------------------------------------------
ALGORITHM = "HS256"
TOKEN_TYPE = "access"
DEFAULT_TOKEN_LIFETIME = timedelta(hours=24)


class InvalidTokenError(Exception):
    """Token signature, format, claims or expiry check failed."""


class TokenManager:
    """
    Issues and verifies identity tokens with a process-wide secret.

    The secret is handed over once, when the application is built. An
    empty secret is a configuration error, raised immediately rather than
    on the first request that needs a token.

    Both issue() and verify() accept an explicit `now` so expiry can be
    checked against a known clock; it defaults to the current UTC time.
    """

    def __init__(
        self,
        secret_key: str,
        lifetime: timedelta = DEFAULT_TOKEN_LIFETIME,
        algorithm: str = ALGORITHM,
    ) -> None:
        if not secret_key:
            raise ConfigurationError("A secret key is required to sign identity tokens")
        self._secret_key = secret_key
        self.lifetime = lifetime
        self.algorithm = algorithm

    def issue(self, user_id: int, username: str, now: datetime | None = None) -> str:
        """
        Create a signed token for a user.

        Args:
            user_id: ID of the authenticated user
            username: Username of the authenticated user
            now: Issue time (defaults to the current time)

        Returns:
            Encoded JWT string (header.payload.signature)
        """
        issued_at = now or datetime.now(UTC)
        claims = {
            "sub": str(user_id),
            "username": username,
            "iat": issued_at,
            "exp": issued_at + self.lifetime,
            "type": TOKEN_TYPE,
        }
        return jwt.encode(claims, self._secret_key, algorithm=self.algorithm)

    def verify(self, token: str, now: datetime | None = None) -> TokenIdentity:
        """
        Decode and validate a token.

        Expiry is checked here against `now` instead of inside jose, so the
        same clock is used for issuing and verifying in tests.

        Returns:
            The identity embedded in the token

        Raises:
            InvalidTokenError: bad signature, malformed token, missing
                claims, wrong token type, or expired
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            logger.warning(f"JWT decode error: {e}")
            raise InvalidTokenError("Token could not be decoded") from e

        if payload.get("type") != TOKEN_TYPE:
            raise InvalidTokenError("Unexpected token type")

        expires_at = payload.get("exp")
        if not isinstance(expires_at, int):
            raise InvalidTokenError("Token has no expiry")

        current = now or datetime.now(UTC)
        if current.timestamp() >= expires_at:
            raise InvalidTokenError("Token has expired")

        try:
            return TokenIdentity(id=int(payload["sub"]), username=payload["username"])
        except (KeyError, TypeError, ValueError) as e:
            raise InvalidTokenError("Token is missing identity claims") from e
