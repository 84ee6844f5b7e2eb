"""
Error Taxonomy

Every failure a handler can report is an AppError subclass. The class
decides the HTTP status code; the message is shown to the client verbatim
in the error envelope:

    {"msg": "error", "error": "<message>"}

Handlers raise these errors and never catch them. The transaction runner
(bookshelf.transaction) rolls back and renders them; errors raised before a
transaction exists (identity gate, request validation) are rendered by the
exception handlers registered in bookshelf.main.
"""

from fastapi import status


class AppError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.headers = headers

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ValidationError(AppError):
    """Missing or invalid input fields."""

    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    """Bad credentials, or a missing, invalid or expired token."""

    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str) -> None:
        super().__init__(message, headers={"WWW-Authenticate": "Bearer"})


class NotFoundError(AppError):
    """Referenced entity does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class OwnershipError(AppError):
    """
    Acting on another user's resource.

    Reported as 404 so the response does not reveal whether the resource
    exists but belongs to someone else.
    """

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """Duplicate user or duplicate review."""

    status_code = status.HTTP_409_CONFLICT


class InfrastructureError(AppError):
    """Pool, query or commit failure."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class ConfigurationError(Exception):
    """Fatal misconfiguration detected while building the application."""
