"""
Transactional Execution Wrapper

Every API route hands its business handler to a TransactionRunner. The
runner gives the handler an implicit all-or-nothing database transaction
and turns the outcome into the uniform response envelope.

Lifecycle of one request:
=========================
1. Create a session from the Database (the pooled connection is checked
   out on the first statement; waiting follows the pool's own policy)
2. Begin a transaction
3. Call handler(ctx, *args, **kwargs) with a RequestContext
4. Success: commit, then respond {"msg": "success", "data": result}
   (a handler that returns its own Response gets it sent unchanged)
5. Failure (handler error OR commit error): roll back, log, respond
   {"msg": "error", "error": message} with the status of the error kind
6. Always: close the session, returning the connection to the pool

Handlers never commit, roll back or close; that is the runner's job alone.
A runner is one-shot: each request gets a fresh one from the Transaction
dependency, and calling run() twice raises.

Usage in a route:
    @router.post("/books")
    def create_book(payload: BookCreate, tx: Transaction) -> JSONResponse:
        return tx.run(catalog.add_book, payload)
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException

from bookshelf.database import Database
from bookshelf.errors import AppError, AuthenticationError, ConflictError, InfrastructureError
from bookshelf.schemas.envelope import ErrorEnvelope, SuccessEnvelope
from bookshelf.schemas.user import TokenIdentity

logger = logging.getLogger(__name__)

DATABASE_ERROR_MESSAGE = "A database error occurred. Please try again later."
INTERNAL_ERROR_MESSAGE = "An internal error occurred."


# =============================================================================
# Envelopes
# =============================================================================
def success_response(data: Any, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """Build {"msg": "success", "data": data}."""
    return JSONResponse(
        status_code=status_code,
        content=SuccessEnvelope(data=jsonable_encoder(data)).model_dump(),
    )


def error_response(
    message: str,
    status_code: int,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """Build {"msg": "error", "error": message}."""
    return JSONResponse(
        status_code=status_code,
        content=ErrorEnvelope(error=message).model_dump(),
        headers=headers,
    )


# =============================================================================
# Request Context
# =============================================================================
@dataclass
class RequestContext:
    """
    Everything a handler may touch for one request.

    Attributes:
        session: Session bound to the request's open transaction
        request: The inbound HTTP request
        identity: Verified caller, set by the identity gate on protected
            routes; None for anonymous requests
    """

    session: Session
    request: Request
    identity: TokenIdentity | None = None

    def require_identity(self) -> TokenIdentity:
        """
        Return the authenticated caller.

        Raises:
            AuthenticationError: if the route was not protected by the
                identity gate
        """
        if self.identity is None:
            raise AuthenticationError("Authorization token required")
        return self.identity


Handler = Callable[..., Any]


# =============================================================================
# Transaction Runner
# =============================================================================
class TransactionRunner:
    """
    Runs one handler inside one transaction and renders the outcome.

    Args:
        database: Source of sessions (the connection pool)
        request: Inbound request; the identity gate leaves the verified
            caller on request.state.identity
        expose_internal_errors: Show the text of unexpected exceptions
            (debug mode) instead of a generic message
    """

    def __init__(
        self,
        database: Database,
        request: Request,
        expose_internal_errors: bool = False,
    ) -> None:
        self._database = database
        self._request = request
        self._expose_internal_errors = expose_internal_errors
        self._used = False

    def run(self, handler: Handler, *args: Any, **kwargs: Any) -> Response:
        if self._used:
            raise RuntimeError("TransactionRunner already ran a handler for this request")
        self._used = True

        session = self._database.session()
        try:
            try:
                session.begin()
                ctx = RequestContext(
                    session=session,
                    request=self._request,
                    identity=getattr(self._request.state, "identity", None),
                )
                result = handler(ctx, *args, **kwargs)
                # Encoded before commit so an unserializable result rolls back
                response = result if isinstance(result, Response) else success_response(result)
                self._commit(session)
            except Exception as exc:
                self._rollback(session)
                return self._render_error(handler, exc)
            return response
        finally:
            session.close()

    def _commit(self, session: Session) -> None:
        """
        Commit, reporting a failed commit as InfrastructureError.

        Constraint violations keep their IntegrityError so they map to 409.
        """
        try:
            session.commit()
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            raise InfrastructureError(DATABASE_ERROR_MESSAGE) from e

    def _rollback(self, session: Session) -> None:
        try:
            session.rollback()
        except SQLAlchemyError:
            logger.error("Rollback failed", exc_info=True)

    def _render_error(self, handler: Handler, exc: Exception) -> JSONResponse:
        name = getattr(handler, "__name__", repr(handler))
        status_code, message, headers = self._classify(exc)

        if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
            logger.error(f"Transaction error in {name}: {exc}", exc_info=exc)
        else:
            logger.warning(f"Transaction rolled back in {name}: {message}")

        return error_response(message, status_code, headers)

    def _classify(self, exc: Exception) -> tuple[int, str, dict[str, str] | None]:
        """Pick status code, client message and headers for an error."""
        if isinstance(exc, AppError):
            return exc.status_code, exc.message, exc.headers

        if isinstance(exc, HTTPException):
            return exc.status_code, str(exc.detail), exc.headers

        if isinstance(exc, IntegrityError):
            return ConflictError.status_code, "Resource already exists", None

        if isinstance(exc, SQLAlchemyError):
            message = str(exc) if self._expose_internal_errors else DATABASE_ERROR_MESSAGE
            return status.HTTP_500_INTERNAL_SERVER_ERROR, message, None

        message = str(exc) if self._expose_internal_errors else INTERNAL_ERROR_MESSAGE
        return status.HTTP_500_INTERNAL_SERVER_ERROR, message, None
