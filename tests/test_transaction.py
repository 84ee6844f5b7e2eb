"""
Tests for the Transaction Runner

The runner owns the whole transaction lifecycle of a request:
- begin, then call the handler with a RequestContext
- commit on success and wrap the result in the success envelope
- roll back on any failure and render the error envelope
- close the session exactly once, whatever happened

Most tests use a fake session that records the calls made on it, so the
exact sequence can be asserted. The last group runs against a real
in-memory database to check that rolled back work is really gone.
"""

import json

import pytest
from fastapi import HTTPException, status
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import IntegrityError, OperationalError
from starlette.requests import Request

from bookshelf.database import Database
from bookshelf.errors import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    OwnershipError,
    ValidationError,
)
from bookshelf.models import Book
from bookshelf.schemas.user import TokenIdentity
from bookshelf.transaction import (
    DATABASE_ERROR_MESSAGE,
    INTERNAL_ERROR_MESSAGE,
    RequestContext,
    TransactionRunner,
)


# =============================================================================
# Test Doubles
# =============================================================================


class FakeSession:
    """Records begin/commit/rollback/close calls."""

    def __init__(
        self,
        fail_commit: bool = False,
        fail_rollback: bool = False,
        commit_error: Exception | None = None,
    ):
        self.calls: list[str] = []
        self.fail_commit = fail_commit
        self.commit_error = commit_error
        self.fail_rollback = fail_rollback

    def begin(self):
        self.calls.append("begin")

    def commit(self):
        self.calls.append("commit")
        if self.commit_error is not None:
            raise self.commit_error
        if self.fail_commit:
            raise OperationalError("COMMIT", {}, Exception("connection lost"))

    def rollback(self):
        self.calls.append("rollback")
        if self.fail_rollback:
            raise OperationalError("ROLLBACK", {}, Exception("connection lost"))

    def close(self):
        self.calls.append("close")


class FakeDatabase:
    """Hands out one FakeSession and counts checkouts."""

    def __init__(self, session: FakeSession):
        self._session = session
        self.checkouts = 0

    def session(self) -> FakeSession:
        self.checkouts += 1
        return self._session


def make_request() -> Request:
    return Request({"type": "http", "method": "GET", "path": "/", "headers": []})


def body(response) -> dict:
    return json.loads(response.body)


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def runner(fake_session: FakeSession) -> TransactionRunner:
    return TransactionRunner(FakeDatabase(fake_session), make_request())


# =============================================================================
# Success Path
# =============================================================================


class TestSuccess:
    """Handler returns normally."""

    def test_commits_and_wraps_result(self, runner, fake_session):
        """Result is committed and sent as {"msg": "success", "data": ...}."""
        response = runner.run(lambda ctx: {"answer": 42})

        assert response.status_code == status.HTTP_200_OK
        assert body(response) == {"msg": "success", "data": {"answer": 42}}
        assert fake_session.calls == ["begin", "commit", "close"]

    def test_passes_arguments_and_context(self, runner, fake_session):
        """Extra arguments reach the handler after the context."""
        seen = {}

        def handler(ctx, book_id, *, page):
            seen.update(ctx=ctx, book_id=book_id, page=page)
            return None

        runner.run(handler, 7, page=2)

        assert isinstance(seen["ctx"], RequestContext)
        assert seen["ctx"].session is fake_session
        assert seen["ctx"].identity is None
        assert (seen["book_id"], seen["page"]) == (7, 2)

    def test_identity_taken_from_request_state(self, fake_session):
        """The identity gate's result is handed to the handler."""
        request = make_request()
        request.state.identity = TokenIdentity(id=3, username="alice")
        runner = TransactionRunner(FakeDatabase(fake_session), request)

        response = runner.run(lambda ctx: ctx.require_identity().username)

        assert body(response)["data"] == "alice"

    def test_handler_response_sent_unchanged(self, runner, fake_session):
        """A handler that builds its own Response gets it back as-is."""
        own = PlainTextResponse("created", status_code=status.HTTP_201_CREATED)

        response = runner.run(lambda ctx: own)

        assert response is own
        assert fake_session.calls == ["begin", "commit", "close"]

    def test_runner_is_one_shot(self, fake_session):
        """A second run() raises without checking out another session."""
        database = FakeDatabase(fake_session)
        runner = TransactionRunner(database, make_request())
        runner.run(lambda ctx: None)

        with pytest.raises(RuntimeError):
            runner.run(lambda ctx: None)

        assert database.checkouts == 1
        assert fake_session.calls.count("close") == 1


# =============================================================================
# Failure Path
# =============================================================================


class TestFailure:
    """Handler or commit raises."""

    @pytest.mark.parametrize(
        ("error", "expected_status"),
        [
            (ValidationError("Title and author are required"), 400),
            (AuthenticationError("Invalid username or password"), 401),
            (NotFoundError("Book not found"), 404),
            (OwnershipError("Review not found or not owned by you"), 404),
            (ConflictError("You have already reviewed this book"), 409),
        ],
    )
    def test_app_error_rolls_back(self, runner, fake_session, error, expected_status):
        """Typed errors pick the status; the message is shown verbatim."""

        def handler(ctx):
            raise error

        response = runner.run(handler)

        assert response.status_code == expected_status
        assert body(response) == {"msg": "error", "error": error.message}
        assert fake_session.calls == ["begin", "rollback", "close"]

    def test_authentication_error_keeps_header(self, runner):
        def handler(ctx):
            raise AuthenticationError("Authorization token required")

        response = runner.run(handler)

        assert response.headers["www-authenticate"] == "Bearer"

    def test_missing_identity_is_401(self, runner, fake_session):
        """require_identity() on an anonymous request fails the transaction."""
        response = runner.run(lambda ctx: ctx.require_identity())

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert body(response)["error"] == "Authorization token required"
        assert "commit" not in fake_session.calls

    def test_unexpected_error_is_hidden(self, runner, fake_session):
        """Unknown exceptions become a generic 500."""

        def handler(ctx):
            raise KeyError("secret internals")

        response = runner.run(handler)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert body(response) == {"msg": "error", "error": INTERNAL_ERROR_MESSAGE}
        assert fake_session.calls == ["begin", "rollback", "close"]

    def test_unexpected_error_exposed_in_debug(self, fake_session):
        runner = TransactionRunner(
            FakeDatabase(fake_session),
            make_request(),
            expose_internal_errors=True,
        )

        def handler(ctx):
            raise RuntimeError("boom")

        response = runner.run(handler)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert body(response)["error"] == "boom"

    def test_http_exception_keeps_status(self, runner):
        def handler(ctx):
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Nope")

        response = runner.run(handler)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert body(response) == {"msg": "error", "error": "Nope"}

    def test_integrity_error_is_conflict(self, runner):
        def handler(ctx):
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

        response = runner.run(handler)

        assert response.status_code == status.HTTP_409_CONFLICT
        assert body(response)["error"] == "Resource already exists"

    def test_database_error_is_500(self, runner):
        def handler(ctx):
            raise OperationalError("SELECT 1", {}, Exception("server closed the connection"))

        response = runner.run(handler)

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert body(response)["error"] == DATABASE_ERROR_MESSAGE

    def test_commit_failure_rolls_back(self):
        """A failing commit is reported as an error, never as success."""
        session = FakeSession(fail_commit=True)
        runner = TransactionRunner(FakeDatabase(session), make_request())

        response = runner.run(lambda ctx: {"id": 1})

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert body(response) == {"msg": "error", "error": DATABASE_ERROR_MESSAGE}
        assert session.calls == ["begin", "commit", "rollback", "close"]

    def test_commit_constraint_failure_is_conflict(self):
        """A constraint checked at commit time still maps to 409."""
        session = FakeSession(
            commit_error=IntegrityError("COMMIT", {}, Exception("deferred constraint")),
        )
        runner = TransactionRunner(FakeDatabase(session), make_request())

        response = runner.run(lambda ctx: {"id": 1})

        assert response.status_code == status.HTTP_409_CONFLICT
        assert session.calls == ["begin", "commit", "rollback", "close"]

    def test_failed_rollback_still_closes(self):
        """A rollback failure is logged and the session is still closed."""
        session = FakeSession(fail_rollback=True)
        runner = TransactionRunner(FakeDatabase(session), make_request())

        def handler(ctx):
            raise NotFoundError("Book not found")

        response = runner.run(handler)

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert session.calls == ["begin", "rollback", "close"]

    def test_unserializable_result_rolls_back(self, runner, fake_session):
        """The envelope is built before commit."""
        response = runner.run(lambda ctx: object())

        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert "commit" not in fake_session.calls


# =============================================================================
# Real Database
# =============================================================================


class TestAtomicity:
    """All-or-nothing behaviour against SQLite."""

    def test_rolled_back_insert_is_discarded(self, database: Database, count_rows):
        """A handler that writes and then fails leaves nothing behind."""

        def handler(ctx):
            ctx.session.add(Book(title="Ghost", author="Nobody"))
            ctx.session.flush()
            raise ValidationError("changed my mind")

        response = TransactionRunner(database, make_request()).run(handler)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert count_rows(Book) == 0

    def test_committed_insert_is_kept(self, database: Database, count_rows):
        def handler(ctx):
            book = Book(title="Real", author="Somebody")
            ctx.session.add(book)
            ctx.session.flush()
            return {"id": book.id}

        response = TransactionRunner(database, make_request()).run(handler)

        assert isinstance(response, JSONResponse)
        assert body(response)["data"]["id"] == 1
        assert count_rows(Book) == 1
