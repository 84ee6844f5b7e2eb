"""
pytest Fixtures for Bookshelf API Tests

This file contains shared fixtures used across all test files.

FIXTURE LAYOUT:
===============
- database: a fresh in-memory SQLite Database per test
- app / client: an application built around that Database
- db_session: a session for seeding data (committed, never rolled back)
- sample_* / multiple_books: test data
- auth_headers: "Authorization: Bearer <token>" for sample_user

Every test gets its own Database, so no state leaks between tests and no
transaction tricks are needed for isolation.
"""

# =============================================================================
# TEST ENVIRONMENT SETUP
# =============================================================================
# IMPORTANT: Set environment variables BEFORE importing the app
# This disables rate limiting and sets a test secret key
import os

TEST_SECRET_KEY = "test-secret-key-for-unit-tests-at-least-32-characters-long"

os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["SECRET_KEY"] = TEST_SECRET_KEY

from collections.abc import Callable, Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from bookshelf.database import Database
from bookshelf.main import create_app
from bookshelf.models import Book, Review, User
from bookshelf.services.security import hash_password

SAMPLE_PASSWORD = "SecurePass123"


# =============================================================================
# DATABASE FIXTURES
# =============================================================================
# We use SQLite in-memory for tests because:
# - Fast: No disk I/O, runs in memory
# - Isolated: Each test gets a brand new database
# - Simple: No external database needed
#
# IMPORTANT: Some PostgreSQL features won't work in SQLite.
# For integration tests, use a real PostgreSQL test database.


@pytest.fixture
def database() -> Generator[Database, None, None]:
    """
    Create an in-memory Database with all tables.

    StaticPool keeps one connection alive for the whole test.
    Without it, the SQLite in-memory database would disappear between
    connections. check_same_thread=False lets the TestClient's worker
    threads use it.
    """
    database = Database(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    database.create_tables()

    yield database

    database.drop_tables()
    database.dispose()


@pytest.fixture
def db_session(database: Database) -> Generator[Session, None, None]:
    """Session used by fixtures to seed data."""
    session = database.session()
    yield session
    session.close()


@pytest.fixture
def count_rows(database: Database) -> Callable[[type], int]:
    """
    Count the committed rows of a model, using a fresh session.

    Usage:
        assert count_rows(Review) == 1
    """

    def _count(model: type) -> int:
        with database.session() as session:
            return session.execute(select(func.count()).select_from(model)).scalar_one()

    return _count


@pytest.fixture
def app(database: Database) -> FastAPI:
    """Application wired to the test Database."""
    return create_app(database=database)


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """
    Create a test client.

    Entering the context runs the lifespan; the injected Database is not
    disposed by it (the database fixture owns it).
    """
    with TestClient(app) as test_client:
        yield test_client


# =============================================================================
# SAMPLE DATA FIXTURES
# =============================================================================
# These fixtures provide test data.
# They depend on db_session, so they're created fresh for each test.


def _make_user(session: Session, username: str, email: str) -> User:
    user = User(
        username=username,
        email=email,
        hashed_password=hash_password(SAMPLE_PASSWORD),
    )
    session.add(user)
    session.commit()
    return user


@pytest.fixture
def sample_user(db_session: Session) -> User:
    """Create a sample user (password: SAMPLE_PASSWORD)."""
    return _make_user(db_session, "testuser", "testuser@example.com")


@pytest.fixture
def second_user(db_session: Session) -> User:
    """Create another user, for ownership tests."""
    return _make_user(db_session, "otheruser", "other@example.com")


@pytest.fixture
def sample_book(db_session: Session) -> Book:
    """Create a sample book."""
    book = Book(
        title="1984",
        author="George Orwell",
        genre="Dystopian",
        description="A dystopian novel set in a totalitarian society.",
    )
    db_session.add(book)
    db_session.commit()
    return book


@pytest.fixture
def multiple_books(db_session: Session) -> list[Book]:
    """
    Create 15 books for pagination and filter testing.

    - Even positions are by George Orwell, odd ones by Aldous Huxley
    - Every third book is "Satire", the rest "Dystopian"
    """
    books = []
    for i in range(15):  # More than default page size
        book = Book(
            title=f"Test Book {i + 1:02d}",
            author="George Orwell" if i % 2 == 0 else "Aldous Huxley",
            genre="Satire" if i % 3 == 0 else "Dystopian",
            description=f"Description for book {i + 1}",
        )
        books.append(book)
        db_session.add(book)

    db_session.commit()
    return books


@pytest.fixture
def sample_review(db_session: Session, sample_book: Book, sample_user: User) -> Review:
    """Create a 4-star review of sample_book by sample_user."""
    review = Review(
        book_id=sample_book.id,
        user_id=sample_user.id,
        rating=4,
        comment="Great book!",
    )
    db_session.add(review)
    db_session.commit()
    return review


# =============================================================================
# AUTHENTICATION FIXTURES
# =============================================================================


def bearer(app: FastAPI, user: User) -> dict[str, str]:
    """Build an Authorization header for a user with the app's token manager."""
    token = app.state.tokens.issue(user.id, user.username)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(app: FastAPI, sample_user: User) -> dict[str, str]:
    """Authorization header for sample_user."""
    return bearer(app, sample_user)


@pytest.fixture
def other_auth_headers(app: FastAPI, second_user: User) -> dict[str, str]:
    """Authorization header for second_user."""
    return bearer(app, second_user)
