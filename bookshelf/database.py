"""
Database Configuration Module

This module sets up SQLAlchemy 2.0 for the Bookshelf API.

The Connection Pool
===================
The SQLAlchemy Engine owns the connection pool. Instead of a module-level
engine created at import time, the pool lives inside a Database object that
is constructed explicitly:

1. Process start: the application lifespan builds Database.from_settings()
2. Each request: the transaction runner asks for a new Session
3. The Session checks out a pooled connection on its first statement and
   returns it to the pool when the session is closed
4. Shutdown: Database.dispose() closes every pooled connection

Tests construct their own Database (in-memory SQLite) and hand it to
create_app(), so no hidden global state is shared between them.

Session Management Pattern
==========================
We use the "session per request" pattern, but sessions are NOT committed by
route code. bookshelf.transaction.TransactionRunner owns begin, commit,
rollback and close for every request.
"""

from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from bookshelf.config import Settings


# =============================================================================
# Base Model Class
# =============================================================================
class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    All models inherit from this class:

        class Book(Base):
            __tablename__ = "books"
            ...

    Alembic uses Base.metadata to discover tables for migrations.
    """
    pass


# =============================================================================
# Database (engine + session factory)
# =============================================================================
class Database:
    """
    An explicitly constructed connection pool and session factory.

    Parameters:
    - url: SQLAlchemy database URL
    - engine_options: passed straight to create_engine() (pool_size,
      max_overflow, poolclass, connect_args, echo, ...)

    Sessions are created with:
    - autoflush=False: no implicit flushes before queries
    - expire_on_commit=False: loaded objects stay readable after commit,
      so a handler's result can be serialized once the transaction ends

    Usage:
        database = Database.from_settings(get_settings())
        session = database.session()
        ...
        database.dispose()
    """

    def __init__(self, url: str, **engine_options: Any) -> None:
        self.url = url
        self.engine: Engine = create_engine(url, **engine_options)
        self._session_factory = sessionmaker(
            bind=self.engine,
            autoflush=False,
            expire_on_commit=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        """
        Build the application pool from settings.

        Key parameters:
        - pool_size: Number of connections to keep open permanently
        - max_overflow: Extra connections during load (0 = fixed-size pool;
          requests beyond the bound wait for a free connection)
        - pool_pre_ping: Test connection health before using
        - echo: Log all SQL statements in debug mode
        """
        options: dict[str, Any] = {
            "pool_pre_ping": True,
            "echo": settings.debug,
        }
        # SQLite URLs (local development) use a pool without sizing options
        if not settings.database_url.startswith("sqlite"):
            options["pool_size"] = settings.db_pool_size
            options["max_overflow"] = settings.db_max_overflow

        return cls(settings.database_url, **options)

    def session(self) -> Session:
        """Create a new session bound to the pool."""
        return self._session_factory()

    def ping(self) -> bool:
        """Run a trivial query to check the database is reachable."""
        with self.engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        return True

    def create_tables(self) -> None:
        """
        Create all database tables.

        WARNING: In production, use Alembic migrations instead!
        This is meant for tests and quick local setups.
        """
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self) -> None:
        """
        Drop all database tables.

        DANGER: This deletes all data! Only use in tests.
        """
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        """Close all pooled connections (called at shutdown)."""
        self.engine.dispose()

    def __repr__(self) -> str:
        return f"Database(url='{self.engine.url.render_as_string(hide_password=True)}')"
