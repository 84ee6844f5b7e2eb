"""
Bookshelf API Application Package

A book catalog and review service. Every request handler runs inside a
single database transaction that is committed or rolled back as a whole,
and every response is shaped into the same JSON envelope.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine/session management (the connection pool)
- errors.py: Error taxonomy mapped to HTTP status codes
- transaction.py: Transactional execution wrapper and response envelopes
- dependencies.py: Dependency injection functions (identity gate, pagination)
- main.py: FastAPI application factory and configuration
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route definitions
- services/: Business handlers, security, rate limiting
"""

__version__ = "0.1.0"
