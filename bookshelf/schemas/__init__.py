"""
Pydantic Schemas Package

This package contains Pydantic models for request/response validation.

Schema Naming Convention:
- XxxCreate / XxxRequest: Request bodies
- XxxUpdate: Fields allowed when updating (all optional)
- XxxResponse: Payloads returned inside the success envelope
"""

from bookshelf.schemas.book import (
    BookCreate,
    BookCreatedResponse,
    BookDetailResponse,
    BookListResponse,
    BookResponse,
    ReviewPage,
)
from bookshelf.schemas.envelope import ErrorEnvelope, SuccessEnvelope
from bookshelf.schemas.review import (
    MessageResponse,
    ReviewCreate,
    ReviewResponse,
    ReviewUpdate,
    ReviewWithUsername,
)
from bookshelf.schemas.user import (
    LoginRequest,
    SignupRequest,
    SignupResponse,
    TokenIdentity,
    TokenResponse,
)

__all__ = [
    # Book schemas
    "BookCreate",
    "BookCreatedResponse",
    "BookResponse",
    "BookListResponse",
    "BookDetailResponse",
    "ReviewPage",
    # Review schemas
    "ReviewCreate",
    "ReviewUpdate",
    "ReviewResponse",
    "ReviewWithUsername",
    "MessageResponse",
    # User/Auth schemas
    "SignupRequest",
    "SignupResponse",
    "LoginRequest",
    "TokenResponse",
    "TokenIdentity",
    # Envelopes
    "SuccessEnvelope",
    "ErrorEnvelope",
]
