"""
Review Pydantic Schemas

Schemas:
- ReviewCreate: Body for POST /books/{book_id}/reviews
- ReviewUpdate: Body for PUT /reviews/{review_id} (all fields optional)
- ReviewResponse: The created review
- ReviewWithUsername: A review as listed on a book's detail page
- MessageResponse: Confirmation for update/delete

Business Rules:
- Rating must be 1-5 (validated here and by a database check constraint)
- One review per user per book (enforced by a unique constraint)
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

RATING_ERROR = "Rating must be 1 to 5"


def _check_rating(value: int | None) -> int | None:
    if value is not None and not 1 <= value <= 5:
        raise ValueError(RATING_ERROR)
    return value


class ReviewCreate(BaseModel):
    """
    Schema for creating a new review.

    Example request body:
    {
        "rating": 5,
        "comment": "One of the best books I've ever read"
    }
    """

    rating: int | None = Field(
        default=None,
        validate_default=True,
        description="Rating from 1 to 5 stars",
        examples=[4, 5],
    )
    comment: str | None = Field(
        default=None,
        max_length=5000,
        description="Review text",
    )

    @field_validator("rating")
    @classmethod
    def rating_in_range(cls, v: int | None) -> int:
        if v is None:
            raise ValueError(RATING_ERROR)
        return _check_rating(v)


class ReviewUpdate(BaseModel):
    """
    Schema for updating an existing review.

    Fields left out (or null) keep their current value.
    """

    rating: int | None = Field(default=None, description="Rating from 1 to 5 stars")
    comment: str | None = Field(default=None, max_length=5000, description="Review text")

    @field_validator("rating")
    @classmethod
    def rating_in_range(cls, v: int | None) -> int | None:
        return _check_rating(v)


class ReviewResponse(BaseModel):
    """Returned by POST /books/{book_id}/reviews."""

    id: int
    book_id: int
    user_id: int
    rating: int
    comment: str | None = None

    model_config = ConfigDict(from_attributes=True)


class ReviewWithUsername(BaseModel):
    """A review with its author's username, as shown on a book page."""

    id: int
    rating: int
    comment: str | None = None
    created_at: datetime
    updated_at: datetime
    username: str


class MessageResponse(BaseModel):
    """Simple confirmation message."""

    message: str
