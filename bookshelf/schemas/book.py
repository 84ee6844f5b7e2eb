"""
Book Pydantic Schemas

Schemas:
- BookCreate: Body for POST /books
- BookCreatedResponse: What POST /books returns
- BookResponse: A full book row in list, search and detail responses
- BookListResponse: Paginated list (GET /books, GET /search)
- BookDetailResponse: One book with its average rating and review page

Pagination metadata keeps the field names clients already use
(avgRating, totalReviews) through serialization aliases.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from bookshelf.schemas.review import ReviewWithUsername


class BookCreate(BaseModel):
    """
    Schema for creating a new book.

    Example request body:
    {
        "title": "1984",
        "author": "George Orwell",
        "genre": "Dystopian",
        "description": "A dystopian novel set in a totalitarian society."
    }
    """

    title: str | None = Field(
        default=None,
        max_length=255,
        description="Book title",
        examples=["1984"],
    )
    author: str | None = Field(
        default=None,
        max_length=255,
        description="Author name",
        examples=["George Orwell"],
    )
    genre: str | None = Field(
        default=None,
        max_length=100,
        description="Genre label",
        examples=["Dystopian"],
    )
    description: str | None = Field(
        default=None,
        max_length=5000,
        description="Book description or summary",
    )

    @model_validator(mode="after")
    def require_title_and_author(self) -> "BookCreate":
        if not (self.title and self.title.strip() and self.author and self.author.strip()):
            raise ValueError("Title and author are required")
        return self


class BookCreatedResponse(BaseModel):
    """Returned by POST /books."""

    id: int
    title: str
    author: str
    genre: str | None = None
    description: str | None = None

    model_config = ConfigDict(from_attributes=True)


class BookResponse(BookCreatedResponse):
    """A book row with timestamps."""

    created_at: datetime
    updated_at: datetime


class BookListResponse(BaseModel):
    """Paginated list of books."""

    page: int = Field(..., ge=1, description="Current page number")
    limit: int = Field(..., ge=1, description="Items per page")
    total: int = Field(..., ge=0, description="Number of matching books")
    books: list[BookResponse] = Field(..., description="Books on this page")


class ReviewPage(BaseModel):
    """One page of a book's reviews, newest first."""

    page: int
    limit: int
    total_reviews: int = Field(..., serialization_alias="totalReviews")
    data: list[ReviewWithUsername]

    model_config = ConfigDict(populate_by_name=True)


class BookDetailResponse(BaseModel):
    """
    A book with its rating summary.

    avg_rating is formatted with two decimals ("4.50"), or null when the
    book has no reviews.
    """

    book: BookResponse
    avg_rating: str | None = Field(default=None, serialization_alias="avgRating")
    reviews: ReviewPage

    model_config = ConfigDict(populate_by_name=True)
