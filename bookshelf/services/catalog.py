"""
Catalog Handlers

Business handlers for books: create, list with filters, details with
rating summary and reviews, and search.

All text matching is case-insensitive and escapes LIKE wildcards in user
input, so a search for "100%" matches literally.
"""

from typing import Protocol

from sqlalchemy import func, or_, select

from bookshelf.errors import NotFoundError, ValidationError
from bookshelf.models import Book, Review, User
from bookshelf.schemas.book import (
    BookCreate,
    BookCreatedResponse,
    BookDetailResponse,
    BookListResponse,
    BookResponse,
    ReviewPage,
)
from bookshelf.schemas.review import ReviewWithUsername
from bookshelf.transaction import RequestContext


class PageRequest(Protocol):
    """What the list handlers need from pagination parameters."""

    page: int
    limit: int

    @property
    def offset(self) -> int: ...


def add_book(ctx: RequestContext, payload: BookCreate) -> BookCreatedResponse:
    """Create a book. Requires an authenticated caller."""
    ctx.require_identity()

    book = Book(
        title=payload.title.strip(),
        author=payload.author.strip(),
        genre=payload.genre or None,
        description=payload.description or None,
    )
    ctx.session.add(book)
    ctx.session.flush()

    return BookCreatedResponse.model_validate(book)


def _paginated_books(ctx: RequestContext, pagination: PageRequest, conditions, order_by) -> BookListResponse:
    count_stmt = select(func.count()).select_from(Book).where(*conditions)
    total = ctx.session.execute(count_stmt).scalar_one()

    stmt = (
        select(Book)
        .where(*conditions)
        .order_by(*order_by)
        .offset(pagination.offset)
        .limit(pagination.limit)
    )
    books = ctx.session.execute(stmt).scalars().all()

    return BookListResponse(
        page=pagination.page,
        limit=pagination.limit,
        total=total,
        books=[BookResponse.model_validate(book) for book in books],
    )


def list_books(
    ctx: RequestContext,
    pagination: PageRequest,
    author: str | None = None,
    genre: str | None = None,
) -> BookListResponse:
    """
    List books, optionally filtered.

    - author: partial, case-insensitive match
    - genre: exact match

    total counts the books matching the filters, across all pages.
    """
    conditions = []
    if author:
        conditions.append(Book.author.icontains(author, autoescape=True))
    if genre:
        conditions.append(Book.genre == genre)

    return _paginated_books(ctx, pagination, conditions, order_by=[Book.id])


def get_book_details(
    ctx: RequestContext,
    book_id: int,
    pagination: PageRequest,
) -> BookDetailResponse:
    """
    Get a book with its average rating and one page of reviews.

    Reviews are newest first and carry the reviewer's username.

    Raises:
        NotFoundError: no book with this ID
    """
    book = ctx.session.get(Book, book_id)
    if book is None:
        raise NotFoundError("Book not found")

    avg_stmt = select(func.avg(Review.rating)).where(Review.book_id == book_id)
    avg_rating = ctx.session.execute(avg_stmt).scalar()

    count_stmt = select(func.count()).select_from(Review).where(Review.book_id == book_id)
    total_reviews = ctx.session.execute(count_stmt).scalar_one()

    reviews_stmt = (
        select(
            Review.id,
            Review.rating,
            Review.comment,
            Review.created_at,
            Review.updated_at,
            User.username,
        )
        .join(User, User.id == Review.user_id)
        .where(Review.book_id == book_id)
        .order_by(Review.created_at.desc(), Review.id.desc())
        .offset(pagination.offset)
        .limit(pagination.limit)
    )
    rows = ctx.session.execute(reviews_stmt).all()

    return BookDetailResponse(
        book=BookResponse.model_validate(book),
        avg_rating=f"{float(avg_rating):.2f}" if avg_rating is not None else None,
        reviews=ReviewPage(
            page=pagination.page,
            limit=pagination.limit,
            total_reviews=total_reviews,
            data=[ReviewWithUsername(**row._mapping) for row in rows],
        ),
    )


def search_books(
    ctx: RequestContext,
    query: str | None,
    pagination: PageRequest,
) -> BookListResponse:
    """
    Search books by title or author, sorted by title.

    Raises:
        ValidationError: empty or missing query (before any database call)
    """
    if not query or not query.strip():
        raise ValidationError("Query parameter 'query' is required")

    term = query.strip().lower()
    condition = or_(
        func.lower(Book.title).contains(term, autoescape=True),
        func.lower(Book.author).contains(term, autoescape=True),
    )

    return _paginated_books(ctx, pagination, [condition], order_by=[Book.title, Book.id])
