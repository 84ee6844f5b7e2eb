"""
Review Handlers

Business handlers for creating, updating and deleting reviews.

Business Rules:
- One review per user per book. The lookup in find_existing_review() is a
  fast path; two concurrent requests can both pass it, and then the
  uq_review_book_user constraint rejects the second insert. Both paths
  report the same ConflictError.
- Only the review author can update or delete a review. A review that
  does not exist and a review owned by someone else look the same to the
  caller.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bookshelf.errors import ConflictError, NotFoundError, OwnershipError
from bookshelf.models import Book, Review
from bookshelf.models.review import UNIQUE_REVIEW_CONSTRAINT
from bookshelf.schemas.review import MessageResponse, ReviewCreate, ReviewResponse, ReviewUpdate
from bookshelf.transaction import RequestContext

logger = logging.getLogger(__name__)

DUPLICATE_REVIEW_MESSAGE = "You have already reviewed this book"
NOT_OWNED_MESSAGE = "Review not found or not owned by you"


def find_existing_review(session: Session, book_id: int, user_id: int) -> Review | None:
    """Return the user's review of a book, if any."""
    stmt = select(Review).where(Review.book_id == book_id, Review.user_id == user_id)
    return session.execute(stmt).scalar_one_or_none()


def is_duplicate_review(error: IntegrityError) -> bool:
    """
    Whether an insert failed on the one-review-per-book constraint.

    PostgreSQL and MySQL name the constraint in the message; SQLite lists
    its columns instead.
    """
    detail = str(error.orig)
    return UNIQUE_REVIEW_CONSTRAINT in detail or "reviews.book_id, reviews.user_id" in detail


def get_owned_review(session: Session, review_id: int, user_id: int) -> Review:
    """
    Get a review written by user_id.

    Raises:
        OwnershipError: the review does not exist or belongs to another user
    """
    stmt = select(Review).where(Review.id == review_id, Review.user_id == user_id)
    review = session.execute(stmt).scalar_one_or_none()
    if review is None:
        raise OwnershipError(NOT_OWNED_MESSAGE)
    return review


def add_review(ctx: RequestContext, book_id: int, payload: ReviewCreate) -> ReviewResponse:
    """
    Review a book as the authenticated caller.

    Raises:
        NotFoundError: no book with this ID
        ConflictError: the caller already reviewed this book
    """
    identity = ctx.require_identity()

    if ctx.session.get(Book, book_id) is None:
        raise NotFoundError("Book not found")

    if find_existing_review(ctx.session, book_id, identity.id) is not None:
        raise ConflictError(DUPLICATE_REVIEW_MESSAGE)

    review = Review(
        book_id=book_id,
        user_id=identity.id,
        rating=payload.rating,
        comment=payload.comment or None,
    )
    ctx.session.add(review)

    try:
        ctx.session.flush()
    except IntegrityError as e:
        if not is_duplicate_review(e):
            raise
        logger.info(f"Duplicate review rejected by constraint: book={book_id} user={identity.id}")
        raise ConflictError(DUPLICATE_REVIEW_MESSAGE) from e

    return ReviewResponse.model_validate(review)


def update_review(ctx: RequestContext, review_id: int, payload: ReviewUpdate) -> MessageResponse:
    """
    Update the caller's own review. Fields not provided, and an empty
    comment, keep their current value.

    Raises:
        OwnershipError: review missing or not owned by the caller
    """
    identity = ctx.require_identity()
    review = get_owned_review(ctx.session, review_id, identity.id)

    for field, value in payload.model_dump(exclude_none=True).items():
        if value != "":
            setattr(review, field, value)
    ctx.session.flush()

    return MessageResponse(message="Review updated")


def delete_review(ctx: RequestContext, review_id: int) -> MessageResponse:
    """
    Delete the caller's own review.

    Raises:
        OwnershipError: review missing or not owned by the caller
    """
    identity = ctx.require_identity()
    review = get_owned_review(ctx.session, review_id, identity.id)

    ctx.session.delete(review)
    ctx.session.flush()

    return MessageResponse(message="Review deleted")
