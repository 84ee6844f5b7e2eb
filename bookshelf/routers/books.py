"""
Books Router

Endpoints:
- POST /books - Add a book (authenticated)
- GET /books - List books with pagination and author/genre filters
- GET /books/{book_id} - Book details, average rating and reviews
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from bookshelf.dependencies import Authenticated, Pagination, ResourceId, Transaction
from bookshelf.schemas.envelope import ErrorEnvelope
from bookshelf.schemas.book import BookCreate
from bookshelf.services import catalog

router = APIRouter(
    prefix="/books",
    tags=["Books"],
    responses={
        404: {"model": ErrorEnvelope, "description": "Book not found"},
    },
)


@router.post(
    "",
    summary="Add a book",
    description="Create a new book. Requires authentication.",
    dependencies=[Authenticated],
    responses={401: {"model": ErrorEnvelope, "description": "Not authenticated"}},
)
def create_book(payload: BookCreate, tx: Transaction) -> JSONResponse:
    return tx.run(catalog.add_book, payload)


@router.get(
    "",
    summary="List books",
    description="Paginated list of books, optionally filtered by author (partial match) and genre.",
)
def list_books(
    tx: Transaction,
    pagination: Pagination,
    author: str | None = Query(
        default=None,
        description="Filter by author name (partial match, case-insensitive)",
        examples=["orwell"],
    ),
    genre: str | None = Query(
        default=None,
        description="Filter by genre (exact match)",
        examples=["Dystopian"],
    ),
) -> JSONResponse:
    return tx.run(catalog.list_books, pagination, author=author, genre=genre)


@router.get(
    "/{book_id}",
    summary="Get a book",
    description="Book details with its average rating and a page of reviews (newest first).",
)
def get_book(book_id: ResourceId, tx: Transaction, pagination: Pagination) -> JSONResponse:
    return tx.run(catalog.get_book_details, book_id, pagination)
