"""
Search Router

GET /search?query=... - case-insensitive search on title and author,
sorted by title, paginated.
"""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from bookshelf.dependencies import Pagination, Transaction
from bookshelf.schemas.envelope import ErrorEnvelope
from bookshelf.services import catalog

router = APIRouter(
    tags=["Search"],
    responses={
        400: {"model": ErrorEnvelope, "description": "Missing query"},
    },
)


@router.get(
    "/search",
    summary="Search books",
    description="Search books by title or author (partial match, case-insensitive).",
)
def search_books(
    tx: Transaction,
    pagination: Pagination,
    query: str | None = Query(
        default=None,
        description="Text to look for in title or author",
        examples=["orwell", "farm"],
    ),
) -> JSONResponse:
    return tx.run(catalog.search_books, query, pagination)
