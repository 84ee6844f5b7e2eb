"""
Reviews Router

Endpoints:
- POST /books/{book_id}/reviews - Review a book (authenticated, once per book)
- PUT /reviews/{review_id} - Update your review (owner only)
- DELETE /reviews/{review_id} - Delete your review (owner only)
"""

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from bookshelf.dependencies import Authenticated, ResourceId, Transaction
from bookshelf.schemas.envelope import ErrorEnvelope
from bookshelf.schemas.review import ReviewCreate, ReviewUpdate
from bookshelf.services import reviews

router = APIRouter(
    tags=["Reviews"],
    dependencies=[Authenticated],
    responses={
        401: {"model": ErrorEnvelope, "description": "Not authenticated"},
        404: {"model": ErrorEnvelope, "description": "Review or book not found"},
    },
)


@router.post(
    "/books/{book_id}/reviews",
    summary="Create a review",
    description="Rate a book from 1 to 5 with an optional comment. One review per book per user.",
    responses={409: {"model": ErrorEnvelope, "description": "Already reviewed"}},
)
def create_review(book_id: ResourceId, payload: ReviewCreate, tx: Transaction) -> JSONResponse:
    return tx.run(reviews.add_review, book_id, payload)


@router.put(
    "/reviews/{review_id}",
    summary="Update a review",
    description="Update your own review. Omitted fields keep their current value.",
)
def update_review(review_id: ResourceId, payload: ReviewUpdate, tx: Transaction) -> JSONResponse:
    return tx.run(reviews.update_review, review_id, payload)


@router.delete(
    "/reviews/{review_id}",
    summary="Delete a review",
    description="Delete your own review.",
)
def delete_review(review_id: ResourceId, tx: Transaction) -> JSONResponse:
    return tx.run(reviews.delete_review, review_id)
