"""
API Routers Package

Router Structure:
- auth.py: /signup, /login
- books.py: /books, /books/{book_id}
- reviews.py: /books/{book_id}/reviews, /reviews/{review_id}
- search.py: /search

Routes are thin: they parse the request and hand a business handler to
the per-request TransactionRunner. Each router is registered in main.py
under the API prefix.
"""

from bookshelf.routers.auth import router as auth_router
from bookshelf.routers.books import router as books_router
from bookshelf.routers.reviews import router as reviews_router
from bookshelf.routers.search import router as search_router

__all__ = [
    "auth_router",
    "books_router",
    "reviews_router",
    "search_router",
]
