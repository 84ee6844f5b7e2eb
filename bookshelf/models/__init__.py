"""
SQLAlchemy Models Package

This package contains all database models for the Bookshelf API.

Model Relationships:
- User 1 <-> * Review: a user writes many reviews
- Book 1 <-> * Review: a book receives many reviews
- Review: at most one per (book, user), enforced by a unique constraint

Import all models here to:
1. Make them available as: from bookshelf.models import Book, Review, User
2. Ensure Alembic discovers them for migrations
"""

# The order matters for SQLAlchemy to resolve relationships
from bookshelf.models.user import User
from bookshelf.models.book import Book
from bookshelf.models.review import Review

__all__ = [
    "User",
    "Book",
    "Review",
]
