"""
Services Package

Business logic kept separate from HTTP routing:
- accounts.py: signup and login handlers
- catalog.py: book create/list/detail/search handlers
- reviews.py: review create/update/delete handlers
- security.py: password hashing and identity tokens
- rate_limiter.py: rate limiting with slowapi

Handlers take a RequestContext as their first argument and are always
run through bookshelf.transaction.TransactionRunner.
"""
