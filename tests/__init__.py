"""
Test Suite for the Bookshelf API

Test Organization:
- conftest.py: Shared fixtures (test database, client, sample data)
- test_transaction.py: TransactionRunner lifecycle and error mapping
- test_security.py: Password hashing and identity tokens
- test_auth.py: /api/signup, /api/login and the identity gate
- test_books.py: /api/books endpoints
- test_reviews.py: review endpoints
- test_search.py: /api/search
- test_config.py: Settings validation
- test_app.py: root, health, error envelopes, rate limiter helpers

Running Tests:
    # Run all tests
    pytest

    # Run with coverage
    pytest --cov=bookshelf --cov-report=html

    # Run specific file
    pytest tests/test_reviews.py

    # Run with verbose output
    pytest -v
"""
