"""
Tests for Authentication

Tests the authentication endpoints and the identity gate:
- POST /api/signup
- POST /api/login
- 401 on protected routes without a valid bearer token
"""

import pytest
from fastapi import FastAPI, status
from fastapi.testclient import TestClient

from bookshelf.models import Book, User
from tests.conftest import SAMPLE_PASSWORD

SIGNUP_DATA = {
    "username": "newuser",
    "email": "newuser@example.com",
    "password": "SecurePass123",
}


# =============================================================================
# Signup
# =============================================================================


class TestSignup:
    """Tests for POST /api/signup"""

    def test_signup_success(self, client: TestClient, count_rows):
        """Test successful registration."""
        response = client.post("/api/signup", json=SIGNUP_DATA)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["msg"] == "success"
        assert data["data"]["message"] == "User created successfully"
        assert isinstance(data["data"]["userId"], int)
        assert count_rows(User) == 1

    def test_signup_does_not_return_password(self, client: TestClient):
        response = client.post("/api/signup", json=SIGNUP_DATA)

        assert "password" not in response.text
        assert SIGNUP_DATA["password"] not in response.text

    @pytest.mark.parametrize(
        "conflict",
        [
            {"username": "testuser", "email": "fresh@example.com"},
            {"username": "freshuser", "email": "testuser@example.com"},
        ],
    )
    def test_signup_duplicate(
        self, client: TestClient, sample_user: User, count_rows, conflict: dict
    ):
        """Username and email must both be unique."""
        response = client.post("/api/signup", json={**SIGNUP_DATA, **conflict})

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json() == {
            "msg": "error",
            "error": "User already exists with this username or email",
        }
        assert count_rows(User) == 1

    @pytest.mark.parametrize("missing", ["username", "email", "password"])
    def test_signup_missing_field(self, client: TestClient, missing: str, count_rows):
        payload = {k: v for k, v in SIGNUP_DATA.items() if k != missing}

        response = client.post("/api/signup", json=payload)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json() == {
            "msg": "error",
            "error": "Please provide username, email and password",
        }
        assert count_rows(User) == 0

    def test_signup_invalid_email(self, client: TestClient):
        response = client.post("/api/signup", json={**SIGNUP_DATA, "email": "not-an-email"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["msg"] == "error"


# =============================================================================
# Login
# =============================================================================


class TestLogin:
    """Tests for POST /api/login"""

    def test_login_success(self, client: TestClient, app: FastAPI, sample_user: User):
        """The returned token identifies the user."""
        response = client.post(
            "/api/login",
            json={"username": "testuser", "password": SAMPLE_PASSWORD},
        )

        assert response.status_code == status.HTTP_200_OK
        token = response.json()["data"]["token"]
        identity = app.state.tokens.verify(token)
        assert identity.id == sample_user.id
        assert identity.username == "testuser"

    def test_signup_then_login(self, client: TestClient):
        client.post("/api/signup", json=SIGNUP_DATA)

        response = client.post(
            "/api/login",
            json={"username": SIGNUP_DATA["username"], "password": SIGNUP_DATA["password"]},
        )

        assert response.status_code == status.HTTP_200_OK
        assert "token" in response.json()["data"]

    def test_wrong_password(self, client: TestClient, sample_user: User):
        response = client.post(
            "/api/login",
            json={"username": "testuser", "password": "WrongPass123"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"msg": "error", "error": "Invalid username or password"}

    def test_failures_are_indistinguishable(self, client: TestClient, sample_user: User):
        """Unknown user and wrong password give byte-identical responses."""
        wrong_password = client.post(
            "/api/login",
            json={"username": "testuser", "password": "WrongPass123"},
        )
        unknown_user = client.post(
            "/api/login",
            json={"username": "nobody", "password": "WrongPass123"},
        )

        assert wrong_password.status_code == unknown_user.status_code
        assert wrong_password.content == unknown_user.content

    def test_login_missing_field(self, client: TestClient):
        response = client.post("/api/login", json={"username": "testuser"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "Please provide username and password"


# =============================================================================
# Identity Gate
# =============================================================================

PROTECTED_ROUTES = [
    ("post", "/api/books", {"title": "T", "author": "A"}),
    ("post", "/api/books/1/reviews", {"rating": 5}),
    ("put", "/api/reviews/1", {"rating": 5}),
    ("delete", "/api/reviews/1", None),
]


def send(client: TestClient, method: str, path: str, body, headers=None):
    if body is None:
        return client.request(method.upper(), path, headers=headers)
    return client.request(method.upper(), path, json=body, headers=headers)


class TestIdentityGate:
    """Protected routes reject requests without a valid token."""

    @pytest.mark.parametrize(("method", "path", "body"), PROTECTED_ROUTES)
    def test_missing_token(self, client: TestClient, method, path, body):
        response = send(client, method, path, body)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json() == {"msg": "error", "error": "Authorization token required"}
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.parametrize(("method", "path", "body"), PROTECTED_ROUTES)
    def test_wrong_scheme(self, client: TestClient, method, path, body):
        response = send(client, method, path, body, headers={"Authorization": "Basic abc"})

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "Authorization token required"

    @pytest.mark.parametrize(("method", "path", "body"), PROTECTED_ROUTES)
    def test_invalid_token(self, client: TestClient, method, path, body):
        response = send(
            client, method, path, body, headers={"Authorization": "Bearer not.a.token"}
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["error"] == "Invalid or expired token"

    def test_rejected_request_writes_nothing(self, client: TestClient, count_rows):
        client.post("/api/books", json={"title": "T", "author": "A"})

        assert count_rows(Book) == 0

    def test_public_routes_need_no_token(self, client: TestClient, sample_book: Book):
        assert client.get("/api/books").status_code == status.HTTP_200_OK
        assert client.get(f"/api/books/{sample_book.id}").status_code == status.HTTP_200_OK
        assert client.get("/api/search", params={"query": "1984"}).status_code == status.HTTP_200_OK
