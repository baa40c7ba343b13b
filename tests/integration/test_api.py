"""
Integration tests for API endpoints.
"""

from unittest.mock import Mock

import pytest
from httpx import ASGITransport, AsyncClient
from loguru import logger
from sqlalchemy.exc import OperationalError

from bookstore.api.dependencies import DEFAULT_JWT_SECRET, ServiceContainer
from bookstore.api.main import create_app, ensure_admin_user

pytestmark = pytest.mark.asyncio


class TestSystemEndpoints:
    """Tests for root and health endpoints."""

    async def test_health_check(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["database"] == "healthy"

    async def test_root(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert response.json()["message"] == "Bookstore Inventory API"

    async def test_request_id_echoed(self, client):
        response = await client.get("/", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"


class TestAuthEndpoints:
    """Tests for register, login and verify."""

    async def test_register_and_login(self, client):
        response = await client.post("/api/register", json={"username": "alice", "password": "secret123"})
        assert response.status_code == 201
        assert response.json()["user"]["username"] == "alice"

        response = await client.post("/api/login", json={"username": "alice", "password": "secret123"})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["token_type"] == "bearer"
        assert data["access_token"]

    async def test_duplicate_username(self, client):
        body = {"username": "alice", "password": "secret123"}
        await client.post("/api/register", json=body)

        response = await client.post("/api/register", json=body)

        assert response.status_code == 409
        assert response.json()["code"] == "USERNAME_TAKEN"

    async def test_short_password(self, client):
        response = await client.post("/api/register", json={"username": "alice", "password": "123"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_padded_short_username_rejected(self, client):
        response = await client.post("/api/register", json={"username": "  a", "password": "secret123"})

        assert response.status_code == 400
        assert response.json()["code"] == "VALIDATION_ERROR"

    async def test_username_stored_trimmed(self, client):
        response = await client.post("/api/register", json={"username": "  alice ", "password": "secret123"})
        assert response.status_code == 201
        assert response.json()["user"]["username"] == "alice"

        response = await client.post("/api/login", json={"username": "alice", "password": "secret123"})
        assert response.status_code == 200

    async def test_wrong_password(self, client, auth_headers):
        response = await client.post("/api/login", json={"username": "tester", "password": "wrong-one"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid username or password"

    async def test_verify(self, client, auth_headers):
        response = await client.get("/api/verify", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["user"]["username"] == "tester"

    async def test_verify_without_token(self, client):
        response = await client.get("/api/verify")

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    async def test_registration_disabled(self, settings_factory):
        app = create_app(settings_factory(allow_registration=False))
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.post("/api/register", json={"username": "alice", "password": "secret123"})
        app.state.services.close()

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"


class TestJwtSecretCheck:
    """The built-in signing key is refused in production."""

    async def test_production_refuses_default_secret(self, settings_factory):
        with pytest.raises(RuntimeError):
            create_app(settings_factory(environment="production", jwt_secret_key=DEFAULT_JWT_SECRET))

    async def test_other_environments_warn(self, settings_factory):
        messages = []
        handler_id = logger.add(messages.append, level="WARNING")
        try:
            app = create_app(settings_factory(environment="staging", jwt_secret_key=DEFAULT_JWT_SECRET))
        finally:
            logger.remove(handler_id)
        app.state.services.close()

        assert any("default JWT secret" in message for message in messages)

    async def test_custom_secret_is_quiet(self, settings_factory):
        messages = []
        handler_id = logger.add(messages.append, level="WARNING")
        try:
            app = create_app(settings_factory(environment="production"))
        finally:
            logger.remove(handler_id)
        app.state.services.close()

        assert not any("default JWT secret" in message for message in messages)


class TestAdminSeeding:
    async def test_creates_admin_once(self, settings_factory):
        services = ServiceContainer(settings_factory(admin_username="admin", admin_password="adminpass"))

        ensure_admin_user(services)
        ensure_admin_user(services)

        admin = services.user_repository.get_by_username("admin")
        assert admin is not None
        assert admin.is_active
        services.close()


class TestBooksEndpoints:
    """Tests for book CRUD endpoints."""

    @pytest.mark.parametrize(
        "method, path",
        [
            ("GET", "/api/books"),
            ("GET", "/api/books/some-id"),
            ("POST", "/api/books"),
            ("PUT", "/api/books/some-id"),
            ("DELETE", "/api/books/some-id"),
            ("GET", "/api/dashboard/stats"),
        ],
    )
    async def test_requires_token(self, client, method, path):
        response = await client.request(method, path)

        assert response.status_code == 401
        data = response.json()
        assert data["success"] is False
        assert data["code"] == "UNAUTHORIZED"
        assert data["message"] == "Access denied. No token provided."

    async def test_invalid_token(self, client):
        response = await client.get("/api/books", headers={"Authorization": "Bearer not-a-token"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid or expired token"

    async def test_create_book(self, client, auth_headers, sample_book):
        response = await client.post("/api/books", json=sample_book, headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["success"] is True
        assert data["message"] == "Book added successfully"
        book = data["data"]
        for field, value in sample_book.items():
            assert book[field] == value
        assert book["id"]
        assert book["is_low_stock"] is True
        assert book["created_at"]

    async def test_create_with_numeric_isbn_and_string_numbers(self, client, auth_headers):
        response = await client.post(
            "/api/books",
            json={
                "title": "  Dune ",
                "author": "Frank Herbert",
                "isbn": 9780441013593,
                "price": "0",
                "quantity": "7",
                "category": "Science Fiction",
            },
            headers=auth_headers,
        )

        assert response.status_code == 201
        book = response.json()["data"]
        assert book["title"] == "Dune"
        assert book["isbn"] == "9780441013593"
        assert book["price"] == 0.0
        assert book["quantity"] == 7

    async def test_create_missing_field(self, client, auth_headers, sample_book):
        del sample_book["author"]

        response = await client.post("/api/books", json=sample_book, headers=auth_headers)

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert data["message"] == "All fields are required"

    async def test_create_negative_price(self, client, auth_headers, sample_book):
        response = await client.post(
            "/api/books",
            json={**sample_book, "price": -1},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Price must be a valid non-negative number"

    @pytest.mark.parametrize(
        "overrides, message",
        [
            ({"price": int("9" * 400)}, "Price must be a valid non-negative number"),
            ({"quantity": 10**19}, "Quantity must be a valid non-negative integer"),
            ({"quantity": "1e30"}, "Quantity must be a valid non-negative integer"),
        ],
    )
    async def test_create_oversized_numbers(self, client, auth_headers, sample_book, overrides, message):
        response = await client.post("/api/books", json={**sample_book, **overrides}, headers=auth_headers)

        assert response.status_code == 400
        data = response.json()
        assert data["code"] == "VALIDATION_ERROR"
        assert data["message"] == message

    async def test_create_duplicate_isbn(self, client, auth_headers, sample_book):
        await client.post("/api/books", json=sample_book, headers=auth_headers)

        response = await client.post(
            "/api/books",
            json={**sample_book, "title": "Another"},
            headers=auth_headers,
        )

        assert response.status_code == 409
        assert response.json()["code"] == "DUPLICATE_ISBN"

        listed = await client.get("/api/books", headers=auth_headers)
        assert len(listed.json()["data"]) == 1

    async def test_get_book(self, client, auth_headers, sample_book):
        created = (await client.post("/api/books", json=sample_book, headers=auth_headers)).json()["data"]

        response = await client.get(f"/api/books/{created['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"] == created

    async def test_get_book_not_found(self, client, auth_headers):
        response = await client.get("/api/books/nonexistent-id", headers=auth_headers)

        assert response.status_code == 404
        data = response.json()
        assert data["code"] == "NOT_FOUND"
        assert data["message"] == "Book not found"
        assert data["timestamp"]

    async def test_list_search_and_filter(self, client, auth_headers, sample_books):
        for book in sample_books:
            await client.post("/api/books", json=book, headers=auth_headers)

        response = await client.get("/api/books", params={"search": "TOLKIEN"}, headers=auth_headers)
        assert [b["author"] for b in response.json()["data"]] == ["J.R.R. Tolkien"]

        response = await client.get("/api/books", params={"category": "Fiction"}, headers=auth_headers)
        assert [b["title"] for b in response.json()["data"]] == ["Pride and Prejudice"]

        response = await client.get("/api/books", params={"category": "all"}, headers=auth_headers)
        assert len(response.json()["data"]) == 3

    async def test_update_book(self, client, auth_headers, sample_book):
        created = (await client.post("/api/books", json=sample_book, headers=auth_headers)).json()["data"]

        response = await client.put(
            f"/api/books/{created['id']}",
            json={**sample_book, "price": 15.5, "quantity": 8},
            headers=auth_headers,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["message"] == "Book updated successfully"
        assert data["data"]["price"] == 15.5
        assert data["data"]["quantity"] == 8
        assert data["data"]["isbn"] == sample_book["isbn"]

    async def test_update_to_taken_isbn(self, client, auth_headers, sample_books):
        first = (await client.post("/api/books", json=sample_books[0], headers=auth_headers)).json()["data"]
        second = (await client.post("/api/books", json=sample_books[1], headers=auth_headers)).json()["data"]

        response = await client.put(
            f"/api/books/{second['id']}",
            json={**sample_books[1], "isbn": first["isbn"]},
            headers=auth_headers,
        )

        assert response.status_code == 409
        assert response.json()["message"] == "Another book with this ISBN already exists"

        unchanged = await client.get(f"/api/books/{second['id']}", headers=auth_headers)
        assert unchanged.json()["data"]["isbn"] == sample_books[1]["isbn"]

    async def test_update_missing_book(self, client, auth_headers, sample_book):
        response = await client.put("/api/books/nonexistent-id", json=sample_book, headers=auth_headers)

        assert response.status_code == 404

    async def test_delete_book(self, client, auth_headers, sample_book):
        created = (await client.post("/api/books", json=sample_book, headers=auth_headers)).json()["data"]

        response = await client.delete(f"/api/books/{created['id']}", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Book deleted successfully"}

        response = await client.get(f"/api/books/{created['id']}", headers=auth_headers)
        assert response.status_code == 404

    async def test_delete_missing_book(self, client, auth_headers, sample_book):
        await client.post("/api/books", json=sample_book, headers=auth_headers)

        response = await client.delete("/api/books/nonexistent-id", headers=auth_headers)

        assert response.status_code == 404
        listed = await client.get("/api/books", headers=auth_headers)
        assert len(listed.json()["data"]) == 1

    async def test_store_failure_is_internal_error(self, app, client, auth_headers):
        service = app.state.services.inventory_service
        broken = Mock()
        broken.list_books.side_effect = OperationalError("SELECT", {}, Exception("database is locked"))
        service.repository = broken

        response = await client.get("/api/books", headers=auth_headers)

        assert response.status_code == 500
        data = response.json()
        assert data["success"] is False
        assert data["code"] == "INTERNAL_ERROR"
        assert data["message"] == "Error fetching books"


class TestDashboardEndpoints:
    """Tests for dashboard statistics."""

    async def test_empty(self, client, auth_headers):
        response = await client.get("/api/dashboard/stats", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["data"] == {
            "total_books": 0,
            "low_stock_books": 0,
            "highest_price": 0.0,
            "total_categories": 0,
        }

    async def test_stats(self, client, auth_headers, sample_books):
        for book in sample_books:
            await client.post("/api/books", json=book, headers=auth_headers)

        response = await client.get("/api/dashboard/stats", headers=auth_headers)

        data = response.json()["data"]
        assert data["total_books"] == 3
        assert data["low_stock_books"] == 2
        assert data["highest_price"] == 20.0
        assert data["total_categories"] == 3
