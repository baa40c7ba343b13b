"""
Pytest configuration and fixtures for bookstore tests.
"""

from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from bookstore.api.dependencies import Settings
from bookstore.api.main import create_app
from bookstore.inventory.service import InventoryService
from bookstore.security import AccessVerdict
from bookstore.storage.book_repository import BookRepository
from bookstore.storage.database import Database


TEST_USERNAME = "tester"
TEST_PASSWORD = "secret123"


# =============================================================================
# Test Settings
# =============================================================================

def get_test_settings(**overrides) -> Settings:
    """Return settings configured for testing."""
    values = dict(
        database_url="sqlite:///:memory:",
        database_echo=False,
        jwt_secret_key="test-secret-key",
        allow_registration=True,
        environment="test",
        debug=False,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def test_settings() -> Settings:
    return get_test_settings()


@pytest.fixture
def settings_factory():
    """Build test settings with overrides."""
    return get_test_settings


# =============================================================================
# Access Gate
# =============================================================================

class FakeAccessGate:
    """Allows any non-empty credential unless told to deny; records calls."""

    def __init__(self, allowed: bool = True):
        self.allowed = allowed
        self.calls: list[Optional[str]] = []

    def verify(self, credential: Optional[str]) -> AccessVerdict:
        self.calls.append(credential)
        if not credential:
            return AccessVerdict.deny("Access denied. No token provided.")
        if not self.allowed:
            return AccessVerdict.deny("Invalid or expired token")
        return AccessVerdict.allow(TEST_USERNAME)


@pytest.fixture
def access_gate() -> FakeAccessGate:
    return FakeAccessGate()


@pytest.fixture
def token() -> str:
    """Credential accepted by FakeAccessGate."""
    return "valid-token"


# =============================================================================
# Storage / Service Fixtures
# =============================================================================

@pytest.fixture
def database():
    """Fresh in-memory database."""
    db = Database("sqlite:///:memory:")
    db.create_tables()
    yield db
    db.dispose()


@pytest.fixture
def book_repository(database) -> BookRepository:
    return BookRepository(database)


@pytest.fixture
def inventory_service(book_repository, access_gate) -> InventoryService:
    return InventoryService(repository=book_repository, access_gate=access_gate)


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def app(test_settings):
    """Create FastAPI application for testing."""
    application = create_app(test_settings)

    yield application

    application.state.services.close()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API tests."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def auth_headers(client) -> dict:
    """Register a user through the API and return its bearer header."""
    response = await client.post(
        "/api/register",
        json={"username": TEST_USERNAME, "password": TEST_PASSWORD},
    )
    assert response.status_code == 201

    response = await client.post(
        "/api/login",
        json={"username": TEST_USERNAME, "password": TEST_PASSWORD},
    )
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


# =============================================================================
# Book Data
# =============================================================================

@pytest.fixture
def sample_book() -> dict:
    return {
        "title": "The Hobbit",
        "author": "J.R.R. Tolkien",
        "isbn": "9780547928227",
        "price": 12.99,
        "quantity": 4,
        "category": "Fantasy",
    }


@pytest.fixture
def sample_books() -> list[dict]:
    return [
        {
            "title": "The Hobbit",
            "author": "J.R.R. Tolkien",
            "isbn": "9780547928227",
            "price": 5.0,
            "quantity": 0,
            "category": "Fantasy",
        },
        {
            "title": "Dune",
            "author": "Frank Herbert",
            "isbn": "9780441013593",
            "price": 20.0,
            "quantity": 3,
            "category": "Science Fiction",
        },
        {
            "title": "Pride and Prejudice",
            "author": "Jane Austen",
            "isbn": "9780141439518",
            "price": 1.0,
            "quantity": 10,
            "category": "Fiction",
        },
    ]
