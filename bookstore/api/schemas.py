"""
API Schemas for the bookstore inventory

Pydantic models for request parsing and response serialization:
- Book models
- Dashboard models
- Auth models
- Envelopes for success and error responses

Design Decisions:
1. Book request bodies are loosely typed; the inventory service owns
   validation so the same rules apply to every caller.
2. Every response carries ``success`` so clients never mistake a failure
   for an empty result.
"""

from datetime import datetime
from typing import Annotated, Any, Optional

from pydantic import BaseModel, ConfigDict, Field, StringConstraints


# =============================================================================
# Book Schemas
# =============================================================================

class BookPayload(BaseModel):
    """Book create/update request. All six fields are required by the service."""

    title: Any = None
    author: Any = None
    isbn: Any = None
    price: Any = None
    quantity: Any = None
    category: Any = None

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "title": "The Hobbit",
                "author": "J.R.R. Tolkien",
                "isbn": "9780547928227",
                "price": 12.99,
                "quantity": 4,
                "category": "Fantasy",
            }
        }
    )


class BookResponse(BaseModel):
    """Book response model."""

    id: str
    title: str
    author: str
    isbn: str
    price: float
    quantity: int
    category: str
    is_low_stock: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BookEnvelope(BaseModel):
    """Single book response."""

    success: bool = True
    message: Optional[str] = None
    data: BookResponse


class BookListEnvelope(BaseModel):
    """Book list response (no pagination)."""

    success: bool = True
    data: list[BookResponse]


class MessageResponse(BaseModel):
    """Confirmation without a payload."""

    success: bool = True
    message: str


# =============================================================================
# Dashboard Schemas
# =============================================================================

class DashboardStatsResponse(BaseModel):
    """Inventory aggregates."""

    total_books: int
    low_stock_books: int
    highest_price: float
    total_categories: int


class DashboardEnvelope(BaseModel):
    success: bool = True
    data: DashboardStatsResponse


# =============================================================================
# Auth Schemas
# =============================================================================

class CredentialsRequest(BaseModel):
    """Username/password pair for register and login."""

    username: Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=64)]
    password: str = Field(..., min_length=6, max_length=128)


class UserResponse(BaseModel):
    id: str
    username: str
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class UserEnvelope(BaseModel):
    success: bool = True
    message: Optional[str] = None
    user: UserResponse


class TokenResponse(BaseModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


# =============================================================================
# System Schemas
# =============================================================================

class HealthResponse(BaseModel):
    status: str
    version: str
    components: dict[str, str] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Error envelope returned for every failure."""

    success: bool = False
    message: str
    code: str
    detail: Optional[str] = None
    timestamp: datetime
