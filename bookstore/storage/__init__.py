"""
Storage Module for the bookstore inventory

Persistent storage for books and operator accounts:
- SQLAlchemy engine/session management
- Book repository with isbn uniqueness and aggregate queries
- User repository for authentication
"""

from bookstore.storage.database import Database
from bookstore.storage.models import Base, BookModel, User
from bookstore.storage.book_repository import (
    BookRepository,
    StoredBook,
    LOW_STOCK_THRESHOLD,
)
from bookstore.storage.user_repository import (
    UserRepository,
    StoredUser,
)

__all__ = [
    # Database
    "Database",
    "Base",
    "BookModel",
    "User",
    # Book Repository
    "BookRepository",
    "StoredBook",
    "LOW_STOCK_THRESHOLD",
    # User Repository
    "UserRepository",
    "StoredUser",
]
