"""
Database models for the bookstore inventory.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def utcnow() -> datetime:
    """Naive UTC timestamp (columns are stored without a zone)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BookModel(Base):
    """SQLAlchemy model for books."""

    __tablename__ = "books"

    # Primary key (UUID4 string)
    id = Column(String(36), primary_key=True)

    # Core fields
    title = Column(String(500), nullable=False, index=True)
    author = Column(String(500), nullable=False, index=True)
    isbn = Column(String(64), nullable=False)
    category = Column(String(100), nullable=False, index=True)

    # Stock
    price = Column(Float, nullable=False)
    quantity = Column(Integer, nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("uq_books_isbn", "isbn", unique=True),
        Index("idx_books_created", "created_at"),
        CheckConstraint("price >= 0", name="ck_books_price_non_negative"),
        CheckConstraint("quantity >= 0", name="ck_books_quantity_non_negative"),
    )


class User(Base):
    """User model for authentication."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True)  # UUID
    username = Column(String(64), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
