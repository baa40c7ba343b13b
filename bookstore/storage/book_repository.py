"""
Book Repository for the bookstore inventory

Structured storage for book records using SQLAlchemy:
- SQLite for development/testing
- Any SQLAlchemy-supported database in production
- Isbn uniqueness enforced by a unique index
- Case-insensitive substring search and category filtering

Design Decisions:
1. The unique index on isbn is the enforcement mechanism; callers may
   pre-check with ``get_by_isbn`` for a friendlier error, but two racing
   writers are settled by the database.
2. Low stock is derived at read time from quantity, never stored.
3. One session per call: no state is shared between requests.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from loguru import logger
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError

from bookstore.exceptions import DuplicateIsbnError

from .database import Database
from .models import BookModel, utcnow

# Books with fewer copies than this are low on stock
LOW_STOCK_THRESHOLD = 5

MUTABLE_FIELDS = ("title", "author", "isbn", "price", "quantity", "category")
NUMERIC_FIELDS = ("price", "quantity")
DISTINCT_FIELDS = ("title", "author", "isbn", "category")


@dataclass
class StoredBook:
    """Data class for book data transfer."""

    id: str
    title: str
    author: str
    isbn: str
    price: float
    quantity: int
    category: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_low_stock(self) -> bool:
        return self.quantity < LOW_STOCK_THRESHOLD

    @classmethod
    def from_model(cls, model: BookModel) -> "StoredBook":
        """Create from SQLAlchemy model."""
        return cls(
            id=model.id,
            title=model.title,
            author=model.author,
            isbn=model.isbn,
            price=float(model.price),
            quantity=int(model.quantity),
            category=model.category,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "author": self.author,
            "isbn": self.isbn,
            "price": self.price,
            "quantity": self.quantity,
            "category": self.category,
            "is_low_stock": self.is_low_stock,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


def _escape_like(term: str) -> str:
    """Escape LIKE wildcards so the term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _is_isbn_violation(error: IntegrityError) -> bool:
    # SQLite: "UNIQUE constraint failed: books.isbn"
    # PostgreSQL: 'duplicate key value violates unique constraint "uq_books_isbn"'
    return "isbn" in str(error.orig).lower()


class BookRepository:
    """
    Repository for book CRUD, search and aggregate queries.

    Usage:
        repo = BookRepository(Database("sqlite:///./bookstore.db"))

        # Add book
        book = repo.insert(
            title="The Hobbit",
            author="J.R.R. Tolkien",
            isbn="9780547928227",
            price=12.99,
            quantity=4,
            category="Fantasy",
        )

        # Search
        results = repo.list_books(search="tolkien")
    """

    def __init__(self, database: Database):
        """
        Initialize repository.

        Args:
            database: Shared engine/session owner
        """
        self.database = database
        self.database.create_tables()

    def get_session(self):
        """Get database session."""
        return self.database.get_session()

    def insert(
        self,
        title: str,
        author: str,
        isbn: str,
        price: float,
        quantity: int = 0,
        category: str = "",
    ) -> StoredBook:
        """
        Insert a new book.

        Returns:
            Created StoredBook

        Raises:
            DuplicateIsbnError: isbn already held by another record
        """
        with self.get_session() as session:
            now = utcnow()
            book = BookModel(
                id=str(uuid.uuid4()),
                title=title,
                author=author,
                isbn=isbn,
                price=price,
                quantity=quantity,
                category=category,
                created_at=now,
                updated_at=now,
            )
            session.add(book)
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                if _is_isbn_violation(e):
                    raise DuplicateIsbnError(isbn) from e
                raise
            session.refresh(book)

            return StoredBook.from_model(book)

    def get(self, book_id: str) -> Optional[StoredBook]:
        """
        Get book by ID.

        Returns:
            StoredBook or None
        """
        with self.get_session() as session:
            book = session.get(BookModel, book_id)

            if book:
                return StoredBook.from_model(book)
            return None

    def get_by_isbn(self, isbn: str, exclude_id: Optional[str] = None) -> Optional[StoredBook]:
        """
        Get book by isbn.

        Args:
            isbn: Exact isbn
            exclude_id: Ignore this record (update checks against the others)

        Returns:
            StoredBook or None
        """
        with self.get_session() as session:
            query = session.query(BookModel).filter(BookModel.isbn == isbn)
            if exclude_id is not None:
                query = query.filter(BookModel.id != exclude_id)

            book = query.first()
            if book:
                return StoredBook.from_model(book)
            return None

    def list_books(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
    ) -> list[StoredBook]:
        """
        List books, newest first.

        Args:
            search: Case-insensitive substring of title, author or isbn
            category: Exact category

        Returns:
            Matching books
        """
        with self.get_session() as session:
            query = session.query(BookModel)

            if search:
                pattern = f"%{_escape_like(search)}%"
                query = query.filter(
                    or_(
                        BookModel.title.ilike(pattern, escape="\\"),
                        BookModel.author.ilike(pattern, escape="\\"),
                        BookModel.isbn.ilike(pattern, escape="\\"),
                    )
                )

            if category:
                query = query.filter(BookModel.category == category)

            books = query.order_by(BookModel.created_at.desc()).all()

            return [StoredBook.from_model(b) for b in books]

    def update(self, book_id: str, fields: dict[str, Any]) -> Optional[StoredBook]:
        """
        Replace every mutable field of a book.

        Args:
            book_id: Book ID
            fields: title, author, isbn, price, quantity and category

        Returns:
            Updated StoredBook or None

        Raises:
            DuplicateIsbnError: new isbn held by a different record
        """
        missing = [name for name in MUTABLE_FIELDS if name not in fields]
        if missing:
            raise ValueError(f"update requires every mutable field, missing: {', '.join(missing)}")

        with self.get_session() as session:
            book = session.get(BookModel, book_id)

            if not book:
                return None

            for key in MUTABLE_FIELDS:
                setattr(book, key, fields[key])

            book.updated_at = utcnow()
            try:
                session.commit()
            except IntegrityError as e:
                session.rollback()
                if _is_isbn_violation(e):
                    raise DuplicateIsbnError(
                        fields["isbn"],
                        message="Another book with this ISBN already exists",
                    ) from e
                raise
            session.refresh(book)

            return StoredBook.from_model(book)

    def delete(self, book_id: str) -> Optional[StoredBook]:
        """
        Delete a book.

        Returns:
            The deleted StoredBook or None
        """
        with self.get_session() as session:
            book = session.get(BookModel, book_id)

            if not book:
                return None

            deleted = StoredBook.from_model(book)
            session.delete(book)
            session.commit()

            logger.debug(f"Deleted book {book_id}")
            return deleted

    def count(self, quantity_below: Optional[int] = None) -> int:
        """
        Count books.

        Args:
            quantity_below: Only count books with fewer copies than this

        Returns:
            Number of matching books
        """
        with self.get_session() as session:
            query = session.query(func.count(BookModel.id))
            if quantity_below is not None:
                query = query.filter(BookModel.quantity < quantity_below)
            return query.scalar() or 0

    def max_by(self, field: str) -> Optional[StoredBook]:
        """
        Get the book with the largest value of a numeric field.

        Args:
            field: "price" or "quantity"

        Returns:
            StoredBook or None when the store is empty
        """
        if field not in NUMERIC_FIELDS:
            raise ValueError(f"Unsupported numeric field: {field}")

        with self.get_session() as session:
            column = getattr(BookModel, field)
            book = session.query(BookModel).order_by(column.desc()).first()

            if book:
                return StoredBook.from_model(book)
            return None

    def distinct_values(self, field: str) -> set:
        """
        Get the distinct values of a text field.

        Args:
            field: One of title, author, isbn, category

        Returns:
            Set of values
        """
        if field not in DISTINCT_FIELDS:
            raise ValueError(f"Unsupported field: {field}")

        with self.get_session() as session:
            column = getattr(BookModel, field)
            rows = session.query(column).distinct().all()
            return {value for (value,) in rows}
