"""
Inventory Service

The operation set exposed to the transport layer:
- Search/list books (substring search, category filter, newest first)
- Get, create, update and delete a book
- Dashboard statistics

Every operation asks the access gate first and refuses with
UnauthorizedError before touching the store. Unexpected store failures are
reported as InternalError, never as an empty result.
"""

from contextlib import contextmanager
from dataclasses import asdict, dataclass
from typing import Any, Iterator, Optional

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from bookstore.exceptions import (
    DuplicateIsbnError,
    InternalError,
    NotFoundError,
    UnauthorizedError,
)
from bookstore.security import AccessGate, AccessVerdict
from bookstore.storage.book_repository import (
    LOW_STOCK_THRESHOLD,
    BookRepository,
    StoredBook,
)

from .validation import validate_book_fields

# Category filter value meaning "no filter"
ALL_CATEGORIES = "all"


@dataclass
class DashboardStats:
    """Aggregates over the current inventory."""

    total_books: int
    low_stock_books: int
    highest_price: float
    total_categories: int

    def to_dict(self) -> dict:
        return asdict(self)


@contextmanager
def _store_call(action: str) -> Iterator[None]:
    """Translate driver failures into InternalError."""
    try:
        yield
    except SQLAlchemyError as e:
        logger.exception(f"Store failure while {action}")
        raise InternalError(f"Error {action}") from e


def _normalize_search(search: Optional[str]) -> Optional[str]:
    if search is None:
        return None
    search = search.strip()
    return search or None


def _normalize_category(category: Optional[str]) -> Optional[str]:
    if category is None:
        return None
    category = category.strip()
    if not category or category == ALL_CATEGORIES:
        return None
    return category


class InventoryService:
    """
    Book inventory operations guarded by an access gate.

    Usage:
        service = InventoryService(repository, JWTAccessGate(secret))
        books = service.list_books(token, search="tolkien")
    """

    def __init__(self, repository: BookRepository, access_gate: AccessGate):
        """
        Args:
            repository: Book record store
            access_gate: Credential verifier consulted once per operation
        """
        self.repository = repository
        self.access_gate = access_gate

    def _authorize(self, credential: Optional[str]) -> AccessVerdict:
        verdict = self.access_gate.verify(credential)
        if not verdict.allowed:
            logger.warning(f"Unauthorized inventory request: {verdict.reason}")
            raise UnauthorizedError(verdict.reason or "Access denied")
        return verdict

    # =========================================================================
    # Queries
    # =========================================================================

    def list_books(
        self,
        credential: Optional[str],
        search: Optional[str] = None,
        category: Optional[str] = None,
    ) -> list[StoredBook]:
        """
        List books newest first.

        Args:
            credential: Bearer credential
            search: Case-insensitive substring of title, author or isbn
            category: Exact category; "all" or empty disables the filter
        """
        self._authorize(credential)

        search = _normalize_search(search)
        category = _normalize_category(category)
        logger.info(f"Listing books: search={search!r}, category={category!r}")

        with _store_call("fetching books"):
            return self.repository.list_books(search=search, category=category)

    def get_book(self, credential: Optional[str], book_id: str) -> StoredBook:
        """Get a book by id or raise NotFoundError."""
        self._authorize(credential)
        logger.info(f"Fetching book: {book_id}")

        with _store_call("fetching book"):
            book = self.repository.get(book_id)

        if book is None:
            raise NotFoundError("Book", book_id)
        return book

    def dashboard_stats(self, credential: Optional[str]) -> DashboardStats:
        """Total books, low-stock count, highest price and category count."""
        self._authorize(credential)
        logger.info("Computing dashboard stats")

        with _store_call("fetching dashboard stats"):
            total_books = self.repository.count()
            low_stock_books = self.repository.count(quantity_below=LOW_STOCK_THRESHOLD)
            most_expensive = self.repository.max_by("price")
            categories = self.repository.distinct_values("category")

        return DashboardStats(
            total_books=total_books,
            low_stock_books=low_stock_books,
            highest_price=most_expensive.price if most_expensive else 0.0,
            total_categories=len(categories),
        )

    # =========================================================================
    # Mutations
    # =========================================================================

    def create_book(
        self,
        credential: Optional[str],
        title: Any = None,
        author: Any = None,
        isbn: Any = None,
        price: Any = None,
        quantity: Any = None,
        category: Any = None,
    ) -> StoredBook:
        """
        Validate and store a new book.

        Raises:
            ValidationError: missing field or bad number
            DuplicateIsbnError: isbn already in use
        """
        self._authorize(credential)

        fields = validate_book_fields(
            title=title,
            author=author,
            isbn=isbn,
            price=price,
            quantity=quantity,
            category=category,
        )
        logger.info(f"Creating book: {fields.title} by {fields.author}")

        with _store_call("adding book"):
            if self.repository.get_by_isbn(fields.isbn) is not None:
                raise DuplicateIsbnError(fields.isbn)

            # The unique index settles races that slip past the check above
            return self.repository.insert(**fields.as_dict())

    def update_book(
        self,
        credential: Optional[str],
        book_id: str,
        title: Any = None,
        author: Any = None,
        isbn: Any = None,
        price: Any = None,
        quantity: Any = None,
        category: Any = None,
    ) -> StoredBook:
        """
        Replace all six mutable fields of a book.

        Raises:
            ValidationError: missing field or bad number
            DuplicateIsbnError: a different book holds the isbn
            NotFoundError: no such book
        """
        self._authorize(credential)

        fields = validate_book_fields(
            title=title,
            author=author,
            isbn=isbn,
            price=price,
            quantity=quantity,
            category=category,
        )
        logger.info(f"Updating book: {book_id}")

        with _store_call("updating book"):
            if self.repository.get_by_isbn(fields.isbn, exclude_id=book_id) is not None:
                raise DuplicateIsbnError(
                    fields.isbn,
                    message="Another book with this ISBN already exists",
                )

            book = self.repository.update(book_id, fields.as_dict())

        if book is None:
            raise NotFoundError("Book", book_id)
        return book

    def delete_book(self, credential: Optional[str], book_id: str) -> StoredBook:
        """Delete a book and return the removed record."""
        self._authorize(credential)
        logger.info(f"Deleting book: {book_id}")

        with _store_call("deleting book"):
            book = self.repository.delete(book_id)

        if book is None:
            raise NotFoundError("Book", book_id)
        return book
