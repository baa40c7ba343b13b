"""
Book API Routes

List/search, get, create, update and delete books. Authorization happens
inside the inventory service, which receives the raw bearer credential.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from loguru import logger

from bookstore.api.dependencies import get_credential, get_inventory_service
from bookstore.api.schemas import (
    BookEnvelope,
    BookListEnvelope,
    BookPayload,
    BookResponse,
    ErrorResponse,
    MessageResponse,
)
from bookstore.inventory.service import InventoryService


router = APIRouter(prefix="/books", tags=["books"])

UNAUTHORIZED = {401: {"model": ErrorResponse, "description": "Missing or invalid token"}}


@router.get(
    "",
    response_model=BookListEnvelope,
    responses=UNAUTHORIZED,
)
def list_books(
    search: Optional[str] = Query(None, description="Substring of title, author or ISBN"),
    category: Optional[str] = Query(None, description="Exact category, or 'all'"),
    credential: Optional[str] = Depends(get_credential),
    service: InventoryService = Depends(get_inventory_service),
):
    """List books newest first, optionally searched and filtered."""
    books = service.list_books(credential, search=search, category=category)
    return BookListEnvelope(data=[BookResponse.model_validate(b) for b in books])


@router.get(
    "/{book_id}",
    response_model=BookEnvelope,
    responses={
        **UNAUTHORIZED,
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
)
def get_book(
    book_id: str,
    credential: Optional[str] = Depends(get_credential),
    service: InventoryService = Depends(get_inventory_service),
):
    """Get a book by ID."""
    book = service.get_book(credential, book_id)
    return BookEnvelope(data=BookResponse.model_validate(book))


@router.post(
    "",
    response_model=BookEnvelope,
    status_code=status.HTTP_201_CREATED,
    responses={
        **UNAUTHORIZED,
        400: {"model": ErrorResponse, "description": "Invalid book data"},
        409: {"model": ErrorResponse, "description": "ISBN already exists"},
    },
)
def create_book(
    payload: Optional[BookPayload] = None,
    credential: Optional[str] = Depends(get_credential),
    service: InventoryService = Depends(get_inventory_service),
):
    """Create a new book."""
    book = service.create_book(credential, **(payload or BookPayload()).model_dump())
    logger.info(f"Created book {book.id}")
    return BookEnvelope(
        message="Book added successfully",
        data=BookResponse.model_validate(book),
    )


@router.put(
    "/{book_id}",
    response_model=BookEnvelope,
    responses={
        **UNAUTHORIZED,
        400: {"model": ErrorResponse, "description": "Invalid book data"},
        404: {"model": ErrorResponse, "description": "Book not found"},
        409: {"model": ErrorResponse, "description": "ISBN held by another book"},
    },
)
def update_book(
    book_id: str,
    payload: Optional[BookPayload] = None,
    credential: Optional[str] = Depends(get_credential),
    service: InventoryService = Depends(get_inventory_service),
):
    """
    Update a book.

    All six fields are replaced together; there is no partial update.
    """
    book = service.update_book(credential, book_id, **(payload or BookPayload()).model_dump())
    return BookEnvelope(
        message="Book updated successfully",
        data=BookResponse.model_validate(book),
    )


@router.delete(
    "/{book_id}",
    response_model=MessageResponse,
    responses={
        **UNAUTHORIZED,
        404: {"model": ErrorResponse, "description": "Book not found"},
    },
)
def delete_book(
    book_id: str,
    credential: Optional[str] = Depends(get_credential),
    service: InventoryService = Depends(get_inventory_service),
):
    """Delete a book."""
    service.delete_book(credential, book_id)
    return MessageResponse(message="Book deleted successfully")
