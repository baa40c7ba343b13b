"""
Inventory Module

Book inventory operations behind the access gate:
- Field validation and numeric coercion
- Search, CRUD and dashboard statistics
"""

from bookstore.inventory.validation import (
    BookFields,
    validate_book_fields,
    MAX_QUANTITY,
)
from bookstore.inventory.service import (
    InventoryService,
    DashboardStats,
    ALL_CATEGORIES,
)

__all__ = [
    # Validation
    "BookFields",
    "validate_book_fields",
    "MAX_QUANTITY",
    # Service
    "InventoryService",
    "DashboardStats",
    "ALL_CATEGORIES",
]
