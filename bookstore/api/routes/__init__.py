"""
API Routes for the bookstore inventory

Route modules:
- auth: Registration, login and token verification
- books: Book search and CRUD
- dashboard: Inventory statistics
"""

from bookstore.api.routes.auth import router as auth_router
from bookstore.api.routes.books import router as books_router
from bookstore.api.routes.dashboard import router as dashboard_router

__all__ = [
    "auth_router",
    "books_router",
    "dashboard_router",
]
