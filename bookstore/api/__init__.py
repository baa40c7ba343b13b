"""
Bookstore Inventory - FastAPI Backend.

REST API over the inventory service.
"""

from .main import create_app, main
from .dependencies import (
    Settings,
    get_settings,
    ServiceContainer,
    get_service_container,
)

__all__ = [
    # Application
    "create_app",
    "main",
    # Dependencies
    "Settings",
    "get_settings",
    "ServiceContainer",
    "get_service_container",
]
