"""
Bookstore Inventory

Inventory management for a small bookstore:
- Book record store with isbn uniqueness
- Inventory service (search, CRUD, dashboard stats)
- Bearer-token access gate
- FastAPI backend and command-line client
"""

__version__ = "1.0.0"
