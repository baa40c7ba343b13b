"""
Bookstore Inventory Test Suite

Tests are organized into:
- unit/: Repository, validation, service, security, client and CLI
- integration/: HTTP API through the ASGI app
"""
