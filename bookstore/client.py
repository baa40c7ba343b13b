"""
HTTP client for the Bookstore Inventory API.

Wraps every endpoint in one method. Failures never come back as empty
results: any non-success response raises ApiError with a kind the caller
can branch on.
"""

import math
from typing import Any, Optional

import httpx
from loguru import logger

NETWORK_ERROR_MESSAGE = "Network error. Please try again."

# Suggestions only; the API accepts any category text
COMMON_CATEGORIES = [
    "Fiction",
    "Non-Fiction",
    "Mystery",
    "Romance",
    "Science Fiction",
    "Fantasy",
    "Biography",
    "History",
    "Self-Help",
    "Business",
    "Technology",
    "Children",
    "Young Adult",
    "Poetry",
    "Drama",
]

ERROR_KINDS = {
    "UNAUTHORIZED": "unauthorized",
    "FORBIDDEN": "forbidden",
    "VALIDATION_ERROR": "validation",
    "DUPLICATE_ISBN": "duplicate_isbn",
    "USERNAME_TAKEN": "conflict",
    "CONFLICT": "conflict",
    "NOT_FOUND": "not_found",
}


class ApiError(Exception):
    """A failed API call."""

    def __init__(self, kind: str, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code

    def __str__(self) -> str:
        return self.message


def _kind_for(code: Optional[str], status_code: int) -> str:
    if isinstance(code, str) and code in ERROR_KINDS:
        return ERROR_KINDS[code]
    if status_code == 401:
        return "unauthorized"
    if status_code == 404:
        return "not_found"
    return "internal"


def validate_book_form(form: dict[str, Any]) -> Optional[str]:
    """
    Check a book form before sending it.

    Returns:
        The first error message, or None if the form is complete.
    """
    for field, label in (
        ("title", "Title"),
        ("author", "Author"),
        ("isbn", "ISBN"),
        ("category", "Category"),
    ):
        if not str(form.get(field) or "").strip():
            return f"{label} is required"

    try:
        price = float(form.get("price"))
    except (TypeError, ValueError):
        price = math.nan
    if math.isnan(price) or math.isinf(price) or price < 0:
        return "Price must be a valid non-negative number"

    try:
        quantity = float(form.get("quantity"))
    except (TypeError, ValueError):
        quantity = math.nan
    if math.isnan(quantity) or quantity < 0 or not quantity.is_integer():
        return "Quantity must be a valid non-negative integer"

    return None


class InventoryClient:
    """
    Synchronous client for the inventory API.

    Usage:
        client = InventoryClient("http://127.0.0.1:5000")
        client.login("admin", "secret")
        books = client.list_books(search="tolkien")
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        http: Optional[httpx.Client] = None,
        timeout: float = 10.0,
    ):
        """
        Args:
            base_url: Server root, without the /api prefix
            token: Bearer token from a previous login
            http: Preconfigured httpx client (tests pass one bound to the app)
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self._client = http

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(base_url=self.base_url, timeout=self.timeout)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> "InventoryClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> dict:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = self._get_client().request(
                method,
                f"/api{path}",
                json=json,
                params=params,
                headers=headers,
            )
        except httpx.HTTPError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise ApiError("network", NETWORK_ERROR_MESSAGE) from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_success and body.get("success", False):
            return body

        message = body.get("message") or f"Request failed with status {response.status_code}"
        raise ApiError(
            _kind_for(body.get("code"), response.status_code),
            message,
            status_code=response.status_code,
        )

    # =========================================================================
    # Auth
    # =========================================================================

    def login(self, username: str, password: str) -> dict:
        """Log in and keep the returned token on the client."""
        body = self._request("POST", "/login", json={"username": username, "password": password})
        self.token = body["access_token"]
        return body["user"]

    def register(self, username: str, password: str) -> dict:
        body = self._request("POST", "/register", json={"username": username, "password": password})
        return body["user"]

    def verify(self) -> dict:
        """Return the user the current token belongs to."""
        return self._request("GET", "/verify")["user"]

    # =========================================================================
    # Books
    # =========================================================================

    def list_books(
        self,
        search: Optional[str] = None,
        category: Optional[str] = None,
    ) -> list[dict]:
        params = {}
        if search:
            params["search"] = search
        if category:
            params["category"] = category
        return self._request("GET", "/books", params=params)["data"]

    def get_book(self, book_id: str) -> dict:
        return self._request("GET", f"/books/{book_id}")["data"]

    def create_book(self, book: dict[str, Any]) -> dict:
        return self._request("POST", "/books", json=book)["data"]

    def update_book(self, book_id: str, book: dict[str, Any]) -> dict:
        return self._request("PUT", f"/books/{book_id}", json=book)["data"]

    def delete_book(self, book_id: str) -> str:
        return self._request("DELETE", f"/books/{book_id}")["message"]

    def dashboard_stats(self) -> dict:
        return self._request("GET", "/dashboard/stats")["data"]
