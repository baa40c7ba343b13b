"""
Exception hierarchy for the bookstore inventory.

Every failure surfaced to a caller carries a stable ``code`` and an HTTP
status so the transport layer can translate it without inspecting messages.
"""

from typing import Optional


class BookstoreError(Exception):
    """Base exception for bookstore errors."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        detail: Optional[str] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class UnauthorizedError(BookstoreError):
    """Missing or invalid credential."""

    def __init__(self, message: str = "Access denied. No valid token provided.", detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="UNAUTHORIZED",
            status_code=401,
            detail=detail,
        )


class ForbiddenError(BookstoreError):
    """Authenticated or not, the action is switched off."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="FORBIDDEN",
            status_code=403,
            detail=detail,
        )


class ValidationError(BookstoreError):
    """Input validation failed."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
        )


class NotFoundError(BookstoreError):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            detail=f"No {resource.lower()} with identifier '{identifier}' exists",
        )
        self.resource = resource
        self.identifier = identifier


class ConflictError(BookstoreError):
    """A uniqueness rule would be broken."""

    def __init__(self, message: str, code: str = "CONFLICT", detail: Optional[str] = None):
        super().__init__(
            message=message,
            code=code,
            status_code=409,
            detail=detail,
        )


class DuplicateIsbnError(ConflictError):
    """Another book already holds this isbn."""

    def __init__(self, isbn: str, message: str = "Book with this ISBN already exists"):
        super().__init__(
            message=message,
            code="DUPLICATE_ISBN",
            detail=f"isbn '{isbn}' is already in use",
        )
        self.isbn = isbn


class UsernameTakenError(ConflictError):
    """Username already registered."""

    def __init__(self, username: str):
        super().__init__(
            message="Username already registered",
            code="USERNAME_TAKEN",
            detail=f"username '{username}' is already in use",
        )
        self.username = username


class InternalError(BookstoreError):
    """Unexpected store or transport failure."""

    def __init__(self, message: str = "Internal server error", detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="INTERNAL_ERROR",
            status_code=500,
            detail=detail,
        )
