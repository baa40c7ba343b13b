"""
Input validation for book records.

Loosely-typed input (JSON bodies, CLI arguments, direct service calls) is
checked by the ``BookFields`` model: text is trimmed and must be non-empty,
price must be a finite number >= 0 and quantity an integer in
[0, MAX_QUANTITY]. Zero is a valid quantity and a valid price; only absent
or blank values count as missing.
"""

from decimal import Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from bookstore.exceptions import ValidationError

MISSING_FIELDS_MESSAGE = "All fields are required"
PRICE_MESSAGE = "Price must be a valid non-negative number"
QUANTITY_MESSAGE = "Quantity must be a valid non-negative integer"

# Largest value a 64-bit INTEGER column holds
MAX_QUANTITY = 2**63 - 1

FIELD_MESSAGES = {
    "price": PRICE_MESSAGE,
    "quantity": QUANTITY_MESSAGE,
}


class BookFields(BaseModel):
    """Validated values for the six mutable book fields."""

    title: str = Field(..., min_length=1, max_length=500)
    author: str = Field(..., min_length=1, max_length=500)
    isbn: str = Field(..., min_length=1, max_length=64)
    price: float = Field(..., ge=0, allow_inf_nan=False)
    quantity: int = Field(..., ge=0, le=MAX_QUANTITY)
    category: str = Field(..., min_length=1, max_length=100)

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @field_validator("isbn", mode="before")
    @classmethod
    def stringify_isbn(cls, value: Any) -> Any:
        # Numeric isbns arrive from JSON as numbers
        if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("price", "quantity", mode="before")
    @classmethod
    def reject_bool(cls, value: Any) -> Any:
        if isinstance(value, bool):
            raise ValueError("must be a number, not a boolean")
        return value

    @field_validator("price", mode="before")
    @classmethod
    def price_fits_float(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return float(value)
            except OverflowError:
                raise ValueError("price is too large")
        return value

    @field_validator("quantity", mode="before")
    @classmethod
    def whole_number_string(cls, value: Any) -> Any:
        """Accept "3.0" as 3; anything else is left to the int validator."""
        if not isinstance(value, str):
            return value
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            return value
        if not number.is_finite() or number != number.to_integral_value():
            return value
        if abs(number) > MAX_QUANTITY:
            raise ValueError("quantity is too large")
        return int(number)

    def as_dict(self) -> dict:
        return self.model_dump()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _describe(exc: PydanticValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in error['loc'])}: {error['msg']}" for error in exc.errors()
    )


def _to_validation_error(exc: PydanticValidationError) -> ValidationError:
    """Map the first failing field onto the user-facing message."""
    error = exc.errors()[0]
    field = str(error["loc"][0]) if error["loc"] else ""
    detail = _describe(exc)

    if error["type"] == "missing" or _is_blank(error.get("input")):
        return ValidationError(MISSING_FIELDS_MESSAGE, detail=detail)
    if field in FIELD_MESSAGES:
        return ValidationError(FIELD_MESSAGES[field], detail=detail)
    if error["type"] == "string_type":
        return ValidationError(f"{field.capitalize()} must be text", detail=detail)
    if error["type"] == "string_too_long":
        return ValidationError(f"{field.capitalize()} is too long", detail=detail)
    return ValidationError(f"{field.capitalize()} is invalid", detail=detail)


def validate_book_fields(
    title: Any = None,
    author: Any = None,
    isbn: Any = None,
    price: Any = None,
    quantity: Any = None,
    category: Any = None,
) -> BookFields:
    """
    Validate and coerce the six mutable book fields.

    Returns:
        BookFields with trimmed text, float price and int quantity

    Raises:
        ValidationError: first failing field, in declaration order
    """
    try:
        return BookFields(
            title=title,
            author=author,
            isbn=isbn,
            price=price,
            quantity=quantity,
            category=category,
        )
    except PydanticValidationError as e:
        raise _to_validation_error(e) from e
