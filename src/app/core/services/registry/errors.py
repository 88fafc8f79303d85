"""
Registry errors.

Error hierarchy:
    RegistryError (base)
    ├── InvalidTitleError
    ├── InvalidIsbnError
    ├── InvalidRoyaltyError
    ├── BookAlreadyExistsError
    ├── ContentHashExistsError
    ├── UnauthorizedError
    └── NotFoundError

Every error is a terminal outcome of a single operation. The registry
raises them before touching any state, so callers can rely on state being
unchanged after catching one.
"""

from __future__ import annotations

from typing import Any


class RegistryError(Exception):
    """Base error for all registry operations."""

    code: str = "RegistryError"
    http_status: int = 400

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "detail": self.message, **self.details}


class InvalidTitleError(RegistryError):
    code = "InvalidTitle"

    def __init__(self, message: str = "Title must not be empty"):
        super().__init__(message)


class InvalidIsbnError(RegistryError):
    code = "InvalidIsbn"

    def __init__(self, isbn: str, min_length: int):
        super().__init__(
            f"ISBN must be at least {min_length} ASCII characters",
            {"isbn": isbn, "min_length": min_length},
        )
        self.isbn = isbn


class InvalidRoyaltyError(RegistryError):
    """Royalty outside the allowed range, including wrapped negatives."""

    code = "InvalidRoyalty"
    http_status = 422

    def __init__(self, royalty_percent: int, maximum: int):
        super().__init__(
            f"Royalty must be between 0 and {maximum} percent",
            {"royalty_percent": royalty_percent, "maximum": maximum},
        )
        self.royalty_percent = royalty_percent


class BookAlreadyExistsError(RegistryError):
    code = "BookAlreadyExists"
    http_status = 409

    def __init__(self, title: str, isbn: str, existing_id: int):
        super().__init__(
            f"A book titled {title!r} with ISBN {isbn} is already registered",
            {"existing_id": existing_id},
        )
        self.existing_id = existing_id


class ContentHashExistsError(RegistryError):
    code = "ContentHashExists"
    http_status = 409

    def __init__(self, existing_id: int):
        super().__init__(
            "A book with the same content fingerprint is already registered",
            {"existing_id": existing_id},
        )
        self.existing_id = existing_id


class UnauthorizedError(RegistryError):
    """Raised when someone other than the current owner attempts a transfer."""

    code = "Unauthorized"
    http_status = 403

    def __init__(self, book_id: int, caller: str):
        super().__init__(
            f"Caller is not the owner of book {book_id}",
            {"book_id": book_id},
        )
        self.book_id = book_id
        self.caller = caller


class NotFoundError(RegistryError):
    code = "NotFound"
    http_status = 404

    def __init__(self, book_id: int):
        super().__init__(f"Book {book_id} not found", {"book_id": book_id})
        self.book_id = book_id
