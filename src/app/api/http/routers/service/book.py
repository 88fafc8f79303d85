"""Book registry API router."""

from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field, field_validator

from src.app.api.http.deps import get_caller, get_registry_service
from src.app.core.services import BookRegistryService
from src.app.entities.service.book import Book
from src.app.runtime.context import get_config

router = APIRouter()


class BookRegistration(BaseModel):
    """Payload for registering a book."""

    title: str = Field(description="Title of the book")
    isbn: str = Field(description="Identifying code of the listing")
    content_hash: str = Field(description="Hex-encoded content fingerprint")
    royalty_percent: int = Field(description="Royalty rate in percent")

    @field_validator("title")
    @classmethod
    def _title_length(cls, value: str) -> str:
        limit = get_config().registry.title_max_length
        if len(value) > limit:
            raise ValueError(f"title longer than {limit} characters")
        return value

    @field_validator("isbn")
    @classmethod
    def _isbn_length(cls, value: str) -> str:
        limit = get_config().registry.isbn_max_length
        if len(value) > limit:
            raise ValueError(f"isbn longer than {limit} characters")
        return value

    @field_validator("content_hash")
    @classmethod
    def _content_hash_hex(cls, value: str) -> str:
        value = value.removeprefix("0x")
        try:
            raw = bytes.fromhex(value)
        except ValueError as e:
            raise ValueError("content_hash must be hex encoded") from e
        limit = get_config().registry.content_hash_max_bytes
        if not 0 < len(raw) <= limit:
            raise ValueError(f"content_hash must be 1 to {limit} bytes")
        return value

    @property
    def content_hash_bytes(self) -> bytes:
        return bytes.fromhex(self.content_hash)


class OwnershipTransfer(BaseModel):
    new_owner: str = Field(description="Identity receiving the book")


class RegistrationResult(BaseModel):
    id: int


class TransferResult(BaseModel):
    success: bool


class OwnershipCheck(BaseModel):
    is_owner: bool


class BookDetails(BaseModel):
    """Public view of a book record."""

    id: int
    title: str
    isbn: str
    content_hash: str
    royalty_percent: int
    author: str
    owner: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, book: Book) -> "BookDetails":
        return cls(
            **book.model_dump(exclude={"content_hash"}),
            content_hash=book.content_hash.hex(),
        )


@router.post("", response_model=RegistrationResult, status_code=status.HTTP_201_CREATED)
def register_book(
    registration: BookRegistration,
    caller: str = Depends(get_caller),
    registry: BookRegistryService = Depends(get_registry_service),
) -> RegistrationResult:
    """Register a new book owned by the caller."""
    book_id = registry.register(
        title=registration.title,
        isbn=registration.isbn,
        content_hash=registration.content_hash_bytes,
        royalty_percent=registration.royalty_percent,
        caller=caller,
    )
    return RegistrationResult(id=book_id)


@router.post("/{book_id}/transfer", response_model=TransferResult)
def transfer_book_ownership(
    book_id: int,
    transfer: OwnershipTransfer,
    caller: str = Depends(get_caller),
    registry: BookRegistryService = Depends(get_registry_service),
) -> TransferResult:
    """Transfer a book to a new owner. Only the current owner may do this."""
    success = registry.transfer_ownership(book_id, transfer.new_owner, caller)
    return TransferResult(success=success)


@router.get("/{book_id}", response_model=BookDetails | None)
def get_book_details(
    book_id: int,
    registry: BookRegistryService = Depends(get_registry_service),
) -> BookDetails | None:
    """Get a book by ID; answers null when there is no such book."""
    book = registry.get_details(book_id)
    if book is None:
        return None
    return BookDetails.from_entity(book)


@router.get("/{book_id}/owner/{identity}", response_model=OwnershipCheck)
def is_book_owner(
    book_id: int,
    identity: str,
    registry: BookRegistryService = Depends(get_registry_service),
) -> OwnershipCheck:
    """Check whether ``identity`` currently owns the book."""
    return OwnershipCheck(is_owner=registry.is_owner(book_id, identity))
