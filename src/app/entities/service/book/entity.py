"""Entity: Book."""

from typing import Any

from pydantic import Field

from src.app.entities.core._base import Entity


class Book(Entity):
    """A registered book record.

    Every field except ``owner`` is fixed at registration. ``author`` is the
    identity that registered the book and never changes; ``owner`` is the
    identity currently allowed to transfer it.
    """

    id: int = Field(gt=0, description="Registry-assigned identifier, dense from 1")
    title: str = Field(description="Title of the book")
    isbn: str = Field(description="Identifying code of the listing")
    content_hash: bytes = Field(description="Fingerprint of the book's content")
    royalty_percent: int = Field(ge=0, description="Royalty rate in percent")
    author: str = Field(description="Identity that registered the book")
    owner: str = Field(description="Identity currently owning the book")

    @property
    def natural_key(self) -> tuple[str, str]:
        """The (title, isbn) pair that identifies a listing."""
        return (self.title, self.isbn)

    def __eq__(self, other: Any) -> bool:
        """Compare books by business attributes, ignoring timestamps."""
        if not isinstance(other, Book):
            return False

        return (
            self.id == other.id
            and self.title == other.title
            and self.isbn == other.isbn
            and self.content_hash == other.content_hash
            and self.royalty_percent == other.royalty_percent
            and self.author == other.author
            and self.owner == other.owner
        )

    def __hash__(self) -> int:
        """Hash based on business attributes, ignoring timestamps."""
        return hash((
            self.id,
            self.title,
            self.isbn,
            self.content_hash,
            self.royalty_percent,
            self.author,
            self.owner,
        ))
