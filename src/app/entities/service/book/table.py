"""Book database table models."""

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from src.app.entities.core._base import EntityTable

# Largest id the BIGINT primary key can store
MAX_BOOK_ID = 2**63 - 1


class BookTable(EntityTable, table=True):
    """Database persistence model for books.

    The two unique constraints back the natural-key index and the
    content-hash index of the registry.
    """

    __tablename__ = "books"
    __table_args__ = (
        sa.UniqueConstraint("title", "isbn", name="uq_books_title_isbn"),
        sa.UniqueConstraint("content_hash", name="uq_books_content_hash"),
    )

    id: int = Field(
        primary_key=True,
        sa_type=sa.BigInteger,
        sa_column_kwargs={"autoincrement": False},
    )
    title: str
    isbn: str
    content_hash: bytes = Field(sa_type=sa.LargeBinary)
    royalty_percent: int
    author: str = Field(index=True)
    owner: str = Field(index=True)


class RegistryCounterTable(SQLModel, table=True):
    """Single-row table holding the next identifier to assign."""

    __tablename__ = "registry_counter"

    id: int = Field(default=1, primary_key=True)
    next_id: int = Field(default=1)
