"""Book repository for data access operations."""

from sqlalchemy import func
from sqlmodel import Session, select

from src.app.entities.core._base import utcnow
from src.app.entities.service.book.entity import Book
from src.app.entities.service.book.table import MAX_BOOK_ID, BookTable, RegistryCounterTable

_COUNTER_ROW_ID = 1


class BookRepository:
    """Data-access layer for book records and the registry counter."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def _row(self, book_id: int) -> BookTable | None:
        # Ids the column cannot hold cannot name a stored book
        if not 0 < book_id <= MAX_BOOK_ID:
            return None
        return self._session.get(BookTable, book_id)

    def get(self, book_id: int) -> Book | None:
        row = self._row(book_id)
        if row is None:
            return None
        return Book.model_validate(row, from_attributes=True)

    def get_by_natural_key(self, title: str, isbn: str) -> Book | None:
        statement = select(BookTable).where(
            (BookTable.title == title) & (BookTable.isbn == isbn)
        )
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return Book.model_validate(row, from_attributes=True)

    def get_by_content_hash(self, content_hash: bytes) -> Book | None:
        statement = select(BookTable).where(BookTable.content_hash == content_hash)
        row = self._session.exec(statement).first()
        if row is None:
            return None
        return Book.model_validate(row, from_attributes=True)

    def create(self, book: Book) -> Book:
        """Add a book row. The caller commits."""
        row = BookTable.model_validate(book.model_dump())
        self._session.add(row)
        self._session.flush()
        return Book.model_validate(row, from_attributes=True)

    def set_owner(self, book_id: int, owner: str) -> Book:
        row = self._row(book_id)
        if row is None:
            raise ValueError(f"Book with ID {book_id} not found")
        row.owner = owner
        row.updated_at = utcnow()
        self._session.add(row)
        self._session.flush()
        return Book.model_validate(row, from_attributes=True)

    def count(self) -> int:
        return self._session.exec(select(func.count()).select_from(BookTable)).one()

    def seed_counter(self) -> None:
        """Insert the counter row if the database has none yet."""
        if self._session.get(RegistryCounterTable, _COUNTER_ROW_ID) is None:
            self._session.add(RegistryCounterTable(id=_COUNTER_ROW_ID, next_id=1))
            self._session.flush()

    def next_id(self) -> int:
        """Identifier the next successful registration will receive."""
        counter = self._session.get(RegistryCounterTable, _COUNTER_ROW_ID)
        return counter.next_id if counter is not None else 1

    def advance_counter(self) -> int:
        """Increment the counter by one and return the new value."""
        self.seed_counter()
        counter = self._session.get(RegistryCounterTable, _COUNTER_ROW_ID)
        counter.next_id += 1
        self._session.add(counter)
        self._session.flush()
        return counter.next_id
