"""Durable map stores backing the book registry.

A store owns the registry state: the record map, the natural-key index,
the content-hash index and the id counter. ``insert`` writes all four
together; the registry service only calls it after every check passed.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from typing import Protocol

from loguru import logger
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlmodel import Session

from src.app.core.services.database.db_session import DbSessionService
from src.app.entities.core._base import utcnow
from src.app.entities.service.book import Book, BookRepository

NaturalKey = tuple[str, str]


class StoreConflictError(RuntimeError):
    """Another writer changed the registry while this transaction was open.

    Nothing from the failed transaction was kept; running the whole
    operation again sees the other writer's result.
    """


def _is_write_conflict(exc: OperationalError) -> bool:
    # SQLite refuses to upgrade a stale reader to a writer
    return "database is locked" in str(exc.orig)


class RegistryStore(Protocol):
    """Key-value persistence used by BookRegistryService.

    All methods are called inside ``transaction()``; a store must make the
    writes performed within one transaction visible together or not at all.
    """

    def transaction(self) -> AbstractContextManager[None]: ...

    def get(self, book_id: int) -> Book | None: ...

    def find_by_natural_key(self, title: str, isbn: str) -> int | None: ...

    def find_by_content_hash(self, content_hash: bytes) -> int | None: ...

    def next_id(self) -> int: ...

    def insert(self, book: Book) -> None: ...

    def set_owner(self, book_id: int, owner: str) -> Book: ...

    def count(self) -> int: ...

    def health_check(self) -> bool: ...


class InMemoryRegistryStore:
    """Dictionary-backed store for tests and throwaway deployments."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._records: dict[int, Book] = {}
        self._natural_key_index: dict[NaturalKey, int] = {}
        self._content_hash_index: dict[bytes, int] = {}
        self._next_id = 1

    @contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            yield

    def get(self, book_id: int) -> Book | None:
        book = self._records.get(book_id)
        return book.model_copy() if book is not None else None

    def find_by_natural_key(self, title: str, isbn: str) -> int | None:
        return self._natural_key_index.get((title, isbn))

    def find_by_content_hash(self, content_hash: bytes) -> int | None:
        return self._content_hash_index.get(content_hash)

    def next_id(self) -> int:
        return self._next_id

    def insert(self, book: Book) -> None:
        if book.id != self._next_id:
            raise ValueError(f"Expected id {self._next_id}, got {book.id}")
        self._records[book.id] = book.model_copy()
        self._natural_key_index[book.natural_key] = book.id
        self._content_hash_index[book.content_hash] = book.id
        self._next_id += 1

    def set_owner(self, book_id: int, owner: str) -> Book:
        book = self._records.get(book_id)
        if book is None:
            raise ValueError(f"Book with ID {book_id} not found")
        updated = book.model_copy(update={"owner": owner, "updated_at": utcnow()})
        self._records[book_id] = updated
        return updated.model_copy()

    def count(self) -> int:
        return len(self._records)

    def health_check(self) -> bool:
        return True


class SqlRegistryStore:
    """Store persisting registry state through SQLModel.

    Each ``transaction()`` opens one session and commits on success or rolls
    back on any exception, so a record, its index rows (the table's unique
    constraints) and the counter are committed together.
    Unique-index violations and SQLite write-lock refusals caused by a
    concurrent writer surface as ``StoreConflictError``.
    """

    def __init__(self, database_service: DbSessionService) -> None:
        self._database_service = database_service
        self._local = threading.local()

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if getattr(self._local, "session", None) is not None:
            # Nested use joins the outer transaction.
            yield
            return

        try:
            with self._database_service.session_scope() as session:
                self._local.session = session
                try:
                    yield
                finally:
                    self._local.session = None
        except IntegrityError as exc:
            # A unique index or the primary key was taken by a concurrent writer
            raise StoreConflictError(str(exc.orig)) from exc
        except OperationalError as exc:
            if _is_write_conflict(exc):
                raise StoreConflictError(str(exc.orig)) from exc
            raise

    @property
    def _session(self) -> Session:
        session = getattr(self._local, "session", None)
        if session is None:
            raise RuntimeError("SqlRegistryStore used outside of a transaction")
        return session

    @property
    def _repository(self) -> BookRepository:
        return BookRepository(self._session)

    def get(self, book_id: int) -> Book | None:
        return self._repository.get(book_id)

    def find_by_natural_key(self, title: str, isbn: str) -> int | None:
        book = self._repository.get_by_natural_key(title, isbn)
        return book.id if book is not None else None

    def find_by_content_hash(self, content_hash: bytes) -> int | None:
        book = self._repository.get_by_content_hash(content_hash)
        return book.id if book is not None else None

    def next_id(self) -> int:
        return self._repository.next_id()

    def insert(self, book: Book) -> None:
        repository = self._repository
        expected = repository.next_id()
        if book.id != expected:
            raise StoreConflictError(f"Expected id {expected}, got {book.id}")
        repository.create(book)
        repository.advance_counter()

    def set_owner(self, book_id: int, owner: str) -> Book:
        return self._repository.set_owner(book_id, owner)

    def count(self) -> int:
        return self._repository.count()

    def health_check(self) -> bool:
        return self._database_service.health_check()


def build_store(kind: str, database_service: DbSessionService | None = None) -> RegistryStore:
    """Create the store named by ``registry.store`` in the configuration."""
    if kind == "memory":
        logger.info("Using in-memory registry store")
        return InMemoryRegistryStore()
    if kind == "sql":
        if database_service is None:
            database_service = DbSessionService()
        database_service.create_all()
        logger.info("Using SQL registry store")
        return SqlRegistryStore(database_service)
    raise ValueError(f"Unknown registry store: {kind}")
