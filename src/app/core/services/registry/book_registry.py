"""Book registry service.

Each mutating operation runs under the service lock and inside one store
transaction, and performs every check before its first write, so a
rejected call leaves records, both uniqueness indexes and the id counter
untouched. When another process writes to the same database in between,
the store reports a conflict and the whole operation runs again.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import TypeVar

from loguru import logger

from src.app.core.services.identity.identity_source import (
    Identity,
    IdentitySource,
    PrincipalIdentitySource,
)
from src.app.core.services.registry.errors import (
    BookAlreadyExistsError,
    ContentHashExistsError,
    InvalidIsbnError,
    InvalidRoyaltyError,
    InvalidTitleError,
    NotFoundError,
    UnauthorizedError,
)
from src.app.core.services.registry.store import RegistryStore, StoreConflictError
from src.app.entities.service.book import Book
from src.app.runtime.config.config_data import RegistryConfig
from src.app.runtime.context import get_config

T = TypeVar("T")

WRITE_ATTEMPTS = 3


def validate_title(title: str) -> None:
    if not title:
        raise InvalidTitleError()


def validate_isbn(isbn: str, min_length: int) -> None:
    if len(isbn) < min_length or not isbn.isascii():
        raise InvalidIsbnError(isbn, min_length)


def validate_royalty(royalty_percent: int, maximum: int) -> None:
    # A negative that wrapped through an unsigned representation arrives as
    # a huge positive value and fails the upper bound like any other.
    if isinstance(royalty_percent, bool) or not 0 <= royalty_percent <= maximum:
        raise InvalidRoyaltyError(royalty_percent, maximum)


class BookRegistryService:
    """Registers books, transfers ownership and answers ownership queries."""

    def __init__(
        self,
        store: RegistryStore,
        identity_source: IdentitySource | None = None,
        config: RegistryConfig | None = None,
    ) -> None:
        self._store = store
        self._identity_source = identity_source or PrincipalIdentitySource()
        self._config = config or get_config().registry
        self._lock = threading.RLock()

    @property
    def store(self) -> RegistryStore:
        return self._store

    def _write(self, operation: str, body: Callable[[], T]) -> T:
        """Run ``body`` in one locked transaction, again after a store conflict."""
        attempt = 1
        while True:
            try:
                with self._lock, self._store.transaction():
                    return body()
            except StoreConflictError as exc:
                if attempt >= WRITE_ATTEMPTS:
                    logger.bind(attempt=attempt).error(
                        "{} still conflicting, giving up: {}", operation, exc
                    )
                    raise
                logger.bind(attempt=attempt).warning(
                    "{} conflicted with another writer, retrying: {}", operation, exc
                )
                attempt += 1

    def register(
        self,
        title: str,
        isbn: str,
        content_hash: bytes,
        royalty_percent: int,
        caller: Identity,
    ) -> int:
        """Register a new book owned by ``caller`` and return its id.

        Checks run in a fixed order and the first failure wins: title,
        ISBN, royalty, natural key, content hash.

        Raises:
            InvalidTitleError, InvalidIsbnError, InvalidRoyaltyError,
            BookAlreadyExistsError, ContentHashExistsError
        """
        caller = self._identity_source.validate(caller)

        def insert_new() -> Book:
            existing_id = self._store.find_by_natural_key(title, isbn)
            if existing_id is not None:
                raise BookAlreadyExistsError(title, isbn, existing_id)

            existing_id = self._store.find_by_content_hash(content_hash)
            if existing_id is not None:
                raise ContentHashExistsError(existing_id)

            book = Book(
                id=self._store.next_id(),
                title=title,
                isbn=isbn,
                content_hash=bytes(content_hash),
                royalty_percent=royalty_percent,
                author=caller,
                owner=caller,
            )
            self._store.insert(book)
            return book

        try:
            validate_title(title)
            validate_isbn(isbn, self._config.isbn_min_length)
            validate_royalty(royalty_percent, self._config.max_royalty_percent)
            book = self._write("Registration", insert_new)
        except (
            InvalidTitleError,
            InvalidIsbnError,
            InvalidRoyaltyError,
            BookAlreadyExistsError,
            ContentHashExistsError,
        ) as exc:
            logger.bind(error=exc.code).info("Registration rejected: {}", exc.message)
            raise

        logger.bind(book_id=book.id, owner=caller).info("Registered book {}", book.id)
        return book.id

    def transfer_ownership(
        self, book_id: int, new_owner: Identity, caller: Identity
    ) -> bool:
        """Hand ``book_id`` from its current owner to ``new_owner``.

        Raises:
            InvalidIdentityError: ``new_owner`` or ``caller`` is malformed.
            NotFoundError: no book with ``book_id``.
            UnauthorizedError: ``caller`` is not the current owner.
        """
        caller = self._identity_source.validate(caller)
        new_owner = self._identity_source.validate(new_owner)

        def hand_over() -> None:
            book = self._store.get(book_id)
            if book is None:
                raise NotFoundError(book_id)
            if book.owner != caller:
                raise UnauthorizedError(book_id, caller)
            self._store.set_owner(book_id, new_owner)

        try:
            self._write("Transfer", hand_over)
        except (NotFoundError, UnauthorizedError) as exc:
            logger.bind(error=exc.code, book_id=book_id).info(
                "Transfer rejected: {}", exc.message
            )
            raise

        logger.bind(book_id=book_id, previous_owner=caller, owner=new_owner).info(
            "Transferred book {}", book_id
        )
        return True

    def get_details(self, book_id: int) -> Book | None:
        """Return the book with ``book_id``, or None when there is none."""
        with self._lock, self._store.transaction():
            book = self._store.get(book_id)
        logger.debug("Lookup of book {}: {}", book_id, "hit" if book else "miss")
        return book

    def is_owner(self, book_id: int, identity: Identity) -> bool:
        """True iff ``book_id`` exists and is owned by ``identity``.

        A missing book and a different owner both answer False.
        """
        book = self.get_details(book_id)
        return book is not None and book.owner == identity

    def count(self) -> int:
        with self._lock, self._store.transaction():
            return self._store.count()

    def next_id(self) -> int:
        with self._lock, self._store.transaction():
            return self._store.next_id()
