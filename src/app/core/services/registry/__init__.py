"""Book registry: state machine, error taxonomy and stores."""

from .book_registry import BookRegistryService
from .errors import (
    BookAlreadyExistsError,
    ContentHashExistsError,
    InvalidIsbnError,
    InvalidRoyaltyError,
    InvalidTitleError,
    NotFoundError,
    RegistryError,
    UnauthorizedError,
)
from .store import (
    InMemoryRegistryStore,
    RegistryStore,
    SqlRegistryStore,
    StoreConflictError,
    build_store,
)

__all__ = [
    "BookRegistryService",
    "RegistryStore",
    "InMemoryRegistryStore",
    "SqlRegistryStore",
    "StoreConflictError",
    "build_store",
    "RegistryError",
    "InvalidTitleError",
    "InvalidIsbnError",
    "InvalidRoyaltyError",
    "BookAlreadyExistsError",
    "ContentHashExistsError",
    "UnauthorizedError",
    "NotFoundError",
]
