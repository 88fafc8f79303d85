"""Entity package: Book."""

from .entity import Book
from .repository import BookRepository
from .table import MAX_BOOK_ID, BookTable, RegistryCounterTable

__all__ = ["MAX_BOOK_ID", "Book", "BookRepository", "BookTable", "RegistryCounterTable"]
