"""Entities module with an entity-centric structure.

Each entity has its own package containing:
- entity.py: Domain model
- table.py: Database persistence model
- repository.py: Data access layer
"""

from .service.book import Book, BookRepository, BookTable, RegistryCounterTable

__all__ = [
    "Book",
    "BookRepository",
    "BookTable",
    "RegistryCounterTable",
]
