"""Shared base classes for entities."""

from ._base import Entity, EntityTable, utcnow

__all__ = ["Entity", "EntityTable", "utcnow"]
