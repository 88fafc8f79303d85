"""Core services exports."""

# Database Service
from .database.db_session import DbSessionService

# Identity Services
from .identity import (
    InvalidIdentityError,
    JwtIdentitySource,
    PrincipalIdentitySource,
)

# Registry Services
from .registry import BookRegistryService, build_store

__all__ = [
    # Database Service
    "DbSessionService",
    # Identity Services
    "InvalidIdentityError",
    "JwtIdentitySource",
    "PrincipalIdentitySource",
    # Registry Services
    "BookRegistryService",
    "build_store",
]
