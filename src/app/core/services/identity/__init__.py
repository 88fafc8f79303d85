"""Identity sources for registry callers."""

from .identity_source import (
    Identity,
    IdentitySource,
    InvalidIdentityError,
    PrincipalIdentitySource,
    validate_identity,
)
from .jwt_identity import JwtIdentitySource

__all__ = [
    "Identity",
    "IdentitySource",
    "InvalidIdentityError",
    "JwtIdentitySource",
    "PrincipalIdentitySource",
    "validate_identity",
]
