"""Identity source: validation of caller and owner identities.

The registry treats identities as opaque, equality-comparable strings. It
never parses them; whoever supplies an identity validates its format here.
"""

import re
from typing import Protocol

Identity = str

MAX_IDENTITY_LENGTH = 128

# Printable ASCII without whitespace covers principals, UUIDs, emails and
# issuer-qualified subjects.
_IDENTITY_PATTERN = re.compile(r"^[\x21-\x7e]+$")


class InvalidIdentityError(ValueError):
    """Raised when an identity is not well formed."""

    code = "InvalidIdentity"
    http_status = 422

    def __init__(self, identity: object, reason: str):
        super().__init__(f"Invalid identity: {reason}")
        self.identity = identity
        self.reason = reason


def validate_identity(identity: object) -> Identity:
    """Return ``identity`` if it is well formed, raise InvalidIdentityError otherwise."""
    if not isinstance(identity, str):
        raise InvalidIdentityError(identity, "identity must be a string")
    if not identity:
        raise InvalidIdentityError(identity, "identity must not be empty")
    if len(identity) > MAX_IDENTITY_LENGTH:
        raise InvalidIdentityError(
            identity, f"identity longer than {MAX_IDENTITY_LENGTH} characters"
        )
    if not _IDENTITY_PATTERN.match(identity):
        raise InvalidIdentityError(
            identity, "identity may only contain printable ASCII without spaces"
        )
    return identity


class IdentitySource(Protocol):
    """Supplies and validates identities for the registry."""

    def validate(self, identity: object) -> Identity: ...


class PrincipalIdentitySource:
    """Identity source for callers that are already authenticated by the host.

    Used by the command line tool, where the operator names the acting
    identity explicitly.
    """

    def validate(self, identity: object) -> Identity:
        return validate_identity(identity)
