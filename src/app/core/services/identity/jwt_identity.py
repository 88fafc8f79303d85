"""Bearer-token identity source."""

import time
import uuid
from typing import Any

from authlib.jose import JoseError, jwt
from fastapi import HTTPException
from loguru import logger

from src.app.core.services.identity.identity_source import (
    Identity,
    InvalidIdentityError,
    validate_identity,
)
from src.app.runtime.config.config_data import ConfigData
from src.app.runtime.context import get_config


def _as_list(v):
    return [v] if isinstance(v, str) else list(v or ())


class JwtIdentitySource:
    """Authenticates callers from HS-signed JWTs and mints tokens for them.

    The caller identity is the value of the configured identity claim
    (``sub`` by default).
    """

    def __init__(self, secret: str | None = None) -> None:
        self._secret = secret

    def _signing_secret(self, config: ConfigData) -> str:
        return self._secret or config.app.signing_secret()

    def validate(self, identity: object) -> Identity:
        return validate_identity(identity)

    def issue_token(
        self,
        identity: str,
        *,
        expires_in_seconds: int | None = None,
        algorithm: str = "HS256",
        extra_claims: dict[str, Any] | None = None,
    ) -> str:
        """Mint a signed token naming ``identity`` as the caller."""
        config = get_config()
        validate_identity(identity)

        if algorithm not in config.jwt.allowed_algorithms:
            raise HTTPException(
                status_code=500, detail=f"Algorithm {algorithm} not allowed"
            )

        now = int(time.time())
        ttl = expires_in_seconds if expires_in_seconds is not None else config.jwt.token_ttl_seconds
        payload: dict[str, Any] = {
            "iss": config.jwt.gen_issuer,
            "aud": config.jwt.audiences[0] if len(config.jwt.audiences) == 1 else config.jwt.audiences,
            "iat": now,
            "nbf": now,
            "exp": now + ttl,
            "jti": str(uuid.uuid4()),
            **(extra_claims or {}),
            config.jwt.identity_claim: identity,
        }
        token = jwt.encode({"alg": algorithm, "typ": "JWT"}, payload, self._signing_secret(config))
        return token.decode("utf-8") if isinstance(token, bytes) else token

    def authenticate(self, token: str) -> Identity:
        """Verify ``token`` and return the caller identity it carries.

        Raises:
            HTTPException: 401 when the token is malformed, expired, signed
                with another key, or issued for another audience.
        """
        config = get_config()
        claims_options = {
            "iss": {"essential": True, "values": [config.jwt.gen_issuer]},
            "aud": {"essential": True, "values": _as_list(config.jwt.audiences)},
            "exp": {"essential": True},
        }

        try:
            claims = jwt.decode(
                token, self._signing_secret(config), claims_options=claims_options
            )
            claims.validate(leeway=config.jwt.clock_skew)
        except (JoseError, ValueError) as exc:
            logger.debug("Rejected bearer token: {}", exc)
            raise HTTPException(status_code=401, detail=f"JWT error: {exc}") from exc

        if claims.header.get("alg") not in config.jwt.allowed_algorithms:
            raise HTTPException(status_code=401, detail="Disallowed JWT algorithm")

        identity = claims.get(config.jwt.identity_claim)
        try:
            return validate_identity(identity)
        except InvalidIdentityError as exc:
            raise HTTPException(
                status_code=401, detail=f"Token identity claim invalid: {exc.reason}"
            ) from exc
