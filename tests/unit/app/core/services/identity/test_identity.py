"""Tests for identity validation and the bearer-token identity source."""

import pytest
from fastapi import HTTPException

from src.app.core.services.identity import (
    InvalidIdentityError,
    JwtIdentitySource,
    PrincipalIdentitySource,
    validate_identity,
)
from src.app.core.services.identity.identity_source import MAX_IDENTITY_LENGTH
from src.app.runtime.config.config_data import ConfigData
from src.app.runtime.context import with_context
from tests.fixtures.core import ALICE, BOB


class TestValidateIdentity:
    @pytest.mark.parametrize(
        "identity",
        [ALICE, "user@example.com", "3f2b8c1e-1d2a-4f55-9c1e-7a0d1b2c3d4e", "x"],
    )
    def test_accepts_well_formed(self, identity):
        assert validate_identity(identity) == identity

    @pytest.mark.parametrize(
        "identity",
        ["", "has space", "tab\there", "ünïcode", "a" * (MAX_IDENTITY_LENGTH + 1), None, 42],
    )
    def test_rejects_malformed(self, identity):
        with pytest.raises(InvalidIdentityError) as exc_info:
            validate_identity(identity)

        assert exc_info.value.code == "InvalidIdentity"
        assert exc_info.value.http_status == 422

    def test_longest_identity_accepted(self):
        identity = "a" * MAX_IDENTITY_LENGTH
        assert validate_identity(identity) == identity

    def test_principal_source_delegates(self):
        source = PrincipalIdentitySource()
        assert source.validate(BOB) == BOB
        with pytest.raises(InvalidIdentityError):
            source.validate("")


class TestJwtIdentitySource:
    def test_round_trip_identity(self, identity_source: JwtIdentitySource):
        token = identity_source.issue_token(ALICE)
        assert identity_source.authenticate(token) == ALICE

    def test_issue_rejects_malformed_identity(self, identity_source: JwtIdentitySource):
        with pytest.raises(InvalidIdentityError):
            identity_source.issue_token("not valid")

    def test_issue_rejects_disallowed_algorithm(self, identity_source: JwtIdentitySource):
        with pytest.raises(HTTPException) as exc_info:
            identity_source.issue_token(ALICE, algorithm="none")
        assert exc_info.value.status_code == 500

    def test_expired_token_rejected(self, identity_source: JwtIdentitySource):
        token = identity_source.issue_token(ALICE, expires_in_seconds=-3600)

        with pytest.raises(HTTPException) as exc_info:
            identity_source.authenticate(token)
        assert exc_info.value.status_code == 401

    def test_foreign_secret_rejected(self, identity_source: JwtIdentitySource):
        token = JwtIdentitySource(secret="someone-else").issue_token(ALICE)

        with pytest.raises(HTTPException) as exc_info:
            identity_source.authenticate(token)
        assert exc_info.value.status_code == 401

    def test_wrong_audience_rejected(self, identity_source: JwtIdentitySource):
        token = identity_source.issue_token(ALICE, extra_claims={"aud": "api://other"})

        with pytest.raises(HTTPException) as exc_info:
            identity_source.authenticate(token)
        assert exc_info.value.status_code == 401

    def test_identity_claim_cannot_be_overridden(self, identity_source: JwtIdentitySource):
        token = identity_source.issue_token(ALICE, extra_claims={"sub": BOB})
        assert identity_source.authenticate(token) == ALICE

    def test_garbage_token_rejected(self, identity_source: JwtIdentitySource):
        with pytest.raises(HTTPException) as exc_info:
            identity_source.authenticate("not-a-token")
        assert exc_info.value.status_code == 401

    def test_custom_identity_claim(self, identity_source: JwtIdentitySource):
        override = ConfigData()
        override.jwt.identity_claim = "principal"

        with with_context(override):
            token = identity_source.issue_token(ALICE)
            assert identity_source.authenticate(token) == ALICE

    def test_production_requires_configured_secret(self):
        override = ConfigData()
        override.app.environment = "production"
        override.app.token_signing_secret = None

        with with_context(override):
            with pytest.raises(ValueError):
                JwtIdentitySource().issue_token(ALICE)
