"""HTTP tests for the book registry endpoints."""

import pytest
from fastapi.testclient import TestClient

from src.app.api.http.app import create_app
from src.app.api.http.app_data import ApplicationDependencies
from src.app.core.services import BookRegistryService, PrincipalIdentitySource
from src.app.runtime.config.config_data import RegistryConfig
from tests.fixtures.core import ALICE, BOB, CAROL, CONTENT_HASH, VALID_ISBN, VALID_TITLE, WRAPPED_NEGATIVE

BOOKS = "/api/v1/books"


def payload(**overrides):
    body = {
        "title": VALID_TITLE,
        "isbn": VALID_ISBN,
        "content_hash": CONTENT_HASH.hex(),
        "royalty_percent": 10,
    }
    body.update(overrides)
    return body


@pytest.fixture
def registered(client, auth_headers) -> int:
    response = client.post(BOOKS, json=payload(), headers=auth_headers(ALICE))
    assert response.status_code == 201
    return response.json()["id"]


class TestRegisterEndpoint:
    def test_register_returns_id(self, client, auth_headers):
        response = client.post(BOOKS, json=payload(), headers=auth_headers(ALICE))

        assert response.status_code == 201
        assert response.json() == {"id": 1}

    def test_register_requires_token(self, client):
        response = client.post(BOOKS, json=payload())
        assert response.status_code == 401

    def test_register_rejects_bad_token(self, client):
        response = client.post(
            BOOKS, json=payload(), headers={"Authorization": "Bearer garbage"}
        )
        assert response.status_code == 401

    def test_duplicate_is_conflict(self, client, auth_headers, registered):
        response = client.post(BOOKS, json=payload(), headers=auth_headers(ALICE))

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "BookAlreadyExists"
        assert body["existing_id"] == registered
        assert "request_id" in body

    def test_content_hash_conflict(self, client, auth_headers, registered):
        response = client.post(
            BOOKS,
            json=payload(title="Another Book", isbn="9999999999999"),
            headers=auth_headers(BOB),
        )

        assert response.status_code == 409
        assert response.json()["error"] == "ContentHashExists"

    @pytest.mark.parametrize("royalty", [101, -1, WRAPPED_NEGATIVE])
    def test_invalid_royalty(self, client, auth_headers, royalty):
        response = client.post(
            BOOKS, json=payload(royalty_percent=royalty), headers=auth_headers(ALICE)
        )

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidRoyalty"

    def test_invalid_title(self, client, auth_headers):
        response = client.post(BOOKS, json=payload(title=""), headers=auth_headers(ALICE))

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidTitle"

    def test_invalid_isbn(self, client, auth_headers):
        response = client.post(BOOKS, json=payload(isbn="abc"), headers=auth_headers(ALICE))

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidIsbn"

    def test_content_hash_must_be_hex(self, client, auth_headers):
        response = client.post(
            BOOKS, json=payload(content_hash="not-hex"), headers=auth_headers(ALICE)
        )
        assert response.status_code == 422

    def test_content_hash_size_limit(self, client, auth_headers):
        response = client.post(
            BOOKS, json=payload(content_hash="ab" * 33), headers=auth_headers(ALICE)
        )
        assert response.status_code == 422

    def test_title_size_limit(self, client, auth_headers):
        response = client.post(
            BOOKS, json=payload(title="x" * 257), headers=auth_headers(ALICE)
        )
        assert response.status_code == 422

    def test_failed_registration_leaves_no_trace(self, client, auth_headers):
        client.post(BOOKS, json=payload(royalty_percent=101), headers=auth_headers(ALICE))

        response = client.post(BOOKS, json=payload(), headers=auth_headers(ALICE))
        assert response.json() == {"id": 1}


class TestTransferEndpoint:
    def test_owner_transfers(self, client, auth_headers, registered):
        response = client.post(
            f"{BOOKS}/{registered}/transfer",
            json={"new_owner": BOB},
            headers=auth_headers(ALICE),
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert client.get(f"{BOOKS}/{registered}").json()["owner"] == BOB

    def test_non_owner_forbidden(self, client, auth_headers, registered):
        response = client.post(
            f"{BOOKS}/{registered}/transfer",
            json={"new_owner": CAROL},
            headers=auth_headers(BOB),
        )

        assert response.status_code == 403
        assert response.json()["error"] == "Unauthorized"
        assert client.get(f"{BOOKS}/{registered}").json()["owner"] == ALICE

    def test_unknown_book(self, client, auth_headers):
        response = client.post(
            f"{BOOKS}/42/transfer", json={"new_owner": BOB}, headers=auth_headers(ALICE)
        )

        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"

    def test_malformed_new_owner(self, client, auth_headers, registered):
        response = client.post(
            f"{BOOKS}/{registered}/transfer",
            json={"new_owner": "two words"},
            headers=auth_headers(ALICE),
        )

        assert response.status_code == 422
        assert response.json()["error"] == "InvalidIdentity"

    def test_transfer_requires_token(self, client, registered):
        response = client.post(f"{BOOKS}/{registered}/transfer", json={"new_owner": BOB})
        assert response.status_code == 401


class TestQueryEndpoints:
    def test_get_details(self, client, registered):
        response = client.get(f"{BOOKS}/{registered}")

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == registered
        assert body["title"] == VALID_TITLE
        assert body["isbn"] == VALID_ISBN
        assert bytes.fromhex(body["content_hash"]) == CONTENT_HASH
        assert body["royalty_percent"] == 10
        assert body["author"] == ALICE
        assert body["owner"] == ALICE

    def test_get_unknown_is_null(self, client):
        response = client.get(f"{BOOKS}/999")

        assert response.status_code == 200
        assert response.json() is None

    def test_is_owner(self, client, registered):
        assert client.get(f"{BOOKS}/{registered}/owner/{ALICE}").json() == {"is_owner": True}
        assert client.get(f"{BOOKS}/{registered}/owner/{BOB}").json() == {"is_owner": False}

    def test_is_owner_unknown_book(self, client):
        response = client.get(f"{BOOKS}/999/owner/{ALICE}")
        assert response.json() == {"is_owner": False}

    def test_request_id_echoed(self, client):
        response = client.get(f"{BOOKS}/1", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"


class TestOversizedIds:
    """Ids larger than the database column can hold name no book."""

    HUGE_ID = 2**64

    @pytest.fixture
    def client(self, sql_store, identity_source):
        """Serve the API over the SQL store, whose id column is bounded."""
        dependencies = ApplicationDependencies(
            registry_service=BookRegistryService(
                sql_store, PrincipalIdentitySource(), RegistryConfig()
            ),
            identity_source=identity_source,
        )
        with TestClient(create_app(dependencies)) as test_client:
            yield test_client

    def test_get_details_is_null(self, client, registered):
        response = client.get(f"{BOOKS}/{self.HUGE_ID}")

        assert response.status_code == 200
        assert response.json() is None

    def test_is_owner_is_false(self, client, registered):
        response = client.get(f"{BOOKS}/{self.HUGE_ID}/owner/{ALICE}")
        assert response.json() == {"is_owner": False}

    def test_transfer_is_not_found(self, client, auth_headers, registered):
        response = client.post(
            f"{BOOKS}/{self.HUGE_ID}/transfer",
            json={"new_owner": BOB},
            headers=auth_headers(ALICE),
        )

        assert response.status_code == 404
        assert response.json()["error"] == "NotFound"
