"""
Integration tests for the Auth service flow: startup, signed-token
verification against a fake identity provider, and shutdown.
"""

import pytest
import httpx
from fastapi.testclient import TestClient

from service_auth.app.main import AuthService
from service_auth.app.identity.oidc import OIDCIdentityProvider
from shared.database import StorageState
from shared.errors import StorageConnectionError
from shared.test_helpers import (
    FakeOpener,
    SigningKey,
    create_claims,
    create_jwks,
    create_keycloak_user,
)

JWKS_URL = "http://keycloak.test/certs"
ADMIN_URL = "http://keycloak.test/users"


class TestAuthFlow:
    """Integration tests for the complete auth flow."""

    @pytest.fixture(scope="class")
    def signing_key(self):
        return SigningKey()

    @pytest.fixture
    def identity_provider(self, signing_key):
        users = {"user-1": create_keycloak_user("user-1")}

        def handler(request: httpx.Request) -> httpx.Response:
            url = str(request.url)
            if url == JWKS_URL:
                return httpx.Response(200, json=create_jwks(signing_key))
            user = users.get(url.rsplit("/", 1)[-1])
            if user is None:
                return httpx.Response(404)
            return httpx.Response(200, json=user)

        return OIDCIdentityProvider(
            jwks_url=JWKS_URL,
            admin_url=ADMIN_URL,
            transport=httpx.MockTransport(handler)
        )

    @pytest.fixture
    def opener(self):
        return FakeOpener()

    @pytest.fixture
    def service(self, identity_provider, opener):
        return AuthService(identity_provider=identity_provider, storage_opener=opener)

    def test_complete_auth_flow(self, service, opener, signing_key):
        token = signing_key.sign(create_claims("user-1"))

        with TestClient(service.app) as client:
            assert service.database.state is StorageState.READY

            health = client.get("/health").json()
            assert health["dependencies"] == {"storage": "ready"}

            me = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
            assert me.status_code == 200
            assert me.json() == {
                "subject_id": "user-1",
                "email": "john.doe@taskflow.dev",
                "display_name": "John Doe"
            }

            expired = signing_key.sign(create_claims("user-1", expires_in=-60))
            rejected = client.get("/auth/me", headers={"Authorization": f"Bearer {expired}"})
            assert rejected.status_code == 401

        assert service.database.state is StorageState.DISCONNECTED
        assert opener.calls == 1
        assert opener.pools[0].closed is True

    def test_unknown_subject(self, service, signing_key):
        token = signing_key.sign(create_claims("ghost"))

        with TestClient(service.app) as client:
            response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 404

    def test_storage_failure_aborts_startup(self, identity_provider):
        service = AuthService(
            identity_provider=identity_provider,
            storage_opener=FakeOpener(error=OSError("connection refused"))
        )

        with pytest.raises(StorageConnectionError):
            with TestClient(service.app):
                pass

        assert service.database.state is StorageState.FAILED
