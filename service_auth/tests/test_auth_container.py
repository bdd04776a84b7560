"""
Tests for the Auth service composition root.
"""

import pytest

from service_auth.app import tokens
from service_auth.app.container import build_identity_provider, register_auth_module
from service_auth.app.controllers import AuthController
from service_auth.app.identity import IdentityVerifier
from service_auth.app.identity.oidc import OIDCIdentityProvider
from service_auth.app.identity.static import StaticIdentityProvider
from shared.config import get_config
from shared.container import Container
from shared.database import Database
from shared.errors import NotInitializedError
from shared.test_helpers import FakeOpener


class TestRegisterAuthModule:
    """Bindings registered by register_auth_module."""

    @pytest.fixture
    def config(self):
        return get_config("auth", 8010, identity_audience="taskflow-api")

    @pytest.fixture
    def database(self, config):
        return Database(config.postgres_dsn, opener=FakeOpener())

    @pytest.fixture
    def container(self, config, database):
        return register_auth_module(Container("auth-test"), config, database)

    def test_verifier_is_singleton(self, container):
        verifier = container.resolve(tokens.IDENTITY_VERIFIER)

        assert isinstance(verifier, IdentityVerifier)
        assert container.resolve(tokens.IDENTITY_VERIFIER) is verifier

    def test_controller_is_transient_and_shares_verifier(self, container):
        first = container.resolve(tokens.AUTH_CONTROLLER)
        second = container.resolve(tokens.AUTH_CONTROLLER)

        assert isinstance(first, AuthController)
        assert first is not second
        assert first.verifier is second.verifier is container.resolve(tokens.IDENTITY_VERIFIER)

    def test_default_provider_comes_from_config(self, container):
        provider = container.resolve(tokens.IDENTITY_PROVIDER)

        assert isinstance(provider, OIDCIdentityProvider)
        assert provider.audience == "taskflow-api"

    def test_provider_override(self, config, database):
        static = StaticIdentityProvider()
        container = register_auth_module(Container("auth-test"), config, database, static)

        assert container.resolve(tokens.IDENTITY_VERIFIER).provider is static

    def test_database_is_bound_by_reference(self, container, database):
        assert container.resolve(tokens.DATABASE) is database

    def test_storage_handle_before_connect(self, container):
        with pytest.raises(NotInitializedError):
            container.resolve(tokens.STORAGE_HANDLE)

    @pytest.mark.asyncio
    async def test_storage_handle_after_connect(self, container, database):
        await database.connect()

        assert container.resolve(tokens.STORAGE_HANDLE) is database.get_handle()

        await database.disconnect()
        with pytest.raises(NotInitializedError):
            container.resolve(tokens.STORAGE_HANDLE)


def test_build_identity_provider_uses_config():
    config = get_config(
        "auth", 8010,
        jwks_url="http://idp.test/certs",
        identity_admin_url="http://idp.test/users/",
        identity_issuer="http://idp.test",
        jwks_cache_ttl=60
    )

    provider = build_identity_provider(config)

    assert provider.jwks_url == "http://idp.test/certs"
    assert provider.admin_url == "http://idp.test/users"
    assert provider.issuer == "http://idp.test"
    assert provider.cache_ttl == 60
