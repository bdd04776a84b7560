"""
Composition root bindings for the Auth service.
"""

from typing import Optional

from shared.config import BaseConfig
from shared.container import Container, Lifecycle
from shared.database import Database
from . import tokens
from .controllers import AuthController
from .identity import IdentityProvider, IdentityVerifier
from .identity.oidc import OIDCIdentityProvider


def build_identity_provider(config: BaseConfig) -> OIDCIdentityProvider:
    """Create the OIDC provider adapter from configuration."""
    return OIDCIdentityProvider(
        jwks_url=config.jwks_url,
        admin_url=config.identity_admin_url,
        admin_token=config.identity_admin_token,
        issuer=config.identity_issuer,
        audience=config.identity_audience,
        timeout=config.identity_timeout,
        cache_ttl=config.jwks_cache_ttl,
        failure_threshold=config.identity_failure_threshold,
        recovery_timeout=config.identity_recovery_timeout,
    )


def register_auth_module(container: Container,
                         config: BaseConfig,
                         database: Database,
                         identity_provider: Optional[IdentityProvider] = None) -> Container:
    """Bind storage, identity and handler capabilities.

    ``identity_provider`` replaces the configured OIDC adapter, e.g. with a
    ``StaticIdentityProvider`` in tests.
    """
    container.bind_instance(tokens.DATABASE, database)
    container.bind(
        tokens.STORAGE_HANDLE,
        lambda c: c.resolve(tokens.DATABASE).get_handle(),
        Lifecycle.TRANSIENT
    )

    if identity_provider is not None:
        container.bind_instance(tokens.IDENTITY_PROVIDER, identity_provider)
    else:
        container.bind(tokens.IDENTITY_PROVIDER, lambda c: build_identity_provider(config))

    container.bind(
        tokens.IDENTITY_VERIFIER,
        lambda c: IdentityVerifier(c.resolve(tokens.IDENTITY_PROVIDER))
    )
    container.bind(
        tokens.AUTH_CONTROLLER,
        lambda c: AuthController(c.resolve(tokens.IDENTITY_VERIFIER)),
        Lifecycle.TRANSIENT
    )
    return container
