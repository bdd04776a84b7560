"""
Identity verification package.

Turns an opaque bearer credential into a trusted ``Principal``:

- interfaces: the ``Principal`` model and the ``IdentityProvider`` protocol
  that provider adapters implement.
- verifier: ``IdentityVerifier``, which consumers depend on. It maps every
  provider failure onto the shared error taxonomy so callers never see a
  provider-specific exception type.
- oidc: JWKS/JWT verification and admin user lookup against an OIDC
  provider such as Keycloak.
- static: in-memory provider for local runs and tests.

Verification results are never cached; every call goes to the provider.
"""

from .interfaces import IdentityProvider, Principal
from .verifier import IdentityVerifier

__all__ = ["IdentityProvider", "Principal", "IdentityVerifier"]
