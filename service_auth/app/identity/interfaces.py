"""
Identity provider contract and the principal model.
"""

from typing import Any, Dict, Optional, Protocol, runtime_checkable

from pydantic import BaseModel


class Principal(BaseModel):
    """Verified identity of a caller."""

    subject_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None


@runtime_checkable
class IdentityProvider(Protocol):
    """Capabilities an external identity provider adapter must offer.

    ``verify`` returns the credential's claims and ``get_by_subject`` a
    profile; both use the OIDC claim names ``sub``, ``email`` and ``name``.
    Adapters should raise ``InvalidCredentialError`` for rejected
    credentials and ``IdentityProviderUnavailableError`` when the provider
    cannot be reached.
    """

    async def verify(self, credential: str) -> Dict[str, Any]:
        ...

    async def get_by_subject(self, subject_id: str) -> Optional[Dict[str, Any]]:
        """Return the subject's profile, or ``None`` if it does not exist."""
        ...
