"""
In-memory identity provider for local runs and tests.
"""

import time
from typing import Any, Dict, Optional

from shared.errors import InvalidCredentialError, IdentityProviderUnavailableError


class StaticIdentityProvider:
    """Identity provider backed by dictionaries.

    ``credentials`` maps a credential string to its claims, ``users`` maps a
    subject id to its profile. Claims carrying an ``exp`` in the past are
    rejected as expired. Set ``unavailable`` to simulate an outage.
    """

    def __init__(self,
                 credentials: Optional[Dict[str, Dict[str, Any]]] = None,
                 users: Optional[Dict[str, Dict[str, Any]]] = None):
        self.credentials: Dict[str, Dict[str, Any]] = dict(credentials or {})
        self.users: Dict[str, Dict[str, Any]] = dict(users or {})
        self.unavailable = False
        self.calls = 0

    def add_user(self, subject_id: str, email: Optional[str] = None, name: Optional[str] = None):
        self.users[subject_id] = {"sub": subject_id, "email": email, "name": name}

    def issue(self, credential: str, subject_id: str, expires_in: Optional[int] = 3600, **claims):
        """Register ``credential`` for ``subject_id``; returns the claims."""
        issued = {"sub": subject_id, "iat": int(time.time()), **claims}
        if expires_in is not None:
            issued["exp"] = int(time.time()) + expires_in
        profile = self.users.get(subject_id, {})
        issued.setdefault("email", profile.get("email"))
        self.credentials[credential] = issued
        return issued

    def revoke(self, credential: str):
        self.credentials.pop(credential, None)

    async def verify(self, credential: str) -> Dict[str, Any]:
        self._check_available()
        claims = self.credentials.get(credential)
        if claims is None:
            raise InvalidCredentialError("Unknown credential")
        exp = claims.get("exp")
        if exp is not None and exp <= time.time():
            raise InvalidCredentialError("Credential expired")
        return dict(claims)

    async def get_by_subject(self, subject_id: str) -> Optional[Dict[str, Any]]:
        self._check_available()
        profile = self.users.get(subject_id)
        return dict(profile) if profile is not None else None

    def _check_available(self):
        self.calls += 1
        if self.unavailable:
            raise IdentityProviderUnavailableError("Static identity provider offline")
