"""
Handlers behind the /auth routes.
"""

from typing import Dict

from shared.logging import get_logger
from ..identity import IdentityVerifier, Principal


class AuthController:
    """Auth handlers; resolved from the container once per request."""

    def __init__(self, verifier: IdentityVerifier):
        self.verifier = verifier
        self.logger = get_logger("auth.controller")

    async def get_current_user(self, principal: Principal) -> Principal:
        """Profile of the authenticated caller, fetched fresh from the provider."""
        user = await self.verifier.get_principal(principal.subject_id)
        self.logger.info("Current user retrieved", subject_id=user.subject_id)
        return user

    async def verify(self, credential: str) -> Principal:
        return await self.verifier.verify_credential(credential)

    def health(self) -> Dict[str, str]:
        return {"status": "ok", "service": "auth"}
