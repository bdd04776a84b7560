"""
Identity verifier for the Auth service.
"""

import asyncio
from typing import Any, Dict, Optional

import httpx

from shared.logging import get_logger
from shared.tracing import get_tracer
from shared.circuit_breaker import CircuitBreakerOpenError
from shared.errors import (
    TaskflowError,
    InvalidCredentialError,
    PrincipalNotFoundError,
    IdentityProviderUnavailableError,
)
from .interfaces import IdentityProvider, Principal

# Failures that mean the provider could not answer, as opposed to rejecting.
UNAVAILABLE_ERRORS = (
    httpx.HTTPError,
    CircuitBreakerOpenError,
    asyncio.TimeoutError,
    TimeoutError,
    ConnectionError,
)

BEARER_PREFIX = "Bearer "


class IdentityVerifier:
    """Resolves credentials and subjects to principals via one provider."""

    def __init__(self, provider: IdentityProvider):
        self.provider = provider
        self.logger = get_logger("auth.verifier")
        self.tracer = get_tracer("auth.verifier")

    async def verify_credential(self, credential: Optional[str]) -> Principal:
        """Verify a bearer credential and return its principal.

        Raises:
            InvalidCredentialError: empty, malformed, expired or revoked
                credential. Empty credentials never reach the provider.
            IdentityProviderUnavailableError: the provider could not be
                reached; the caller may retry.
        """
        token = (credential or "").strip()
        if token.startswith(BEARER_PREFIX):
            token = token[len(BEARER_PREFIX):].strip()
        if not token:
            raise InvalidCredentialError("Credential must not be empty")

        with self.tracer.start_as_current_span("identity.verify_credential"):
            claims = await self._call(self.provider.verify, token, on_error=InvalidCredentialError)

        subject_id = claims.get("sub") if claims else None
        if not subject_id:
            raise InvalidCredentialError("Credential has no subject")

        self.logger.debug("Credential verified", subject_id=subject_id)
        return self._to_principal(str(subject_id), claims)

    async def get_principal(self, subject_id: str) -> Principal:
        """Fetch the profile of an already verified subject.

        Raises:
            PrincipalNotFoundError: the provider has no such subject.
            IdentityProviderUnavailableError: the provider could not be
                reached.
        """
        if not subject_id:
            raise PrincipalNotFoundError(subject_id)

        with self.tracer.start_as_current_span("identity.get_principal"):
            profile = await self._call(
                self.provider.get_by_subject,
                subject_id,
                on_error=lambda message: PrincipalNotFoundError(subject_id)
            )

        if profile is None:
            self.logger.info("Principal not found", subject_id=subject_id)
            raise PrincipalNotFoundError(subject_id)

        return self._to_principal(subject_id, profile)

    async def _call(self, method, argument: str, on_error):
        try:
            return await method(argument)
        except TaskflowError:
            raise
        except UNAVAILABLE_ERRORS as e:
            self.logger.warning("Identity provider unavailable", error=str(e))
            raise IdentityProviderUnavailableError(details={"error_type": type(e).__name__}) from e
        except Exception as e:
            # Unknown provider failure: reject rather than leak its type.
            self.logger.warning("Identity provider rejected request", error=str(e))
            raise on_error(str(e)) from e

    @staticmethod
    def _to_principal(subject_id: str, data: Dict[str, Any]) -> Principal:
        return Principal(
            subject_id=subject_id,
            email=data.get("email") or None,
            display_name=data.get("name") or None,
        )
