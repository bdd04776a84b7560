"""
OIDC identity provider (Keycloak) adapter.
"""

import time
from urllib.parse import quote
from typing import Any, Dict, List, Optional

import httpx
from jose import jwk, jwt
from jose.exceptions import JOSEError

from shared.logging import get_logger
from shared.circuit_breaker import CircuitBreaker, CircuitBreakerOpenError
from shared.errors import InvalidCredentialError, IdentityProviderUnavailableError


class OIDCIdentityProvider:
    """Verifies RS256 JWTs against the provider's JWKS and looks users up
    through its admin API.

    Signing keys are cached for ``cache_ttl`` seconds. A stale key set is
    served if a refresh fails, and a token signed with an unknown ``kid``
    forces one refresh.
    """

    algorithms: List[str] = ["RS256"]

    def __init__(self,
                 jwks_url: str,
                 admin_url: str,
                 admin_token: Optional[str] = None,
                 issuer: Optional[str] = None,
                 audience: Optional[str] = None,
                 timeout: float = 10.0,
                 cache_ttl: int = 3600,
                 failure_threshold: int = 5,
                 recovery_timeout: float = 30.0,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.jwks_url = jwks_url
        self.admin_url = admin_url.rstrip("/")
        self.admin_token = admin_token
        self.issuer = issuer
        self.audience = audience
        self.timeout = timeout
        self.cache_ttl = cache_ttl
        self._transport = transport
        self.logger = get_logger("auth.oidc")

        self._jwks_cache: Optional[Dict[str, Any]] = None
        self._cache_timestamp: float = 0

        self.circuit_breaker = CircuitBreaker(
            name="identity-provider",
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
            expected_exception=httpx.HTTPError
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    async def get_jwks(self, force_refresh: bool = False) -> Dict[str, Any]:
        """Get JWKS from cache or fetch it from the provider."""
        current_time = time.time()

        if (not force_refresh and self._jwks_cache is not None
                and current_time - self._cache_timestamp < self.cache_ttl):
            return self._jwks_cache

        async def _fetch_jwks():
            async with self._client() as client:
                response = await client.get(self.jwks_url)
                response.raise_for_status()
                return response.json()

        try:
            jwks_data = await self.circuit_breaker.call(_fetch_jwks)
        except (httpx.HTTPError, CircuitBreakerOpenError, ValueError) as e:
            self.logger.error("Failed to fetch JWKS", error=str(e))
            if self._jwks_cache is not None:
                self.logger.warning("Using stale JWKS cache due to fetch failure")
                return self._jwks_cache
            raise IdentityProviderUnavailableError(
                "Signing keys unavailable",
                details={"error_type": type(e).__name__}
            ) from e

        self._jwks_cache = jwks_data
        self._cache_timestamp = current_time
        self.logger.info("JWKS refreshed", keys_count=len(jwks_data.get("keys", [])))
        return jwks_data

    async def get_key(self, kid: str) -> Optional[Dict[str, Any]]:
        """Get a signing key by key ID, refreshing once if it is unknown."""
        for force_refresh in (False, True):
            jwks = await self.get_jwks(force_refresh=force_refresh)
            for key in jwks.get("keys", []):
                if key.get("kid") == kid:
                    return key

        self.logger.warning("Key not found", kid=kid)
        return None

    async def verify(self, credential: str) -> Dict[str, Any]:
        """Verify a JWT and return its claims."""
        try:
            unverified_header = jwt.get_unverified_header(credential)
        except JOSEError as e:
            raise InvalidCredentialError("Malformed credential") from e

        kid = unverified_header.get("kid")
        if not kid:
            raise InvalidCredentialError("Credential missing key ID")

        key_data = await self.get_key(kid)
        if not key_data:
            raise InvalidCredentialError("Credential signed with unknown key", details={"kid": kid})

        try:
            public_key = jwk.construct(key_data, algorithm=key_data.get("alg", "RS256"))
            claims = jwt.decode(
                credential,
                public_key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=self.issuer,
                options={
                    "verify_exp": True,
                    "verify_aud": self.audience is not None,
                    "require_exp": True,
                    "require_sub": True,
                }
            )
        except JOSEError as e:
            self.logger.info("Credential rejected", error=str(e))
            raise InvalidCredentialError(f"Invalid credential: {e}") from e

        return claims

    async def get_by_subject(self, subject_id: str) -> Optional[Dict[str, Any]]:
        """Look a user up by subject through the admin API."""
        headers = {"Authorization": f"Bearer {self.admin_token}"} if self.admin_token else {}

        async def _fetch_user():
            async with self._client() as client:
                response = await client.get(
                    f"{self.admin_url}/{quote(subject_id, safe='')}", headers=headers
                )
                if response.status_code == 404:
                    return None
                response.raise_for_status()
                return response.json()

        try:
            user = await self.circuit_breaker.call(_fetch_user)
        except (httpx.HTTPError, CircuitBreakerOpenError, ValueError) as e:
            self.logger.error("User lookup failed", subject_id=subject_id, error=str(e))
            raise IdentityProviderUnavailableError(
                details={"error_type": type(e).__name__}
            ) from e

        if user is None:
            return None
        if not isinstance(user, dict):
            self.logger.error("Unexpected user representation", subject_id=subject_id)
            raise IdentityProviderUnavailableError(
                details={"error_type": type(user).__name__}
            )
        return self._normalize_user(user)

    @staticmethod
    def _normalize_user(user: Dict[str, Any]) -> Dict[str, Any]:
        """Map a Keycloak user representation onto OIDC claim names."""
        full_name = " ".join(
            part for part in (user.get("firstName"), user.get("lastName")) if part
        )
        return {
            "sub": user.get("id"),
            "email": user.get("email"),
            "name": full_name or user.get("username"),
        }
