"""
Bearer authentication dependency for Auth routes.
"""

from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from shared.logging import set_user_context
from shared.errors import TaskflowError, InvalidCredentialError
from . import tokens
from .identity import Principal

bearer_scheme = HTTPBearer(auto_error=False)


async def require_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """Verify the request's bearer credential and return its principal."""
    metrics = request.app.state.metrics

    if credentials is None:
        metrics.record_verification("MISSING_CREDENTIAL")
        raise InvalidCredentialError("Authorization header with Bearer credential required")

    verifier = request.app.state.container.resolve(tokens.IDENTITY_VERIFIER)
    try:
        principal = await verifier.verify_credential(credentials.credentials)
    except TaskflowError as e:
        metrics.record_verification(e.code)
        raise

    metrics.record_verification("success")
    set_user_context(user_id=principal.subject_id)
    return principal
