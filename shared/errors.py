"""
Shared error handling for the Taskflow backend.

Every failure the core can signal is one of the classes below. Callers
branch on the category base (configuration, authentication, dependency
unavailability, resource lifecycle) instead of matching message strings.
"""

from typing import Dict, Any, Optional, Sequence
from pydantic import BaseModel
from opentelemetry import trace


class ErrorResponse(BaseModel):
    """Standard error response format."""

    trace_id: Optional[str] = None
    code: str
    message: str
    details: Dict[str, Any] = {}


def get_trace_id() -> Optional[str]:
    """Return the current trace id as hex, if a span is recording."""
    current_span = trace.get_current_span()
    if current_span and current_span.is_recording():
        span_context = current_span.get_span_context()
        if span_context.trace_id != 0:
            return f"{span_context.trace_id:032x}"
    return None


class TaskflowError(Exception):
    """Base exception for Taskflow services."""

    status_code: int = 500

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            trace_id=get_trace_id(),
            code=self.code,
            message=self.message,
            details=self.details
        )


# Configuration errors: the composition root wired the system incorrectly.

class ConfigurationError(TaskflowError):
    """Programmer error in container wiring."""

    status_code = 500


class UnboundCapabilityError(ConfigurationError):
    """No binding exists for the requested capability token."""

    def __init__(self, token_name: str):
        super().__init__(
            "UNBOUND_CAPABILITY",
            f"No binding registered for capability '{token_name}'",
            {"token": token_name}
        )


class CyclicDependencyError(ConfigurationError):
    """A capability transitively requires itself."""

    def __init__(self, chain: Sequence[str]):
        path = " -> ".join(chain)
        super().__init__(
            "CYCLIC_DEPENDENCY",
            f"Cyclic dependency detected: {path}",
            {"chain": list(chain)}
        )


# Authentication errors: expected, user facing.

class AuthenticationError(TaskflowError):
    """Authentication-related errors."""

    status_code = 401

    def __init__(self, code: str = "AUTHENTICATION_ERROR", message: str = "Authentication failed",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(code, message, details)


class InvalidCredentialError(AuthenticationError):
    """Credential is empty, malformed, expired or revoked."""

    def __init__(self, message: str = "Invalid credential", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_CREDENTIAL", message, details)


class PrincipalNotFoundError(AuthenticationError):
    """The identity provider has no such subject."""

    status_code = 404

    def __init__(self, subject_id: str):
        super().__init__(
            "PRINCIPAL_NOT_FOUND",
            "User not found",
            {"subject_id": subject_id}
        )


# Dependency unavailability: transient, the caller may retry.

class DependencyUnavailableError(TaskflowError):
    """External collaborator could not be reached."""

    status_code = 503


class IdentityProviderUnavailableError(DependencyUnavailableError):
    """Identity provider network failure or timeout."""

    def __init__(self, message: str = "Identity provider unavailable", details: Optional[Dict[str, Any]] = None):
        super().__init__("IDENTITY_PROVIDER_UNAVAILABLE", message, details)


class StorageConnectionError(DependencyUnavailableError):
    """Storage connection handshake failed."""

    def __init__(self, message: str = "Storage connection failed", details: Optional[Dict[str, Any]] = None):
        super().__init__("STORAGE_CONNECTION_FAILED", message, details)


# Resource lifecycle errors: ordering mistakes by the caller.

class ResourceLifecycleError(TaskflowError):
    """Shared resource used in the wrong lifecycle state."""

    status_code = 500


class NotInitializedError(ResourceLifecycleError):
    """Resource used before connect() completed or after shutdown."""

    def __init__(self, resource: str, state: str):
        super().__init__(
            "NOT_INITIALIZED",
            f"{resource} not initialized (state: {state}). Call connect() first.",
            {"resource": resource, "state": state}
        )


class AlreadyInitializedError(ResourceLifecycleError):
    """connect() called when the resource already left its initial state."""

    def __init__(self, resource: str, state: str):
        super().__init__(
            "ALREADY_INITIALIZED",
            f"{resource} cannot connect from state '{state}'",
            {"resource": resource, "state": state}
        )
