"""
Capability tokens bound by the Auth service composition root.
"""

from shared.container import CapabilityToken

# Storage
DATABASE = CapabilityToken("Database", "Shared storage lifecycle manager")
STORAGE_HANDLE = CapabilityToken("StorageHandle", "Connected storage handle")

# Identity
IDENTITY_PROVIDER = CapabilityToken("IdentityProvider", "External identity provider adapter")
IDENTITY_VERIFIER = CapabilityToken("IdentityVerifier", "Credential to principal resolution")

# Handlers
AUTH_CONTROLLER = CapabilityToken("AuthController", "HTTP handlers for /auth")
