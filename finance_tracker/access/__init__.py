"""Identity resolution and ownership checks."""

from finance_tracker.access.boundary import (
    AccessBoundary,
    CredentialVerifier,
    PasswordCredentialVerifier,
    RequestContext,
    TokenCredentialVerifier,
)

__all__ = [
    "AccessBoundary",
    "CredentialVerifier",
    "PasswordCredentialVerifier",
    "RequestContext",
    "TokenCredentialVerifier",
]
