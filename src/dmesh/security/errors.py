"""Credential error hierarchy."""

from __future__ import annotations


LOGIN_HINT = "run 'aws sso login' and try again"


class CredentialError(Exception):
    """Base exception for credential errors."""
    pass


class NoCredentialSourceError(CredentialError):
    """Raised when no credential source could supply credentials."""
    pass


class TokenExpiredError(CredentialError):
    """Raised when the cached SSO token has passed its expiry."""
    pass


class BrokerError(CredentialError):
    """Raised when the role credential exchange fails or returns bad data."""
    pass


class AssumeRoleError(CredentialError):
    """Raised when switching to a new role fails. Previous role stays active."""

    def __init__(self, message: str, role: str | None = None):
        super().__init__(message)
        self.role = role


class IdentityLookupError(CredentialError):
    """Raised when the caller identity cannot be determined."""
    pass
