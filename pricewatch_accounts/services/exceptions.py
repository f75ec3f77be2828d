"""Provides exceptions occurring with external services."""

from typing import Optional


class CredentialStoreError(RuntimeError):
    """The credential store refused or failed a request."""

    def __init__(self, message: str, status: int = 0,
                 code: Optional[str] = None) -> None:
        super(CredentialStoreError, self).__init__(message)
        self.message = message
        self.status = status
        self.code = code


class CredentialStoreUnavailable(CredentialStoreError):
    """Could not talk to the credential store at all (network, timeout)."""


class InvalidSessionCookie(ValueError):
    """A session cookie is malformed, forged, or expired."""
