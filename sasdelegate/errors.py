"""Error taxonomy for the credential delegation pipeline."""

from __future__ import annotations

from typing import Optional


class SasDelegateError(Exception):
    """Base class for every error raised by sasdelegate."""


class ConfigurationError(SasDelegateError):
    """Required settings are missing or invalid."""


class TransportError(SasDelegateError):
    """The transport could not complete a request."""


class TokenAcquisitionError(SasDelegateError):
    """The identity provider did not yield a usable access token."""


class DelegationKeyError(SasDelegateError):
    """The storage service did not yield a complete delegation key."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class SigningError(SasDelegateError):
    """A SAS could not be signed from the given key or inputs."""
