"""Error types raised by the social-authentication host layer."""

from __future__ import annotations


class SocialiteError(Exception):
    """Base class for all errors raised by socialite-dingtalk."""


class ConfigurationError(SocialiteError):
    """Provider configuration is missing, incomplete or unreadable."""


class InvalidStateError(SocialiteError):
    """The callback `state` does not match the one issued with the redirect."""


class ProviderError(SocialiteError):
    """Login flow failure with an OAuth-style error code.

    Raised by the host when the provider's answer cannot complete a login
    (no authorization code on the callback, empty access token, ...).
    Transport and HTTP status errors are not wrapped; they propagate from httpx.
    """

    def __init__(self, error: str, description: str | None = None):
        super().__init__(description or error)
        self.error = error
        self.description = description


__all__ = [
    "ConfigurationError",
    "InvalidStateError",
    "ProviderError",
    "SocialiteError",
]
