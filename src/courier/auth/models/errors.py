"""Exception hierarchy for authenticated HTTP requests.

Provides specific exception types for each failure mode of the token
lifecycle so callers can tell caller mistakes from remote and storage
failures.
"""

from __future__ import annotations


class CourierError(Exception):
    """Base exception for all courier errors."""

    pass


class IdentityError(CourierError):
    """Raised when the supplied user identity is incomplete."""

    pass


class MissingUserIDError(IdentityError):
    """Raised when no user, or a user with an empty ID, is supplied."""

    def __init__(self, message: str = "missing user ID"):
        super().__init__(message)


class MissingAuthCodeError(IdentityError):
    """Raised when the user carries no authorization code."""

    def __init__(self, message: str = "missing authorization code"):
        super().__init__(message)


class TokenExchangeError(CourierError):
    """Raised when an authorization code cannot be exchanged for a token.

    Carries the OAuth error fields (RFC 6749 Section 5.2) when the token
    endpoint returned them.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        error: str | None = None,
        error_description: str | None = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.error = error
        self.error_description = error_description


class TokenRefreshError(TokenExchangeError):
    """Raised when a refresh token exchange fails or cannot be attempted."""

    pass


class TokenStoreError(CourierError):
    """Raised when the token store fails to read or write a record."""

    pass


class TokenDecodeError(TokenStoreError):
    """Raised when a stored token record cannot be decoded."""

    pass


class InvalidTokenError(TokenStoreError, ValueError):
    """Raised when attempting to save an empty token."""

    pass


class ConfigurationError(CourierError, ValueError):
    """Raised when a service is constructed with invalid configuration."""

    pass
