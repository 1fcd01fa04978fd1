"""OAuth 2.0 token record and token endpoint response handling.

The token record is the unit persisted by token stores. Its JSON encoding
is the stored form, so every field must round-trip through
``model_dump_json`` / ``model_validate_json`` unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, Field, field_validator

# Tokens are treated as expired slightly early so a token does not lapse
# between the validity check and its use by the resource server.
EXPIRY_DELTA = timedelta(seconds=10)

_RESPONSE_FIELDS = {"access_token", "token_type", "refresh_token", "expires_in"}

_TOKEN_TYPES = {"bearer": "Bearer", "mac": "MAC", "basic": "Basic"}


class Token(BaseModel):
    """OAuth 2.0 access/refresh token pair (RFC 6749 Section 5.1)."""

    access_token: str
    token_type: str = "Bearer"
    refresh_token: str | None = None
    expiry: datetime | None = None  # None means the token never expires
    raw: dict[str, Any] = Field(default_factory=dict)

    @field_validator("expiry")
    @classmethod
    def _ensure_aware(cls, value: datetime | None) -> datetime | None:
        # Naive timestamps are taken as local time.
        if value is not None and value.tzinfo is None:
            return value.astimezone()
        return value

    @property
    def authorization_type(self) -> str:
        """Token type as it should appear in the Authorization header."""
        if not self.token_type:
            return "Bearer"
        return _TOKEN_TYPES.get(self.token_type.lower(), self.token_type)

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the token is past its expiry, including the early window."""
        if self.expiry is None:
            return False
        now = now or datetime.now(timezone.utc)
        return self.expiry - EXPIRY_DELTA <= now

    def is_valid(self, now: datetime | None = None) -> bool:
        """Check if the token can be used as-is."""
        return bool(self.access_token) and not self.is_expired(now)

    def can_refresh(self) -> bool:
        """Check if the token carries a refresh token."""
        return bool(self.refresh_token)

    @classmethod
    def from_response(
        cls, data: Mapping[str, Any], now: datetime | None = None
    ) -> Token:
        """Build a token from a token endpoint response payload.

        Args:
            data: Decoded JSON or form-encoded response body
            now: Reference time for converting ``expires_in``

        Returns:
            Token with unknown response fields preserved in ``raw``

        Raises:
            ValueError: If the payload has no access token or a malformed
                ``expires_in``
        """
        access_token = data.get("access_token")
        if not access_token:
            raise ValueError("server response missing access_token")

        expiry = None
        expires_in = data.get("expires_in")
        if expires_in not in (None, ""):
            try:
                seconds = int(expires_in)
                if seconds:
                    now = now or datetime.now(timezone.utc)
                    expiry = now + timedelta(seconds=seconds)
            except (TypeError, ValueError, OverflowError) as e:
                raise ValueError(f"invalid expires_in {expires_in!r}: {e}") from e

        return cls(
            access_token=access_token,
            token_type=data.get("token_type") or "Bearer",
            refresh_token=data.get("refresh_token") or None,
            expiry=expiry,
            raw={k: v for k, v in data.items() if k not in _RESPONSE_FIELDS},
        )
