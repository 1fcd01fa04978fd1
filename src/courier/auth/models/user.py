"""User identity required by authenticators."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class User(Protocol):
    """Identity data an authenticator needs to act on a user's behalf.

    Open for extension so new authenticators can work with their own user
    types.
    """

    @property
    def user_id(self) -> str:
        """Stable unique ID, used as the token store key."""
        ...

    @property
    def auth_code(self) -> str:
        """One-time authorization code, empty when not applicable."""
        ...


@dataclass(frozen=True)
class OAuth2User:
    """User identity for the OAuth 2.0 authorization code grant."""

    user_id: str
    auth_code: str = ""
