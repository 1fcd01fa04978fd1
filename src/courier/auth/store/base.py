"""Token store contract."""

from __future__ import annotations

from typing import Protocol

from courier.auth.models.tokens import Token
from courier.auth.models.user import User


class TokenStore(Protocol):
    """Persistence for token records, keyed by user ID.

    Implementations must be safe for concurrent use, and a save must be
    atomic for its key: a concurrent get never observes a half-written
    record. Deletion and expiration of records are left to the
    implementation.
    """

    async def get_token(self, user: User) -> Token | None:
        """Return the stored token for the user, or None if there is none.

        Raises:
            TokenDecodeError: If the stored record is corrupt
            TokenStoreError: If the backend cannot be read
        """
        ...

    async def save_token(self, user: User, token: Token) -> None:
        """Store the token for the user, replacing any previous record.

        Raises:
            InvalidTokenError: If the token is None or has no access token
            TokenStoreError: If the backend cannot be written
        """
        ...
