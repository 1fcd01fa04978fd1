"""In-memory token store."""

from __future__ import annotations

import asyncio
import logging

from pydantic import ValidationError

from courier.auth.models.errors import InvalidTokenError, TokenDecodeError
from courier.auth.models.tokens import Token
from courier.auth.models.user import User

logger = logging.getLogger(__name__)


class MemoryTokenStore:
    """Token store holding serialized records in a process-local dict.

    A single lock guards the whole store. Fine for tests and low volume
    use; a production store should lock per key or rely on transactions.
    """

    def __init__(self) -> None:
        self._records: dict[str, bytes] = {}
        self._lock = asyncio.Lock()

    async def get_token(self, user: User) -> Token | None:
        async with self._lock:
            data = self._records.get(user.user_id)
            if data is None:
                return None
            try:
                return Token.model_validate_json(data)
            except ValidationError as e:
                raise TokenDecodeError(
                    f"Corrupt token record for user {user.user_id}: {e}"
                ) from e

    async def save_token(self, user: User, token: Token | None) -> None:
        if token is None or not token.access_token:
            raise InvalidTokenError("token cannot be empty")

        data = token.model_dump_json().encode()
        async with self._lock:
            self._records[user.user_id] = data
        logger.debug(f"Saved token for user {user.user_id}")

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, user_id: object) -> bool:
        return user_id in self._records
