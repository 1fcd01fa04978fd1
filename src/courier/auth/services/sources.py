"""Token sources and the httpx auth that consumes them.

A token source hands out a usable token on every call. Sources compose:
the OAuth2 authenticator wraps the refreshing source in an interceptor that
persists every token it hands out, and attaches the result to requests
through ``BearerTokenAuth``.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncGenerator, Generator
from typing import TYPE_CHECKING, Protocol

import httpx

from courier.auth.models.errors import TokenRefreshError, TokenStoreError
from courier.auth.models.tokens import Token
from courier.auth.models.user import User
from courier.auth.store.base import TokenStore

if TYPE_CHECKING:
    from courier.auth.services.tokens import OAuth2TokenManager

logger = logging.getLogger(__name__)


class TokenSource(Protocol):
    """Anything that can produce a currently usable token."""

    async def token(self) -> Token: ...


class RefreshingTokenSource:
    """Returns the current token while valid and refreshes it once expired.

    Refreshes are serialized so concurrent requests sharing the source
    trigger a single refresh.
    """

    def __init__(self, token: Token, manager: OAuth2TokenManager):
        self._token = token
        self._manager = manager
        self._lock = asyncio.Lock()

    async def token(self) -> Token:
        async with self._lock:
            if self._token.is_valid():
                return self._token

            if not self._token.can_refresh():
                raise TokenRefreshError("token expired and refresh token is not set")

            logger.debug("Access token expired, refreshing")
            new_token = await self._manager.refresh(self._token.refresh_token)

            # Servers may omit the refresh token when it is unchanged.
            if not new_token.refresh_token:
                new_token = new_token.model_copy(
                    update={"refresh_token": self._token.refresh_token}
                )

            self._token = new_token
            return new_token


class TokenRefreshInterceptor:
    """Persists every token issued by the wrapped source before returning it.

    Makes refreshes durable without any explicit sync step by the caller.
    Errors from the source propagate; store failures surface as
    TokenStoreError. A failed save leaves the previous record in the store.
    """

    def __init__(self, user: User, source: TokenSource, store: TokenStore):
        self.user = user
        self._source = source
        self._store = store

    async def token(self) -> Token:
        token = await self._source.token()
        try:
            await self._store.save_token(self.user, token)
        except TokenStoreError:
            raise
        except Exception as e:
            raise TokenStoreError(
                f"Failed to save token for user {self.user.user_id}: {e}"
            ) from e
        return token


class BearerTokenAuth(httpx.Auth):
    """Sets the Authorization header from a token source on every request."""

    def __init__(self, source: TokenSource):
        self._source = source

    def sync_auth_flow(
        self, request: httpx.Request
    ) -> Generator[httpx.Request, httpx.Response, None]:
        raise RuntimeError("BearerTokenAuth can only be used with httpx.AsyncClient")

    async def async_auth_flow(
        self, request: httpx.Request
    ) -> AsyncGenerator[httpx.Request, httpx.Response]:
        token = await self._source.token()
        request.headers["Authorization"] = f"{token.authorization_type} {token.access_token}"
        yield request
