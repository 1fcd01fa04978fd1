"""OAuth 2.0 authenticator backed by a token store.

Resolves a user's token from the store, exchanges the user's
authorization code when no token is stored yet, and returns a client
whose token source persists every refreshed token back to the store.
"""

from __future__ import annotations

import logging

import httpx

from courier.auth.authenticators.base import AuthenticatedClient
from courier.auth.models.config import OAuth2Config
from courier.auth.models.errors import (
    MissingAuthCodeError,
    MissingUserIDError,
    TokenStoreError,
)
from courier.auth.models.tokens import Token
from courier.auth.models.user import User
from courier.auth.services.sources import BearerTokenAuth, TokenRefreshInterceptor
from courier.auth.services.tokens import OAuth2TokenManager
from courier.auth.store.base import TokenStore

logger = logging.getLogger(__name__)


class OAuth2Authenticator:
    """Authenticates requests with OAuth 2.0 access tokens.

    Holds no state between calls beyond what lives in the token store, so
    a single instance can serve concurrent requests for any number of
    users.
    """

    def __init__(
        self,
        config: OAuth2Config,
        store: TokenStore,
        http_client: httpx.AsyncClient,
    ):
        """Initialize the authenticator.

        Args:
            config: OAuth client credentials and endpoints
            store: Token store used for lookups and persistence
            http_client: Client used for token requests and authenticated
                requests alike
        """
        self.config = config
        self.store = store
        self._http_client = http_client
        self._token_manager = OAuth2TokenManager(config, http_client)

    async def authenticated_client(self, user: User | None) -> AuthenticatedClient:
        """Return a client that signs requests with the user's access token.

        A stored token is used as-is even when expired; the returned client
        refreshes it on first use. The authorization code is only exchanged
        when the store has no token for the user.

        Raises:
            MissingUserIDError: If user is None or has an empty ID
            MissingAuthCodeError: If user has no authorization code
            TokenStoreError: If the store cannot be read or written
            TokenExchangeError: If the authorization code exchange fails
        """
        if user is None:
            raise MissingUserIDError()
        if not user.auth_code:
            raise MissingAuthCodeError()
        if not user.user_id:
            raise MissingUserIDError()

        token = await self._lookup(user)

        if token is None:
            logger.debug(f"No stored token for user {user.user_id}, exchanging code")
            token = await self._token_manager.exchange(user.auth_code)
            await self._save(user, token)

        source = self._token_manager.token_source(token)
        interceptor = TokenRefreshInterceptor(user, source, self.store)
        return AuthenticatedClient(self._http_client, BearerTokenAuth(interceptor))

    async def _lookup(self, user: User) -> Token | None:
        try:
            return await self.store.get_token(user)
        except TokenStoreError:
            raise
        except Exception as e:
            raise TokenStoreError(f"Failed to read token for user {user.user_id}: {e}") from e

    async def _save(self, user: User, token: Token) -> None:
        try:
            await self.store.save_token(user, token)
        except TokenStoreError:
            raise
        except Exception as e:
            raise TokenStoreError(f"Failed to save token for user {user.user_id}: {e}") from e
