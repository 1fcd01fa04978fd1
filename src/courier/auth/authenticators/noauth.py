"""Authenticator that performs no authentication."""

from __future__ import annotations

import httpx

from courier.auth.authenticators.base import AuthenticatedClient
from courier.auth.models.user import User


class DefaultAuthenticator:
    """Hands out the bound client unchanged, whoever the user is."""

    def __init__(self, http_client: httpx.AsyncClient):
        self._client = AuthenticatedClient(http_client)

    async def authenticated_client(self, user: User | None) -> AuthenticatedClient:
        return self._client
