"""Authenticator contract and the client it produces."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

import httpx

from courier.auth.models.user import User


@dataclass(frozen=True)
class AuthenticatedClient:
    """HTTP client bound to the auth that should sign its requests.

    Shares the connection pool of the underlying client; only the auth
    differs between users.
    """

    http_client: httpx.AsyncClient
    auth: httpx.Auth | None = None

    async def send(self, request: httpx.Request) -> httpx.Response:
        """Send a single request through the underlying client."""
        if self.auth is None:
            return await self.http_client.send(request)
        return await self.http_client.send(request, auth=self.auth)


class Authenticator(Protocol):
    """Produces clients that make requests on behalf of a user.

    New authentication schemes implement this protocol; the request
    service does not need to know about them.
    """

    async def authenticated_client(self, user: User | None) -> AuthenticatedClient:
        """Return a client authenticated for user.

        Raises:
            CourierError: If the client cannot be authenticated
        """
        ...
