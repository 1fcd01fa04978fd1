"""HTTP request service with pluggable authentication.

Performs single HTTP requests on behalf of a user, delegating credential
handling to an authenticator and decoding JSON responses.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx
from pydantic import TypeAdapter

from courier.auth.authenticators.base import Authenticator
from courier.auth.authenticators.noauth import DefaultAuthenticator
from courier.auth.models.user import User
from courier.service.config import ServiceConfig

logger = logging.getLogger(__name__)


class Requester(Protocol):
    """Performs HTTP requests."""

    async def do(
        self,
        request: httpx.Request,
        result_type: Any = None,
        user: User | None = None,
        authenticator: Authenticator | None = None,
    ) -> Any:
        """Perform a single HTTP request.

        Args:
            request: Request to send
            result_type: Type to decode the JSON body into, or None to skip
                decoding
            user: Optional, for authenticators that need user data
            authenticator: Optional, requests go through the default client
                when omitted
        """
        ...


class HTTPService(Requester):
    """Requester backed by a single managed httpx.AsyncClient.

    The managed client carries the configured timeout and is also the
    client that authenticators should be built with, so token requests
    and authenticated requests share one connection pool.
    """

    def __init__(
        self,
        config: ServiceConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize the service.

        Args:
            config: Service configuration, validated before the client is built
            transport: Optional transport for the managed client

        Raises:
            ConfigurationError: If the configuration is invalid
        """
        config.validate()
        self.config = config
        self.client = httpx.AsyncClient(timeout=config.timeout, transport=transport)

    async def do(
        self,
        request: httpx.Request,
        result_type: Any = None,
        user: User | None = None,
        authenticator: Authenticator | None = None,
    ) -> Any:
        """Send request as user and decode the response body.

        Returns:
            The decoded body, or None when result_type is None or the body
            is empty

        Raises:
            CourierError: If the authenticator cannot produce a client
            httpx.HTTPError: If the request fails
            pydantic.ValidationError: If the body does not decode into
                result_type
        """
        if authenticator is None:
            authenticator = DefaultAuthenticator(self.client)

        authenticated_client = await authenticator.authenticated_client(user)

        logger.debug(f"Sending {request.method} {request.url}")
        response = await authenticated_client.send(request)
        logger.debug(f"Received {response.status_code} from {request.url}")

        if result_type is None:
            return None

        # Some endpoints answer with an empty body on success.
        if not response.content.strip():
            return None

        return TypeAdapter(result_type).validate_json(response.content)

    async def close(self) -> None:
        """Close the managed client and clean up resources."""
        await self.client.aclose()

    async def __aenter__(self) -> HTTPService:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
