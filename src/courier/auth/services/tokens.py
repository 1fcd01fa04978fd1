"""OAuth 2.0 token exchange and refresh service.

Implements the RFC 6749 token endpoint interactions needed by the OAuth2
authenticator: the authorization code grant (Section 4.1.3) and the
refresh token grant (Section 6).
"""

from __future__ import annotations

import logging
from urllib.parse import parse_qs, quote_plus

import httpx

from courier.auth.models.config import AuthStyle, OAuth2Config
from courier.auth.models.errors import TokenExchangeError, TokenRefreshError
from courier.auth.models.tokens import Token
from courier.auth.services.sources import RefreshingTokenSource

logger = logging.getLogger(__name__)

_FORM_CONTENT_TYPES = {"application/x-www-form-urlencoded", "text/plain"}


class OAuth2TokenManager:
    """Exchanges authorization codes and refresh tokens at the token endpoint.

    Uses the supplied HTTP client for every token request, so token
    traffic shares the transport and timeout of the requests it
    authenticates.
    """

    def __init__(self, config: OAuth2Config, http_client: httpx.AsyncClient):
        """Initialize the token manager.

        Args:
            config: OAuth client credentials and endpoints
            http_client: Client used to call the token endpoint
        """
        self.config = config
        self._http_client = http_client

    async def exchange(self, code: str) -> Token:
        """Exchange an authorization code for a token.

        Args:
            code: One-time authorization code

        Returns:
            Token: Newly issued token

        Raises:
            TokenExchangeError: If the request fails or is rejected
        """
        logger.debug(f"Exchanging authorization code at {self.config.token_url}")

        form_data = {"grant_type": "authorization_code", "code": code}
        if self.config.redirect_uri:
            form_data["redirect_uri"] = self.config.redirect_uri

        return await self._retrieve_token(form_data, TokenExchangeError, "token exchange")

    async def refresh(self, refresh_token: str) -> Token:
        """Obtain a new access token using a refresh token.

        Raises:
            TokenRefreshError: If the request fails or is rejected
        """
        logger.debug(f"Refreshing access token at {self.config.token_url}")

        form_data = {"grant_type": "refresh_token", "refresh_token": refresh_token}
        return await self._retrieve_token(form_data, TokenRefreshError, "token refresh")

    def token_source(self, token: Token) -> RefreshingTokenSource:
        """Create a token source that starts from token and refreshes it on expiry."""
        return RefreshingTokenSource(token, self)

    async def _retrieve_token(
        self,
        form_data: dict[str, str],
        error_cls: type[TokenExchangeError],
        operation: str,
    ) -> Token:
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }

        auth = None
        if self.config.auth_style == AuthStyle.IN_HEADER:
            # RFC 6749 Section 2.3.1: credentials are form-encoded before
            # being used as Basic auth username and password.
            auth = httpx.BasicAuth(
                quote_plus(self.config.client_id),
                quote_plus(self.config.client_secret),
            )
        else:
            form_data["client_id"] = self.config.client_id
            if self.config.client_secret:
                form_data["client_secret"] = self.config.client_secret

        try:
            response = await self._http_client.post(
                self.config.token_url,
                data=form_data,
                headers=headers,
                auth=auth,
            )
        except httpx.HTTPError as e:
            raise error_cls(f"HTTP error during {operation}: {e}") from e

        return self._parse_token_response(response, error_cls, operation)

    def _parse_token_response(
        self,
        response: httpx.Response,
        error_cls: type[TokenExchangeError],
        operation: str,
    ) -> Token:
        """Parse a token endpoint response (RFC 6749 Section 5).

        Accepts JSON and, for servers that predate the JSON requirement,
        form-encoded bodies.
        """
        content_type = response.headers.get("content-type", "")
        media_type = content_type.split(";")[0].strip().lower()

        if media_type in _FORM_CONTENT_TYPES:
            data = {k: v[0] for k, v in parse_qs(response.text).items()}
        else:
            try:
                data = response.json()
            except ValueError:
                data = None

        if not response.is_success:
            error = data.get("error") if isinstance(data, dict) else None
            error_description = (
                data.get("error_description") if isinstance(data, dict) else None
            )
            logger.warning(
                f"{operation.capitalize()} failed with {response.status_code}: "
                f"{error or 'unknown_error'} - "
                f"{error_description or 'No description provided'}"
            )
            raise error_cls(
                f"{operation.capitalize()} failed ({response.status_code}): "
                f"{error or response.text}",
                status_code=response.status_code,
                error=error,
                error_description=error_description,
            )

        if not isinstance(data, dict):
            raise error_cls(f"Invalid {operation} response format: {response.text}")

        try:
            token = Token.from_response(data)
        except ValueError as e:
            raise error_cls(f"Invalid {operation} response: {e}") from e

        logger.info(f"{operation.capitalize()} successful")
        return token
