"""Tests for OAuth 2.0 token exchange and refresh.

Covers the token endpoint interactions:
- Authorization code exchange and its form encoding
- Client credential placement (form body vs. Basic auth)
- Refresh token grant
- JSON and form-encoded responses
- OAuth error responses and network failures
"""

import base64
from urllib.parse import parse_qs

import httpx
import pytest

from courier.auth.models.config import AuthStyle, OAuth2Config
from courier.auth.models.errors import TokenExchangeError, TokenRefreshError
from courier.auth.models.tokens import Token
from courier.auth.services.sources import RefreshingTokenSource
from courier.auth.services.tokens import OAuth2TokenManager

TOKEN_URL = "https://auth.example.com/token"


def form_of(request: httpx.Request) -> dict[str, str]:
    return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


class TestCodeExchange:
    """Test authorization code to token exchange."""

    @pytest.fixture(autouse=True)
    async def setup(self):
        self.config = OAuth2Config(
            client_id="client-456",
            client_secret="secret-789",
            token_url=TOKEN_URL,
            redirect_uri="https://myapp.com/callback",
        )
        async with httpx.AsyncClient() as http_client:
            self.manager = OAuth2TokenManager(self.config, http_client)
            yield

    async def test_successful_exchange(self, respx_mock):
        # Arrange
        route = respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(
                200,
                json={
                    "access_token": "access-token-xyz",
                    "token_type": "Bearer",
                    "expires_in": 3600,
                    "refresh_token": "refresh-token-abc",
                    "scope": "read write",
                },
            )
        )

        # Act
        token = await self.manager.exchange("auth-code-123")

        # Assert
        assert token.access_token == "access-token-xyz"
        assert token.refresh_token == "refresh-token-abc"
        assert token.expiry is not None
        assert token.raw == {"scope": "read write"}

        request = route.calls.last.request
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.headers["Accept"] == "application/json"
        assert "Authorization" not in request.headers
        assert form_of(request) == {
            "grant_type": "authorization_code",
            "code": "auth-code-123",
            "redirect_uri": "https://myapp.com/callback",
            "client_id": "client-456",
            "client_secret": "secret-789",
        }

    async def test_credentials_in_basic_auth_header(self, respx_mock):
        # Arrange
        config = OAuth2Config(
            client_id="client 456",
            client_secret="s&cret",
            token_url=TOKEN_URL,
            auth_style=AuthStyle.IN_HEADER,
        )
        route = respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"access_token": "abc"})
        )

        # Act
        async with httpx.AsyncClient() as http_client:
            await OAuth2TokenManager(config, http_client).exchange("code")

        # Assert
        request = route.calls.last.request
        expected = "Basic " + base64.b64encode(b"client+456:s%26cret").decode()
        assert request.headers["Authorization"] == expected
        form = form_of(request)
        assert "client_id" not in form
        assert "client_secret" not in form
        assert "redirect_uri" not in form

    async def test_form_encoded_response(self, respx_mock):
        respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(
                200,
                text="access_token=abc&token_type=bearer&expires_in=60&refresh_token=def",
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        )

        token = await self.manager.exchange("code")

        assert token.access_token == "abc"
        assert token.authorization_type == "Bearer"
        assert token.refresh_token == "def"
        assert token.expiry is not None

    async def test_invalid_grant_error(self, respx_mock):
        # Arrange
        respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(
                400,
                json={
                    "error": "invalid_grant",
                    "error_description": "Authorization code has expired",
                },
            )
        )

        # Act
        with pytest.raises(TokenExchangeError) as exc_info:
            await self.manager.exchange("expired-code")

        # Assert
        error = exc_info.value
        assert not isinstance(error, TokenRefreshError)
        assert error.status_code == 400
        assert error.error == "invalid_grant"
        assert error.error_description == "Authorization code has expired"

    async def test_non_json_error_response(self, respx_mock):
        respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(502, text="Bad Gateway")
        )

        with pytest.raises(TokenExchangeError, match="Bad Gateway") as exc_info:
            await self.manager.exchange("code")

        assert exc_info.value.status_code == 502
        assert exc_info.value.error is None

    async def test_success_response_without_access_token(self, respx_mock):
        respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json={"token_type": "Bearer"})
        )

        with pytest.raises(TokenExchangeError, match="missing access_token"):
            await self.manager.exchange("code")

    @pytest.mark.parametrize(
        "expires_in", [[3600], {"s": 1}, 10**20, "soon"], ids=["list", "dict", "huge", "text"]
    )
    async def test_malformed_expires_in(self, respx_mock, expires_in):
        respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(
                200, json={"access_token": "abc", "expires_in": expires_in}
            )
        )

        with pytest.raises(TokenExchangeError, match="invalid expires_in"):
            await self.manager.exchange("code")

    async def test_success_response_that_is_not_an_object(self, respx_mock):
        respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(200, json=["access_token"])
        )

        with pytest.raises(TokenExchangeError, match="Invalid token exchange response"):
            await self.manager.exchange("code")

    async def test_network_error_is_wrapped(self, respx_mock):
        respx_mock.post(TOKEN_URL).mock(side_effect=httpx.ConnectError("Network down"))

        with pytest.raises(TokenExchangeError, match="HTTP error") as exc_info:
            await self.manager.exchange("code")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)


class TestTokenRefresh:
    """Test the refresh token grant."""

    @pytest.fixture(autouse=True)
    async def setup(self):
        self.config = OAuth2Config(
            client_id="client-456",
            client_secret="",
            token_url=TOKEN_URL,
            redirect_uri="https://myapp.com/callback",
        )
        async with httpx.AsyncClient() as http_client:
            self.manager = OAuth2TokenManager(self.config, http_client)
            yield

    async def test_successful_refresh(self, respx_mock):
        # Arrange
        route = respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(
                200,
                json={"access_token": "new-access", "expires_in": 3600},
            )
        )

        # Act
        token = await self.manager.refresh("refresh-token-abc")

        # Assert
        assert token.access_token == "new-access"
        assert token.refresh_token is None
        assert form_of(route.calls.last.request) == {
            "grant_type": "refresh_token",
            "refresh_token": "refresh-token-abc",
            "client_id": "client-456",
        }

    async def test_rejected_refresh(self, respx_mock):
        respx_mock.post(TOKEN_URL).mock(
            return_value=httpx.Response(400, json={"error": "invalid_grant"})
        )

        with pytest.raises(TokenRefreshError) as exc_info:
            await self.manager.refresh("revoked")

        assert exc_info.value.error == "invalid_grant"

    async def test_token_source_starts_from_given_token(self):
        source = self.manager.token_source(Token(access_token="abc"))

        assert isinstance(source, RefreshingTokenSource)
