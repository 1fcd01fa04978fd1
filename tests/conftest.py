from __future__ import annotations

from typing import Any
from urllib.parse import parse_qs

import httpx
import pytest

from courier.auth.models.config import OAuth2Config
from courier.auth.models.user import OAuth2User
from courier.service.client import HTTPService
from courier.service.config import ServiceConfig

BASE_URL = "https://api.example.com"
TOKEN_PATH = "/oauth/token"


class FakeServer:
    """Request handler for httpx.MockTransport with canned routes."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self._routes: dict[str, dict[str, Any]] = {}

    def route(self, path: str, status_code: int = 200, **kwargs: Any) -> None:
        """Answer requests to path with a fresh response built from kwargs."""
        self._routes[path] = {"status_code": status_code, **kwargs}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        canned = self._routes.get(request.url.path)
        if canned is None:
            return httpx.Response(404)
        return httpx.Response(**canned)

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    @staticmethod
    def form(request: httpx.Request) -> dict[str, str]:
        return {k: v[0] for k, v in parse_qs(request.content.decode()).items()}


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def transport(server: FakeServer) -> httpx.MockTransport:
    return httpx.MockTransport(server)


@pytest.fixture
async def http_client(transport: httpx.MockTransport):
    async with httpx.AsyncClient(transport=transport) as client:
        yield client


@pytest.fixture
async def service(transport: httpx.MockTransport):
    service = HTTPService(ServiceConfig(timeout=10), transport=transport)
    yield service
    await service.close()


@pytest.fixture
def oauth_config() -> OAuth2Config:
    return OAuth2Config(
        client_id="client-456",
        client_secret="secret-789",
        token_url=f"{BASE_URL}{TOKEN_PATH}",
        authorization_url="https://auth.example.com/authorize",
        redirect_uri="https://myapp.com/callback",
    )


@pytest.fixture
def user() -> OAuth2User:
    return OAuth2User(user_id="mock-id", auth_code="1234")
