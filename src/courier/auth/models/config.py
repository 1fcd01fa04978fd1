"""OAuth 2.0 client configuration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urlencode


class AuthStyle(str, Enum):
    """How client credentials are sent to the token endpoint."""

    IN_PARAMS = "in_params"  # client_id/client_secret in the form body
    IN_HEADER = "in_header"  # HTTP Basic authentication


@dataclass(frozen=True)
class OAuth2Config:
    """Client credentials and endpoints of an OAuth 2.0 authorization server.

    Immutable once constructed so authenticators holding it can be shared
    between concurrent requests.
    """

    client_id: str
    client_secret: str
    token_url: str
    authorization_url: str = ""
    redirect_uri: str | None = None
    scopes: tuple[str, ...] = field(default_factory=tuple)
    auth_style: AuthStyle = AuthStyle.IN_PARAMS

    def build_authorization_url(self, state: str, **params: str) -> str:
        """Build the consent page URL that yields an authorization code.

        Args:
            state: Opaque value echoed back to the redirect URI
            **params: Additional provider-specific query parameters
        """
        query = {
            "response_type": "code",
            "client_id": self.client_id,
        }
        if self.redirect_uri:
            query["redirect_uri"] = self.redirect_uri
        if self.scopes:
            query["scope"] = " ".join(self.scopes)
        if state:
            query["state"] = state
        query.update(params)

        separator = "&" if "?" in self.authorization_url else "?"
        return f"{self.authorization_url}{separator}{urlencode(query)}"
