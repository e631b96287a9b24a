"""
OAuth Models

Per-operator conferencing credentials and the values exchanged
during the authorization-code flow.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class OAuthToken(BaseModel):
    """
    Access/refresh token pair for one operator.

    Replaced wholesale on refresh; never mutated in place.
    """

    model_config = ConfigDict(frozen=True)

    access_token: str = Field(..., repr=False, description="Bearer token for API calls")
    refresh_token: str = Field(..., repr=False, description="Token used to obtain a new access token")
    expires_at: datetime = Field(..., description="Aware UTC expiry instant")
    scope: str | None = Field(default=None, description="Granted scopes")

    @classmethod
    def from_token_response(
        cls,
        data: dict[str, Any],
        *,
        now: datetime,
        previous_refresh_token: str | None = None,
    ) -> "OAuthToken":
        """
        Build a token from a provider token-endpoint response.

        Args:
            data: Parsed JSON body with access_token, refresh_token, expires_in
            now: Instant the response was received
            previous_refresh_token: Kept when a refresh response omits a new one

        Returns:
            OAuthToken
        """
        refresh_token = data.get("refresh_token") or previous_refresh_token
        if not data.get("access_token") or not refresh_token:
            raise ValueError("Token response is missing access_token or refresh_token")
        return cls(
            access_token=data["access_token"],
            refresh_token=refresh_token,
            expires_at=now + timedelta(seconds=int(data.get("expires_in", 3600))),
            scope=data.get("scope"),
        )

    def expires_within(self, margin: timedelta, *, now: datetime | None = None) -> bool:
        """True if the token is expired or will expire inside the margin."""
        now = now or datetime.now(timezone.utc)
        return now >= self.expires_at - margin


@dataclass(frozen=True)
class AuthorizationRequest:
    """Provider authorization URL plus the CSRF state bound to the operator."""

    auth_url: str
    state: str


@dataclass(frozen=True)
class TokenExchange:
    """Result of exchanging an authorization code."""

    operator_id: str
    token: OAuthToken
