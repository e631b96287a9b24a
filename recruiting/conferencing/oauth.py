"""
OAuth Token Manager

Authorization-code flow and token refresh for one conferencing provider.
Tokens live in a TokenStore; every provider call first asks this manager
for a valid access token.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import secrets
import threading

import httpx
import structlog

from recruiting.conferencing.client import build_http_client, provider_message
from recruiting.conferencing.config import ZoomConfig, get_zoom_config
from recruiting.conferencing.token_store import TokenStore
from recruiting.shared.exceptions import (
    InvalidOAuthStateError,
    UpstreamAuthRequiredError,
    UpstreamProviderError,
    UpstreamTimeoutError,
)
from recruiting.shared.models.oauth import AuthorizationRequest, OAuthToken, TokenExchange

log = structlog.get_logger()

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class _PendingState:
    operator_id: str
    expires_at: datetime


class OAuthTokenManager:
    """
    Obtain, cache, and refresh conferencing credentials per operator.

    Args:
        config: Zoom configuration (default: environment)
        store: Token store (default: a new in-process store)
        http_client: Outbound client (default: built from config)
        clock: Returns the current aware UTC instant
    """

    def __init__(
        self,
        config: ZoomConfig | None = None,
        store: TokenStore | None = None,
        http_client: httpx.Client | None = None,
        clock: Clock | None = None,
    ) -> None:
        self.config = config or get_zoom_config()
        self.store = store if store is not None else TokenStore()
        self._http = http_client or build_http_client(self.config)
        self._clock = clock or _utcnow
        self._states: dict[str, _PendingState] = {}
        self._states_lock = threading.Lock()

    @property
    def refresh_margin(self) -> timedelta:
        return timedelta(seconds=self.config.refresh_margin_seconds)

    # ===== Authorization =====

    def get_authorization_url(self, operator_id: str) -> AuthorizationRequest:
        """
        Build the provider authorization URL for an operator.

        The returned state is single-use, bound to the operator, and
        expires after the configured TTL.
        """
        now = self._clock()
        state = secrets.token_urlsafe(32)

        with self._states_lock:
            self._states = {
                key: pending for key, pending in self._states.items()
                if pending.expires_at > now
            }
            self._states[state] = _PendingState(
                operator_id=operator_id,
                expires_at=now + timedelta(seconds=self.config.state_ttl_seconds),
            )

        params = {
            "response_type": "code",
            "client_id": self.config.client_id,
            "redirect_uri": self.config.redirect_uri,
            "state": state,
        }
        if self.config.scopes:
            params["scope"] = self.config.scopes

        auth_url = str(httpx.URL(self.config.authorize_url, params=params))

        log.info("oauth_authorization_started", operator_id=operator_id)

        return AuthorizationRequest(auth_url=auth_url, state=state)

    def _consume_state(self, state: str) -> str:
        with self._states_lock:
            pending = self._states.pop(state, None)

        if pending is None or pending.expires_at <= self._clock():
            log.warning("oauth_state_rejected", known=pending is not None)
            raise InvalidOAuthStateError(state)

        return pending.operator_id

    def exchange_code(self, code: str, state: str) -> TokenExchange:
        """
        Exchange an authorization code for a token tuple and store it.

        Args:
            code: Authorization code from the provider callback
            state: State value returned with the callback

        Returns:
            TokenExchange naming the operator the state was issued to

        Raises:
            InvalidOAuthStateError: Unknown, expired, or reused state
            UpstreamProviderError: Provider rejected the code
            UpstreamTimeoutError: Token endpoint timed out
        """
        operator_id = self._consume_state(state)

        data = self._token_request(
            "token_exchange",
            {
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": self.config.redirect_uri,
            },
        )

        try:
            token = OAuthToken.from_token_response(data, now=self._clock())
        except ValueError as e:
            raise UpstreamProviderError(
                provider="zoom",
                operation="token_exchange",
                provider_message=str(e),
            ) from e

        with self.store.lock(operator_id):
            self.store.put(operator_id, token)

        log.info("oauth_code_exchanged", operator_id=operator_id)

        return TokenExchange(operator_id=operator_id, token=token)

    # ===== Access tokens =====

    def get_valid_access_token(self, operator_id: str) -> str:
        """
        Return an access token good for at least the refresh margin.

        Refreshes (and persists the new tuple) when the cached token
        expires within the margin. Refresh is serialized per operator.

        Raises:
            UpstreamAuthRequiredError: No token, or the provider rejected the refresh
            UpstreamTimeoutError: Token endpoint timed out
        """
        with self.store.lock(operator_id):
            token = self.store.get(operator_id)
            if token is None:
                raise UpstreamAuthRequiredError(operator_id)

            if not token.expires_within(self.refresh_margin, now=self._clock()):
                return token.access_token

            return self._refresh_locked(operator_id, token).access_token

    def refresh(self, operator_id: str) -> OAuthToken:
        """Force a refresh of the operator's token."""
        with self.store.lock(operator_id):
            token = self.store.get(operator_id)
            if token is None:
                raise UpstreamAuthRequiredError(operator_id)
            return self._refresh_locked(operator_id, token)

    def _refresh_locked(self, operator_id: str, token: OAuthToken) -> OAuthToken:
        log.info(
            "oauth_token_refreshing",
            operator_id=operator_id,
            expires_at=token.expires_at.isoformat(),
        )

        try:
            data = self._token_request(
                "token_refresh",
                {
                    "grant_type": "refresh_token",
                    "refresh_token": token.refresh_token,
                },
            )
            refreshed = OAuthToken.from_token_response(
                data,
                now=self._clock(),
                previous_refresh_token=token.refresh_token,
            )
        except UpstreamProviderError as e:
            if e.upstream_status not in (400, 401):
                raise
            self.store.clear(operator_id)
            log.warning(
                "oauth_refresh_rejected",
                operator_id=operator_id,
                upstream_status=e.upstream_status,
            )
            raise UpstreamAuthRequiredError(
                operator_id,
                reason="Stored conferencing authorization was revoked or expired",
            ) from e
        except ValueError as e:
            raise UpstreamProviderError(
                provider="zoom",
                operation="token_refresh",
                provider_message=str(e),
            ) from e

        self.store.put(operator_id, refreshed)
        log.info("oauth_token_refreshed", operator_id=operator_id)
        return refreshed

    def _token_request(self, operation: str, form: dict[str, str]) -> dict:
        try:
            response = self._http.post(
                self.config.token_url,
                data=form,
                auth=(self.config.client_id, self.config.client_secret.get_secret_value()),
            )
        except httpx.TimeoutException as e:
            log.error("oauth_token_request_timeout", operation=operation)
            raise UpstreamTimeoutError(provider="zoom", operation=operation) from e
        except httpx.HTTPError as e:
            log.error("oauth_token_request_failed", operation=operation, error=str(e))
            raise UpstreamProviderError(
                provider="zoom",
                operation=operation,
                provider_message=str(e),
            ) from e

        if response.is_success:
            try:
                data = response.json()
            except ValueError as e:
                log.error("oauth_token_response_malformed", operation=operation)
                raise UpstreamProviderError(
                    provider="zoom",
                    operation=operation,
                    provider_message="token response is not JSON",
                ) from e
            if not isinstance(data, dict):
                raise UpstreamProviderError(
                    provider="zoom",
                    operation=operation,
                    provider_message="token response is not an object",
                )
            return data

        message = provider_message(response)
        log.warning(
            "oauth_token_request_rejected",
            operation=operation,
            status=response.status_code,
            message=message,
        )
        raise UpstreamProviderError(
            provider="zoom",
            operation=operation,
            upstream_status=response.status_code,
            provider_message=message,
        )

    # ===== Connection =====

    def disconnect(self, operator_id: str) -> bool:
        """Drop the operator's credentials. Returns True if any were held."""
        with self.store.lock(operator_id):
            removed = self.store.clear(operator_id)
        with self._states_lock:
            self._states = {
                key: pending for key, pending in self._states.items()
                if pending.operator_id != operator_id
            }
        log.info("oauth_disconnected", operator_id=operator_id, had_token=removed)
        return removed

    def is_connected(self, operator_id: str) -> bool:
        return self.store.is_connected(operator_id)
