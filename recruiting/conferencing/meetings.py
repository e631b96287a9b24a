"""
Conference Meeting Service

Create, read, update, delete, and list scheduled meetings against the
Zoom meetings API. Every call first obtains a valid access token from
the OAuthTokenManager. Provider failures are surfaced per HTTP status:

    401 -> UpstreamAuthRequiredError
    400 -> MeetingSpecRejectedError
    404 -> MeetingNotFoundError
    other non-2xx -> UpstreamProviderError
    timeout -> UpstreamTimeoutError
"""

import secrets
from typing import Any, Literal

import httpx
import structlog

from recruiting.conferencing.client import build_http_client, provider_message
from recruiting.conferencing.config import ZoomConfig, get_zoom_config
from recruiting.conferencing.oauth import OAuthTokenManager
from recruiting.conferencing.timezones import format_meeting_start
from recruiting.shared.exceptions import (
    MeetingNotFoundError,
    MeetingSpecRejectedError,
    UpstreamAuthRequiredError,
    UpstreamProviderError,
    UpstreamTimeoutError,
)
from recruiting.shared.models.meeting import (
    ConnectionStatus,
    MeetingPage,
    MeetingRecord,
    MeetingSettings,
    MeetingSpec,
    MeetingUpdate,
)

log = structlog.get_logger()

# No 0/O, 1/I/l
PASSCODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZabcdefghijkmnpqrstuvwxyz23456789"

SCHEDULED_MEETING_TYPE = 2

MeetingListType = Literal["scheduled", "live", "upcoming", "upcoming_meetings", "previous_meetings"]


def generate_meeting_passcode(length: int = 6) -> str:
    """Random passcode without visually confusable characters."""
    return "".join(secrets.choice(PASSCODE_ALPHABET) for _ in range(length))


def default_meeting_settings(config: ZoomConfig) -> MeetingSettings:
    """Meeting settings taken from configuration."""
    return MeetingSettings(
        host_video=config.host_video,
        participant_video=config.participant_video,
        mute_on_entry=config.mute_on_entry,
        waiting_room=config.waiting_room,
        join_before_host=config.join_before_host,
        auto_recording=config.auto_recording,
    )


class ConferenceMeetingService:
    """Meetings API client acting on behalf of one operator per call."""

    def __init__(
        self,
        token_manager: OAuthTokenManager,
        config: ZoomConfig | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.tokens = token_manager
        self.config = config or token_manager.config or get_zoom_config()
        self._http = http_client or build_http_client(self.config)

    # ===== Transport =====

    def _request(
        self,
        method: str,
        path: str,
        operator_id: str,
        operation: str,
        *,
        meeting_id: str | None = None,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        access_token = self.tokens.get_valid_access_token(operator_id)
        url = f"{self.config.api_base_url.rstrip('/')}{path}"

        try:
            response = self._http.request(
                method,
                url,
                json=json,
                params=params,
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except httpx.TimeoutException as e:
            log.error("zoom_request_timeout", operation=operation, meeting_id=meeting_id)
            raise UpstreamTimeoutError(provider="zoom", operation=operation) from e
        except httpx.HTTPError as e:
            log.error("zoom_request_failed", operation=operation, error=str(e))
            raise UpstreamProviderError(
                provider="zoom",
                operation=operation,
                provider_message=str(e),
            ) from e

        if response.is_success:
            return response

        status = response.status_code
        message = provider_message(response)
        log.warning(
            "zoom_request_rejected",
            operation=operation,
            operator_id=operator_id,
            meeting_id=meeting_id,
            status=status,
            message=message,
        )

        if status == 401:
            raise UpstreamAuthRequiredError(operator_id, reason=message)
        if status == 400:
            raise MeetingSpecRejectedError(operation=operation, provider_message=message)
        if status == 404:
            raise MeetingNotFoundError(meeting_id=meeting_id, provider_message=message)
        raise UpstreamProviderError(
            provider="zoom",
            operation=operation,
            upstream_status=status,
            provider_message=message,
        )

    def _payload(self, response: httpx.Response, operation: str) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise self._malformed(operation, "response body is not JSON") from e
        if not isinstance(data, dict):
            raise self._malformed(operation, "response body is not an object")
        return data

    def _meeting(self, data: dict[str, Any], operation: str) -> MeetingRecord:
        try:
            return MeetingRecord.from_provider(data)
        except (KeyError, TypeError, ValueError) as e:
            raise self._malformed(operation, f"unreadable meeting payload: {e!r}") from e

    def _malformed(self, operation: str, detail: str) -> UpstreamProviderError:
        log.error("zoom_response_malformed", operation=operation, detail=detail)
        return UpstreamProviderError(provider="zoom", operation=operation, provider_message=detail)

    def _start_fields(
        self,
        spec: MeetingSpec | MeetingUpdate,
        tz_name: str,
    ) -> str:
        if spec.start_time is not None:
            return format_meeting_start(spec.start_time, tz_name)
        return format_meeting_start(spec.local_date, tz_name, spec.local_time)

    # ===== Operations =====

    def create_meeting(self, spec: MeetingSpec, operator_id: str) -> MeetingRecord:
        """
        Schedule a meeting on the operator's account.

        The start is normalized to wall time in the meeting's timezone;
        a passcode is generated when the spec has none.
        """
        tz_name = spec.timezone or self.config.default_timezone
        passcode = spec.passcode or generate_meeting_passcode(self.config.passcode_length)

        body: dict[str, Any] = {
            "topic": spec.topic,
            "type": SCHEDULED_MEETING_TYPE,
            "start_time": self._start_fields(spec, tz_name),
            "duration": spec.duration,
            "timezone": tz_name,
            "password": passcode,
            "settings": spec.settings.to_provider(),
        }
        if spec.agenda:
            body["agenda"] = spec.agenda

        log.info(
            "creating_meeting",
            operator_id=operator_id,
            topic=spec.topic,
            start_time=body["start_time"],
            timezone=tz_name,
        )

        response = self._request("POST", "/users/me/meetings", operator_id, "create_meeting", json=body)
        record = self._meeting(self._payload(response, "create_meeting"), "create_meeting")
        if record.passcode is None:
            record = record.model_copy(update={"passcode": passcode})

        log.info("meeting_created", operator_id=operator_id, meeting_id=record.meeting_id)
        return record

    def update_meeting(
        self,
        meeting_id: str,
        update: MeetingUpdate,
        operator_id: str,
    ) -> MeetingRecord:
        """
        Patch a meeting and return its refreshed state.

        A new start without a timezone keeps the meeting's current zone.
        """
        body: dict[str, Any] = {}
        if update.topic is not None:
            body["topic"] = update.topic
        if update.duration is not None:
            body["duration"] = update.duration
        if update.agenda is not None:
            body["agenda"] = update.agenda
        if update.passcode is not None:
            body["password"] = update.passcode
        if update.settings is not None:
            body["settings"] = update.settings.to_provider()
        if update.timezone is not None:
            body["timezone"] = update.timezone
        if update.changes_start:
            tz_name = update.timezone
            if tz_name is None:
                current = self.get_meeting(meeting_id, operator_id)
                tz_name = current.timezone or self.config.default_timezone
            body["start_time"] = self._start_fields(update, tz_name)
            body["timezone"] = tz_name

        log.info(
            "updating_meeting",
            operator_id=operator_id,
            meeting_id=meeting_id,
            fields=sorted(body),
        )

        if body:
            self._request(
                "PATCH",
                f"/meetings/{meeting_id}",
                operator_id,
                "update_meeting",
                meeting_id=meeting_id,
                json=body,
            )

        return self.get_meeting(meeting_id, operator_id)

    def get_meeting(self, meeting_id: str, operator_id: str) -> MeetingRecord:
        response = self._request(
            "GET",
            f"/meetings/{meeting_id}",
            operator_id,
            "get_meeting",
            meeting_id=meeting_id,
        )
        return self._meeting(self._payload(response, "get_meeting"), "get_meeting")

    def delete_meeting(self, meeting_id: str, operator_id: str) -> None:
        """
        Delete a meeting.

        Raises:
            MeetingNotFoundError: If the provider no longer has it
        """
        self._request(
            "DELETE",
            f"/meetings/{meeting_id}",
            operator_id,
            "delete_meeting",
            meeting_id=meeting_id,
        )
        log.info("meeting_deleted", operator_id=operator_id, meeting_id=meeting_id)

    def list_meetings(
        self,
        operator_id: str,
        *,
        meeting_type: MeetingListType = "scheduled",
        page_size: int = 30,
        next_page_token: str | None = None,
    ) -> MeetingPage:
        """List one page of the operator's meetings."""
        params: dict[str, Any] = {"type": meeting_type, "page_size": page_size}
        if next_page_token:
            params["next_page_token"] = next_page_token

        response = self._request(
            "GET",
            "/users/me/meetings",
            operator_id,
            "list_meetings",
            params=params,
        )
        data = self._payload(response, "list_meetings")
        return MeetingPage(
            meetings=[self._meeting(item, "list_meetings") for item in data.get("meetings") or []],
            page_size=data.get("page_size", page_size),
            total_records=data.get("total_records", 0),
            next_page_token=data.get("next_page_token") or None,
        )

    def check_connection(self, operator_id: str) -> ConnectionStatus:
        """
        Probe the operator's credentials with a minimal list call.

        Only an authorization failure is reported as a status; other
        provider errors propagate.
        """
        if not self.tokens.is_connected(operator_id):
            return ConnectionStatus(
                connected=False,
                status="not_authenticated",
                message="Zoom account is not connected",
            )

        try:
            self.list_meetings(operator_id, page_size=1)
        except UpstreamAuthRequiredError as e:
            return ConnectionStatus(
                connected=False,
                status="not_authenticated",
                message=e.reason,
            )

        return ConnectionStatus(
            connected=True,
            status="connected",
            message="Zoom account is connected",
        )
