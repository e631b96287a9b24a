"""
Test Conference Meeting Service

Meeting CRUD against the in-memory Zoom API, request bodies, and the
provider status to error mapping.
"""

from datetime import date, datetime, time, timezone
import json

import pytest

from recruiting.conferencing.meetings import (
    PASSCODE_ALPHABET,
    default_meeting_settings,
    generate_meeting_passcode,
)
from recruiting.shared.exceptions import (
    MeetingNotFoundError,
    MeetingSpecRejectedError,
    UpstreamAuthRequiredError,
    UpstreamProviderError,
    UpstreamTimeoutError,
)
from recruiting.shared.models.meeting import MeetingSettings, MeetingSpec, MeetingUpdate


def _spec(**overrides) -> MeetingSpec:
    data = {
        "topic": "Initial Interview - Juan Dela Cruz",
        "local_date": date(2025, 8, 10),
        "local_time": time(15, 0),
        "timezone": "Asia/Manila",
        "duration": 45,
        "agenda": "Screening call",
    }
    data.update(overrides)
    return MeetingSpec(**data)


def _last_body(fake_zoom) -> dict:
    return json.loads(fake_zoom.api_requests[-1].content)


class TestPasscode:
    def test_length_and_alphabet(self):
        for _ in range(50):
            passcode = generate_meeting_passcode()
            assert len(passcode) == 6
            assert set(passcode) <= set(PASSCODE_ALPHABET)

    def test_alphabet_has_no_confusable_characters(self):
        for char in "0O1Il":
            assert char not in PASSCODE_ALPHABET

    def test_custom_length(self):
        assert len(generate_meeting_passcode(10)) == 10


class TestDefaultSettings:
    def test_taken_from_config(self, zoom_config):
        config = zoom_config.model_copy(update={"waiting_room": False, "auto_recording": "cloud"})
        settings = default_meeting_settings(config)
        assert settings.waiting_room is False
        assert settings.auto_recording == "cloud"
        assert settings.host_video is True


class TestCreateMeeting:
    def test_request_body(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        meeting_service.create_meeting(_spec(passcode="Zx9kQ2"), "op-intern")

        request = fake_zoom.api_requests[-1]
        assert request.method == "POST"
        assert request.url.path == "/v2/users/me/meetings"

        body = _last_body(fake_zoom)
        assert body["topic"] == "Initial Interview - Juan Dela Cruz"
        assert body["type"] == 2
        assert body["start_time"] == "2025-08-10T15:00:00"
        assert body["timezone"] == "Asia/Manila"
        assert body["duration"] == 45
        assert body["password"] == "Zx9kQ2"
        assert body["agenda"] == "Screening call"
        assert body["settings"]["mute_upon_entry"] is True

    def test_returns_record(self, meeting_service, connect):
        connect("op-intern")
        record = meeting_service.create_meeting(_spec(), "op-intern")

        assert record.meeting_id
        assert record.join_url.startswith("https://zoom.us/j/")
        assert record.start_url
        assert record.start_time == datetime(2025, 8, 10, 7, 0, tzinfo=timezone.utc)
        assert len(record.passcode) == 6

    def test_generates_passcode(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        meeting_service.create_meeting(_spec(), "op-intern")
        assert set(_last_body(fake_zoom)["password"]) <= set(PASSCODE_ALPHABET)

    def test_instant_start(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        spec = _spec(local_date=None, local_time=None, start_time=datetime(2025, 8, 10, 7, tzinfo=timezone.utc))
        meeting_service.create_meeting(spec, "op-intern")
        assert _last_body(fake_zoom)["start_time"] == "2025-08-10T15:00:00"

    def test_default_timezone(self, meeting_service, connect, fake_zoom, zoom_config):
        connect("op-intern")
        meeting_service.create_meeting(_spec(timezone=None), "op-intern")
        assert _last_body(fake_zoom)["timezone"] == zoom_config.default_timezone

    def test_custom_settings(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        meeting_service.create_meeting(_spec(settings=MeetingSettings(join_before_host=True)), "op-intern")
        assert _last_body(fake_zoom)["settings"]["join_before_host"] is True

    def test_refreshes_token_first(self, meeting_service, connect, fake_zoom):
        connect("op-intern", expires_in=60)
        meeting_service.create_meeting(_spec(), "op-intern")
        assert fake_zoom.refresh_count == 1
        assert fake_zoom.api_requests[-1].headers["Authorization"] == "Bearer access-2"


class TestStatusMapping:
    def test_not_connected(self, meeting_service, fake_zoom):
        with pytest.raises(UpstreamAuthRequiredError):
            meeting_service.create_meeting(_spec(), "op-intern")
        assert fake_zoom.api_requests == []

    def test_401(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        fake_zoom.revoke_all()

        with pytest.raises(UpstreamAuthRequiredError) as exc_info:
            meeting_service.create_meeting(_spec(), "op-intern")
        assert exc_info.value.reason == "Invalid access token."

    def test_400(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        fake_zoom.fail_next(400, "Invalid field: start_time")

        with pytest.raises(MeetingSpecRejectedError) as exc_info:
            meeting_service.create_meeting(_spec(), "op-intern")
        assert exc_info.value.status_code == 400
        assert exc_info.value.provider_message == "Invalid field: start_time"

    def test_404(self, meeting_service, connect):
        connect("op-intern")
        with pytest.raises(MeetingNotFoundError) as exc_info:
            meeting_service.get_meeting("999", "op-intern")
        assert exc_info.value.meeting_id == "999"
        assert exc_info.value.status_code == 404

    def test_500_passthrough(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        fake_zoom.fail_next(500, "Internal error")

        with pytest.raises(UpstreamProviderError) as exc_info:
            meeting_service.create_meeting(_spec(), "op-intern")
        assert exc_info.value.upstream_status == 500
        assert exc_info.value.status_code == 500
        assert exc_info.value.provider_message == "Internal error"

    def test_429_passthrough(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        fake_zoom.fail_next(429, "Too many requests")
        with pytest.raises(UpstreamProviderError) as exc_info:
            meeting_service.list_meetings("op-intern")
        assert exc_info.value.status_code == 429

    def test_timeout(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        fake_zoom.timeout_next()

        with pytest.raises(UpstreamTimeoutError) as exc_info:
            meeting_service.create_meeting(_spec(), "op-intern")
        assert exc_info.value.operation == "create_meeting"

    def test_non_json_success_body(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        fake_zoom.garble_next(status=201, method="POST")

        with pytest.raises(UpstreamProviderError) as exc_info:
            meeting_service.create_meeting(_spec(), "op-intern")
        assert exc_info.value.operation == "create_meeting"
        assert exc_info.value.status_code == 502
        assert exc_info.value.provider_message == "response body is not JSON"

    def test_meeting_without_id(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        fake_zoom.garble_next(b'{"topic": "Initial Interview"}', method="GET")

        with pytest.raises(UpstreamProviderError) as exc_info:
            meeting_service.get_meeting("85000000001", "op-intern")
        assert exc_info.value.operation == "get_meeting"
        assert "unreadable meeting payload" in exc_info.value.provider_message

    def test_list_body_not_an_object(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        fake_zoom.garble_next(b"[]", method="GET")

        with pytest.raises(UpstreamProviderError) as exc_info:
            meeting_service.list_meetings("op-intern")
        assert exc_info.value.provider_message == "response body is not an object"


class TestUpdateMeeting:
    def test_patch_then_get(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        created = meeting_service.create_meeting(_spec(), "op-intern")

        updated = meeting_service.update_meeting(
            created.meeting_id,
            MeetingUpdate(local_date=date(2025, 8, 11), local_time=time(9, 30), timezone="Asia/Manila"),
            "op-intern",
        )

        methods = [r.method for r in fake_zoom.api_requests]
        assert methods[-2:] == ["PATCH", "GET"]
        assert updated.start_time == datetime(2025, 8, 11, 1, 30, tzinfo=timezone.utc)

    def test_new_start_keeps_meeting_timezone(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        created = meeting_service.create_meeting(_spec(timezone="America/New_York"), "op-intern")

        meeting_service.update_meeting(
            created.meeting_id,
            MeetingUpdate(local_date=date(2025, 8, 11), local_time=time(9, 0)),
            "op-intern",
        )

        patch_request = next(r for r in reversed(fake_zoom.api_requests) if r.method == "PATCH")
        body = json.loads(patch_request.content)
        assert body["start_time"] == "2025-08-11T09:00:00"
        assert body["timezone"] == "America/New_York"

    def test_topic_only(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        created = meeting_service.create_meeting(_spec(), "op-intern")

        updated = meeting_service.update_meeting(created.meeting_id, MeetingUpdate(topic="Renamed"), "op-intern")

        patch_request = next(r for r in reversed(fake_zoom.api_requests) if r.method == "PATCH")
        assert json.loads(patch_request.content) == {"topic": "Renamed"}
        assert updated.topic == "Renamed"

    def test_update_missing_meeting(self, meeting_service, connect):
        connect("op-intern")
        with pytest.raises(MeetingNotFoundError):
            meeting_service.update_meeting("404404", MeetingUpdate(duration=30), "op-intern")


class TestDeleteAndList:
    def test_delete_then_get_is_not_found(self, meeting_service, connect):
        connect("op-intern")
        created = meeting_service.create_meeting(_spec(), "op-intern")

        meeting_service.delete_meeting(created.meeting_id, "op-intern")

        with pytest.raises(MeetingNotFoundError):
            meeting_service.get_meeting(created.meeting_id, "op-intern")
        with pytest.raises(MeetingNotFoundError):
            meeting_service.delete_meeting(created.meeting_id, "op-intern")

    def test_list(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        meeting_service.create_meeting(_spec(), "op-intern")
        meeting_service.create_meeting(_spec(topic="Final Interview - Juan Dela Cruz"), "op-intern")

        page = meeting_service.list_meetings("op-intern", page_size=10)

        assert page.total_records == 2
        assert [m.topic for m in page.meetings] == [
            "Initial Interview - Juan Dela Cruz",
            "Final Interview - Juan Dela Cruz",
        ]
        assert page.next_page_token is None
        params = fake_zoom.api_requests[-1].url.params
        assert params["type"] == "scheduled"
        assert params["page_size"] == "10"


class TestCheckConnection:
    def test_not_connected(self, meeting_service):
        status = meeting_service.check_connection("op-intern")
        assert status.connected is False
        assert status.status == "not_authenticated"

    def test_connected(self, meeting_service, connect):
        connect("op-intern")
        status = meeting_service.check_connection("op-intern")
        assert status.connected is True
        assert status.status == "connected"

    def test_revoked_upstream(self, meeting_service, connect, fake_zoom):
        connect("op-intern")
        fake_zoom.revoke_all()
        assert meeting_service.check_connection("op-intern").connected is False

    def test_refresh_rejected(self, meeting_service, connect, fake_zoom, clock):
        connect("op-intern")
        fake_zoom.revoke_all()
        clock.advance(hours=2)
        assert meeting_service.check_connection("op-intern").connected is False
