"""
End-to-End Integration Tests for the Interview Flow

Drives recruits from application through both interviews over HTTP,
with operators connected to Zoom through the real OAuth redirect flow.
"""

from email import message_from_bytes
from email.policy import default as default_policy
from unittest.mock import MagicMock, patch

import pytest

from recruiting.shared.exceptions import MeetingNotFoundError
from recruiting.shared.tools.dynamodb import load_recruit
from tests.conftest import sent_count
from tests.integration.conftest import as_operator

APPLICATION = {
    "fullName": "Maria Santos",
    "email": "maria.santos@example.com",
    "contactNumber": "+63 917 555 0199",
    "location": "Pasig City",
    "course": "Financial Advisor",
    "school": "Ateneo de Manila University",
    "educationalStatus": "GRADUATING",
    "dateApplied": "2025-07-30",
}

INITIAL_SLOT = {
    "interviewDate": "2025-08-10",
    "interviewTime": "15:00",
    "timezone": "Asia/Manila",
    "createMeeting": True,
}

FINAL_SLOT = {
    "interviewDate": "2025-08-14",
    "interviewTime": "10:30",
    "timezone": "Asia/Manila",
    "createMeeting": True,
}


def _apply(api) -> str:
    response = api.post("/recruits", json=APPLICATION, headers=as_operator("op-intern"))
    assert response.status_code == 201
    return response.json()["recruitId"]


@pytest.mark.integration
class TestInterviewFlowE2E:
    """Complete recruit workflows through the HTTP surface."""

    def test_applied_to_hired(self, api, oauth_connect, fake_zoom, mock_aws_all):
        """
        Applied -> Pending -> initial passed -> final scheduled -> Hired.

        Verify that:
        1. Each interview gets its own meeting on the scheduler's account
        2. Invitations and result notices reach SES
        3. Only the assigned unit manager can run the final interview
        """
        oauth_connect("op-intern")
        oauth_connect("um-1")
        ses = mock_aws_all["ses"]
        rid = _apply(api)

        # Step 1: Intern schedules the initial interview
        scheduled = api.put(
            f"/recruits/{rid}/schedule-initial",
            json=INITIAL_SLOT,
            headers=as_operator("op-intern"),
        ).json()
        assert scheduled["recruit"]["stage"] == "Pending"
        assert scheduled["meeting"]["created"] is True
        assert scheduled["email"]["sent"] is True
        initial_meeting = scheduled["recruit"]["initial"]["meeting"]
        assert initial_meeting["hostOperatorId"] == "op-intern"
        assert fake_zoom.meetings[initial_meeting["meetingId"]]["start_time"] == "2025-08-10T07:00:00Z"

        # Step 2: Initial interview passed, final handed to um-1
        passed = api.put(
            f"/recruits/{rid}/complete-initial",
            json={"passed": True, "finalInterviewAssignedTo": "um-1", "notifyCandidate": True},
            headers=as_operator("op-intern"),
        ).json()
        assert passed["recruit"]["finalInterviewAssignedTo"] == "um-1"
        assert passed["recruit"]["initialInterviewCompleted"] is True
        assert passed["email"]["subject"] == "Congratulations! Initial Interview Results - Financial Advisor"

        # Step 3: Another unit manager is turned away
        denied = api.put(f"/recruits/{rid}/schedule-final", json=FINAL_SLOT, headers=as_operator("um-2"))
        assert denied.status_code == 403

        # Step 4: Assigned unit manager schedules the final interview
        final = api.put(
            f"/recruits/{rid}/schedule-final",
            json=FINAL_SLOT,
            headers=as_operator("um-1"),
        ).json()
        final_meeting = final["recruit"]["final"]["meeting"]
        assert final_meeting["hostOperatorId"] == "um-1"
        assert final_meeting["meetingId"] != initial_meeting["meetingId"]
        assert final["recruit"]["final"]["interviewerId"] == "um-1"

        # Step 5: Hired
        hired = api.put(
            f"/recruits/{rid}/complete-final",
            json={"decision": "hired", "notifyCandidate": True},
            headers=as_operator("um-1"),
        ).json()
        assert hired["recruit"]["stage"] == "Hired"
        assert hired["email"]["sent"] is True

        stored = load_recruit(rid)
        assert stored.final_interview_completed
        assert stored.initial_interview_completed
        assert stored.initial.passed and stored.final.passed
        assert sent_count(ses) == 4

    def test_rejected_at_initial_interview(self, api, mock_aws_all):
        rid = _apply(api)
        api.put(
            f"/recruits/{rid}/schedule-initial",
            json={**INITIAL_SLOT, "createMeeting": False},
            headers=as_operator("op-intern"),
        )

        failed = api.put(
            f"/recruits/{rid}/complete-initial",
            json={"passed": False},
            headers=as_operator("op-intern"),
        ).json()
        assert failed["recruit"]["stage"] == "Rejected"
        assert failed["email"]["attempted"] is False

        blocked = api.put(f"/recruits/{rid}/schedule-final", json=FINAL_SLOT, headers=as_operator("um-1"))
        assert blocked.status_code == 400
        assert blocked.json()["error"] == "ValidationError"
        assert sent_count(mock_aws_all["ses"]) == 0


@pytest.mark.integration
class TestMeetingRoundTripE2E:
    """Meeting create, update, and delete as seen by both the slot and Zoom."""

    def test_interview_meeting_round_trip(self, api, oauth_connect, fake_zoom, meeting_service):
        oauth_connect("op-intern")
        rid = _apply(api)
        headers = as_operator("op-intern")

        created = api.put(
            f"/recruits/{rid}/schedule-initial",
            json={**INITIAL_SLOT, "sendInvitation": False},
            headers=headers,
        ).json()
        meeting_id = created["recruit"]["initial"]["meeting"]["meetingId"]

        moved = api.put(
            f"/recruits/{rid}/schedule-initial",
            json={**INITIAL_SLOT, "interviewTime": "09:00", "sendInvitation": False},
            headers=headers,
        ).json()
        assert moved["meeting"]["updated"] is True
        assert moved["recruit"]["initial"]["meeting"]["meetingId"] == meeting_id
        assert api.get(f"/zoom/meetings/{meeting_id}", headers=headers).json()["startTime"] == "2025-08-10T01:00:00Z"

        cancelled = api.delete(f"/recruits/{rid}/interviews/initial/meeting", headers=headers).json()
        assert cancelled["initial"]["meeting"] is None
        assert cancelled["initial"]["status"] == "SCHEDULED"

        with pytest.raises(MeetingNotFoundError):
            meeting_service.get_meeting(meeting_id, "op-intern")
        missing = api.get(f"/zoom/meetings/{meeting_id}", headers=headers)
        assert missing.status_code == 404
        assert missing.json()["error"] == "MeetingNotFoundError"

    def test_standalone_meeting_round_trip(self, api, oauth_connect, fake_zoom):
        oauth_connect("op-staff")
        headers = as_operator("op-staff")

        created = api.post(
            "/zoom/meetings",
            json={
                "topic": "Orientation",
                "date": "2025-08-12",
                "time": "13:00",
                "timezone": "Asia/Manila",
                "duration": 45,
            },
            headers=headers,
        )
        assert created.status_code == 201
        meeting_id = created.json()["meetingId"]

        patched = api.patch(f"/zoom/meetings/{meeting_id}", json={"duration": 90}, headers=headers)
        assert patched.json()["duration"] == 90

        assert api.delete(f"/zoom/meetings/{meeting_id}", headers=headers).status_code == 204
        assert meeting_id not in fake_zoom.meetings


@pytest.mark.integration
class TestTokenLifecycleE2E:
    """Access tokens are refreshed transparently during the flow."""

    def test_expired_token_refreshed_mid_flow(self, api, oauth_connect, fake_zoom, clock, token_store):
        oauth_connect("op-intern")
        first = token_store.get("op-intern")
        rid = _apply(api)

        clock.advance(hours=1)
        scheduled = api.put(
            f"/recruits/{rid}/schedule-initial",
            json={**INITIAL_SLOT, "sendInvitation": False},
            headers=as_operator("op-intern"),
        ).json()

        assert scheduled["meeting"]["created"] is True
        assert fake_zoom.refresh_count == 1
        assert token_store.get("op-intern").access_token != first.access_token

        api.put(
            f"/recruits/{rid}/schedule-initial",
            json={**INITIAL_SLOT, "interviewTime": "16:00", "sendInvitation": False},
            headers=as_operator("op-intern"),
        )
        assert fake_zoom.refresh_count == 1

    def test_disconnect_requires_reauthorization(self, api, oauth_connect):
        oauth_connect("op-intern")
        rid = _apply(api)

        api.post("/zoom/disconnect", headers=as_operator("op-intern"))
        scheduled = api.put(
            f"/recruits/{rid}/schedule-initial",
            json=INITIAL_SLOT,
            headers=as_operator("op-intern"),
        ).json()

        assert scheduled["meeting"]["authRequired"] is True
        assert scheduled["recruit"]["initial"]["meeting"] is None

        oauth_connect("op-intern")
        retried = api.post(
            f"/recruits/{rid}/interviews/initial/meeting",
            headers=as_operator("op-intern"),
        ).json()
        assert retried["meeting"]["created"] is True


@pytest.mark.integration
class TestInvitationTimezoneE2E:
    """Invitation times follow the meeting's timezone, not the server's."""

    def test_manila_time_on_new_york_server(self, api, oauth_connect, server_in_new_york):
        oauth_connect("op-intern")
        rid = _apply(api)

        ses = MagicMock()
        ses.send_raw_email.return_value = {"MessageId": "msg-e2e-1"}
        with patch("recruiting.shared.tools.email._get_client", return_value=ses):
            scheduled = api.put(
                f"/recruits/{rid}/schedule-initial",
                json=INITIAL_SLOT,
                headers=as_operator("op-intern"),
            ).json()

        assert scheduled["email"]["messageId"] == "msg-e2e-1"
        raw = ses.send_raw_email.call_args.kwargs["RawMessage"]["Data"]
        message = message_from_bytes(raw, policy=default_policy)
        body = message.get_body(preferencelist=("plain",)).get_content()
        assert "03:00 PM" in body
        assert message["To"] == "maria.santos@example.com"
