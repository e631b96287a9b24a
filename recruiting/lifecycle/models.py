"""
Lifecycle Request and Result Models

Inbound bodies use camelCase field names (`interviewDate`,
`createMeeting`, ...); snake_case is accepted too.
"""

from datetime import date, datetime, time, timezone
from typing import Literal
import uuid

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from recruiting.notifications.models import NotificationEvent
from recruiting.shared.models.recruit import EducationalStatus, MeetingLink, Recruit


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


# =====================================================
# Requests
# =====================================================


class RecruitIntake(CamelModel):
    """A new application."""

    recruit_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    full_name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    contact_number: str | None = None
    location: str | None = None
    course: str | None = None
    school: str | None = None
    educational_status: EducationalStatus
    date_applied: date = Field(default_factory=lambda: datetime.now(timezone.utc).date())


class ScheduleInterviewRequest(CamelModel):
    """Schedule (or reschedule) an interview slot."""

    interview_date: date = Field(..., description="Interview date in `timezone`")
    interview_time: time = Field(..., description="Interview time in `timezone`")
    timezone: str | None = Field(default=None, description="IANA zone (default from settings)")
    interviewer_id: str | None = Field(default=None, description="Assigned interviewer")
    interview_notes: str | None = Field(default=None, max_length=5000)
    create_meeting: bool = Field(default=False, description="Create a conferencing meeting")
    duration: int | None = Field(default=None, ge=1, le=1440, description="Meeting minutes")
    send_invitation: bool = Field(default=True, description="Email the candidate once a meeting exists")


class CompleteInitialRequest(CamelModel):
    """Record the initial interview outcome."""

    passed: bool
    notes: str | None = Field(default=None, max_length=5000)
    final_interview_assigned_to: str | None = Field(
        default=None,
        description="Unit manager to run the final interview (required on pass)",
    )
    notify_candidate: bool = Field(default=False)


class CompleteFinalRequest(CamelModel):
    """Record the hiring decision."""

    decision: Literal["hired", "rejected"]
    notes: str | None = Field(default=None, max_length=5000)
    notify_candidate: bool = Field(default=False)


class AssignOwnerRequest(CamelModel):
    assigned_to: str = Field(..., min_length=1)


# =====================================================
# Results
# =====================================================


class MeetingOutcome(CamelModel):
    """What happened to the conferencing meeting during a request."""

    requested: bool = Field(default=False, description="A meeting was asked for or already existed")
    created: bool = Field(default=False)
    updated: bool = Field(default=False)
    meeting: MeetingLink | None = Field(default=None)
    error: str | None = Field(default=None, description="Provider error message")
    error_kind: str | None = Field(default=None, description="Error class name")
    auth_required: bool = Field(default=False, description="Operator must reconnect the conferencing account")
    auth_url: str | None = Field(default=None, description="Where to reconnect")


class EmailOutcome(CamelModel):
    """What happened to the candidate email during a request."""

    attempted: bool = Field(default=False)
    sent: bool = Field(default=False)
    recipient: str | None = None
    subject: str | None = None
    message_id: str | None = None
    reason: str | None = None

    @classmethod
    def from_event(cls, event: NotificationEvent) -> "EmailOutcome":
        return cls(
            attempted=True,
            sent=event.sent,
            recipient=event.recipient,
            subject=event.subject,
            message_id=event.receipt.message_id if event.receipt else None,
            reason=event.reason,
        )


class ScheduleInterviewResult(CamelModel):
    """Persisted recruit plus side-effect outcomes."""

    recruit: Recruit
    meeting: MeetingOutcome = Field(default_factory=MeetingOutcome)
    email: EmailOutcome = Field(default_factory=EmailOutcome)


class TransitionResult(CamelModel):
    recruit: Recruit
    email: EmailOutcome = Field(default_factory=EmailOutcome)


class RecruitDeletion(CamelModel):
    """Outcome of deleting a recruit and its live meetings."""

    recruit_id: str
    deleted: bool
    meetings_deleted: list[str] = Field(default_factory=list)
    meetings_failed: list[str] = Field(default_factory=list)
