"""
Recruit Models

Pydantic models for recruit records and their interview slots.
PK: RECRUIT#<recruit_id>
SK: METADATA
GSI1PK: OWNER#<assigned_to>
"""

from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator
from pydantic.alias_generators import to_camel

from recruiting.shared.state_machine import (
    ApplicationStage,
    InterviewOutcome,
    InterviewPhase,
    PhaseStatus,
    derive_stage,
)

# Keys written for indexing or display, recomputed on load
DERIVED_KEYS = frozenset({
    "PK",
    "SK",
    "GSI1PK",
    "stage",
    "initial_interview_completed",
    "final_interview_completed",
})


class EducationalStatus(str, Enum):
    """Applicant's education level at intake."""

    UNDERGRAD = "UNDERGRAD"
    GRADUATE = "GRADUATE"
    GRADUATING = "GRADUATING"


class MeetingLink(BaseModel):
    """Identifying fields of a provider meeting copied onto an interview slot."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    meeting_id: str = Field(..., description="Provider meeting id")
    join_url: str = Field(..., description="Participant join link")
    start_url: str | None = Field(default=None, description="Host start link")
    passcode: str | None = Field(default=None, description="Meeting passcode")
    host_operator_id: str | None = Field(
        default=None,
        description="Operator whose conferencing account owns the meeting",
    )


class InterviewSlot(BaseModel):
    """
    One interview phase: NOT_STARTED | SCHEDULED | COMPLETED{outcome}.

    A slot only carries an outcome once completed, and only carries
    meeting details once scheduled.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    status: PhaseStatus = Field(default=PhaseStatus.NOT_STARTED, description="Slot status")
    outcome: InterviewOutcome | None = Field(default=None, description="Result once completed")

    interview_date: date | None = Field(default=None, description="Interview date (wall calendar)")
    interview_time: time | None = Field(default=None, description="Interview time (wall clock)")
    timezone: str | None = Field(default=None, description="IANA zone of date/time")
    interviewer_id: str | None = Field(default=None, description="Assigned interviewer")
    notes: str | None = Field(default=None, description="Free-text interview notes")

    meeting: MeetingLink | None = Field(default=None, description="Provider meeting, if created")
    completed_at: int | None = Field(default=None, description="Unix timestamp of completion")

    @model_validator(mode="after")
    def check_variant(self) -> "InterviewSlot":
        if self.status is PhaseStatus.COMPLETED and self.outcome is None:
            raise ValueError("Completed interview must record an outcome")
        if self.status is not PhaseStatus.COMPLETED and self.outcome is not None:
            raise ValueError("Only a completed interview can record an outcome")
        if self.status is PhaseStatus.NOT_STARTED and self.meeting is not None:
            raise ValueError("An interview that is not scheduled cannot hold a meeting")
        if self.status is not PhaseStatus.NOT_STARTED and (
            self.interview_date is None or self.interview_time is None
        ):
            raise ValueError("Scheduled interview requires a date and time")
        return self

    @property
    def is_scheduled(self) -> bool:
        return self.status is PhaseStatus.SCHEDULED

    @property
    def is_completed(self) -> bool:
        return self.status is PhaseStatus.COMPLETED

    @property
    def passed(self) -> bool:
        return self.outcome is InterviewOutcome.PASSED

    def schedule(
        self,
        interview_date: date,
        interview_time: time,
        timezone: str,
        interviewer_id: str | None,
        notes: str | None,
    ) -> "InterviewSlot":
        """Return this slot scheduled (or rescheduled) for a new date and time."""
        return self.model_copy(update={
            "status": PhaseStatus.SCHEDULED,
            "interview_date": interview_date,
            "interview_time": interview_time,
            "timezone": timezone,
            "interviewer_id": interviewer_id,
            "notes": notes,
        })

    def complete(self, outcome: InterviewOutcome, notes: str | None) -> "InterviewSlot":
        """Return this slot completed with an outcome."""
        return InterviewSlot.model_validate({
            **self.model_dump(),
            "status": PhaseStatus.COMPLETED,
            "outcome": outcome,
            "notes": notes if notes is not None else self.notes,
            "completed_at": int(datetime.now(timezone.utc).timestamp()),
        })

    def with_meeting(self, meeting: MeetingLink | None) -> "InterviewSlot":
        """Return this slot with meeting details set or cleared."""
        return InterviewSlot.model_validate({
            **self.model_dump(),
            "meeting": meeting.model_dump() if meeting else None,
        })


class Recruit(BaseModel):
    """
    Applicant record moving through the two-stage interview pipeline.

    The application stage is derived from the two interview slots.
    """

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    recruit_id: str = Field(..., description="Recruit identifier")

    # Identity
    full_name: str = Field(..., min_length=1, description="Applicant's full name")
    email: str = Field(..., description="Applicant's email address")
    contact_number: str | None = Field(default=None, description="Phone number")
    location: str | None = Field(default=None, description="Home address / city")
    course: str | None = Field(default=None, description="Course or position applied for")
    school: str | None = Field(default=None, description="School attended")
    educational_status: EducationalStatus = Field(..., description="Education level")
    date_applied: date = Field(..., description="Application date")

    # Ownership
    assigned_to: str = Field(..., description="Owning operator id")
    final_interview_assigned_to: str | None = Field(
        default=None,
        description="Unit manager authorized to run the final interview",
    )

    # Interviews
    initial: InterviewSlot = Field(default_factory=InterviewSlot)
    final: InterviewSlot = Field(default_factory=InterviewSlot)

    # Metadata
    created_at: int | None = Field(default=None, description="Record creation timestamp")
    updated_at: int | None = Field(default=None, description="Last update timestamp")
    version: int = Field(default=1, description="Write counter")

    @model_validator(mode="after")
    def check_phases(self) -> "Recruit":
        if self.final.status is not PhaseStatus.NOT_STARTED and not (
            self.initial.is_completed and self.initial.passed
        ):
            raise ValueError("Final interview requires a passed initial interview")
        if self.initial.passed and not self.final_interview_assigned_to:
            raise ValueError("A passed initial interview requires a final interview assignee")
        return self

    @property
    def pk(self) -> str:
        return f"RECRUIT#{self.recruit_id}"

    @property
    def sk(self) -> str:
        return "METADATA"

    @computed_field
    @property
    def stage(self) -> ApplicationStage:
        """Current application stage, derived from both interview slots."""
        return derive_stage(
            self.initial.status,
            self.initial.outcome,
            self.final.status,
            self.final.outcome,
        )

    @computed_field
    @property
    def initial_interview_completed(self) -> bool:
        return self.initial.is_completed

    @computed_field
    @property
    def final_interview_completed(self) -> bool:
        return self.final.is_completed

    def slot(self, phase: InterviewPhase) -> InterviewSlot:
        """Get the interview slot for a phase."""
        return self.initial if phase is InterviewPhase.INITIAL else self.final

    def with_slot(self, phase: InterviewPhase, slot: InterviewSlot, **updates: Any) -> "Recruit":
        """Return a new Recruit with one interview slot replaced."""
        return self.with_updates(**{phase.value: slot}, **updates)

    def with_updates(self, **updates: Any) -> "Recruit":
        """
        Create a new Recruit with the specified updates.

        Since Recruit is frozen, this returns a new instance, revalidated
        so an illegal combination of slots cannot be produced.

        Args:
            **updates: Fields to update

        Returns:
            New Recruit with updates applied
        """
        data = self.model_dump()
        for key, value in updates.items():
            data[key] = value.model_dump() if isinstance(value, BaseModel) else value
        data["version"] = self.version + 1
        data["updated_at"] = int(datetime.now(timezone.utc).timestamp())
        return Recruit.model_validate(data)

    def to_dynamodb(self) -> dict[str, Any]:
        """Convert to DynamoDB item format."""
        item = self.model_dump(mode="json", exclude_none=True)
        item.update({
            "PK": self.pk,
            "SK": self.sk,
            "GSI1PK": f"OWNER#{self.assigned_to}",
            "stage": self.stage.value,
        })
        return item

    @classmethod
    def from_dynamodb(cls, item: dict[str, Any]) -> "Recruit":
        """
        Create Recruit from DynamoDB item.

        Numbers come back from boto3 as Decimal; pydantic coerces them.
        """
        data = {
            k: v for k, v in item.items()
            if k not in DERIVED_KEYS
        }
        return cls.model_validate(data)
