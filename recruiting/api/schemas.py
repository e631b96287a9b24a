"""
HTTP bodies for the conferencing and directory routes.

Lifecycle bodies live in recruiting.lifecycle.models.
"""

from datetime import date, datetime, time

from pydantic import Field

from recruiting.lifecycle.models import CamelModel
from recruiting.shared.models.meeting import MeetingSettings, MeetingSpec, MeetingUpdate
from recruiting.shared.models.operator import Operator, OperatorRole


class MeetingCreateBody(CamelModel):
    """Create a meeting from either `startTime` or `date` + `time`."""

    topic: str
    start_time: datetime | None = None
    local_date: date | None = Field(default=None, alias="date")
    local_time: time | None = Field(default=None, alias="time")
    timezone: str | None = None
    duration: int | None = Field(default=None, ge=1, le=1440)
    agenda: str | None = None
    passcode: str | None = None
    settings: MeetingSettings | None = None

    def to_spec(self, default_duration: int, default_settings: MeetingSettings) -> MeetingSpec:
        return MeetingSpec(
            topic=self.topic,
            start_time=self.start_time,
            local_date=self.local_date,
            local_time=self.local_time,
            timezone=self.timezone,
            duration=self.duration or default_duration,
            agenda=self.agenda,
            passcode=self.passcode,
            settings=self.settings or default_settings,
        )


class MeetingPatchBody(CamelModel):
    topic: str | None = None
    start_time: datetime | None = None
    local_date: date | None = Field(default=None, alias="date")
    local_time: time | None = Field(default=None, alias="time")
    timezone: str | None = None
    duration: int | None = Field(default=None, ge=1, le=1440)
    agenda: str | None = None
    passcode: str | None = None
    settings: MeetingSettings | None = None

    def to_update(self) -> MeetingUpdate:
        return MeetingUpdate(
            topic=self.topic,
            start_time=self.start_time,
            local_date=self.local_date,
            local_time=self.local_time,
            timezone=self.timezone,
            duration=self.duration,
            agenda=self.agenda,
            passcode=self.passcode,
            settings=self.settings,
        )


class AuthInitiateResponse(CamelModel):
    auth_url: str
    state: str


class OperatorSummary(CamelModel):
    """Public view of an operator for assignment pickers."""

    operator_id: str
    name: str
    email: str
    role: OperatorRole

    @classmethod
    def from_operator(cls, operator: Operator) -> "OperatorSummary":
        return cls(
            operator_id=operator.operator_id,
            name=operator.name,
            email=operator.email,
            role=operator.role,
        )
