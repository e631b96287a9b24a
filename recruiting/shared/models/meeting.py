"""
Meeting Models

Request and response shapes for the conferencing provider's meetings API.
Meetings are not persisted on their own; their identifying fields are
copied onto the owning recruit's interview slot.
"""

from datetime import date, datetime, time
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from recruiting.shared.models.recruit import MeetingLink


class MeetingSettings(BaseModel):
    """Enumerated meeting options sent to the provider."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    host_video: bool = Field(default=True, description="Start with host video on")
    participant_video: bool = Field(default=True, description="Start with participant video on")
    mute_on_entry: bool = Field(default=True, description="Mute participants on entry")
    waiting_room: bool = Field(default=True, description="Hold participants in a waiting room")
    join_before_host: bool = Field(default=False, description="Allow joining before the host")
    auto_recording: Literal["none", "local", "cloud"] = Field(
        default="none",
        description="Automatic recording mode",
    )

    def to_provider(self) -> dict[str, Any]:
        """Provider wire representation."""
        return {
            "host_video": self.host_video,
            "participant_video": self.participant_video,
            "mute_upon_entry": self.mute_on_entry,
            "waiting_room": self.waiting_room,
            "join_before_host": self.join_before_host,
            "auto_recording": self.auto_recording,
        }


class MeetingSpec(BaseModel):
    """
    A meeting to create.

    The start is either an instant (`start_time`, aware or naive) or a
    wall-clock `local_date` + `local_time` pair in `timezone`.
    """

    model_config = ConfigDict(frozen=True)

    topic: str = Field(..., min_length=1, max_length=200, description="Meeting topic")
    start_time: datetime | None = Field(default=None, description="Start instant")
    local_date: date | None = Field(default=None, description="Start date in timezone")
    local_time: time | None = Field(default=None, description="Start time in timezone")
    timezone: str | None = Field(default=None, description="IANA timezone (default from config)")
    duration: int = Field(..., ge=1, le=1440, description="Duration in minutes")
    agenda: str | None = Field(default=None, max_length=2000, description="Meeting agenda")
    passcode: str | None = Field(default=None, max_length=10, description="Passcode (generated if absent)")
    settings: MeetingSettings = Field(default_factory=MeetingSettings)

    @model_validator(mode="after")
    def check_start(self) -> "MeetingSpec":
        has_local = self.local_date is not None or self.local_time is not None
        if self.start_time is not None and has_local:
            raise ValueError("Provide either start_time or local_date/local_time, not both")
        if self.start_time is None and (self.local_date is None or self.local_time is None):
            raise ValueError("Meeting start requires start_time or both local_date and local_time")
        return self


class MeetingUpdate(BaseModel):
    """Partial update of an existing meeting; unset fields are left alone."""

    model_config = ConfigDict(frozen=True)

    topic: str | None = Field(default=None, min_length=1, max_length=200)
    start_time: datetime | None = None
    local_date: date | None = None
    local_time: time | None = None
    timezone: str | None = None
    duration: int | None = Field(default=None, ge=1, le=1440)
    agenda: str | None = Field(default=None, max_length=2000)
    passcode: str | None = Field(default=None, max_length=10)
    settings: MeetingSettings | None = None

    @model_validator(mode="after")
    def check_start(self) -> "MeetingUpdate":
        if (self.local_date is None) != (self.local_time is None):
            raise ValueError("local_date and local_time must be given together")
        if self.start_time is not None and self.local_date is not None:
            raise ValueError("Provide either start_time or local_date/local_time, not both")
        return self

    @property
    def changes_start(self) -> bool:
        return self.start_time is not None or self.local_date is not None


class MeetingRecord(BaseModel):
    """A scheduled meeting as returned by the provider."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    meeting_id: str = Field(..., description="Provider meeting id")
    topic: str = Field(default="", description="Meeting topic")
    start_time: datetime | None = Field(default=None, description="Start instant")
    timezone: str | None = Field(default=None, description="Meeting timezone")
    duration: int | None = Field(default=None, description="Duration in minutes")
    join_url: str = Field(default="", description="Participant join link")
    start_url: str | None = Field(default=None, description="Host start link")
    passcode: str | None = Field(default=None, description="Meeting passcode")
    agenda: str | None = Field(default=None, description="Meeting agenda")
    status: str | None = Field(default=None, description="Provider lifecycle status")
    created_at: datetime | None = Field(default=None, description="Provider creation time")

    @classmethod
    def from_provider(cls, data: dict[str, Any]) -> "MeetingRecord":
        """Parse a provider meeting payload."""
        return cls(
            meeting_id=str(data["id"]),
            topic=data.get("topic", ""),
            start_time=data.get("start_time"),
            timezone=data.get("timezone"),
            duration=data.get("duration"),
            join_url=data.get("join_url", ""),
            start_url=data.get("start_url"),
            passcode=data.get("password"),
            agenda=data.get("agenda"),
            status=data.get("status"),
            created_at=data.get("created_at"),
        )

    def to_link(self, host_operator_id: str | None = None) -> MeetingLink:
        """Identifying fields to copy onto an interview slot."""
        return MeetingLink(
            meeting_id=self.meeting_id,
            join_url=self.join_url,
            start_url=self.start_url,
            passcode=self.passcode,
            host_operator_id=host_operator_id,
        )


class MeetingPage(BaseModel):
    """One page of an operator's meetings."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    meetings: list[MeetingRecord] = Field(default_factory=list)
    page_size: int = Field(default=30)
    total_records: int = Field(default=0)
    next_page_token: str | None = Field(default=None)


class ConnectionStatus(BaseModel):
    """Whether an operator's conferencing account is usable."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    connected: bool = Field(..., description="Provider call succeeded with stored credentials")
    status: Literal["connected", "not_authenticated"]
    message: str
    auth_url: str | None = Field(default=None, description="Where to (re)authorize")
