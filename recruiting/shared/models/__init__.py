# Shared Models
"""
Pydantic models for recruits, operators, meetings, and OAuth tokens.
"""

from recruiting.shared.models.recruit import (
    EducationalStatus,
    InterviewSlot,
    MeetingLink,
    Recruit,
)
from recruiting.shared.models.operator import Operator, OperatorRole
from recruiting.shared.models.meeting import (
    ConnectionStatus,
    MeetingPage,
    MeetingRecord,
    MeetingSettings,
    MeetingSpec,
    MeetingUpdate,
)
from recruiting.shared.models.oauth import (
    AuthorizationRequest,
    OAuthToken,
    TokenExchange,
)

__all__ = [
    # Recruits
    "EducationalStatus",
    "InterviewSlot",
    "MeetingLink",
    "Recruit",
    # Operators
    "Operator",
    "OperatorRole",
    # Meetings
    "ConnectionStatus",
    "MeetingPage",
    "MeetingRecord",
    "MeetingSettings",
    "MeetingSpec",
    "MeetingUpdate",
    # OAuth
    "AuthorizationRequest",
    "OAuthToken",
    "TokenExchange",
]
