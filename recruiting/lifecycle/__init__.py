# Recruit Lifecycle
"""
Role-gated interview transitions with best-effort meeting and email side effects.
"""

from recruiting.lifecycle.models import (
    AssignOwnerRequest,
    CompleteFinalRequest,
    CompleteInitialRequest,
    EmailOutcome,
    MeetingOutcome,
    RecruitDeletion,
    RecruitIntake,
    ScheduleInterviewRequest,
    ScheduleInterviewResult,
    TransitionResult,
)
from recruiting.lifecycle.service import RecruitLifecycle

__all__ = [
    "RecruitLifecycle",
    # Requests
    "AssignOwnerRequest",
    "CompleteFinalRequest",
    "CompleteInitialRequest",
    "RecruitIntake",
    "ScheduleInterviewRequest",
    # Results
    "EmailOutcome",
    "MeetingOutcome",
    "RecruitDeletion",
    "ScheduleInterviewResult",
    "TransitionResult",
]
