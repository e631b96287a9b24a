"""
Recruit Interview State Machine

Each interview phase (initial, final) is its own small state machine.
The recruit-level application stage is derived from the pair, so a
stage can never disagree with the interview slots it summarizes.
"""

from enum import Enum
from typing import Final

import structlog

from recruiting.shared.exceptions import InvalidStateTransitionError

log = structlog.get_logger()


class PhaseStatus(str, Enum):
    """Status of a single interview slot."""

    NOT_STARTED = "NOT_STARTED"
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"


class InterviewOutcome(str, Enum):
    """Result recorded when an interview slot is completed."""

    PASSED = "PASSED"
    FAILED = "FAILED"


class InterviewPhase(str, Enum):
    """The two interview phases of the pipeline."""

    INITIAL = "initial"
    FINAL = "final"

    @property
    def label(self) -> str:
        """Human-readable phase name used in topics and emails."""
        return "Initial Interview" if self is InterviewPhase.INITIAL else "Final Interview"


class ApplicationStage(str, Enum):
    """
    Recruit-level application stage.

    Values match the strings shown to operators.
    """

    APPLIED = "Applied"
    """Application received, no interview scheduled yet."""

    PENDING = "Pending"
    """Initial interview scheduled."""

    PENDING_FINAL_INTERVIEW = "Pending Final Interview"
    """Initial interview passed; final interview assigned or scheduled."""

    HIRED = "Hired"
    """Final interview passed."""

    REJECTED = "Rejected"
    """Failed either interview."""

    @property
    def is_terminal(self) -> bool:
        """Check if this is a terminal stage (no outgoing transitions)."""
        return self in TERMINAL_STAGES

    @classmethod
    def from_string(cls, value: str) -> "ApplicationStage":
        """Convert a stage name or value (any case) to ApplicationStage."""
        normalized = value.strip().lower().replace("_", " ")
        for stage in cls:
            if normalized in (stage.value.lower(), stage.name.lower().replace("_", " ")):
                return stage
        raise ValueError(
            f"Invalid application stage: '{value}'. "
            f"Valid values are: {[s.value for s in cls]}"
        )


class InterviewAction(str, Enum):
    """Operations an operator may request against recruits."""

    SCHEDULE_INITIAL = "schedule_initial"
    COMPLETE_INITIAL = "complete_initial"
    SCHEDULE_FINAL = "schedule_final"
    COMPLETE_FINAL = "complete_final"
    MANAGE_INITIAL_MEETING = "manage_initial_meeting"
    MANAGE_FINAL_MEETING = "manage_final_meeting"
    ASSIGN_OWNER = "assign_owner"
    DELETE_RECRUIT = "delete_recruit"
    VIEW_TEAM_RECRUITS = "view_team_recruits"
    LIST_UNIT_MANAGERS = "list_unit_managers"

    @classmethod
    def manage_meeting_for(cls, phase: InterviewPhase) -> "InterviewAction":
        if phase is InterviewPhase.INITIAL:
            return cls.MANAGE_INITIAL_MEETING
        return cls.MANAGE_FINAL_MEETING


TERMINAL_STAGES: Final[frozenset[ApplicationStage]] = frozenset({
    ApplicationStage.HIRED,
    ApplicationStage.REJECTED,
})

# Key: current stage, Value: set of allowed next stages.
# Self-loops cover rescheduling and meeting changes within a stage.
VALID_TRANSITIONS: Final[dict[ApplicationStage, frozenset[ApplicationStage]]] = {
    ApplicationStage.APPLIED: frozenset({
        ApplicationStage.APPLIED,
        ApplicationStage.PENDING,
    }),
    ApplicationStage.PENDING: frozenset({
        ApplicationStage.PENDING,
        ApplicationStage.PENDING_FINAL_INTERVIEW,
        ApplicationStage.REJECTED,
    }),
    ApplicationStage.PENDING_FINAL_INTERVIEW: frozenset({
        ApplicationStage.PENDING_FINAL_INTERVIEW,
        ApplicationStage.HIRED,
        ApplicationStage.REJECTED,
    }),
    ApplicationStage.HIRED: frozenset(),     # Terminal
    ApplicationStage.REJECTED: frozenset(),  # Terminal
}

# Stages from which each action may be taken
ACTION_STAGES: Final[dict[InterviewAction, frozenset[ApplicationStage]]] = {
    InterviewAction.SCHEDULE_INITIAL: frozenset({
        ApplicationStage.APPLIED,
        ApplicationStage.PENDING,
    }),
    InterviewAction.COMPLETE_INITIAL: frozenset({
        ApplicationStage.PENDING,
    }),
    InterviewAction.SCHEDULE_FINAL: frozenset({
        ApplicationStage.PENDING_FINAL_INTERVIEW,
    }),
    InterviewAction.COMPLETE_FINAL: frozenset({
        ApplicationStage.PENDING_FINAL_INTERVIEW,
    }),
    InterviewAction.MANAGE_INITIAL_MEETING: frozenset({
        ApplicationStage.PENDING,
    }),
    InterviewAction.MANAGE_FINAL_MEETING: frozenset({
        ApplicationStage.PENDING_FINAL_INTERVIEW,
    }),
    InterviewAction.ASSIGN_OWNER: frozenset(ApplicationStage),
    InterviewAction.DELETE_RECRUIT: frozenset(ApplicationStage),
    InterviewAction.VIEW_TEAM_RECRUITS: frozenset(ApplicationStage),
    InterviewAction.LIST_UNIT_MANAGERS: frozenset(ApplicationStage),
}


def derive_stage(
    initial_status: PhaseStatus,
    initial_outcome: InterviewOutcome | None,
    final_status: PhaseStatus,
    final_outcome: InterviewOutcome | None,
) -> ApplicationStage:
    """
    Fold the two per-phase states into one application stage.

    Args:
        initial_status: Status of the initial interview slot
        initial_outcome: Outcome of the initial interview, if completed
        final_status: Status of the final interview slot
        final_outcome: Outcome of the final interview, if completed

    Returns:
        The recruit-level ApplicationStage
    """
    if initial_status is PhaseStatus.NOT_STARTED:
        return ApplicationStage.APPLIED
    if initial_status is PhaseStatus.SCHEDULED:
        return ApplicationStage.PENDING
    if initial_outcome is InterviewOutcome.FAILED:
        return ApplicationStage.REJECTED
    if final_status is PhaseStatus.COMPLETED:
        if final_outcome is InterviewOutcome.PASSED:
            return ApplicationStage.HIRED
        return ApplicationStage.REJECTED
    return ApplicationStage.PENDING_FINAL_INTERVIEW


def validate_transition(
    current_stage: ApplicationStage | str,
    new_stage: ApplicationStage | str,
    *,
    raise_on_invalid: bool = True,
) -> bool:
    """
    Validate that a stage transition is allowed.

    Args:
        current_stage: Current application stage
        new_stage: Desired next stage
        raise_on_invalid: If True, raise exception on invalid transition

    Returns:
        True if transition is valid

    Raises:
        InvalidStateTransitionError: If transition is invalid and raise_on_invalid=True
    """
    if isinstance(current_stage, str) and not isinstance(current_stage, ApplicationStage):
        current_stage = ApplicationStage.from_string(current_stage)
    if isinstance(new_stage, str) and not isinstance(new_stage, ApplicationStage):
        new_stage = ApplicationStage.from_string(new_stage)

    allowed = VALID_TRANSITIONS.get(current_stage, frozenset())
    is_valid = new_stage in allowed

    if not is_valid and raise_on_invalid:
        log.warning(
            "invalid_stage_transition",
            current_stage=current_stage.value,
            new_stage=new_stage.value,
            allowed=sorted(s.value for s in allowed),
        )
        raise InvalidStateTransitionError(
            current_stage=current_stage.value,
            requested=new_stage.value,
            allowed=sorted(s.value for s in allowed),
        )

    return is_valid


def validate_action(stage: ApplicationStage, action: InterviewAction) -> None:
    """
    Check that an action may be taken while the recruit is in a stage.

    Raises:
        InvalidStateTransitionError: If the action is not available from the stage
    """
    allowed = ACTION_STAGES[action]
    if stage in allowed:
        return

    log.warning(
        "action_not_allowed_in_stage",
        stage=stage.value,
        action=action.value,
    )
    raise InvalidStateTransitionError(
        current_stage=stage.value,
        requested=action.value,
        allowed=sorted(s.value for s in VALID_TRANSITIONS[stage]),
    )
