# Shared Infrastructure for the Recruiting Backend
"""
Shared infrastructure components for the recruiting backend.

This package provides:
- Interview state machine (phase statuses, derived application stage)
- Authorization gate (role and ownership checks)
- Pydantic models for recruits, operators, meetings, and OAuth tokens
- Tool implementations for DynamoDB and SES
- Configuration management
- Custom exceptions
"""

from recruiting.shared.state_machine import (
    ApplicationStage,
    InterviewAction,
    InterviewPhase,
    VALID_TRANSITIONS,
    derive_stage,
    validate_transition,
)
from recruiting.shared.authorization import AuthorizationDecision, AuthorizationGate
from recruiting.shared.exceptions import (
    AuthorizationDeniedError,
    InvalidStateTransitionError,
    NotFoundError,
    RecruitingError,
    UpstreamAuthRequiredError,
    UpstreamProviderError,
    UpstreamTimeoutError,
    ValidationError,
)
from recruiting.shared.config import Settings, get_settings

__all__ = [
    # State machine
    "ApplicationStage",
    "InterviewAction",
    "InterviewPhase",
    "VALID_TRANSITIONS",
    "derive_stage",
    "validate_transition",
    # Authorization
    "AuthorizationDecision",
    "AuthorizationGate",
    # Exceptions
    "AuthorizationDeniedError",
    "InvalidStateTransitionError",
    "NotFoundError",
    "RecruitingError",
    "UpstreamAuthRequiredError",
    "UpstreamProviderError",
    "UpstreamTimeoutError",
    "ValidationError",
    # Config
    "Settings",
    "get_settings",
]
