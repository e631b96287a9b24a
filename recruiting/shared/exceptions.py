"""
Recruiting Error Taxonomy

One hierarchy rooted at RecruitingError. Every error keeps its
structured context for log lines and knows the HTTP status the API
answers with.
"""

from dataclasses import dataclass
from typing import Any, ClassVar


class RecruitingError(Exception):
    """Base exception for the recruiting backend."""

    http_status: ClassVar[int] = 500

    def __init__(self, message: str, **context: Any) -> None:
        self.message = message
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message

    @property
    def status_code(self) -> int:
        """HTTP status code the API layer reports for this error."""
        return self.http_status


# =====================================================
# Authorization
# =====================================================


@dataclass
class AuthorizationDeniedError(RecruitingError):
    """Operator's role or ownership does not permit the requested action."""

    http_status: ClassVar[int] = 403

    operator_id: str
    action: str
    reason: str

    def __init__(self, operator_id: str, action: str, reason: str) -> None:
        self.operator_id = operator_id
        self.action = action
        self.reason = reason
        super().__init__(
            reason,
            operator_id=operator_id,
            action=action,
        )


# =====================================================
# Validation
# =====================================================


class ValidationError(RecruitingError):
    """Missing or invalid input, or an unmet precondition."""

    http_status: ClassVar[int] = 400


@dataclass
class InvalidStateTransitionError(ValidationError):
    """Attempted action or stage change not allowed from the current stage."""

    current_stage: str
    requested: str
    allowed: list[str]

    def __init__(
        self,
        current_stage: str,
        requested: str,
        allowed: list[str],
    ) -> None:
        self.current_stage = current_stage
        self.requested = requested
        self.allowed = allowed
        super().__init__(
            f"'{requested}' is not possible while the recruit is '{current_stage}'; "
            f"next stages: {', '.join(allowed) or 'none (terminal)'}",
            current_stage=current_stage,
            requested=requested,
            allowed=allowed,
        )


@dataclass
class InvalidOAuthStateError(ValidationError):
    """OAuth callback state is unknown, expired, or already used."""

    state: str

    def __init__(self, state: str) -> None:
        self.state = state
        super().__init__(
            "OAuth state is invalid or has expired; restart the authorization flow",
            state=state,
        )


@dataclass
class InvalidMeetingTimeError(ValidationError):
    """Meeting start time could not be interpreted in the requested timezone."""

    value: str
    timezone: str

    def __init__(self, value: str, timezone: str, error_message: str | None = None) -> None:
        self.value = value
        self.timezone = timezone
        super().__init__(
            f"Invalid meeting start time '{value}' for timezone '{timezone}': "
            f"{error_message or 'unparseable'}",
            value=value,
            timezone=timezone,
        )


@dataclass
class InvalidEmailFormatError(ValidationError):
    """Email address format is invalid."""

    email_address: str
    expected_pattern: str | None

    def __init__(
        self,
        email_address: str,
        expected_pattern: str | None = None,
    ) -> None:
        self.email_address = email_address
        self.expected_pattern = expected_pattern
        super().__init__(
            f"'{email_address}' is not a valid email address"
            + (f" ({expected_pattern})" if expected_pattern else ""),
            email_address=email_address,
        )


# =====================================================
# Not Found
# =====================================================


class NotFoundError(RecruitingError):
    """Referenced entity does not exist."""

    http_status: ClassVar[int] = 404


@dataclass
class RecruitNotFoundError(NotFoundError):
    """Recruit record not found in DynamoDB."""

    recruit_id: str

    def __init__(self, recruit_id: str) -> None:
        self.recruit_id = recruit_id
        super().__init__(
            f"Recruit '{recruit_id}' not found",
            recruit_id=recruit_id,
        )


@dataclass
class OperatorNotFoundError(NotFoundError):
    """Operator account not found in DynamoDB."""

    operator_id: str

    def __init__(self, operator_id: str) -> None:
        self.operator_id = operator_id
        super().__init__(
            f"Operator '{operator_id}' not found",
            operator_id=operator_id,
        )


@dataclass
class MeetingNotFoundError(NotFoundError):
    """Conferencing provider does not know the meeting (or user)."""

    meeting_id: str | None
    provider_message: str | None

    def __init__(
        self,
        meeting_id: str | None = None,
        provider_message: str | None = None,
    ) -> None:
        self.meeting_id = meeting_id
        self.provider_message = provider_message
        super().__init__(
            f"Meeting '{meeting_id}' not found: {provider_message or 'unknown meeting'}",
            meeting_id=meeting_id,
            provider_message=provider_message,
        )


# =====================================================
# Upstream Providers
# =====================================================


@dataclass
class UpstreamAuthRequiredError(RecruitingError):
    """
    No usable conferencing credential for the operator.

    Callers must send the operator through the authorization flow
    again rather than retrying the request.
    """

    http_status: ClassVar[int] = 401
    auth_required: ClassVar[bool] = True

    operator_id: str
    reason: str

    def __init__(self, operator_id: str, reason: str | None = None) -> None:
        self.operator_id = operator_id
        self.reason = reason or "Operator has not connected a conferencing account"
        super().__init__(
            f"Conferencing authorization required: {self.reason}",
            operator_id=operator_id,
        )


@dataclass
class UpstreamProviderError(RecruitingError):
    """Conferencing or email provider rejected the request."""

    http_status: ClassVar[int] = 502

    provider: str
    operation: str
    upstream_status: int | None
    provider_message: str | None

    def __init__(
        self,
        provider: str,
        operation: str,
        upstream_status: int | None = None,
        provider_message: str | None = None,
    ) -> None:
        self.provider = provider
        self.operation = operation
        self.upstream_status = upstream_status
        self.provider_message = provider_message
        super().__init__(
            f"{provider} {operation} failed: {provider_message or 'Unknown error'}",
            provider=provider,
            operation=operation,
            upstream_status=upstream_status,
        )

    @property
    def status_code(self) -> int:
        # Provider 4xx/5xx pass through; transport failures have no status
        if self.upstream_status and 400 <= self.upstream_status < 600:
            return self.upstream_status
        return self.http_status


@dataclass
class MeetingSpecRejectedError(UpstreamProviderError):
    """Conferencing provider rejected the meeting payload (HTTP 400)."""

    http_status: ClassVar[int] = 400

    def __init__(self, operation: str, provider_message: str | None = None) -> None:
        super().__init__(
            provider="zoom",
            operation=operation,
            upstream_status=400,
            provider_message=provider_message,
        )


@dataclass
class SESError(UpstreamProviderError):
    """SES email operation failed."""

    recipient: str | None

    def __init__(
        self,
        operation: str,
        recipient: str | None = None,
        error_message: str | None = None,
    ) -> None:
        self.recipient = recipient
        super().__init__(
            provider="ses",
            operation=operation,
            provider_message=error_message,
        )
        if recipient:
            self.context["recipient"] = recipient


@dataclass
class UpstreamTimeoutError(RecruitingError):
    """Outbound provider call timed out."""

    http_status: ClassVar[int] = 504

    provider: str
    operation: str

    def __init__(self, provider: str, operation: str) -> None:
        self.provider = provider
        self.operation = operation
        super().__init__(
            f"{provider} {operation} timed out",
            provider=provider,
            operation=operation,
        )


# =====================================================
# Data Store
# =====================================================


@dataclass
class DynamoDBError(RecruitingError):
    """DynamoDB operation failed."""

    operation: str
    table_name: str

    def __init__(
        self,
        operation: str,
        table_name: str,
        error_message: str | None = None,
    ) -> None:
        self.operation = operation
        self.table_name = table_name
        super().__init__(
            f"{operation} on table '{table_name}' failed: {error_message or 'no detail from DynamoDB'}",
            operation=operation,
            table_name=table_name,
            error_message=error_message,
        )
