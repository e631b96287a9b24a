"""
Notification Models

Pydantic models for sender details, delivery receipts, and the
per-request notification record.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EmailStatus(str, Enum):
    """Email delivery status."""

    SENT = "sent"
    FAILED = "failed"


class ResultKind(str, Enum):
    """Outcome emails sent when an interview is completed."""

    INITIAL_PASSED = "initial_passed"
    INITIAL_FAILED = "initial_failed"
    HIRED = "hired"
    REJECTED = "rejected"


class SenderInfo(BaseModel):
    """Who the candidate should reply to. Missing fields fall back to config."""

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(default=None, description="Sender display name")
    email: str | None = Field(default=None, description="Reply-To address")


class DeliveryReceipt(BaseModel):
    """Result of one email hand-off to the provider."""

    model_config = ConfigDict(frozen=True)

    message_id: str | None = Field(default=None, description="Provider message ID")
    accepted: list[str] = Field(default_factory=list, description="Recipients accepted")
    rejected: list[str] = Field(default_factory=list, description="Recipients refused")

    @property
    def delivered(self) -> bool:
        return bool(self.message_id and self.accepted and not self.rejected)


class NotificationEvent(BaseModel):
    """
    One notification attempt within a request.

    Not persisted; used for the response payload and logs.
    """

    model_config = ConfigDict(frozen=True)

    recipient: str = Field(..., description="Recipient address")
    template_kind: str = Field(..., description="Phase label or result kind")
    subject: str | None = Field(default=None, description="Rendered subject")
    status: EmailStatus = Field(..., description="Delivery status")
    reason: str | None = Field(default=None, description="Why delivery failed")
    receipt: DeliveryReceipt | None = Field(default=None)
    created_at: int = Field(
        default_factory=lambda: int(datetime.now(timezone.utc).timestamp()),
        description="Unix timestamp of the attempt",
    )

    @property
    def sent(self) -> bool:
        return self.status is EmailStatus.SENT

    @classmethod
    def from_receipt(
        cls,
        recipient: str,
        template_kind: str,
        subject: str,
        receipt: DeliveryReceipt,
    ) -> "NotificationEvent":
        if receipt.delivered:
            return cls(
                recipient=recipient,
                template_kind=template_kind,
                subject=subject,
                status=EmailStatus.SENT,
                receipt=receipt,
            )
        return cls(
            recipient=recipient,
            template_kind=template_kind,
            subject=subject,
            status=EmailStatus.FAILED,
            reason=f"Recipient rejected: {', '.join(receipt.rejected) or recipient}",
            receipt=receipt,
        )

    @classmethod
    def failure(
        cls,
        recipient: str,
        template_kind: str,
        reason: str,
        subject: str | None = None,
    ) -> "NotificationEvent":
        return cls(
            recipient=recipient,
            template_kind=template_kind,
            subject=subject,
            status=EmailStatus.FAILED,
            reason=reason,
        )
