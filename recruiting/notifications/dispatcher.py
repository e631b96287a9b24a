"""
Notification Dispatcher

Renders and sends candidate email: interview invitations once a
meeting exists, and interview outcome notices. Delivery is a side
channel; `dispatch_*` helpers never raise so callers can report the
outcome without rolling anything back.
"""

from datetime import datetime, timezone
from typing import Any

import jinja2
import structlog

from recruiting.conferencing.timezones import (
    format_display_date,
    format_display_time,
    localize_meeting_start,
)
from recruiting.notifications.config import NotificationConfig, get_notification_config
from recruiting.notifications.models import (
    DeliveryReceipt,
    NotificationEvent,
    ResultKind,
    SenderInfo,
)
from recruiting.shared.config import Settings, get_settings
from recruiting.shared.exceptions import InvalidEmailFormatError, RecruitingError
from recruiting.shared.models.meeting import MeetingRecord
from recruiting.shared.state_machine import InterviewOutcome, InterviewPhase
from recruiting.shared.tools.email import send_ses_raw_email, validate_email_address

log = structlog.get_logger()

RESULT_SUBJECTS: dict[ResultKind, str] = {
    ResultKind.INITIAL_PASSED: "Congratulations! Initial Interview Results - {position}",
    ResultKind.INITIAL_FAILED: "Initial Interview Results - {position}",
    ResultKind.HIRED: "Welcome to the Team! Job Offer - {position}",
    ResultKind.REJECTED: "Application Update - {position}",
}


def invitation_subject(phase_label: str, topic: str) -> str:
    return f"{phase_label} Invitation - {topic}"


def result_kind(phase: InterviewPhase, outcome: InterviewOutcome) -> ResultKind:
    if phase is InterviewPhase.INITIAL:
        if outcome is InterviewOutcome.PASSED:
            return ResultKind.INITIAL_PASSED
        return ResultKind.INITIAL_FAILED
    if outcome is InterviewOutcome.PASSED:
        return ResultKind.HIRED
    return ResultKind.REJECTED


class NotificationDispatcher:
    """Candidate email rendering and delivery through SES."""

    def __init__(
        self,
        settings: Settings | None = None,
        config: NotificationConfig | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.config = config or get_notification_config()
        self._env = jinja2.Environment(
            loader=jinja2.FileSystemLoader(self.config.template_path),
            autoescape=jinja2.select_autoescape(["html"]),
            undefined=jinja2.StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    # ===== Rendering =====

    def _sender(self, sender: SenderInfo | None) -> tuple[str, str]:
        sender = sender or SenderInfo()
        return (
            sender.name or self.settings.sender_name,
            sender.email or self.settings.sender_address,
        )

    def _headers(self) -> dict[str, str]:
        domain = self.config.unsubscribe_domain or self.settings.mail_domain
        return {
            "X-Mailer": self.config.mailer_name,
            "List-Unsubscribe": f"<mailto:unsubscribe@{domain}>",
        }

    def _render(self, name: str, context: dict[str, Any]) -> tuple[str, str]:
        text = self._env.get_template(f"{name}.txt").render(**context)
        html = self._env.get_template(f"{name}.html").render(**context)
        return text, html

    def _base_context(self, sender_name: str, sender_email: str) -> dict[str, Any]:
        return {
            "sender_name": sender_name,
            "sender_email": sender_email,
            "mailer_name": self.config.mailer_name,
            "company_name": self.config.company_name,
            "year": datetime.now(timezone.utc).year,
        }

    def render_invitation(
        self,
        meeting: MeetingRecord,
        sender: SenderInfo | None,
        phase_label: str,
    ) -> tuple[str, str, str]:
        """
        Render subject, text, and HTML for an interview invitation.

        Date and time are shown in the meeting's timezone.
        """
        sender_name, sender_email = self._sender(sender)
        tz_name = meeting.timezone or self.settings.default_timezone

        date_display = time_display = None
        if meeting.start_time is not None:
            moment = localize_meeting_start(meeting.start_time, tz_name)
            date_display = format_display_date(moment)
            time_display = format_display_time(moment)

        context = {
            **self._base_context(sender_name, sender_email),
            "phase_label": phase_label,
            "topic": meeting.topic,
            "date_display": date_display,
            "time_display": time_display,
            "duration": meeting.duration or self.config.default_meeting_duration,
            "meeting_id": meeting.meeting_id,
            "join_url": meeting.join_url,
            "passcode": meeting.passcode,
        }
        text, html = self._render("invitation", context)
        return invitation_subject(phase_label, meeting.topic), text, html

    # ===== Delivery =====

    def _deliver(
        self,
        recipient: str,
        subject: str,
        text: str,
        html: str,
        sender: SenderInfo | None,
    ) -> DeliveryReceipt:
        try:
            address = validate_email_address(recipient)
        except InvalidEmailFormatError:
            log.warning("email_recipient_rejected", recipient=recipient, subject=subject[:50])
            return DeliveryReceipt(rejected=[recipient])

        sender_name, sender_email = self._sender(sender)
        message_id = send_ses_raw_email(
            address,
            subject,
            text,
            body_html=html,
            reply_to=sender_email,
            from_name=sender_name,
            headers=self._headers(),
        )
        return DeliveryReceipt(message_id=message_id, accepted=[address])

    def send_interview_invitation(
        self,
        recipient: str,
        meeting: MeetingRecord,
        sender: SenderInfo | None = None,
        phase_label: str = "Interview",
    ) -> DeliveryReceipt:
        """
        Send an interview invitation for a created meeting.

        Args:
            recipient: Candidate email address
            meeting: Meeting as returned by the provider
            sender: Reply-To details (defaults from settings)
            phase_label: e.g. "Initial Interview"

        Returns:
            DeliveryReceipt; an invalid address is listed in `rejected`

        Raises:
            SESError: If SES refuses the message
        """
        subject, text, html = self.render_invitation(meeting, sender, phase_label)

        log.info(
            "sending_interview_invitation",
            recipient=recipient,
            meeting_id=meeting.meeting_id,
            phase=phase_label,
        )

        return self._deliver(recipient, subject, text, html, sender)

    def send_interview_result(
        self,
        recipient: str,
        candidate_name: str,
        phase: InterviewPhase,
        outcome: InterviewOutcome,
        sender: SenderInfo | None = None,
        position: str | None = None,
    ) -> DeliveryReceipt:
        """Send the pass / fail / hire / reject notice for a completed interview."""
        kind = result_kind(phase, outcome)
        position = position or "the position"
        subject = RESULT_SUBJECTS[kind].format(position=position)
        sender_name, sender_email = self._sender(sender)

        context = {
            **self._base_context(sender_name, sender_email),
            "kind": kind.value,
            "subject": subject,
            "candidate_name": candidate_name,
            "position": position,
        }
        text, html = self._render("result", context)

        log.info("sending_interview_result", recipient=recipient, kind=kind.value)

        return self._deliver(recipient, subject, text, html, sender)

    # ===== Best-effort wrappers =====

    def dispatch_invitation(
        self,
        recipient: str,
        meeting: MeetingRecord,
        sender: SenderInfo | None,
        phase_label: str,
    ) -> NotificationEvent:
        """Send an invitation and record the outcome instead of raising."""
        subject = invitation_subject(phase_label, meeting.topic)
        try:
            receipt = self.send_interview_invitation(recipient, meeting, sender, phase_label)
        except (RecruitingError, jinja2.TemplateError) as e:
            log.error(
                "interview_invitation_failed",
                recipient=recipient,
                meeting_id=meeting.meeting_id,
                error=str(e),
            )
            return NotificationEvent.failure(recipient, phase_label, str(e), subject=subject)

        event = NotificationEvent.from_receipt(recipient, phase_label, subject, receipt)
        log.info(
            "interview_invitation_dispatched",
            recipient=recipient,
            status=event.status.value,
            message_id=receipt.message_id,
        )
        return event

    def dispatch_result(
        self,
        recipient: str,
        candidate_name: str,
        phase: InterviewPhase,
        outcome: InterviewOutcome,
        sender: SenderInfo | None = None,
        position: str | None = None,
    ) -> NotificationEvent:
        """Send an outcome notice and record the outcome instead of raising."""
        kind = result_kind(phase, outcome)
        subject = RESULT_SUBJECTS[kind].format(position=position or "the position")
        try:
            receipt = self.send_interview_result(
                recipient, candidate_name, phase, outcome, sender, position
            )
        except (RecruitingError, jinja2.TemplateError) as e:
            log.error("interview_result_email_failed", recipient=recipient, error=str(e))
            return NotificationEvent.failure(recipient, kind.value, str(e), subject=subject)

        return NotificationEvent.from_receipt(recipient, kind.value, subject, receipt)
