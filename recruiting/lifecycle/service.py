"""
Recruit Lifecycle

The authoritative entry point for every change to a recruit. Each
operation runs the same sequence:

    1. role check (AuthorizationGate, before any read)
    2. load the recruit
    3. ownership check for final-interview actions
    4. stage preconditions
    5. conferencing / email side effects (best effort)
    6. persist

Steps 1-4 are fatal and leave the record untouched. Once a schedule
transition is accepted, a failed meeting or email is reported in the
result and never rolls the transition back.
"""

import structlog

from recruiting.conferencing.meetings import ConferenceMeetingService, default_meeting_settings
from recruiting.conferencing.timezones import format_meeting_start
from recruiting.lifecycle.models import (
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
from recruiting.notifications.dispatcher import NotificationDispatcher
from recruiting.notifications.models import SenderInfo
from recruiting.shared.authorization import AuthorizationGate
from recruiting.shared.config import Settings, get_settings
from recruiting.shared.exceptions import (
    MeetingNotFoundError,
    RecruitingError,
    RecruitNotFoundError,
    UpstreamAuthRequiredError,
    ValidationError,
)
from recruiting.shared.models.meeting import MeetingRecord, MeetingSpec, MeetingUpdate
from recruiting.shared.models.operator import Operator, OperatorRole
from recruiting.shared.models.recruit import InterviewSlot, Recruit
from recruiting.shared.state_machine import (
    InterviewAction,
    InterviewOutcome,
    InterviewPhase,
    validate_action,
    validate_transition,
)
from recruiting.shared.tools.dynamodb import (
    create_recruit_record,
    delete_recruit_record,
    load_operator,
    load_recruit,
    list_operators_by_role,
    list_operators_by_supervisor,
    list_recruits_by_owner,
    require_operator,
    save_recruit,
)

log = structlog.get_logger()


def meeting_topic(phase: InterviewPhase, recruit: Recruit) -> str:
    return f"{phase.label} - {recruit.full_name}"


def _newest_first(recruits: list[Recruit]) -> list[Recruit]:
    return sorted(recruits, key=lambda r: r.created_at or 0, reverse=True)


class RecruitLifecycle:
    """
    Two-stage interview pipeline with role-gated transitions.

    Args:
        meetings: Conferencing client; None disables meeting creation
        notifier: Email dispatcher; None disables candidate email
        gate: Authorization rules (default: static role table)
        settings: Application settings
    """

    def __init__(
        self,
        meetings: ConferenceMeetingService | None = None,
        notifier: NotificationDispatcher | None = None,
        gate: AuthorizationGate | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.meetings = meetings
        self.notifier = notifier
        self.gate = gate or AuthorizationGate()
        self.settings = settings or get_settings()

    # ===== Loading and guards =====

    def _load(self, recruit_id: str) -> Recruit:
        recruit = load_recruit(recruit_id)
        if recruit is None:
            raise RecruitNotFoundError(recruit_id)
        return recruit

    def _authorize(
        self,
        actor: Operator,
        action: InterviewAction,
        recruit_id: str,
    ) -> Recruit:
        """Role check, load, ownership check, stage check."""
        self.gate.require(actor, action)
        recruit = self._load(recruit_id)
        self.gate.require(actor, action, recruit)
        validate_action(recruit.stage, action)
        return recruit

    def _sender(self, actor: Operator) -> SenderInfo:
        return SenderInfo(name=actor.name or None, email=actor.email or None)

    def _auth_url(self, operator_id: str) -> str | None:
        if self.meetings is None:
            return None
        return self.meetings.tokens.get_authorization_url(operator_id).auth_url

    # ===== Intake and reads =====

    def create_recruit(self, intake: RecruitIntake, actor: Operator) -> Recruit:
        """Create a recruit owned by the acting operator."""
        recruit = Recruit(
            recruit_id=intake.recruit_id,
            full_name=intake.full_name,
            email=intake.email,
            contact_number=intake.contact_number,
            location=intake.location,
            course=intake.course,
            school=intake.school,
            educational_status=intake.educational_status,
            date_applied=intake.date_applied,
            assigned_to=actor.operator_id,
        )
        return create_recruit_record(recruit)

    def get_recruit(self, recruit_id: str) -> Recruit:
        return self._load(recruit_id)

    def list_my_recruits(self, actor: Operator) -> list[Recruit]:
        """Recruits owned by the acting operator, newest first."""
        return _newest_first(list_recruits_by_owner(actor.operator_id))

    def list_team_recruits(self, actor: Operator) -> list[Recruit]:
        """Recruits owned by operators reporting directly to the actor."""
        self.gate.require(actor, InterviewAction.VIEW_TEAM_RECRUITS)
        team = list_operators_by_supervisor(actor.operator_id)
        recruits = [r for member in team for r in list_recruits_by_owner(member.operator_id)]
        log.debug(
            "team_recruits_listed",
            manager_id=actor.operator_id,
            team_size=len(team),
            count=len(recruits),
        )
        return _newest_first(recruits)

    def list_unit_managers(self, actor: Operator) -> list[Operator]:
        """Candidates for final-interview assignment, by name."""
        self.gate.require(actor, InterviewAction.LIST_UNIT_MANAGERS)
        managers = list_operators_by_role(OperatorRole.UNIT_MANAGER)
        return sorted(managers, key=lambda op: op.name.lower())

    def assign_owner(self, recruit_id: str, owner_id: str, actor: Operator) -> Recruit:
        """Reassign a recruit to another operator, at any stage."""
        recruit = self._authorize(actor, InterviewAction.ASSIGN_OWNER, recruit_id)
        owner = require_operator(owner_id)

        updated = recruit.with_updates(assigned_to=owner.operator_id)
        save_recruit(updated)

        log.info(
            "recruit_owner_assigned",
            recruit_id=recruit_id,
            previous_owner=recruit.assigned_to,
            new_owner=owner.operator_id,
            actor=actor.operator_id,
        )
        return updated

    # ===== Scheduling =====

    def schedule_initial_interview(
        self,
        recruit_id: str,
        request: ScheduleInterviewRequest,
        actor: Operator,
    ) -> ScheduleInterviewResult:
        """
        Schedule or reschedule the initial interview.

        Allowed for screeners while the initial interview is not completed.
        Stage becomes Pending.
        """
        recruit = self._authorize(actor, InterviewAction.SCHEDULE_INITIAL, recruit_id)
        return self._schedule(recruit, InterviewPhase.INITIAL, request, actor)

    def schedule_final_interview(
        self,
        recruit_id: str,
        request: ScheduleInterviewRequest,
        actor: Operator,
    ) -> ScheduleInterviewResult:
        """
        Schedule or reschedule the final interview.

        Only the unit manager named in `final_interview_assigned_to` may do
        this, and only while the recruit is Pending Final Interview.
        """
        recruit = self._authorize(actor, InterviewAction.SCHEDULE_FINAL, recruit_id)
        if recruit.final_interview_assigned_to is None:
            raise ValidationError(
                "Final interview has no assigned unit manager",
                recruit_id=recruit_id,
            )
        return self._schedule(recruit, InterviewPhase.FINAL, request, actor)

    def _schedule(
        self,
        recruit: Recruit,
        phase: InterviewPhase,
        request: ScheduleInterviewRequest,
        actor: Operator,
    ) -> ScheduleInterviewResult:
        tz_name = request.timezone or self.settings.default_timezone
        # Rejects unknown zones and nonexistent wall times before anything changes
        format_meeting_start(request.interview_date, tz_name, request.interview_time)

        interviewer_id = request.interviewer_id
        if interviewer_id is not None:
            require_operator(interviewer_id)
        elif phase is InterviewPhase.FINAL:
            interviewer_id = actor.operator_id

        slot = recruit.slot(phase).schedule(
            interview_date=request.interview_date,
            interview_time=request.interview_time,
            timezone=tz_name,
            interviewer_id=interviewer_id,
            notes=request.interview_notes,
        )
        scheduled = recruit.with_slot(phase, slot)
        validate_transition(recruit.stage, scheduled.stage)

        log.info(
            "interview_scheduling",
            recruit_id=recruit.recruit_id,
            phase=phase.value,
            interview_date=request.interview_date.isoformat(),
            interview_time=request.interview_time.isoformat(),
            timezone=tz_name,
            create_meeting=request.create_meeting,
            actor=actor.operator_id,
        )

        slot, meeting_outcome, record = self._sync_meeting(recruit, phase, slot, request, actor)

        email_outcome = EmailOutcome()
        if record is not None and request.send_invitation and self.notifier is not None:
            event = self.notifier.dispatch_invitation(
                recruit.email,
                record,
                self._sender(actor),
                phase.label,
            )
            email_outcome = EmailOutcome.from_event(event)

        updated = recruit.with_slot(phase, slot)
        save_recruit(updated)

        log.info(
            "interview_scheduled",
            recruit_id=recruit.recruit_id,
            phase=phase.value,
            stage=updated.stage.value,
            meeting_created=meeting_outcome.created,
            meeting_updated=meeting_outcome.updated,
            meeting_error=meeting_outcome.error_kind,
            email_sent=email_outcome.sent,
        )

        return ScheduleInterviewResult(
            recruit=updated,
            meeting=meeting_outcome,
            email=email_outcome,
        )

    def _sync_meeting(
        self,
        recruit: Recruit,
        phase: InterviewPhase,
        slot: InterviewSlot,
        request: ScheduleInterviewRequest,
        actor: Operator,
    ) -> tuple[InterviewSlot, MeetingOutcome, MeetingRecord | None]:
        """
        Create a meeting for a scheduled slot, or move its existing one.

        Returns the slot with meeting fields applied, the outcome to report,
        and the provider record when the call succeeded.
        """
        existing = slot.meeting
        if existing is None and not request.create_meeting:
            return slot, MeetingOutcome(), None

        if self.meetings is None:
            return slot, MeetingOutcome(
                requested=True,
                meeting=existing,
                error="Conferencing is not configured",
                error_kind="ConfigurationError",
            ), None

        host_id = existing.host_operator_id if existing and existing.host_operator_id else actor.operator_id
        tz_name = slot.timezone or self.settings.default_timezone
        duration = request.duration or self.meetings.config.default_meeting_duration

        try:
            if existing is not None:
                record = self.meetings.update_meeting(
                    existing.meeting_id,
                    MeetingUpdate(
                        local_date=slot.interview_date,
                        local_time=slot.interview_time,
                        timezone=tz_name,
                        duration=request.duration,
                    ),
                    host_id,
                )
            else:
                record = self.meetings.create_meeting(
                    MeetingSpec(
                        topic=meeting_topic(phase, recruit),
                        local_date=slot.interview_date,
                        local_time=slot.interview_time,
                        timezone=tz_name,
                        duration=duration,
                        agenda=request.interview_notes,
                        settings=default_meeting_settings(self.meetings.config),
                    ),
                    host_id,
                )
        except UpstreamAuthRequiredError as e:
            log.warning(
                "interview_meeting_auth_required",
                recruit_id=recruit.recruit_id,
                phase=phase.value,
                operator_id=host_id,
            )
            return slot, MeetingOutcome(
                requested=True,
                meeting=existing,
                error=e.message,
                error_kind=type(e).__name__,
                auth_required=True,
                auth_url=self._auth_url(host_id),
            ), None
        except MeetingNotFoundError as e:
            # Gone upstream; the stale link is dropped
            log.warning(
                "interview_meeting_missing",
                recruit_id=recruit.recruit_id,
                phase=phase.value,
                meeting_id=existing.meeting_id if existing else None,
            )
            return slot.with_meeting(None), MeetingOutcome(
                requested=True,
                error=e.message,
                error_kind=type(e).__name__,
            ), None
        except RecruitingError as e:
            log.error(
                "interview_meeting_failed",
                recruit_id=recruit.recruit_id,
                phase=phase.value,
                error=str(e),
                status_code=e.status_code,
            )
            return slot, MeetingOutcome(
                requested=True,
                meeting=existing,
                error=e.message,
                error_kind=type(e).__name__,
            ), None

        link = record.to_link(host_id)
        return slot.with_meeting(link), MeetingOutcome(
            requested=True,
            created=existing is None,
            updated=existing is not None,
            meeting=link,
        ), record

    # ===== Completion =====

    def complete_initial_interview(
        self,
        recruit_id: str,
        request: CompleteInitialRequest,
        actor: Operator,
    ) -> TransitionResult:
        """
        Record the initial interview outcome.

        A pass requires a unit manager to run the final interview; the
        recruit moves to Pending Final Interview. A fail rejects the recruit.
        """
        recruit = self._authorize(actor, InterviewAction.COMPLETE_INITIAL, recruit_id)

        assignee_id = None
        if request.passed:
            assignee_id = request.final_interview_assigned_to
            if not assignee_id:
                raise ValidationError(
                    "finalInterviewAssignedTo is required when the initial interview is passed",
                    recruit_id=recruit_id,
                )
            assignee = load_operator(assignee_id)
            if assignee is None or not assignee.is_unit_manager:
                raise ValidationError(
                    "Final interview must be assigned to a unit manager",
                    recruit_id=recruit_id,
                    final_interview_assigned_to=assignee_id,
                )

        outcome = InterviewOutcome.PASSED if request.passed else InterviewOutcome.FAILED
        slot = recruit.initial.complete(outcome, request.notes)
        updated = recruit.with_slot(
            InterviewPhase.INITIAL,
            slot,
            final_interview_assigned_to=assignee_id,
        )
        validate_transition(recruit.stage, updated.stage)
        save_recruit(updated)

        log.info(
            "initial_interview_completed",
            recruit_id=recruit_id,
            outcome=outcome.value,
            final_interview_assigned_to=assignee_id,
            stage=updated.stage.value,
            actor=actor.operator_id,
        )

        email = self._notify_result(updated, InterviewPhase.INITIAL, outcome, request.notify_candidate, actor)
        return TransitionResult(recruit=updated, email=email)

    def complete_final_interview(
        self,
        recruit_id: str,
        request: CompleteFinalRequest,
        actor: Operator,
    ) -> TransitionResult:
        """Record the hire / reject decision. Terminal."""
        recruit = self._authorize(actor, InterviewAction.COMPLETE_FINAL, recruit_id)
        if not recruit.final.is_scheduled:
            raise ValidationError(
                "Final interview has not been scheduled",
                recruit_id=recruit_id,
            )

        outcome = InterviewOutcome.PASSED if request.decision == "hired" else InterviewOutcome.FAILED
        slot = recruit.final.complete(outcome, request.notes)
        updated = recruit.with_slot(InterviewPhase.FINAL, slot)
        validate_transition(recruit.stage, updated.stage)
        save_recruit(updated)

        log.info(
            "final_interview_completed",
            recruit_id=recruit_id,
            decision=request.decision,
            stage=updated.stage.value,
            actor=actor.operator_id,
        )

        email = self._notify_result(updated, InterviewPhase.FINAL, outcome, request.notify_candidate, actor)
        return TransitionResult(recruit=updated, email=email)

    def _notify_result(
        self,
        recruit: Recruit,
        phase: InterviewPhase,
        outcome: InterviewOutcome,
        requested: bool,
        actor: Operator,
    ) -> EmailOutcome:
        if not requested or self.notifier is None or not self.notifier.config.send_result_emails:
            return EmailOutcome()
        event = self.notifier.dispatch_result(
            recruit.email,
            recruit.full_name,
            phase,
            outcome,
            self._sender(actor),
            position=recruit.course,
        )
        return EmailOutcome.from_event(event)

    # ===== Meeting management =====

    def retry_interview_meeting(
        self,
        recruit_id: str,
        phase: InterviewPhase,
        actor: Operator,
        *,
        duration: int | None = None,
        send_invitation: bool = True,
    ) -> ScheduleInterviewResult:
        """
        Create the meeting for a scheduled slot that has none.

        This is the follow-up after an operator re-authorizes; the slot's
        date and time are already persisted. Provider errors propagate.
        """
        recruit = self._authorize(actor, InterviewAction.manage_meeting_for(phase), recruit_id)
        slot = recruit.slot(phase)
        if not slot.is_scheduled:
            raise ValidationError(
                f"{phase.label} is not scheduled",
                recruit_id=recruit_id,
            )
        if slot.meeting is not None:
            raise ValidationError(
                f"{phase.label} already has a meeting",
                recruit_id=recruit_id,
                meeting_id=slot.meeting.meeting_id,
            )
        if self.meetings is None:
            raise ValidationError("Conferencing is not configured")

        record = self.meetings.create_meeting(
            MeetingSpec(
                topic=meeting_topic(phase, recruit),
                local_date=slot.interview_date,
                local_time=slot.interview_time,
                timezone=slot.timezone or self.settings.default_timezone,
                duration=duration or self.meetings.config.default_meeting_duration,
                agenda=slot.notes,
                settings=default_meeting_settings(self.meetings.config),
            ),
            actor.operator_id,
        )
        link = record.to_link(actor.operator_id)

        email = EmailOutcome()
        if send_invitation and self.notifier is not None:
            event = self.notifier.dispatch_invitation(
                recruit.email,
                record,
                self._sender(actor),
                phase.label,
            )
            email = EmailOutcome.from_event(event)

        updated = recruit.with_slot(phase, slot.with_meeting(link))
        save_recruit(updated)

        log.info(
            "interview_meeting_created",
            recruit_id=recruit_id,
            phase=phase.value,
            meeting_id=record.meeting_id,
            email_sent=email.sent,
        )

        return ScheduleInterviewResult(
            recruit=updated,
            meeting=MeetingOutcome(requested=True, created=True, meeting=link),
            email=email,
        )

    def cancel_interview_meeting(
        self,
        recruit_id: str,
        phase: InterviewPhase,
        actor: Operator,
    ) -> Recruit:
        """
        Delete a slot's meeting upstream, then clear its meeting fields.

        A meeting the provider no longer knows counts as deleted; any other
        provider error leaves the slot unchanged.
        """
        recruit = self._authorize(actor, InterviewAction.manage_meeting_for(phase), recruit_id)
        slot = recruit.slot(phase)
        if slot.meeting is None:
            raise ValidationError(
                f"{phase.label} has no meeting",
                recruit_id=recruit_id,
            )
        if self.meetings is None:
            raise ValidationError("Conferencing is not configured")

        meeting = slot.meeting
        host_id = meeting.host_operator_id or actor.operator_id
        try:
            self.meetings.delete_meeting(meeting.meeting_id, host_id)
        except MeetingNotFoundError:
            log.info(
                "interview_meeting_already_deleted",
                recruit_id=recruit_id,
                meeting_id=meeting.meeting_id,
            )

        updated = recruit.with_slot(phase, slot.with_meeting(None))
        save_recruit(updated)

        log.info(
            "interview_meeting_cancelled",
            recruit_id=recruit_id,
            phase=phase.value,
            meeting_id=meeting.meeting_id,
        )
        return updated

    # ===== Deletion =====

    def delete_recruit(self, recruit_id: str, actor: Operator) -> RecruitDeletion:
        """
        Delete a recruit after attempting to delete its live meetings.

        Upstream failures are logged and reported, and do not block deletion.
        """
        recruit = self._authorize(actor, InterviewAction.DELETE_RECRUIT, recruit_id)

        deleted_meetings: list[str] = []
        failed_meetings: list[str] = []
        for phase in InterviewPhase:
            slot = recruit.slot(phase)
            if slot.meeting is None or not slot.is_scheduled:
                continue

            meeting = slot.meeting
            if self.meetings is None:
                failed_meetings.append(meeting.meeting_id)
                continue

            try:
                self.meetings.delete_meeting(
                    meeting.meeting_id,
                    meeting.host_operator_id or actor.operator_id,
                )
            except MeetingNotFoundError:
                deleted_meetings.append(meeting.meeting_id)
            except RecruitingError as e:
                log.warning(
                    "recruit_meeting_delete_failed",
                    recruit_id=recruit_id,
                    meeting_id=meeting.meeting_id,
                    error=str(e),
                )
                failed_meetings.append(meeting.meeting_id)
            else:
                deleted_meetings.append(meeting.meeting_id)

        deleted = delete_recruit_record(recruit_id)

        log.info(
            "recruit_deleted",
            recruit_id=recruit_id,
            meetings_deleted=deleted_meetings,
            meetings_failed=failed_meetings,
            actor=actor.operator_id,
        )

        return RecruitDeletion(
            recruit_id=recruit_id,
            deleted=deleted,
            meetings_deleted=deleted_meetings,
            meetings_failed=failed_meetings,
        )
