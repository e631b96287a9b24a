"""
Authorization Gate

Static role table deciding which operators may act on a recruit.
Checked first in every lifecycle operation: the role check runs before
anything is loaded, the ownership check runs after the recruit is loaded
and before any mutation or provider call.
"""

from dataclasses import dataclass
from typing import Final

import structlog

from recruiting.shared.exceptions import AuthorizationDeniedError
from recruiting.shared.models.operator import Operator, OperatorRole
from recruiting.shared.models.recruit import Recruit
from recruiting.shared.state_machine import InterviewAction

log = structlog.get_logger()

SCREENER_ROLES: Final[frozenset[OperatorRole]] = frozenset({
    OperatorRole.INTERN,
    OperatorRole.STAFF,
})

ROLE_PERMISSIONS: Final[dict[InterviewAction, frozenset[OperatorRole]]] = {
    InterviewAction.SCHEDULE_INITIAL: SCREENER_ROLES,
    InterviewAction.COMPLETE_INITIAL: SCREENER_ROLES,
    InterviewAction.MANAGE_INITIAL_MEETING: SCREENER_ROLES,
    InterviewAction.SCHEDULE_FINAL: frozenset({OperatorRole.UNIT_MANAGER}),
    InterviewAction.COMPLETE_FINAL: frozenset({OperatorRole.UNIT_MANAGER}),
    InterviewAction.MANAGE_FINAL_MEETING: frozenset({OperatorRole.UNIT_MANAGER}),
    InterviewAction.ASSIGN_OWNER: frozenset(OperatorRole),
    InterviewAction.DELETE_RECRUIT: frozenset({
        OperatorRole.UNIT_MANAGER,
        OperatorRole.ADMIN,
    }),
    InterviewAction.VIEW_TEAM_RECRUITS: frozenset({
        OperatorRole.UNIT_MANAGER,
        OperatorRole.ADMIN,
    }),
    InterviewAction.LIST_UNIT_MANAGERS: SCREENER_ROLES,
}

# Actions only the unit manager named on the recruit may take
ASSIGNEE_BOUND_ACTIONS: Final[frozenset[InterviewAction]] = frozenset({
    InterviewAction.SCHEDULE_FINAL,
    InterviewAction.COMPLETE_FINAL,
    InterviewAction.MANAGE_FINAL_MEETING,
})


@dataclass(frozen=True)
class AuthorizationDecision:
    """Allow/deny with a human-readable reason on deny."""

    allowed: bool
    reason: str | None = None

    @classmethod
    def allow(cls) -> "AuthorizationDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, reason: str) -> "AuthorizationDecision":
        return cls(allowed=False, reason=reason)


def _describe(roles: frozenset[OperatorRole]) -> str:
    names = sorted(role.value for role in roles)
    return ", ".join(names)


class AuthorizationGate:
    """Per-operation role and ownership check."""

    def __init__(
        self,
        permissions: dict[InterviewAction, frozenset[OperatorRole]] | None = None,
    ) -> None:
        self._permissions = permissions or ROLE_PERMISSIONS

    def check(
        self,
        operator: Operator,
        action: InterviewAction,
        recruit: Recruit | None = None,
    ) -> AuthorizationDecision:
        """
        Decide whether an operator may take an action.

        Args:
            operator: Acting operator
            action: Requested action
            recruit: Loaded recruit, for ownership-bound actions; when omitted
                only the role is checked

        Returns:
            AuthorizationDecision
        """
        allowed_roles = self._permissions.get(action, frozenset())
        if operator.role not in allowed_roles:
            return AuthorizationDecision.deny(
                f"Role '{operator.role.value}' may not {action.value.replace('_', ' ')}; "
                f"required: {_describe(allowed_roles)}"
            )

        if recruit is not None and action in ASSIGNEE_BOUND_ACTIONS:
            assignee = recruit.final_interview_assigned_to
            if assignee is not None and assignee != operator.operator_id:
                return AuthorizationDecision.deny(
                    "Only the unit manager assigned to this recruit's final interview "
                    "may act on it"
                )

        return AuthorizationDecision.allow()

    def require(
        self,
        operator: Operator,
        action: InterviewAction,
        recruit: Recruit | None = None,
    ) -> None:
        """
        Raise unless the operator may take the action.

        Raises:
            AuthorizationDeniedError: If the check denies
        """
        decision = self.check(operator, action, recruit)
        if decision.allowed:
            return

        log.warning(
            "authorization_denied",
            operator_id=operator.operator_id,
            role=operator.role.value,
            action=action.value,
            recruit_id=recruit.recruit_id if recruit else None,
            reason=decision.reason,
        )
        raise AuthorizationDeniedError(
            operator_id=operator.operator_id,
            action=action.value,
            reason=decision.reason or "Not permitted",
        )
