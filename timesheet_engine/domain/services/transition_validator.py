"""Transition validator for the time entry approval workflow.
Decides whether a status change is legal for a caller.
"""

from dataclasses import dataclass
from typing import Optional, Dict, Tuple, Union

from timesheet_engine.domain.models.base import (
    AuthorizationError,
    DomainException,
    StateError,
)
from timesheet_engine.domain.models.time_entry import TimeEntryStatus
from timesheet_engine.domain.services.access_policy import Capability, Role, can


@dataclass(frozen=True)
class EdgeRule:
    """Capability and ownership requirement of one legal edge."""
    capability: Capability
    owner_required: bool


LEGAL_EDGES: Dict[Tuple[TimeEntryStatus, TimeEntryStatus], EdgeRule] = {
    (TimeEntryStatus.DRAFT, TimeEntryStatus.SUBMITTED): EdgeRule(Capability.SUBMIT_OWN, True),
    (TimeEntryStatus.SUBMITTED, TimeEntryStatus.APPROVED): EdgeRule(Capability.APPROVE_OTHERS, False),
    (TimeEntryStatus.SUBMITTED, TimeEntryStatus.REJECTED): EdgeRule(Capability.REJECT_OTHERS, False),
    # Content edits
    (TimeEntryStatus.DRAFT, TimeEntryStatus.DRAFT): EdgeRule(Capability.EDIT_OWN_DRAFT, True),
    (TimeEntryStatus.REJECTED, TimeEntryStatus.DRAFT): EdgeRule(Capability.EDIT_OWN_DRAFT, True),
}


@dataclass(frozen=True)
class TransitionDecision:
    """Outcome of a validation: allowed, or denied with a reason."""
    allowed: bool
    reason_code: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def allow(cls) -> "TransitionDecision":
        return cls(allowed=True)

    @classmethod
    def deny(cls, error: DomainException) -> "TransitionDecision":
        return cls(allowed=False, reason_code=error.code, message=error.message)


class TransitionValidator:
    """
    Domain service deciding transition legality.

    An edge outside ``LEGAL_EDGES`` is a state problem. A legal edge that the
    caller's role or ownership does not permit is an authorization problem.
    Reviewers may not approve or reject their own entries.
    """

    def __init__(self, edges: Optional[Dict[Tuple[TimeEntryStatus, TimeEntryStatus], EdgeRule]] = None):
        self.edges = edges if edges is not None else LEGAL_EDGES

    def check(
        self,
        current_status: TimeEntryStatus,
        target_status: TimeEntryStatus,
        caller_role: Union[Role, str, None],
        is_owner: bool
    ) -> None:
        """Raise StateError or AuthorizationError when the transition is not allowed."""
        rule = self.edges.get((current_status, target_status))
        if rule is None:
            raise StateError(
                f"Cannot move a time entry from {current_status.value} to {target_status.value}",
                current_status
            )

        if not can(caller_role, rule.capability):
            raise AuthorizationError(
                f"Role '{caller_role}' may not move entries from "
                f"{current_status.value} to {target_status.value}"
            )

        if rule.owner_required and not is_owner:
            raise AuthorizationError("Only the owner can perform this action")

        if not rule.owner_required and is_owner:
            raise AuthorizationError("Reviewers cannot review their own time entries")

    def validate(
        self,
        current_status: TimeEntryStatus,
        target_status: TimeEntryStatus,
        caller_role: Union[Role, str, None],
        is_owner: bool
    ) -> TransitionDecision:
        """Decide a transition without raising."""
        try:
            self.check(current_status, target_status, caller_role, is_owner)
        except (StateError, AuthorizationError) as e:
            return TransitionDecision.deny(e)
        return TransitionDecision.allow()
