"""Access policy for time entry operations.
A single role to capability table plus the predicates built on it.
"""

from dataclasses import replace
from enum import Enum
from typing import Optional, Dict, FrozenSet, Union

from timesheet_engine.domain.models.time_entry import TimeEntry
from timesheet_engine.domain.repositories.time_entry_repository import TimeEntryFilter


class Role(str, Enum):
    """Company roles known to the engine."""
    SUPERADMIN = "superadmin"
    ADMIN = "admin"
    HR = "hr"
    MANAGER = "manager"
    LEADS = "leads"
    EMPLOYEE = "employee"


class Capability(str, Enum):
    """Operation classes a role may be granted."""
    CREATE = "create"
    EDIT_OWN_DRAFT = "edit_own_draft"
    DELETE_OWN_DRAFT = "delete_own_draft"
    SUBMIT_OWN = "submit_own"
    APPROVE_OTHERS = "approve_others"
    REJECT_OTHERS = "reject_others"
    VIEW_ALL = "view_all"
    VIEW_OWN = "view_own"


_CONTRIBUTOR = frozenset({
    Capability.CREATE,
    Capability.EDIT_OWN_DRAFT,
    Capability.DELETE_OWN_DRAFT,
    Capability.SUBMIT_OWN,
    Capability.VIEW_OWN,
})

_REVIEWER = frozenset({
    Capability.CREATE,
    Capability.EDIT_OWN_DRAFT,
    Capability.DELETE_OWN_DRAFT,
    Capability.SUBMIT_OWN,
    Capability.APPROVE_OTHERS,
    Capability.REJECT_OTHERS,
    Capability.VIEW_ALL,
})

ROLE_CAPABILITIES: Dict[Role, FrozenSet[Capability]] = {
    Role.SUPERADMIN: _REVIEWER,
    Role.ADMIN: _REVIEWER,
    Role.HR: _REVIEWER,
    Role.MANAGER: _CONTRIBUTOR,
    Role.LEADS: _CONTRIBUTOR,
    Role.EMPLOYEE: _CONTRIBUTOR,
}


def parse_role(role: Union[Role, str, None]) -> Optional[Role]:
    """Resolve a role string case-insensitively. Unknown roles map to None."""
    if role is None:
        return None
    if isinstance(role, Role):
        return role
    try:
        return Role(str(role).strip().lower())
    except ValueError:
        return None


def can(role: Union[Role, str, None], capability: Capability) -> bool:
    """Check whether ``role`` holds ``capability``."""
    parsed = parse_role(role)
    if parsed is None:
        return False
    return capability in ROLE_CAPABILITIES[parsed]


def can_view(
    role: Union[Role, str, None],
    caller_id: str,
    company_id: str,
    entry: TimeEntry
) -> bool:
    """
    Visibility of a single entry.
    Entries from another company are never visible.
    """
    if entry.company_id != company_id:
        return False
    if can(role, Capability.VIEW_ALL):
        return True
    if can(role, Capability.VIEW_OWN):
        return entry.is_owned_by(caller_id)
    return False


def scope_filter(
    role: Union[Role, str, None],
    caller_id: str,
    company_id: str,
    requested: Optional[TimeEntryFilter] = None
) -> Optional[TimeEntryFilter]:
    """
    Narrow a requested filter to what the caller may see.

    View-all callers keep their requested owner filter. View-own callers are
    pinned to themselves. Returns None when the caller may see nothing,
    including a view-own caller asking for someone else's entries.
    """
    requested = requested or TimeEntryFilter()
    scoped = replace(requested, company_id=company_id)

    if can(role, Capability.VIEW_ALL):
        return scoped

    if can(role, Capability.VIEW_OWN):
        if requested.user_id is not None and requested.user_id != caller_id:
            return None
        return scoped.with_owner(caller_id)

    return None
