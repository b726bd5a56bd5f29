"""
Unit tests for the access policy table and its predicates.
"""

import pytest
from datetime import date

from timesheet_engine.domain.models.time_entry import TimeEntry, TimeEntryStatus
from timesheet_engine.domain.repositories.time_entry_repository import TimeEntryFilter
from timesheet_engine.domain.services.access_policy import (
    Capability,
    Role,
    ROLE_CAPABILITIES,
    can,
    can_view,
    parse_role,
    scope_filter,
)


def _entry(user_id="u-emp", company_id="acme"):
    return TimeEntry(
        user_id=user_id,
        company_id=company_id,
        project_id=1,
        description="Built login page",
        duration=1.0,
        date=date(2024, 3, 4),
    )


class TestAccessPolicy:
    """Test cases for role capabilities."""

    @pytest.mark.parametrize("role", ["superadmin", "admin", "hr"])
    def test_reviewer_roles(self, role):
        assert can(role, Capability.APPROVE_OTHERS)
        assert can(role, Capability.REJECT_OTHERS)
        assert can(role, Capability.VIEW_ALL)
        assert can(role, Capability.SUBMIT_OWN)
        assert not can(role, Capability.VIEW_OWN)

    @pytest.mark.parametrize("role", ["manager", "leads", "employee"])
    def test_contributor_roles(self, role):
        assert can(role, Capability.CREATE)
        assert can(role, Capability.EDIT_OWN_DRAFT)
        assert can(role, Capability.DELETE_OWN_DRAFT)
        assert can(role, Capability.SUBMIT_OWN)
        assert can(role, Capability.VIEW_OWN)
        assert not can(role, Capability.APPROVE_OTHERS)
        assert not can(role, Capability.REJECT_OTHERS)
        assert not can(role, Capability.VIEW_ALL)

    def test_every_role_is_in_the_table(self):
        assert set(ROLE_CAPABILITIES) == set(Role)

    def test_unknown_role_has_no_capabilities(self):
        for capability in Capability:
            assert not can("contractor", capability)
            assert not can(None, capability)
            assert not can("", capability)

    def test_roles_are_case_insensitive(self):
        assert parse_role("ADMIN") == Role.ADMIN
        assert parse_role(" Employee ") == Role.EMPLOYEE
        assert parse_role(Role.HR) == Role.HR
        assert parse_role("nobody") is None
        assert can("HR", Capability.APPROVE_OTHERS)


class TestVisibility:
    """Test cases for entry visibility and filter scoping."""

    def test_reviewer_sees_company_entries(self):
        assert can_view("admin", "u-admin", "acme", _entry())

    def test_contributor_sees_only_own_entries(self):
        assert can_view("employee", "u-emp", "acme", _entry())
        assert not can_view("employee", "u-emp2", "acme", _entry())

    def test_other_company_is_never_visible(self):
        assert not can_view("superadmin", "u-ext", "globex", _entry())
        assert not can_view("employee", "u-emp", "globex", _entry())

    def test_unknown_role_sees_nothing(self):
        assert not can_view("guest", "u-emp", "acme", _entry())
        assert scope_filter("guest", "u-emp", "acme") is None

    def test_scope_filter_for_reviewer_keeps_requested_owner(self):
        requested = TimeEntryFilter(user_id="u-emp", status=TimeEntryStatus.SUBMITTED)
        scoped = scope_filter("hr", "u-hr", "acme", requested)

        assert scoped.company_id == "acme"
        assert scoped.user_id == "u-emp"
        assert scoped.status == TimeEntryStatus.SUBMITTED

    def test_scope_filter_cannot_escape_company(self):
        requested = TimeEntryFilter(company_id="globex")
        scoped = scope_filter("admin", "u-admin", "acme", requested)
        assert scoped.company_id == "acme"

    def test_scope_filter_pins_contributor_to_self(self):
        scoped = scope_filter("employee", "u-emp", "acme", TimeEntryFilter(project_id=1))

        assert scoped.user_id == "u-emp"
        assert scoped.project_id == 1
        assert scoped.matches(_entry())
        assert not scoped.matches(_entry(user_id="u-emp2"))

    def test_scope_filter_contributor_asking_for_someone_else(self):
        requested = TimeEntryFilter(user_id="u-emp2")
        assert scope_filter("employee", "u-emp", "acme", requested) is None
