"""
Unit tests for the approval workflow use cases.
Covers the end-to-end lifecycle from creation to review.
"""

import pytest

from timesheet_engine.application.dto.time_entry_dto import (
    ApproveTimeEntriesRequestDTO,
    CreateTimeEntryRequestDTO,
    RejectTimeEntriesRequestDTO,
    SubmitTimeEntriesRequestDTO,
    TimeEntryStatsRequestDTO,
    UpdateTimeEntryRequestDTO,
)
from timesheet_engine.application.use_cases.time_entry_use_cases import (
    CreateTimeEntryUseCase,
    DeleteTimeEntryUseCase,
    GetTimeEntryStatsUseCase,
    UpdateTimeEntryUseCase,
)
from timesheet_engine.application.use_cases.time_entry_workflow_use_cases import (
    ApproveTimeEntriesUseCase,
    RejectTimeEntriesUseCase,
    SubmitTimeEntriesUseCase,
)
from timesheet_engine.domain.models.base import AuthorizationError, StateError, ValidationError
from timesheet_engine.domain.models.time_entry import TimeEntryStatus
from timesheet_engine.domain.services.batch_transition_service import BatchTransitionService


class TestApprovalWorkflow:
    """Lifecycle scenarios driven through the use cases."""

    @pytest.fixture(autouse=True)
    def _wire(self, entry_repository, project_repository, user_repository):
        self.entries = entry_repository
        self.projects = project_repository
        self.users = user_repository
        self.batch_service = BatchTransitionService(entry_repository)

    async def _create(self, context, **fields):
        values = dict(project_id=1, description="Built login page", duration=2.0, billable=False)
        values.update(fields)
        use_case = CreateTimeEntryUseCase(self.entries, self.projects, self.users)
        return await use_case.execute(context, CreateTimeEntryRequestDTO(**values))

    async def _submit(self, context, ids):
        return await SubmitTimeEntriesUseCase(self.batch_service).execute(
            context, SubmitTimeEntriesRequestDTO(entry_ids=ids)
        )

    async def _approve(self, context, owner, ids):
        return await ApproveTimeEntriesUseCase(self.batch_service).execute(
            context, ApproveTimeEntriesRequestDTO(user_id=owner, entry_ids=ids)
        )

    async def _reject(self, context, owner, ids, reason):
        return await RejectTimeEntriesUseCase(self.batch_service).execute(
            context, RejectTimeEntriesRequestDTO(user_id=owner, entry_ids=ids, reason=reason)
        )

    async def _status(self, entry_id):
        return (await self.entries.find_by_id(entry_id)).status

    @pytest.mark.asyncio
    async def test_owner_creates_and_submits(self, employee_context):
        """Scenario: a fresh Draft is submitted by its owner."""
        entry = await self._create(employee_context)
        assert entry.status == TimeEntryStatus.DRAFT

        result = await self._submit(employee_context, [entry.id])

        assert result.succeeded == [entry.id]
        assert result.failed == []
        assert await self._status(entry.id) == TimeEntryStatus.SUBMITTED

    @pytest.mark.asyncio
    async def test_reviewer_approves_and_stats_follow(self, employee_context, reviewer_context):
        """Scenario: approval sets the reviewer and the owner's stats reflect it."""
        entry = await self._create(employee_context)
        await self._submit(employee_context, [entry.id])

        result = await self._approve(reviewer_context, "u-emp", [entry.id])

        assert result.succeeded == [entry.id]
        stored = await self.entries.find_by_id(entry.id)
        assert stored.status == TimeEntryStatus.APPROVED
        assert stored.approved_by == "u-admin"
        assert stored.approved_at is not None

        stats = await GetTimeEntryStatsUseCase(self.entries, self.users).execute(
            reviewer_context, TimeEntryStatsRequestDTO(user_id="u-emp")
        )
        assert stats.approved_entries == 1
        assert stats.draft_entries == 0

    @pytest.mark.asyncio
    async def test_reject_with_empty_reason_changes_nothing(self, employee_context, reviewer_context):
        """Scenario: an empty reason fails the whole request before any write."""
        entry = await self._create(employee_context)
        await self._submit(employee_context, [entry.id])

        with pytest.raises(ValidationError):
            await self._reject(reviewer_context, "u-emp", [entry.id], "")

        assert await self._status(entry.id) == TimeEntryStatus.SUBMITTED

    @pytest.mark.asyncio
    async def test_delete_submitted_entry_fails(self, employee_context):
        """Scenario: a Submitted entry cannot be deleted."""
        entry = await self._create(employee_context)
        await self._submit(employee_context, [entry.id])

        with pytest.raises(StateError):
            await DeleteTimeEntryUseCase(self.entries).execute(employee_context, entry.id)

        assert await self._status(entry.id) == TimeEntryStatus.SUBMITTED

    @pytest.mark.asyncio
    async def test_partial_submit(self, employee_context):
        """Scenario: one Draft and one already Submitted entry in the same batch."""
        first = await self._create(employee_context)
        second = await self._create(employee_context, description="Reviewed pull requests")
        await self._submit(employee_context, [second.id])

        result = await self._submit(employee_context, [first.id, second.id])

        assert result.succeeded == [first.id]
        assert [(f.id, f.reason_code) for f in result.failed] == [(second.id, "StateError")]

    @pytest.mark.asyncio
    async def test_rejected_entry_goes_back_through_draft(self, employee_context, reviewer_context):
        """Reject, edit (back to Draft), resubmit, approve."""
        entry = await self._create(employee_context)
        await self._submit(employee_context, [entry.id])
        await self._reject(reviewer_context, "u-emp", [entry.id], "Wrong project")

        stored = await self.entries.find_by_id(entry.id)
        assert stored.status == TimeEntryStatus.REJECTED
        assert stored.rejection_reason == "Wrong project"

        # No direct resubmit from Rejected
        direct = await self._submit(employee_context, [entry.id])
        assert direct.failed[0].reason_code == "StateError"

        edited = await UpdateTimeEntryUseCase(self.entries, self.projects, self.users).execute(
            employee_context, UpdateTimeEntryRequestDTO(id=entry.id, duration=1.5)
        )
        assert edited.status == TimeEntryStatus.DRAFT
        assert edited.rejection_reason is None

        assert (await self._submit(employee_context, [entry.id])).succeeded == [entry.id]
        assert (await self._approve(reviewer_context, "u-emp", [entry.id])).succeeded == [entry.id]
        assert await self._status(entry.id) == TimeEntryStatus.APPROVED

    @pytest.mark.asyncio
    async def test_second_approve_is_a_state_error(self, employee_context, reviewer_context,
                                                   second_reviewer_context):
        entry = await self._create(employee_context)
        await self._submit(employee_context, [entry.id])
        await self._approve(reviewer_context, "u-emp", [entry.id])

        again = await self._approve(second_reviewer_context, "u-emp", [entry.id])

        assert again.succeeded == []
        assert again.failed[0].reason_code == "StateError"
        assert (await self.entries.find_by_id(entry.id)).approved_by == "u-admin"

    @pytest.mark.asyncio
    async def test_contributor_cannot_approve_or_reject(self, employee_context, other_employee_context):
        entry = await self._create(employee_context)
        await self._submit(employee_context, [entry.id])

        with pytest.raises(AuthorizationError):
            await self._approve(other_employee_context, "u-emp", [entry.id])

        with pytest.raises(AuthorizationError):
            await self._reject(other_employee_context, "u-emp", [entry.id], "Looks wrong")

        assert await self._status(entry.id) == TimeEntryStatus.SUBMITTED

    @pytest.mark.asyncio
    async def test_reviewer_cannot_approve_own_entry(self, reviewer_context, second_reviewer_context):
        entry = await self._create(reviewer_context)
        await self._submit(reviewer_context, [entry.id])

        own = await self._approve(reviewer_context, "u-admin", [entry.id])
        assert own.failed[0].reason_code == "AuthorizationError"

        peer = await self._approve(second_reviewer_context, "u-admin", [entry.id])
        assert peer.succeeded == [entry.id]

    @pytest.mark.asyncio
    async def test_reject_reports_ownership_mismatch(self, employee_context, other_employee_context,
                                                     reviewer_context):
        mine = await self._create(employee_context)
        theirs = await self._create(other_employee_context)
        await self._submit(employee_context, [mine.id])
        await self._submit(other_employee_context, [theirs.id])

        result = await self._reject(reviewer_context, "u-emp", [mine.id, theirs.id], "Missing ticket")

        assert result.succeeded == [mine.id]
        assert result.failed[0].id == theirs.id
        assert result.failed[0].reason_code == "OwnershipMismatch"
        assert await self._status(theirs.id) == TimeEntryStatus.SUBMITTED
