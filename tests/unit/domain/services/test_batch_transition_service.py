"""
Unit tests for BatchTransitionService domain service.
"""

import asyncio
import pytest

from timesheet_engine.domain.models.base import AuthorizationError, ValidationError
from timesheet_engine.domain.models.time_entry import TimeEntry, TimeEntryStatus
from timesheet_engine.domain.services.batch_transition_service import (
    BatchFailure,
    BatchResult,
    BatchTransitionService,
)
from timesheet_engine.infrastructure.repositories.memory_repository import InMemoryTimeEntryRepository


DRAFT = TimeEntryStatus.DRAFT
SUBMITTED = TimeEntryStatus.SUBMITTED
APPROVED = TimeEntryStatus.APPROVED
REJECTED = TimeEntryStatus.REJECTED


class RecordingRepository(InMemoryTimeEntryRepository):
    """Counts lookups so tests can assert the store was never read."""

    def __init__(self):
        super().__init__()
        self.lookups = 0

    async def find_by_id(self, entry_id):
        self.lookups += 1
        return await super().find_by_id(entry_id)


class RacingRepository(InMemoryTimeEntryRepository):
    """Another actor submits the entry between our lookup and our write."""

    async def find_by_id(self, entry_id):
        entry = await super().find_by_id(entry_id)
        if entry is not None and entry.status == DRAFT:
            await self.compare_and_swap_status(entry_id, DRAFT, SUBMITTED, {"updated_by": "someone-else"})
        return entry


class SlowRepository(InMemoryTimeEntryRepository):
    """Lookups for the ids in ``slow_ids`` never finish in time."""

    def __init__(self, slow_ids):
        super().__init__()
        self.slow_ids = set(slow_ids)

    async def find_by_id(self, entry_id):
        if entry_id in self.slow_ids:
            await asyncio.sleep(1)
        return await super().find_by_id(entry_id)


class BlockingRepository(InMemoryTimeEntryRepository):
    """Lookups for the ids in ``blocked_ids`` wait until the batch is cancelled."""

    def __init__(self, blocked_ids):
        super().__init__()
        self.blocked_ids = set(blocked_ids)
        self.blocked = asyncio.Event()

    async def find_by_id(self, entry_id):
        if entry_id in self.blocked_ids:
            self.blocked.set()
            await asyncio.Event().wait()
        return await super().find_by_id(entry_id)


def _draft():
    return TimeEntry.create_draft(
        user_id="u-emp", company_id="acme", project_id=1,
        description="Built login page", duration=1.5
    )


async def _statuses(repository, ids):
    return [(await repository.find_by_id(entry_id)).status for entry_id in ids]


class TestBatchSubmit:
    """Submitting the caller's own drafts."""

    @pytest.mark.asyncio
    async def test_mixed_batch_reports_per_entry(self, entry_repository, make_entry):
        """One Draft and one already Submitted entry: the Draft goes through."""
        draft = await make_entry()
        submitted = await make_entry(status=SUBMITTED)
        service = BatchTransitionService(entry_repository)

        result = await service.apply_batch(
            [draft.id, submitted.id], SUBMITTED,
            caller_role="employee", caller_id="u-emp", company_id="acme"
        )

        assert result.succeeded == [draft.id]
        assert [(f.id, f.reason_code) for f in result.failed] == [(submitted.id, "StateError")]
        assert await _statuses(entry_repository, [draft.id, submitted.id]) == [SUBMITTED, SUBMITTED]

    @pytest.mark.asyncio
    async def test_submit_sets_workflow_fields(self, entry_repository, make_entry):
        draft = await make_entry()
        service = BatchTransitionService(entry_repository)

        await service.apply_batch([draft.id], SUBMITTED, "employee", "u-emp", "acme")

        stored = await entry_repository.find_by_id(draft.id)
        assert stored.status == SUBMITTED
        assert stored.submitted_at is not None
        assert stored.updated_by == "u-emp"
        assert stored.version == draft.version + 1

    @pytest.mark.asyncio
    async def test_failures_do_not_abort_siblings(self, entry_repository, make_entry):
        first = await make_entry()
        approved = await make_entry(status=APPROVED)
        someone_elses = await make_entry(user_id="u-emp2")
        last = await make_entry()
        service = BatchTransitionService(entry_repository)

        result = await service.apply_batch(
            [first.id, approved.id, 999, someone_elses.id, last.id], SUBMITTED,
            "employee", "u-emp", "acme"
        )

        assert result.succeeded == [first.id, last.id]
        assert [(f.id, f.reason_code) for f in result.failed] == [
            (approved.id, "StateError"),
            (999, "NotFound"),
            (someone_elses.id, "NotFound"),
        ]
        assert await _statuses(entry_repository, [someone_elses.id]) == [DRAFT]

    @pytest.mark.asyncio
    async def test_reviewer_cannot_submit_for_someone_else(self, entry_repository, make_entry):
        """Reviewers can see the entry, so the failure is about ownership, not visibility."""
        draft = await make_entry()
        service = BatchTransitionService(entry_repository)

        result = await service.apply_batch([draft.id], SUBMITTED, "admin", "u-admin", "acme")

        assert result.succeeded == []
        assert result.failed[0].reason_code == "AuthorizationError"

    @pytest.mark.asyncio
    async def test_duplicates_collapse_and_order_is_kept(self, entry_repository, make_entry):
        first = await make_entry()
        second = await make_entry()
        third = await make_entry()
        service = BatchTransitionService(entry_repository, max_concurrency=2)

        result = await service.apply_batch(
            [third.id, first.id, third.id, second.id, first.id], SUBMITTED,
            "employee", "u-emp", "acme"
        )

        assert result.succeeded == [third.id, first.id, second.id]
        assert result.failed == []

    @pytest.mark.asyncio
    async def test_submit_is_not_idempotent(self, entry_repository, make_entry):
        """The second submit finds the entry already Submitted."""
        draft = await make_entry()
        service = BatchTransitionService(entry_repository)

        await service.apply_batch([draft.id], SUBMITTED, "employee", "u-emp", "acme")
        again = await service.apply_batch([draft.id], SUBMITTED, "employee", "u-emp", "acme")

        assert again.succeeded == []
        assert again.failed_ids == [draft.id]
        assert again.failed[0].reason_code == "StateError"

    @pytest.mark.asyncio
    async def test_other_company_entries_are_not_found(self, entry_repository, make_entry):
        foreign = await make_entry(user_id="u-ext", company_id="globex", project_id=3)
        service = BatchTransitionService(entry_repository)

        result = await service.apply_batch([foreign.id], SUBMITTED, "employee", "u-ext", "acme")

        assert result.failed[0].reason_code == "NotFound"


class TestBatchReview:
    """Approving and rejecting another user's submitted entries."""

    @pytest.mark.asyncio
    async def test_approve(self, entry_repository, make_entry):
        submitted = await make_entry(status=SUBMITTED)
        service = BatchTransitionService(entry_repository)

        result = await service.apply_batch(
            [submitted.id], APPROVED, "hr", "u-hr", "acme", owner_user_id="u-emp"
        )

        assert result.succeeded == [submitted.id]
        stored = await entry_repository.find_by_id(submitted.id)
        assert stored.status == APPROVED
        assert stored.approved_by == "u-hr"
        assert stored.approved_at is not None
        assert stored.rejection_reason is None

    @pytest.mark.asyncio
    async def test_reject_stores_trimmed_reason(self, entry_repository, make_entry):
        submitted = await make_entry(status=SUBMITTED)
        service = BatchTransitionService(entry_repository)

        result = await service.apply_batch(
            [submitted.id], REJECTED, "admin", "u-admin", "acme",
            owner_user_id="u-emp", rejection_reason="  Wrong project code  "
        )

        assert result.succeeded == [submitted.id]
        stored = await entry_repository.find_by_id(submitted.id)
        assert stored.status == REJECTED
        assert stored.rejection_reason == "Wrong project code"
        assert stored.approved_by == "u-admin"
        stored.validate()

    @pytest.mark.asyncio
    async def test_ownership_mismatch(self, entry_repository, make_entry):
        mine = await make_entry(status=SUBMITTED)
        theirs = await make_entry(user_id="u-emp2", status=SUBMITTED)
        service = BatchTransitionService(entry_repository)

        result = await service.apply_batch(
            [mine.id, theirs.id], APPROVED, "admin", "u-admin", "acme", owner_user_id="u-emp"
        )

        assert result.succeeded == [mine.id]
        assert result.failed == [BatchFailure(theirs.id, "OwnershipMismatch", "ownership mismatch")]
        assert await _statuses(entry_repository, [theirs.id]) == [SUBMITTED]

    @pytest.mark.asyncio
    async def test_reviewer_cannot_approve_own_entry(self, entry_repository, make_entry):
        own = await make_entry(user_id="u-admin", status=SUBMITTED)
        service = BatchTransitionService(entry_repository)

        result = await service.apply_batch(
            [own.id], APPROVED, "admin", "u-admin", "acme", owner_user_id="u-admin"
        )

        assert result.failed[0].reason_code == "AuthorizationError"
        assert await _statuses(entry_repository, [own.id]) == [SUBMITTED]

    @pytest.mark.asyncio
    async def test_only_submitted_entries_can_be_reviewed(self, entry_repository, make_entry):
        draft = await make_entry()
        approved = await make_entry(status=APPROVED)
        rejected = await make_entry(status=REJECTED)
        service = BatchTransitionService(entry_repository)

        result = await service.apply_batch(
            [draft.id, approved.id, rejected.id], REJECTED, "admin", "u-admin", "acme",
            owner_user_id="u-emp", rejection_reason="Not billable"
        )

        assert result.succeeded == []
        assert {f.reason_code for f in result.failed} == {"StateError"}

    @pytest.mark.asyncio
    async def test_concurrent_approvals_let_exactly_one_win(self, entry_repository, make_entry):
        submitted = await make_entry(status=SUBMITTED)
        first = BatchTransitionService(entry_repository)
        second = BatchTransitionService(entry_repository)

        results = await asyncio.gather(
            first.apply_batch([submitted.id], APPROVED, "admin", "u-admin", "acme", owner_user_id="u-emp"),
            second.apply_batch([submitted.id], APPROVED, "hr", "u-hr", "acme", owner_user_id="u-emp"),
        )

        winners = [r for r in results if r.succeeded == [submitted.id]]
        losers = [r for r in results if r.failed_ids == [submitted.id]]
        assert len(winners) == 1
        assert len(losers) == 1
        assert losers[0].failed[0].reason_code in ("StateError", "ConcurrencyConflict")

        stored = await entry_repository.find_by_id(submitted.id)
        assert stored.version == submitted.version + 1


class TestBatchConcurrencyControl:
    """Lost races and slow stores."""

    @pytest.mark.asyncio
    async def test_lost_race_is_a_concurrency_conflict(self):
        repository = RacingRepository()
        entry_id = (await repository.save(_draft())).id
        service = BatchTransitionService(repository)

        result = await service.apply_batch([entry_id], SUBMITTED, "employee", "u-emp", "acme")

        assert result.succeeded == []
        assert result.failed[0].reason_code == "ConcurrencyConflict"
        stored = await repository.find_by_id(entry_id)
        assert stored.updated_by == "someone-else"

    @pytest.mark.asyncio
    async def test_slow_entry_times_out_alone(self):
        repository = SlowRepository(slow_ids={2})
        for _ in range(3):
            await repository.save(_draft())
        service = BatchTransitionService(repository, entry_timeout=0.05)

        result = await service.apply_batch([1, 2, 3], SUBMITTED, "employee", "u-emp", "acme")

        assert result.succeeded == [1, 3]
        assert [(f.id, f.reason_code) for f in result.failed] == [(2, "Timeout")]

    @pytest.mark.asyncio
    async def test_cancelled_batch_keeps_committed_entries(self):
        """Entries written before the batch was cancelled stay written."""
        repository = BlockingRepository(blocked_ids={2})
        for _ in range(2):
            await repository.save(_draft())
        service = BatchTransitionService(repository, max_concurrency=1, entry_timeout=None)

        task = asyncio.create_task(
            service.apply_batch([1, 2], SUBMITTED, "employee", "u-emp", "acme")
        )
        await asyncio.wait_for(repository.blocked.wait(), timeout=1)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        repository.blocked_ids.clear()
        assert await _statuses(repository, [1, 2]) == [SUBMITTED, DRAFT]
        assert (await repository.find_by_id(1)).submitted_at is not None


class TestBatchRequestValidation:
    """Operation-level errors are raised before any entry is read."""

    def setup_method(self):
        """Set up test fixtures."""
        self.repository = RecordingRepository()
        self.service = BatchTransitionService(self.repository, max_batch_size=3)

    @pytest.mark.asyncio
    async def test_contributor_cannot_approve(self):
        with pytest.raises(AuthorizationError):
            await self.service.apply_batch([1], APPROVED, "employee", "u-emp", "acme", owner_user_id="u-emp2")
        assert self.repository.lookups == 0

    @pytest.mark.asyncio
    async def test_unknown_role_cannot_submit(self):
        with pytest.raises(AuthorizationError):
            await self.service.apply_batch([1], SUBMITTED, "visitor", "u-emp", "acme")
        assert self.repository.lookups == 0

    @pytest.mark.asyncio
    async def test_empty_id_list(self):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.apply_batch([], SUBMITTED, "employee", "u-emp", "acme")
        assert exc_info.value.field == "entry_ids"

    @pytest.mark.asyncio
    async def test_too_many_ids(self):
        with pytest.raises(ValidationError, match="max 3"):
            await self.service.apply_batch([1, 2, 3, 4], SUBMITTED, "employee", "u-emp", "acme")
        assert self.repository.lookups == 0

    @pytest.mark.asyncio
    async def test_duplicates_count_once_against_the_limit(self):
        result = await self.service.apply_batch([1, 1, 2, 2, 3], SUBMITTED, "employee", "u-emp", "acme")
        assert result.failed_ids == [1, 2, 3]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reason", [None, "", "   "])
    async def test_reject_requires_reason(self, reason):
        with pytest.raises(ValidationError) as exc_info:
            await self.service.apply_batch(
                [1], REJECTED, "admin", "u-admin", "acme",
                owner_user_id="u-emp", rejection_reason=reason
            )
        assert exc_info.value.field == "reason"
        assert self.repository.lookups == 0

    @pytest.mark.asyncio
    async def test_review_requires_owner(self):
        with pytest.raises(ValidationError, match="Owner"):
            await self.service.apply_batch([1], APPROVED, "admin", "u-admin", "acme")

    @pytest.mark.asyncio
    async def test_draft_is_not_a_batch_target(self):
        with pytest.raises(ValidationError):
            await self.service.apply_batch([1], DRAFT, "admin", "u-admin", "acme")


class TestBatchResult:
    """Test cases for the BatchResult value."""

    def test_to_dict(self):
        result = BatchResult(
            succeeded=[1, 3],
            failed=[BatchFailure(2, "StateError", "Cannot move a time entry from Approved to Submitted")]
        )

        assert result.failed_ids == [2]
        assert result.to_dict() == {
            "succeeded": [1, 3],
            "failed": [{
                "id": 2,
                "reason_code": "StateError",
                "message": "Cannot move a time entry from Approved to Submitted",
            }],
        }
