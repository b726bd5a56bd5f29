"""Batch transition coordinator.
Applies one status transition to a set of time entries with best-effort,
per-entry semantics.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Iterable, Dict, Any, Union

from timesheet_engine.domain.models.base import (
    AuthorizationError,
    ConcurrencyConflict,
    DomainException,
    EntityNotFoundError,
    ValidationError,
)
from timesheet_engine.domain.models.time_entry import TimeEntryStatus
from timesheet_engine.domain.repositories.time_entry_repository import TimeEntryRepository
from timesheet_engine.domain.services.access_policy import Capability, Role, can, can_view
from timesheet_engine.domain.services.transition_validator import TransitionValidator


logger = logging.getLogger(__name__)


OWNERSHIP_MISMATCH = "OwnershipMismatch"
TIMEOUT = "Timeout"

# Operation class required to request each batch target
BATCH_TARGETS = {
    TimeEntryStatus.SUBMITTED: Capability.SUBMIT_OWN,
    TimeEntryStatus.APPROVED: Capability.APPROVE_OTHERS,
    TimeEntryStatus.REJECTED: Capability.REJECT_OTHERS,
}


@dataclass(frozen=True)
class BatchFailure:
    """One entry that did not transition."""
    id: int
    reason_code: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "reason_code": self.reason_code, "message": self.message}


@dataclass
class BatchResult:
    """Per-entry outcome of a batch. Every requested id lands in exactly one list."""
    succeeded: List[int] = field(default_factory=list)
    failed: List[BatchFailure] = field(default_factory=list)

    @property
    def failed_ids(self) -> List[int]:
        return [failure.id for failure in self.failed]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": list(self.succeeded),
            "failed": [failure.to_dict() for failure in self.failed],
        }


class _OwnershipMismatch(DomainException):
    def __init__(self):
        super().__init__("ownership mismatch", OWNERSHIP_MISMATCH)


class BatchTransitionService:
    """
    Coordinates a transition over many entries.

    Each entry is looked up, checked and written independently. The write is
    a compare-and-swap conditioned on the status read at lookup, so a
    concurrent actor that got there first turns into a ConcurrencyConflict
    for that entry only. Committed entries are never rolled back.
    """

    def __init__(
        self,
        repository: TimeEntryRepository,
        validator: Optional[TransitionValidator] = None,
        max_batch_size: int = 100,
        max_concurrency: int = 4,
        entry_timeout: Optional[float] = 5.0
    ):
        self.repository = repository
        self.validator = validator or TransitionValidator()
        self.max_batch_size = max_batch_size
        self.max_concurrency = max(1, max_concurrency)
        self.entry_timeout = entry_timeout

    async def apply_batch(
        self,
        entry_ids: Iterable[int],
        target_status: TimeEntryStatus,
        caller_role: Union[Role, str, None],
        caller_id: str,
        company_id: str,
        owner_user_id: Optional[str] = None,
        rejection_reason: Optional[str] = None
    ) -> BatchResult:
        """
        Apply ``target_status`` to every id.

        Raises ValidationError or AuthorizationError for problems with the
        request as a whole, before any entry is read.
        """
        ids = self._prepare_ids(entry_ids)
        reason = self._check_request(
            ids, target_status, caller_role, owner_user_id, rejection_reason
        )

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def run(entry_id: int) -> Optional[BatchFailure]:
            async with semaphore:
                return await self._run_entry(
                    entry_id, target_status, caller_role, caller_id,
                    company_id, owner_user_id, reason
                )

        outcomes = await asyncio.gather(*(run(entry_id) for entry_id in ids))

        result = BatchResult()
        for entry_id, failure in zip(ids, outcomes):
            if failure is None:
                result.succeeded.append(entry_id)
            else:
                result.failed.append(failure)

        logger.info(
            f"Batch {target_status.value} by {caller_id}: "
            f"{len(result.succeeded)} succeeded, {len(result.failed)} failed"
        )
        return result

    def _prepare_ids(self, entry_ids: Iterable[int]) -> List[int]:
        if entry_ids is None:
            raise ValidationError("At least one time entry id is required", "entry_ids")
        # Collapse duplicates, keep first-seen order
        return list(dict.fromkeys(entry_ids))

    def _check_request(
        self,
        ids: List[int],
        target_status: TimeEntryStatus,
        caller_role: Union[Role, str, None],
        owner_user_id: Optional[str],
        rejection_reason: Optional[str]
    ) -> Optional[str]:
        capability = BATCH_TARGETS.get(target_status)
        if capability is None:
            raise ValidationError(
                f"{target_status.value} is not a valid batch target", "target_status"
            )

        if not can(caller_role, capability):
            logger.info(f"Role '{caller_role}' denied batch {target_status.value}")
            raise AuthorizationError(
                f"Role '{caller_role}' may not move entries to {target_status.value}"
            )

        if not ids:
            raise ValidationError("At least one time entry id is required", "entry_ids")

        if len(ids) > self.max_batch_size:
            raise ValidationError(
                f"Too many time entries in one batch (max {self.max_batch_size})",
                "entry_ids"
            )

        if target_status in (TimeEntryStatus.APPROVED, TimeEntryStatus.REJECTED):
            if not owner_user_id:
                raise ValidationError("Owner user id is required", "user_id")

        if target_status == TimeEntryStatus.REJECTED:
            if not rejection_reason or not rejection_reason.strip():
                raise ValidationError("Rejection reason is required", "reason")
            return rejection_reason.strip()

        return None

    async def _run_entry(
        self,
        entry_id: int,
        target_status: TimeEntryStatus,
        caller_role: Union[Role, str, None],
        caller_id: str,
        company_id: str,
        owner_user_id: Optional[str],
        rejection_reason: Optional[str]
    ) -> Optional[BatchFailure]:
        try:
            # Only interrupts at await points; synchronous store calls run to completion
            await asyncio.wait_for(
                self._transition_entry(
                    entry_id, target_status, caller_role, caller_id,
                    company_id, owner_user_id, rejection_reason
                ),
                timeout=self.entry_timeout
            )
        except asyncio.TimeoutError:
            failure = BatchFailure(entry_id, TIMEOUT, "Entry operation timed out")
        except DomainException as e:
            failure = BatchFailure(entry_id, e.code, e.message)
        else:
            return None

        logger.debug(f"Time entry {entry_id} not moved to {target_status.value}: {failure.reason_code}")
        return failure

    async def _transition_entry(
        self,
        entry_id: int,
        target_status: TimeEntryStatus,
        caller_role: Union[Role, str, None],
        caller_id: str,
        company_id: str,
        owner_user_id: Optional[str],
        rejection_reason: Optional[str]
    ) -> None:
        entry = await self.repository.find_by_id(entry_id)
        if entry is None or not can_view(caller_role, caller_id, company_id, entry):
            raise EntityNotFoundError("TimeEntry", entry_id)

        if owner_user_id is not None and entry.user_id != owner_user_id:
            raise _OwnershipMismatch()

        expected_status = entry.status
        self.validator.check(
            expected_status, target_status, caller_role, entry.is_owned_by(caller_id)
        )

        entry.transition_to(target_status, caller_id, rejection_reason)

        swapped = await self.repository.compare_and_swap_status(
            entry_id, expected_status, target_status, entry.workflow_fields()
        )
        if not swapped:
            raise ConcurrencyConflict("TimeEntry", entry_id)
