"""
Approval workflow use cases.
Submit, approve and reject run as batches through the transition coordinator.
"""

from timesheet_engine.application.use_cases.base_use_case import AuthorizedUseCase, BatchUseCase
from timesheet_engine.application.dto.time_entry_dto import (
    SubmitTimeEntriesRequestDTO,
    ApproveTimeEntriesRequestDTO,
    RejectTimeEntriesRequestDTO,
    BatchFailureDTO,
    BatchResultResponseDTO,
)
from timesheet_engine.domain.models.time_entry import TimeEntryStatus
from timesheet_engine.domain.services.access_policy import Capability
from timesheet_engine.domain.services.batch_transition_service import (
    BatchResult,
    BatchTransitionService,
)


def _to_response_dto(result: BatchResult) -> BatchResultResponseDTO:
    return BatchResultResponseDTO(
        succeeded=result.succeeded,
        failed=[
            BatchFailureDTO(id=f.id, reason_code=f.reason_code, message=f.message)
            for f in result.failed
        ]
    )


class SubmitTimeEntriesUseCase(
    AuthorizedUseCase,
    BatchUseCase[SubmitTimeEntriesRequestDTO, BatchResultResponseDTO]
):
    """Use case for submitting the caller's own Draft entries."""

    def __init__(self, batch_service: BatchTransitionService):
        super().__init__()
        self.batch_service = batch_service

    async def _check_authorization(self, request: SubmitTimeEntriesRequestDTO) -> None:
        self._require_capability(Capability.SUBMIT_OWN)

    async def _execute_command_logic(self, request: SubmitTimeEntriesRequestDTO) -> BatchResultResponseDTO:
        result = await self.batch_service.apply_batch(
            request.entry_ids,
            TimeEntryStatus.SUBMITTED,
            caller_role=self.current_role,
            caller_id=self.current_user_id,
            company_id=self.company_id
        )
        return _to_response_dto(result)


class ApproveTimeEntriesUseCase(
    AuthorizedUseCase,
    BatchUseCase[ApproveTimeEntriesRequestDTO, BatchResultResponseDTO]
):
    """Use case for approving Submitted entries that belong to one user."""

    def __init__(self, batch_service: BatchTransitionService):
        super().__init__()
        self.batch_service = batch_service

    async def _check_authorization(self, request: ApproveTimeEntriesRequestDTO) -> None:
        self._require_capability(Capability.APPROVE_OTHERS)

    async def _execute_command_logic(self, request: ApproveTimeEntriesRequestDTO) -> BatchResultResponseDTO:
        result = await self.batch_service.apply_batch(
            request.entry_ids,
            TimeEntryStatus.APPROVED,
            caller_role=self.current_role,
            caller_id=self.current_user_id,
            company_id=self.company_id,
            owner_user_id=request.user_id
        )
        return _to_response_dto(result)


class RejectTimeEntriesUseCase(
    AuthorizedUseCase,
    BatchUseCase[RejectTimeEntriesRequestDTO, BatchResultResponseDTO]
):
    """Use case for rejecting Submitted entries that belong to one user."""

    def __init__(self, batch_service: BatchTransitionService):
        super().__init__()
        self.batch_service = batch_service

    async def _check_authorization(self, request: RejectTimeEntriesRequestDTO) -> None:
        self._require_capability(Capability.REJECT_OTHERS)

    async def _execute_command_logic(self, request: RejectTimeEntriesRequestDTO) -> BatchResultResponseDTO:
        result = await self.batch_service.apply_batch(
            request.entry_ids,
            TimeEntryStatus.REJECTED,
            caller_role=self.current_role,
            caller_id=self.current_user_id,
            company_id=self.company_id,
            owner_user_id=request.user_id,
            rejection_reason=request.reason
        )
        return _to_response_dto(result)
