"""
Time Entry use cases for the application layer.
Implements create, edit, delete and the read side of time tracking.
"""

import logging
from typing import Dict, List, Optional

from timesheet_engine.application.use_cases.base_use_case import (
    AuthorizedUseCase,
    CreateUseCase,
    DeleteUseCase,
    GetByIdUseCase,
    ListUseCase,
    QueryUseCase,
    UpdateUseCase,
)
from timesheet_engine.application.dto.time_entry_dto import (
    CreateTimeEntryRequestDTO,
    UpdateTimeEntryRequestDTO,
    ListTimeEntriesRequestDTO,
    TimeEntryStatsRequestDTO,
    TimesheetRequestDTO,
    TimeEntryResponseDTO,
    TimeEntryListResponseDTO,
    TimeEntryStatsResponseDTO,
    TimesheetResponseDTO,
    TimesheetTotalsDTO,
    UserHoursDTO,
)
from timesheet_engine.domain.models.base import (
    AuthorizationError,
    ConcurrencyConflict,
    EntityNotFoundError,
    StateError,
    ValidationError,
)
from timesheet_engine.domain.models.project import ProjectReference, TaskReference
from timesheet_engine.domain.models.time_entry import TimeEntry, TimeEntryStatus
from timesheet_engine.domain.models.user import UserReference
from timesheet_engine.domain.repositories.project_repository import ProjectRepository
from timesheet_engine.domain.repositories.time_entry_repository import (
    TimeEntryFilter,
    TimeEntryRepository,
)
from timesheet_engine.domain.repositories.user_repository import UserRepository
from timesheet_engine.domain.services.access_policy import Capability, can_view, scope_filter
from timesheet_engine.domain.services.statistics_service import StatisticsService
from timesheet_engine.domain.services.transition_validator import TransitionValidator


logger = logging.getLogger(__name__)


class TimeEntryResponseMixin:
    """
    Builds response DTOs with display data joined from the collaborators.
    Lookups are memoized for the lifetime of one use case instance.
    """

    project_repository: ProjectRepository
    user_repository: UserRepository

    def _reset_lookups(self) -> None:
        self._projects: Dict[int, Optional[ProjectReference]] = {}
        self._tasks: Dict[int, Optional[TaskReference]] = {}
        self._users: Dict[str, Optional[UserReference]] = {}

    async def _project(self, project_id: int) -> Optional[ProjectReference]:
        if not hasattr(self, "_projects"):
            self._reset_lookups()
        if project_id not in self._projects:
            self._projects[project_id] = await self.project_repository.find_project(project_id)
        return self._projects[project_id]

    async def _task(self, task_id: Optional[int]) -> Optional[TaskReference]:
        if task_id is None:
            return None
        if not hasattr(self, "_tasks"):
            self._reset_lookups()
        if task_id not in self._tasks:
            self._tasks[task_id] = await self.project_repository.find_task(task_id)
        return self._tasks[task_id]

    async def _user(self, user_id: str) -> Optional[UserReference]:
        if not hasattr(self, "_users"):
            self._reset_lookups()
        if user_id not in self._users:
            self._users[user_id] = await self.user_repository.find_by_id(user_id)
        return self._users[user_id]

    async def _user_name(self, user_id: str) -> str:
        user = await self._user(user_id)
        return user.full_name if user else user_id

    async def _time_entry_to_response_dto(self, time_entry: TimeEntry) -> TimeEntryResponseDTO:
        """Convert TimeEntry domain model to response DTO."""
        project = await self._project(time_entry.project_id)
        task = await self._task(time_entry.task_id)

        return TimeEntryResponseDTO(
            id=time_entry.id,
            user_id=time_entry.user_id,
            user_name=await self._user_name(time_entry.user_id),
            company_id=time_entry.company_id,
            project_id=time_entry.project_id,
            project_name=project.name if project else None,
            task_id=time_entry.task_id,
            task_title=task.title if task else None,
            description=time_entry.description,
            duration=time_entry.duration,
            work_date=time_entry.date,
            billable=time_entry.billable,
            bill_rate=time_entry.bill_rate,
            status=time_entry.status,
            submitted_at=time_entry.submitted_at,
            approved_by=time_entry.approved_by,
            approved_at=time_entry.approved_at,
            rejection_reason=time_entry.rejection_reason,
            created_by=time_entry.created_by,
            updated_by=time_entry.updated_by,
            version=time_entry.version,
            is_editable=time_entry.is_editable,
            billed_amount=time_entry.billed_amount,
            created_at=time_entry.created_at,
            updated_at=time_entry.updated_at
        )

    async def _time_entries_to_response_dtos(self, entries: List[TimeEntry]) -> List[TimeEntryResponseDTO]:
        return [await self._time_entry_to_response_dto(entry) for entry in entries]


async def _require_task_in_project(
    project_repository: ProjectRepository,
    task_id: Optional[int],
    project_id: int
) -> None:
    if task_id is None:
        return
    task = await project_repository.find_task(task_id)
    if not task or task.project_id != project_id:
        raise ValidationError("Task not found or not in the specified project", "task_id")


def _filter_from_request(request) -> TimeEntryFilter:
    return TimeEntryFilter(
        user_id=request.user_id,
        project_id=request.project_id,
        task_id=request.task_id,
        status=TimeEntryStatus(request.status) if request.status else None,
        billable=request.billable,
        date_from=request.date_from,
        date_to=request.date_to,
        search=request.search.strip() if request.search and request.search.strip() else None,
    )


class CreateTimeEntryUseCase(
    TimeEntryResponseMixin,
    AuthorizedUseCase,
    CreateUseCase[CreateTimeEntryRequestDTO, TimeEntryResponseDTO]
):
    """Use case for creating a Draft time entry owned by the caller."""

    def __init__(
        self,
        time_entry_repository: TimeEntryRepository,
        project_repository: ProjectRepository,
        user_repository: UserRepository
    ):
        super().__init__()
        self.time_entry_repository = time_entry_repository
        self.project_repository = project_repository
        self.user_repository = user_repository

    async def _check_authorization(self, request: CreateTimeEntryRequestDTO) -> None:
        self._require_capability(Capability.CREATE)

    async def _execute_command_logic(self, request: CreateTimeEntryRequestDTO) -> TimeEntryResponseDTO:
        # Content rules first, before touching any store
        time_entry = TimeEntry.create_draft(
            user_id=self.current_user_id,
            company_id=self.company_id,
            project_id=request.project_id,
            task_id=request.task_id,
            description=request.description,
            duration=request.duration,
            date=request.work_date,
            billable=request.billable,
            bill_rate=request.bill_rate
        )

        # Verify project belongs to the caller's company
        project = await self._project(request.project_id)
        if not project or project.company_id != self.company_id:
            raise EntityNotFoundError("Project", request.project_id)

        await _require_task_in_project(self.project_repository, request.task_id, request.project_id)

        saved_entry = await self.time_entry_repository.save(time_entry)
        logger.info(f"Time entry {saved_entry.id} created by {self.current_user_id}")

        return await self._time_entry_to_response_dto(saved_entry)


class UpdateTimeEntryUseCase(
    TimeEntryResponseMixin,
    AuthorizedUseCase,
    UpdateUseCase[UpdateTimeEntryRequestDTO, TimeEntryResponseDTO]
):
    """
    Use case for editing the content of an entry.
    Only the owner may edit, and only while Draft or Rejected.
    """

    def __init__(
        self,
        time_entry_repository: TimeEntryRepository,
        project_repository: ProjectRepository,
        user_repository: UserRepository,
        validator: Optional[TransitionValidator] = None
    ):
        super().__init__()
        self.time_entry_repository = time_entry_repository
        self.project_repository = project_repository
        self.user_repository = user_repository
        self.validator = validator or TransitionValidator()

    async def _validate_request(self, request: UpdateTimeEntryRequestDTO) -> None:
        await super()._validate_request(request)
        if request.id is None:
            raise ValidationError("Time entry ID is required", "id")

    async def _check_authorization(self, request: UpdateTimeEntryRequestDTO) -> None:
        self._require_capability(Capability.EDIT_OWN_DRAFT)

    async def _execute_command_logic(self, request: UpdateTimeEntryRequestDTO) -> TimeEntryResponseDTO:
        time_entry = await self.time_entry_repository.find_by_id(request.id)
        if not time_entry or not can_view(self.current_role, self.current_user_id, self.company_id, time_entry):
            raise EntityNotFoundError("TimeEntry", request.id)

        expected_status = time_entry.status
        self.validator.check(
            expected_status,
            TimeEntryStatus.DRAFT,
            self.current_role,
            time_entry.is_owned_by(self.current_user_id)
        )

        time_entry.update_content(
            updated_by=self.current_user_id,
            description=request.description,
            duration=request.duration,
            date=request.work_date,
            task_id=request.task_id,
            billable=request.billable,
            bill_rate=request.bill_rate,
            clear=request.cleared_fields()
        )

        await _require_task_in_project(self.project_repository, request.task_id, time_entry.project_id)

        if not await self.time_entry_repository.update(time_entry, expected_status):
            raise ConcurrencyConflict("TimeEntry", request.id)

        saved_entry = await self.time_entry_repository.find_by_id(request.id)
        if saved_entry is None:
            raise ConcurrencyConflict("TimeEntry", request.id)

        return await self._time_entry_to_response_dto(saved_entry)


class DeleteTimeEntryUseCase(AuthorizedUseCase, DeleteUseCase[int, bool]):
    """Use case for deleting the caller's own Draft entry."""

    def __init__(self, time_entry_repository: TimeEntryRepository):
        super().__init__()
        self.time_entry_repository = time_entry_repository

    async def _check_authorization(self, time_entry_id: int) -> None:
        self._require_capability(Capability.DELETE_OWN_DRAFT)

    async def _execute_command_logic(self, time_entry_id: int) -> bool:
        time_entry = await self.time_entry_repository.find_by_id(time_entry_id)
        if not time_entry or not can_view(self.current_role, self.current_user_id, self.company_id, time_entry):
            raise EntityNotFoundError("TimeEntry", time_entry_id)

        if not time_entry.is_owned_by(self.current_user_id):
            raise AuthorizationError("Only the owner can delete a time entry")

        if not time_entry.is_deletable:
            raise StateError(
                f"Cannot delete a time entry with status {time_entry.status.value}",
                time_entry.status
            )

        if not await self.time_entry_repository.delete(time_entry_id, TimeEntryStatus.DRAFT):
            raise ConcurrencyConflict("TimeEntry", time_entry_id)

        logger.info(f"Time entry {time_entry_id} deleted by {self.current_user_id}")
        return True


class GetTimeEntryUseCase(
    TimeEntryResponseMixin,
    AuthorizedUseCase,
    GetByIdUseCase[int, TimeEntryResponseDTO]
):
    """Use case for reading one entry. Invisible entries are reported as not found."""

    def __init__(
        self,
        time_entry_repository: TimeEntryRepository,
        project_repository: ProjectRepository,
        user_repository: UserRepository
    ):
        super().__init__()
        self.time_entry_repository = time_entry_repository
        self.project_repository = project_repository
        self.user_repository = user_repository

    async def _execute_business_logic(self, time_entry_id: int) -> TimeEntryResponseDTO:
        time_entry = await self.time_entry_repository.find_by_id(time_entry_id)
        if not time_entry or not can_view(self.current_role, self.current_user_id, self.company_id, time_entry):
            raise EntityNotFoundError("TimeEntry", time_entry_id)

        return await self._time_entry_to_response_dto(time_entry)


class ListTimeEntriesUseCase(
    TimeEntryResponseMixin,
    AuthorizedUseCase,
    ListUseCase[ListTimeEntriesRequestDTO, TimeEntryListResponseDTO]
):
    """
    Use case for listing entries visible to the caller.
    View-own callers asking for another user's entries get an empty page.
    """

    def __init__(
        self,
        time_entry_repository: TimeEntryRepository,
        project_repository: ProjectRepository,
        user_repository: UserRepository,
        default_page_size: int = 20,
        max_page_size: int = 100
    ):
        super().__init__(default_page_size=default_page_size, max_page_size=max_page_size)
        self.time_entry_repository = time_entry_repository
        self.project_repository = project_repository
        self.user_repository = user_repository

    async def _execute_business_logic(self, request: ListTimeEntriesRequestDTO) -> TimeEntryListResponseDTO:
        entry_filter = scope_filter(
            self.current_role, self.current_user_id, self.company_id, _filter_from_request(request)
        )
        if entry_filter is None:
            return TimeEntryListResponseDTO.create(
                items=[], total=0, page=request.page, page_size=request.page_size
            )

        total = await self.time_entry_repository.count(entry_filter)
        entries = await self.time_entry_repository.find(
            entry_filter,
            sort_by=request.sort_by or "date",
            sort_order=request.sort_order or "desc",
            offset=request.offset,
            limit=request.limit
        )

        return TimeEntryListResponseDTO.create(
            items=await self._time_entries_to_response_dtos(entries),
            total=total,
            page=request.page,
            page_size=request.page_size
        )


class GetTimeEntryStatsUseCase(
    AuthorizedUseCase,
    QueryUseCase[TimeEntryStatsRequestDTO, TimeEntryStatsResponseDTO]
):
    """Use case for statistics over the entries visible to the caller."""

    def __init__(
        self,
        time_entry_repository: TimeEntryRepository,
        user_repository: UserRepository,
        statistics_service: Optional[StatisticsService] = None,
        top_users_limit: int = 5
    ):
        super().__init__()
        self.time_entry_repository = time_entry_repository
        self.user_repository = user_repository
        self.statistics_service = statistics_service or StatisticsService()
        self.top_users_limit = top_users_limit

    async def _execute_business_logic(self, request: TimeEntryStatsRequestDTO) -> TimeEntryStatsResponseDTO:
        entry_filter = scope_filter(
            self.current_role, self.current_user_id, self.company_id, _filter_from_request(request)
        )
        entries = await self.time_entry_repository.find(entry_filter) if entry_filter else []

        stats = self.statistics_service.aggregate(entries, self.top_users_limit)

        top_users = []
        for user_hours in stats.top_users:
            user = await self.user_repository.find_by_id(user_hours.user_id)
            top_users.append(UserHoursDTO(
                user_id=user_hours.user_id,
                user_name=user.full_name if user else None,
                total_hours=user_hours.total_hours,
                entry_count=user_hours.entry_count
            ))

        return TimeEntryStatsResponseDTO(
            total_hours=stats.total_hours,
            billable_hours=stats.billable_hours,
            total_entries=stats.total_entries,
            draft_entries=stats.draft_entries,
            submitted_entries=stats.submitted_entries,
            approved_entries=stats.approved_entries,
            rejected_entries=stats.rejected_entries,
            total_billed_amount=stats.total_billed_amount,
            top_users=top_users
        )


class GetTimesheetUseCase(
    TimeEntryResponseMixin,
    AuthorizedUseCase,
    QueryUseCase[TimesheetRequestDTO, TimesheetResponseDTO]
):
    """Use case for one user's timesheet, grouped by day."""

    def __init__(
        self,
        time_entry_repository: TimeEntryRepository,
        project_repository: ProjectRepository,
        user_repository: UserRepository,
        statistics_service: Optional[StatisticsService] = None
    ):
        super().__init__()
        self.time_entry_repository = time_entry_repository
        self.project_repository = project_repository
        self.user_repository = user_repository
        self.statistics_service = statistics_service or StatisticsService()

    async def _execute_business_logic(self, request: TimesheetRequestDTO) -> TimesheetResponseDTO:
        requested = TimeEntryFilter(
            user_id=request.user_id,
            date_from=request.date_from,
            date_to=request.date_to
        )
        entry_filter = scope_filter(self.current_role, self.current_user_id, self.company_id, requested)
        if entry_filter is None:
            raise AuthorizationError("You can only view your own timesheet")

        entries = await self.time_entry_repository.find(entry_filter)
        timesheet = self.statistics_service.build_timesheet(request.user_id, entries)

        items = await self._time_entries_to_response_dtos(timesheet.entries)
        items_by_id = {item.id: item for item in items}

        return TimesheetResponseDTO(
            user_id=request.user_id,
            user_name=await self._user_name(request.user_id),
            date_from=request.date_from,
            date_to=request.date_to,
            entries=items,
            grouped_by_date={
                day: [items_by_id[entry.id] for entry in day_entries]
                for day, day_entries in timesheet.grouped_by_date.items()
            },
            totals=TimesheetTotalsDTO(
                total_hours=timesheet.totals.total_hours,
                billable_hours=timesheet.totals.billable_hours,
                total_entries=timesheet.totals.total_entries,
                billed_amount=timesheet.totals.billed_amount
            )
        )
