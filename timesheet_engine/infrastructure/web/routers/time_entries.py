"""
Time entries router.
Handles time entry management, the approval workflow and reporting.
"""

from datetime import date
from typing import Annotated, Optional
from fastapi import APIRouter, Depends, Query, Response, status
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from timesheet_engine.config import Settings, get_settings
from timesheet_engine.application.use_cases.base_use_case import UseCaseContext
from timesheet_engine.application.use_cases.time_entry_use_cases import (
    CreateTimeEntryUseCase,
    UpdateTimeEntryUseCase,
    DeleteTimeEntryUseCase,
    GetTimeEntryUseCase,
    ListTimeEntriesUseCase,
    GetTimeEntryStatsUseCase,
    GetTimesheetUseCase,
)
from timesheet_engine.application.use_cases.time_entry_workflow_use_cases import (
    SubmitTimeEntriesUseCase,
    ApproveTimeEntriesUseCase,
    RejectTimeEntriesUseCase,
)
from timesheet_engine.application.dto.time_entry_dto import (
    CreateTimeEntryRequestDTO,
    UpdateTimeEntryRequestDTO,
    SubmitTimeEntriesRequestDTO,
    ApproveTimeEntriesRequestDTO,
    RejectTimeEntriesRequestDTO,
    ListTimeEntriesRequestDTO,
    TimeEntryStatsRequestDTO,
    TimesheetRequestDTO,
    TimeEntryResponseDTO,
    TimeEntryListResponseDTO,
    TimeEntryStatsResponseDTO,
    TimesheetResponseDTO,
    BatchResultResponseDTO,
)
from timesheet_engine.domain.models.time_entry import TimeEntryStatus
from timesheet_engine.domain.services.batch_transition_service import BatchTransitionService
from timesheet_engine.infrastructure.auth.dependencies import get_current_context
from timesheet_engine.infrastructure.db.database import get_db
from timesheet_engine.infrastructure.repositories.time_entry_repository import SQLAlchemyTimeEntryRepository
from timesheet_engine.infrastructure.repositories.project_repository import SQLAlchemyProjectRepository
from timesheet_engine.infrastructure.repositories.user_repository import SQLAlchemyUserRepository


router = APIRouter()


def get_time_entry_repository(session: Session = Depends(get_db)):
    """Dependency to get time entry repository."""
    return SQLAlchemyTimeEntryRepository(session)


def get_project_repository(session: Session = Depends(get_db)):
    """Dependency to get project repository."""
    return SQLAlchemyProjectRepository(session)


def get_user_repository(session: Session = Depends(get_db)):
    """Dependency to get user repository."""
    return SQLAlchemyUserRepository(session)


def get_batch_service(
    repository=Depends(get_time_entry_repository),
    settings: Settings = Depends(get_settings)
) -> BatchTransitionService:
    """Dependency to get the batch transition coordinator."""
    return BatchTransitionService(
        repository,
        max_batch_size=settings.max_batch_size,
        max_concurrency=settings.batch_concurrency,
        entry_timeout=settings.entry_operation_timeout_seconds
    )


Context = Annotated[UseCaseContext, Depends(get_current_context)]
EntryRepository = Annotated[SQLAlchemyTimeEntryRepository, Depends(get_time_entry_repository)]
ProjectRepository = Annotated[SQLAlchemyProjectRepository, Depends(get_project_repository)]
UserRepository = Annotated[SQLAlchemyUserRepository, Depends(get_user_repository)]
BatchService = Annotated[BatchTransitionService, Depends(get_batch_service)]


def _build_request(dto_class, **values):
    # Query parameters are validated here rather than by FastAPI
    try:
        return dto_class(**values)
    except PydanticValidationError as e:
        raise RequestValidationError(e.errors(include_url=False, include_context=False))


@router.post("", status_code=status.HTTP_201_CREATED, response_model=TimeEntryResponseDTO)
async def create_time_entry(
    request: CreateTimeEntryRequestDTO,
    context: Context,
    repository: EntryRepository,
    projects: ProjectRepository,
    users: UserRepository
):
    """
    Create a Draft time entry owned by the caller.

    - **project_id**: Project ID to log time for (required)
    - **task_id**: Task inside the project (optional)
    - **description**: At least 5 characters
    - **duration**: Hours, 0.25 to 24 in quarter-hour steps
    - **work_date**: Date worked (defaults to today)
    - **billable**: Whether this time is billable (default false)
    - **bill_rate**: Hourly bill rate (optional)
    """
    use_case = CreateTimeEntryUseCase(repository, projects, users)
    return await use_case.execute(context, request)


@router.get("", response_model=TimeEntryListResponseDTO)
async def list_time_entries(
    context: Context,
    repository: EntryRepository,
    projects: ProjectRepository,
    users: UserRepository,
    settings: Annotated[Settings, Depends(get_settings)],
    page: int = Query(1, description="Page number"),
    page_size: Optional[int] = Query(None, description="Items per page"),
    search: Optional[str] = Query(None, description="Search in description"),
    sort_by: str = Query("date", description="Sort field: date, duration, created_at, status"),
    sort_order: str = Query("desc", description="Sort order: asc or desc"),
    user_id: Optional[str] = Query(None, description="Filter by user ID"),
    project_id: Optional[int] = Query(None, description="Filter by project ID"),
    task_id: Optional[int] = Query(None, description="Filter by task ID"),
    entry_status: Optional[TimeEntryStatus] = Query(None, alias="status", description="Filter by status"),
    billable: Optional[bool] = Query(None, description="Filter by billable status"),
    date_from: Optional[date] = Query(None, description="Filter from date"),
    date_to: Optional[date] = Query(None, description="Filter to date")
):
    """
    List time entries visible to the caller.
    Reviewers see their whole company, everyone else sees only their own entries.
    """
    request = _build_request(
        ListTimeEntriesRequestDTO,
        page=page,
        page_size=page_size or settings.default_page_size,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        user_id=user_id,
        project_id=project_id,
        task_id=task_id,
        status=entry_status,
        billable=billable,
        date_from=date_from,
        date_to=date_to
    )

    use_case = ListTimeEntriesUseCase(
        repository, projects, users,
        default_page_size=settings.default_page_size,
        max_page_size=settings.max_page_size
    )
    return await use_case.execute(context, request)


@router.get("/stats", response_model=TimeEntryStatsResponseDTO)
async def get_time_entry_stats(
    context: Context,
    repository: EntryRepository,
    users: UserRepository,
    settings: Annotated[Settings, Depends(get_settings)],
    user_id: Optional[str] = Query(None, description="Filter by user ID"),
    project_id: Optional[int] = Query(None, description="Filter by project ID"),
    task_id: Optional[int] = Query(None, description="Filter by task ID"),
    entry_status: Optional[TimeEntryStatus] = Query(None, alias="status", description="Filter by status"),
    billable: Optional[bool] = Query(None, description="Filter by billable status"),
    date_from: Optional[date] = Query(None, description="Filter from date"),
    date_to: Optional[date] = Query(None, description="Filter to date"),
    search: Optional[str] = Query(None, description="Search in description")
):
    """
    Statistics over the entries visible to the caller, recomputed on every call.
    """
    request = _build_request(
        TimeEntryStatsRequestDTO,
        user_id=user_id,
        project_id=project_id,
        task_id=task_id,
        status=entry_status,
        billable=billable,
        date_from=date_from,
        date_to=date_to,
        search=search
    )

    use_case = GetTimeEntryStatsUseCase(repository, users, top_users_limit=settings.top_users_limit)
    return await use_case.execute(context, request)


@router.get("/timesheet/{user_id}", response_model=TimesheetResponseDTO)
async def get_timesheet(
    user_id: str,
    context: Context,
    repository: EntryRepository,
    projects: ProjectRepository,
    users: UserRepository,
    date_from: Optional[date] = Query(None, description="Period start"),
    date_to: Optional[date] = Query(None, description="Period end")
):
    """
    One user's entries for a period, grouped by day with totals.
    """
    request = _build_request(TimesheetRequestDTO, user_id=user_id, date_from=date_from, date_to=date_to)

    use_case = GetTimesheetUseCase(repository, projects, users)
    return await use_case.execute(context, request)


@router.post("/submit", response_model=BatchResultResponseDTO)
async def submit_time_entries(
    request: SubmitTimeEntriesRequestDTO,
    context: Context,
    batch_service: BatchService
):
    """
    Submit the caller's Draft entries for approval.
    Entries that cannot be submitted are reported in `failed`; the rest still go through.
    """
    use_case = SubmitTimeEntriesUseCase(batch_service)
    return await use_case.execute(context, request)


@router.post("/approve", response_model=BatchResultResponseDTO)
async def approve_time_entries(
    request: ApproveTimeEntriesRequestDTO,
    context: Context,
    batch_service: BatchService
):
    """
    Approve Submitted entries belonging to `user_id`.
    """
    use_case = ApproveTimeEntriesUseCase(batch_service)
    return await use_case.execute(context, request)


@router.post("/reject", response_model=BatchResultResponseDTO)
async def reject_time_entries(
    request: RejectTimeEntriesRequestDTO,
    context: Context,
    batch_service: BatchService
):
    """
    Reject Submitted entries belonging to `user_id`. A non-empty `reason` is required.
    """
    use_case = RejectTimeEntriesUseCase(batch_service)
    return await use_case.execute(context, request)


@router.get("/{entry_id}", response_model=TimeEntryResponseDTO)
async def get_time_entry(
    entry_id: int,
    context: Context,
    repository: EntryRepository,
    projects: ProjectRepository,
    users: UserRepository
):
    """
    Get a specific time entry by ID.
    """
    use_case = GetTimeEntryUseCase(repository, projects, users)
    return await use_case.execute(context, entry_id)


@router.put("/{entry_id}", response_model=TimeEntryResponseDTO)
async def update_time_entry(
    entry_id: int,
    request: UpdateTimeEntryRequestDTO,
    context: Context,
    repository: EntryRepository,
    projects: ProjectRepository,
    users: UserRepository
):
    """
    Edit a Draft or Rejected entry. Editing a Rejected entry returns it to Draft.
    """
    request.id = entry_id

    use_case = UpdateTimeEntryUseCase(repository, projects, users)
    return await use_case.execute(context, request)


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_time_entry(
    entry_id: int,
    context: Context,
    repository: EntryRepository
):
    """
    Delete a Draft entry owned by the caller.
    """
    use_case = DeleteTimeEntryUseCase(repository)
    await use_case.execute(context, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
