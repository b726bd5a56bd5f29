"""
Time Entry DTOs for the application layer.
Data Transfer Objects for time entry and approval workflow operations.
"""

from typing import Optional, List, Dict
from datetime import datetime, date
from pydantic import BaseModel, Field, field_validator, model_validator

from timesheet_engine.domain.models.time_entry import TimeEntryStatus
from timesheet_engine.domain.repositories.time_entry_repository import SORTABLE_FIELDS
from .base_dto import BaseDTO, RequestDTO, ResponseDTO, ListRequestDTO, ListResponseDTO


# Request DTOs
class CreateTimeEntryRequestDTO(RequestDTO):
    """DTO for manual time entry creation."""

    project_id: int = Field(description="Project ID")
    task_id: Optional[int] = Field(default=None, description="Task ID (optional)")
    description: str = Field(max_length=1000, description="Work description")
    duration: float = Field(description="Duration in hours, quarter-hour steps")
    work_date: Optional[date] = Field(default=None, description="Date when work was performed")
    billable: bool = Field(default=False, description="Whether time is billable")
    bill_rate: Optional[float] = Field(default=None, description="Hourly bill rate")


class UpdateTimeEntryRequestDTO(RequestDTO):
    """
    DTO for time entry update requests. Omitted fields are left unchanged.
    An explicit null for task_id or bill_rate clears the field.
    """

    id: Optional[int] = Field(default=None, description="Time entry ID (taken from the path)")
    description: Optional[str] = Field(default=None, max_length=1000, description="Work description")
    duration: Optional[float] = Field(default=None, description="Duration in hours")
    work_date: Optional[date] = Field(default=None, description="Date when work was performed")
    task_id: Optional[int] = Field(default=None, description="Task ID")
    billable: Optional[bool] = Field(default=None, description="Whether time is billable")
    bill_rate: Optional[float] = Field(default=None, description="Hourly bill rate")

    def cleared_fields(self) -> List[str]:
        """Optional fields sent explicitly as null."""
        return [
            name for name in ("task_id", "bill_rate")
            if name in self.model_fields_set and getattr(self, name) is None
        ]


class SubmitTimeEntriesRequestDTO(RequestDTO):
    """DTO for submitting the caller's own entries for approval."""

    entry_ids: List[int] = Field(description="Time entry IDs to submit")


class ApproveTimeEntriesRequestDTO(RequestDTO):
    """DTO for approving entries belonging to one user."""

    user_id: str = Field(description="Owner of the entries")
    entry_ids: List[int] = Field(description="Time entry IDs to approve")


class RejectTimeEntriesRequestDTO(RequestDTO):
    """DTO for rejecting entries belonging to one user."""

    user_id: str = Field(description="Owner of the entries")
    entry_ids: List[int] = Field(description="Time entry IDs to reject")
    reason: str = Field(default="", max_length=500, description="Rejection reason")


class TimeEntryFilterMixin(BaseModel):
    """Filter fields shared by list and stats requests."""

    user_id: Optional[str] = Field(default=None, description="Filter by user ID")
    project_id: Optional[int] = Field(default=None, description="Filter by project ID")
    task_id: Optional[int] = Field(default=None, description="Filter by task ID")
    status: Optional[TimeEntryStatus] = Field(default=None, description="Filter by status")
    billable: Optional[bool] = Field(default=None, description="Filter by billable status")
    date_from: Optional[date] = Field(default=None, description="Filter entries from date")
    date_to: Optional[date] = Field(default=None, description="Filter entries to date")
    search: Optional[str] = Field(default=None, max_length=255, description="Search in description")

    @model_validator(mode="after")
    def validate_date_range(self):
        """Validate date range."""
        if self.date_from and self.date_to and self.date_to < self.date_from:
            raise ValueError('date_to must be after date_from')
        return self


class ListTimeEntriesRequestDTO(ListRequestDTO, TimeEntryFilterMixin):
    """DTO for listing time entries with filters."""

    sort_by: Optional[str] = Field(default="date", description="Sort field")

    @field_validator('sort_by')
    @classmethod
    def validate_sort_by(cls, v):
        """Validate sort field."""
        if v is not None and v not in SORTABLE_FIELDS:
            raise ValueError(f'sort_by must be one of: {", ".join(SORTABLE_FIELDS)}')
        return v


class TimeEntryStatsRequestDTO(RequestDTO, TimeEntryFilterMixin):
    """DTO for statistics requests."""
    pass


class TimesheetRequestDTO(RequestDTO):
    """DTO for one user's timesheet."""

    user_id: str = Field(description="Timesheet owner")
    date_from: Optional[date] = Field(default=None, description="Period start")
    date_to: Optional[date] = Field(default=None, description="Period end")

    @model_validator(mode="after")
    def validate_date_range(self):
        if self.date_from and self.date_to and self.date_to < self.date_from:
            raise ValueError('date_to must be after date_from')
        return self


# Response DTOs
class TimeEntryResponseDTO(ResponseDTO):
    """DTO for time entry response."""

    user_id: str = Field(description="Owner user ID")
    user_name: Optional[str] = Field(default=None, description="Owner name")
    company_id: str = Field(description="Company ID")
    project_id: int = Field(description="Project ID")
    project_name: Optional[str] = Field(default=None, description="Project name")
    task_id: Optional[int] = Field(default=None, description="Task ID")
    task_title: Optional[str] = Field(default=None, description="Task title")

    # Content
    description: str = Field(description="Work description")
    duration: float = Field(description="Duration in hours")
    work_date: date = Field(description="Date when work was performed")
    billable: bool = Field(description="Whether time is billable")
    bill_rate: Optional[float] = Field(default=None, description="Hourly bill rate")

    # Approval workflow
    status: TimeEntryStatus = Field(description="Entry status")
    submitted_at: Optional[datetime] = Field(default=None, description="Submission timestamp")
    approved_by: Optional[str] = Field(default=None, description="Reviewer user ID")
    approved_at: Optional[datetime] = Field(default=None, description="Review timestamp")
    rejection_reason: Optional[str] = Field(default=None, description="Rejection reason")

    # Audit
    created_by: Optional[str] = Field(default=None, description="Creator user ID")
    updated_by: Optional[str] = Field(default=None, description="Last editor user ID")
    version: int = Field(default=1, description="Persisted mutation counter")

    # Computed fields
    is_editable: bool = Field(description="Whether entry content can be edited")
    billed_amount: float = Field(description="Duration times bill rate when billable")


class TimeEntryListResponseDTO(ListResponseDTO[TimeEntryResponseDTO]):
    """Paginated list of time entries."""
    pass


class BatchFailureDTO(BaseDTO):
    """One entry that a batch could not transition."""

    id: int = Field(description="Time entry ID")
    reason_code: str = Field(description="Failure code")
    message: str = Field(description="Failure message")


class BatchResultResponseDTO(BaseDTO):
    """DTO for batch transition results."""

    succeeded: List[int] = Field(default_factory=list, description="IDs that transitioned")
    failed: List[BatchFailureDTO] = Field(default_factory=list, description="IDs that did not")


class UserHoursDTO(BaseDTO):
    user_id: str
    user_name: Optional[str] = None
    total_hours: float
    entry_count: int


class TimeEntryStatsResponseDTO(BaseDTO):
    """DTO for time entry statistics."""

    total_hours: float = Field(description="Total hours logged")
    billable_hours: float = Field(description="Total billable hours")
    total_entries: int = Field(description="Total number of entries")

    # Status breakdown
    draft_entries: int = Field(description="Draft entries count")
    submitted_entries: int = Field(description="Submitted entries count")
    approved_entries: int = Field(description="Approved entries count")
    rejected_entries: int = Field(description="Rejected entries count")

    total_billed_amount: float = Field(description="Total billed amount")
    top_users: List[UserHoursDTO] = Field(default_factory=list, description="Users with most hours")


class TimesheetTotalsDTO(BaseDTO):
    total_hours: float
    billable_hours: float
    total_entries: int
    billed_amount: float


class TimesheetResponseDTO(BaseDTO):
    """DTO for a user's timesheet."""

    user_id: str = Field(description="Timesheet owner")
    user_name: Optional[str] = Field(default=None, description="Owner name")
    date_from: Optional[date] = Field(default=None, description="Period start")
    date_to: Optional[date] = Field(default=None, description="Period end")
    entries: List[TimeEntryResponseDTO] = Field(description="Entries ordered by date")
    grouped_by_date: Dict[str, List[TimeEntryResponseDTO]] = Field(description="Entries by ISO date")
    totals: TimesheetTotalsDTO = Field(description="Timesheet totals")
