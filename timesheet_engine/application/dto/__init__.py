"""
Application layer DTOs.
Data Transfer Objects for API requests and responses.
"""

from .base_dto import *
from .time_entry_dto import *

__all__ = [
    # Base DTOs
    "BaseDTO",
    "RequestDTO",
    "ResponseDTO",
    "ListRequestDTO",
    "ListResponseDTO",
    "HealthCheckResponseDTO",
    "ErrorResponseDTO",

    # Time Entry DTOs
    "CreateTimeEntryRequestDTO",
    "UpdateTimeEntryRequestDTO",
    "SubmitTimeEntriesRequestDTO",
    "ApproveTimeEntriesRequestDTO",
    "RejectTimeEntriesRequestDTO",
    "ListTimeEntriesRequestDTO",
    "TimeEntryStatsRequestDTO",
    "TimesheetRequestDTO",
    "TimeEntryResponseDTO",
    "TimeEntryListResponseDTO",
    "BatchFailureDTO",
    "BatchResultResponseDTO",
    "UserHoursDTO",
    "TimeEntryStatsResponseDTO",
    "TimesheetTotalsDTO",
    "TimesheetResponseDTO",
]
