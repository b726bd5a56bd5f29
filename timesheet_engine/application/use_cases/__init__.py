"""
Application layer use cases.
Business logic for the timesheet engine.
"""

from .base_use_case import *
from .time_entry_use_cases import *
from .time_entry_workflow_use_cases import *

__all__ = [
    # Base Use Cases
    "BaseUseCase",
    "QueryUseCase",
    "CommandUseCase",
    "PaginatedQueryUseCase",
    "CreateUseCase",
    "UpdateUseCase",
    "DeleteUseCase",
    "BatchUseCase",
    "GetByIdUseCase",
    "ListUseCase",
    "AuthorizedUseCase",
    "UseCaseContext",

    # Time Entry Use Cases
    "CreateTimeEntryUseCase",
    "UpdateTimeEntryUseCase",
    "DeleteTimeEntryUseCase",
    "GetTimeEntryUseCase",
    "ListTimeEntriesUseCase",
    "GetTimeEntryStatsUseCase",
    "GetTimesheetUseCase",

    # Workflow Use Cases
    "SubmitTimeEntriesUseCase",
    "ApproveTimeEntriesUseCase",
    "RejectTimeEntriesUseCase",
]
