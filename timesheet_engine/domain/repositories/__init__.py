"""
Repository interfaces for the domain layer.
These define the contracts for data persistence operations.
"""

from .time_entry_repository import TimeEntryRepository, TimeEntryFilter, SORTABLE_FIELDS
from .project_repository import ProjectRepository
from .user_repository import UserRepository

__all__ = [
    "TimeEntryRepository",
    "TimeEntryFilter",
    "SORTABLE_FIELDS",
    "ProjectRepository",
    "UserRepository",
]
