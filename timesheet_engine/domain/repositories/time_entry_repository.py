"""Time Entry repository interface.
Defines the contract for time entry data persistence operations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import date
from typing import List, Optional, Dict, Any

from timesheet_engine.domain.models.time_entry import TimeEntry, TimeEntryStatus


SORTABLE_FIELDS = ("date", "duration", "created_at", "status")


@dataclass(frozen=True)
class TimeEntryFilter:
    """
    Query filter over time entries.
    Unset fields do not constrain the result.
    """

    company_id: Optional[str] = None
    user_id: Optional[str] = None
    project_id: Optional[int] = None
    task_id: Optional[int] = None
    status: Optional[TimeEntryStatus] = None
    billable: Optional[bool] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: Optional[str] = None

    def with_owner(self, user_id: str) -> "TimeEntryFilter":
        """Return a copy restricted to one owner."""
        return replace(self, user_id=user_id)

    def matches(self, entry: TimeEntry) -> bool:
        """Check whether an entry satisfies the filter."""
        if self.company_id is not None and entry.company_id != self.company_id:
            return False
        if self.user_id is not None and entry.user_id != self.user_id:
            return False
        if self.project_id is not None and entry.project_id != self.project_id:
            return False
        if self.task_id is not None and entry.task_id != self.task_id:
            return False
        if self.status is not None and entry.status != self.status:
            return False
        if self.billable is not None and entry.billable != self.billable:
            return False
        if self.date_from is not None and entry.date < self.date_from:
            return False
        if self.date_to is not None and entry.date > self.date_to:
            return False
        if self.search and self.search.lower() not in (entry.description or "").lower():
            return False
        return True


class TimeEntryRepository(ABC):
    """
    Repository interface for TimeEntry entity.

    ``compare_and_swap_status`` is the only concurrency-control primitive:
    conditional writes succeed only while the persisted status still equals
    the expected one, and update status plus workflow fields atomically.
    """

    @abstractmethod
    async def save(self, time_entry: TimeEntry) -> TimeEntry:
        """
        Persist a new time entry.
        Returns the saved entry with its assigned ID.
        """
        pass

    @abstractmethod
    async def find_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        """
        Find a time entry by its ID.
        Returns None if not found.
        """
        pass

    @abstractmethod
    async def find(
        self,
        entry_filter: TimeEntryFilter,
        sort_by: str = "date",
        sort_order: str = "desc",
        offset: int = 0,
        limit: Optional[int] = None
    ) -> List[TimeEntry]:
        """
        Find time entries matching a filter, sorted and paginated.
        """
        pass

    @abstractmethod
    async def count(self, entry_filter: TimeEntryFilter) -> int:
        """
        Count time entries matching a filter.
        """
        pass

    @abstractmethod
    async def update(self, time_entry: TimeEntry, expected_status: TimeEntryStatus) -> bool:
        """
        Write all fields of an existing entry if its persisted status still
        equals ``expected_status``. Returns False when the condition failed.
        """
        pass

    @abstractmethod
    async def delete(self, entry_id: int, expected_status: TimeEntryStatus) -> bool:
        """
        Delete an entry if its persisted status still equals ``expected_status``.
        Returns False when the entry is gone or its status changed.
        """
        pass

    @abstractmethod
    async def compare_and_swap_status(
        self,
        entry_id: int,
        expected_status: TimeEntryStatus,
        new_status: TimeEntryStatus,
        fields: Optional[Dict[str, Any]] = None
    ) -> bool:
        """
        Atomically set status and workflow fields if the persisted status
        equals ``expected_status``. Returns True when the write happened.
        """
        pass
