"""
In-memory repository implementations.
Used by tests and local tooling; they honour the same contracts as the
SQLAlchemy repositories, including the conditional writes.
"""

import copy
from datetime import date, datetime
from typing import Optional, List, Dict, Any

from timesheet_engine.domain.models.project import ProjectReference, TaskReference
from timesheet_engine.domain.models.time_entry import TimeEntry, TimeEntryStatus
from timesheet_engine.domain.models.user import UserReference
from timesheet_engine.domain.repositories.project_repository import ProjectRepository
from timesheet_engine.domain.repositories.time_entry_repository import (
    TimeEntryFilter,
    TimeEntryRepository,
)
from timesheet_engine.domain.repositories.user_repository import UserRepository


WORKFLOW_FIELDS = frozenset({
    "approved_by",
    "approved_at",
    "rejection_reason",
    "submitted_at",
    "updated_by",
    "updated_at",
})


def _sort_key(entry: TimeEntry, sort_by: str):
    value = getattr(entry, sort_by, None)
    if isinstance(value, TimeEntryStatus):
        value = value.value
    if value is None:
        value = date.min if sort_by == "date" else datetime.min
    return (value, entry.id)


class InMemoryTimeEntryRepository(TimeEntryRepository):
    """
    Dictionary-backed time entry store.
    Entries are deep-copied on the way in and out so callers never share state
    with the store.
    """

    def __init__(self):
        self._entries: Dict[int, TimeEntry] = {}
        self._next_id = 1

    async def save(self, time_entry: TimeEntry) -> TimeEntry:
        time_entry.id = self._next_id
        self._next_id += 1
        self._entries[time_entry.id] = copy.deepcopy(time_entry)
        return time_entry

    async def find_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        entry = self._entries.get(entry_id)
        return copy.deepcopy(entry) if entry else None

    async def find(
        self,
        entry_filter: TimeEntryFilter,
        sort_by: str = "date",
        sort_order: str = "desc",
        offset: int = 0,
        limit: Optional[int] = None
    ) -> List[TimeEntry]:
        matches = [e for e in self._entries.values() if entry_filter.matches(e)]
        matches.sort(key=lambda e: _sort_key(e, sort_by), reverse=(sort_order != "asc"))

        page = matches[offset:offset + limit] if limit else matches[offset:]
        return [copy.deepcopy(e) for e in page]

    async def count(self, entry_filter: TimeEntryFilter) -> int:
        return sum(1 for e in self._entries.values() if entry_filter.matches(e))

    async def update(self, time_entry: TimeEntry, expected_status: TimeEntryStatus) -> bool:
        stored = self._entries.get(time_entry.id)
        if stored is None or stored.status != expected_status:
            return False

        updated = copy.deepcopy(time_entry)
        updated.user_id = stored.user_id
        updated.company_id = stored.company_id
        updated.project_id = stored.project_id
        updated.created_by = stored.created_by
        updated.created_at = stored.created_at
        updated.version = stored.version + 1

        self._entries[time_entry.id] = updated
        time_entry.version = updated.version
        return True

    async def delete(self, entry_id: int, expected_status: TimeEntryStatus) -> bool:
        stored = self._entries.get(entry_id)
        if stored is None or stored.status != expected_status:
            return False

        del self._entries[entry_id]
        return True

    async def compare_and_swap_status(
        self,
        entry_id: int,
        expected_status: TimeEntryStatus,
        new_status: TimeEntryStatus,
        fields: Optional[Dict[str, Any]] = None
    ) -> bool:
        # No await between the check and the write, so this is atomic on the loop
        stored = self._entries.get(entry_id)
        if stored is None or stored.status != expected_status:
            return False

        for key, value in (fields or {}).items():
            if key in WORKFLOW_FIELDS:
                setattr(stored, key, value)
        stored.status = new_status
        stored.version += 1
        return True


class InMemoryProjectRepository(ProjectRepository):
    """Project and task lookups backed by dictionaries."""

    def __init__(self):
        self.projects: Dict[int, ProjectReference] = {}
        self.tasks: Dict[int, TaskReference] = {}

    def add_project(self, project: ProjectReference) -> ProjectReference:
        self.projects[project.id] = project
        return project

    def add_task(self, task: TaskReference) -> TaskReference:
        self.tasks[task.id] = task
        return task

    async def find_project(self, project_id: int) -> Optional[ProjectReference]:
        return self.projects.get(project_id)

    async def find_task(self, task_id: int) -> Optional[TaskReference]:
        return self.tasks.get(task_id)


class InMemoryUserRepository(UserRepository):
    """User lookups backed by a dictionary."""

    def __init__(self):
        self.users: Dict[str, UserReference] = {}

    def add(self, user: UserReference) -> UserReference:
        self.users[user.id] = user
        return user

    async def find_by_id(self, user_id: str) -> Optional[UserReference]:
        return self.users.get(user_id)
