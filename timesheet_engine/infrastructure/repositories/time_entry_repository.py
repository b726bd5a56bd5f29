"""
Time entry repository implementation using SQLAlchemy.
"""

from typing import Optional, List, Dict, Any
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import asc, desc

from timesheet_engine.domain.models.time_entry import TimeEntry, TimeEntryStatus
from timesheet_engine.domain.repositories.time_entry_repository import (
    TimeEntryFilter,
    TimeEntryRepository as TimeEntryRepositoryInterface,
)
from timesheet_engine.infrastructure.db.models import TimeEntryModel
from timesheet_engine.infrastructure.mappers.time_entry_mapper import TimeEntryMapper


SORT_COLUMNS = {
    "date": TimeEntryModel.date,
    "duration": TimeEntryModel.duration,
    "created_at": TimeEntryModel.created_at,
    "status": TimeEntryModel.status,
}

# Columns a status compare-and-swap may write
WORKFLOW_COLUMNS = frozenset({
    "approved_by",
    "approved_at",
    "rejection_reason",
    "submitted_at",
    "updated_by",
    "updated_at",
})

# Columns fixed at creation
IMMUTABLE_COLUMNS = frozenset({"user_id", "company_id", "project_id", "created_by", "created_at"})


class SQLAlchemyTimeEntryRepository(TimeEntryRepositoryInterface):
    """
    SQLAlchemy implementation of time entry repository.
    Every mutation commits on its own; conditional writes are single
    UPDATE/DELETE statements guarded by the expected status.
    """

    def __init__(self, session: Session):
        self.session = session
        self.mapper = TimeEntryMapper()
        self.model = TimeEntryModel

    async def save(self, time_entry: TimeEntry) -> TimeEntry:
        """Insert a new time entry."""
        model = self.mapper.domain_to_model(time_entry)
        self._write(lambda: self.session.add(model))
        self.session.refresh(model)

        time_entry.id = model.id
        return time_entry

    async def find_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        """Get time entry by ID."""
        model = self.session.query(TimeEntryModel).filter_by(id=entry_id).first()
        if not model:
            return None

        return self.mapper.model_to_domain(model)

    async def find(
        self,
        entry_filter: TimeEntryFilter,
        sort_by: str = "date",
        sort_order: str = "desc",
        offset: int = 0,
        limit: Optional[int] = None
    ) -> List[TimeEntry]:
        """Find time entries matching a filter."""
        column = SORT_COLUMNS.get(sort_by, TimeEntryModel.date)
        direction = asc if sort_order == "asc" else desc

        query = self._filtered_query(entry_filter).order_by(
            direction(column), direction(TimeEntryModel.id)
        )

        if offset:
            query = query.offset(offset)
        if limit:
            query = query.limit(limit)

        return [self.mapper.model_to_domain(model) for model in query.all()]

    async def count(self, entry_filter: TimeEntryFilter) -> int:
        """Count time entries matching a filter."""
        return self._filtered_query(entry_filter).count()

    async def update(self, time_entry: TimeEntry, expected_status: TimeEntryStatus) -> bool:
        """Write all mutable columns if the stored status is still the expected one."""
        values = {
            key: value
            for key, value in self.mapper.domain_to_columns(time_entry).items()
            if key not in IMMUTABLE_COLUMNS
        }
        values["version"] = TimeEntryModel.version + 1

        updated = self._write(lambda: self._conditional(time_entry.id, expected_status).update(
            values, synchronize_session=False
        ))

        if updated == 1:
            time_entry.version += 1
            return True
        return False

    async def delete(self, entry_id: int, expected_status: TimeEntryStatus) -> bool:
        """Delete an entry if the stored status is still the expected one."""
        deleted = self._write(
            lambda: self._conditional(entry_id, expected_status).delete(synchronize_session=False)
        )
        return deleted == 1

    async def compare_and_swap_status(
        self,
        entry_id: int,
        expected_status: TimeEntryStatus,
        new_status: TimeEntryStatus,
        fields: Optional[Dict[str, Any]] = None
    ) -> bool:
        """UPDATE ... WHERE id = :id AND status = :expected, committed on its own."""
        values: Dict[str, Any] = {
            key: value for key, value in (fields or {}).items() if key in WORKFLOW_COLUMNS
        }
        values["status"] = new_status.value
        values["version"] = TimeEntryModel.version + 1

        updated = self._write(lambda: self._conditional(entry_id, expected_status).update(
            values, synchronize_session=False
        ))
        return updated == 1

    def _conditional(self, entry_id: int, expected_status: TimeEntryStatus):
        return self.session.query(TimeEntryModel).filter(
            TimeEntryModel.id == entry_id,
            TimeEntryModel.status == expected_status.value
        )

    def _write(self, operation):
        try:
            result = operation()
            self.session.commit()
            return result
        except SQLAlchemyError:
            self.session.rollback()
            raise

    def _filtered_query(self, entry_filter: TimeEntryFilter):
        query = self.session.query(TimeEntryModel)

        if entry_filter.company_id is not None:
            query = query.filter(TimeEntryModel.company_id == entry_filter.company_id)
        if entry_filter.user_id is not None:
            query = query.filter(TimeEntryModel.user_id == entry_filter.user_id)
        if entry_filter.project_id is not None:
            query = query.filter(TimeEntryModel.project_id == entry_filter.project_id)
        if entry_filter.task_id is not None:
            query = query.filter(TimeEntryModel.task_id == entry_filter.task_id)
        if entry_filter.status is not None:
            query = query.filter(TimeEntryModel.status == entry_filter.status.value)
        if entry_filter.billable is not None:
            query = query.filter(TimeEntryModel.billable == entry_filter.billable)
        if entry_filter.date_from is not None:
            query = query.filter(TimeEntryModel.date >= entry_filter.date_from)
        if entry_filter.date_to is not None:
            query = query.filter(TimeEntryModel.date <= entry_filter.date_to)
        if entry_filter.search:
            query = query.filter(TimeEntryModel.description.icontains(entry_filter.search, autoescape=True))

        return query
