"""
Time entry mapper for converting between domain entities and database models.
"""

from typing import Any, Dict

from timesheet_engine.domain.models.time_entry import TimeEntry, TimeEntryStatus
from timesheet_engine.infrastructure.db.models import TimeEntryModel


class TimeEntryMapper:
    """Maps between TimeEntry domain entity and TimeEntryModel database model."""

    def domain_to_model(self, time_entry: TimeEntry) -> TimeEntryModel:
        """Convert TimeEntry domain entity to TimeEntryModel."""
        return TimeEntryModel(
            id=time_entry.id,
            **self.domain_to_columns(time_entry)
        )

    def domain_to_columns(self, time_entry: TimeEntry) -> Dict[str, Any]:
        """Column values for every mutable field of an entry."""
        return {
            "user_id": time_entry.user_id,
            "company_id": time_entry.company_id,
            "project_id": time_entry.project_id,
            "task_id": time_entry.task_id,
            "description": time_entry.description,
            "duration": time_entry.duration,
            "date": time_entry.date,
            "billable": time_entry.billable,
            "bill_rate": time_entry.bill_rate,
            "status": time_entry.status.value,
            "submitted_at": time_entry.submitted_at,
            "approved_by": time_entry.approved_by,
            "approved_at": time_entry.approved_at,
            "rejection_reason": time_entry.rejection_reason,
            "created_by": time_entry.created_by,
            "updated_by": time_entry.updated_by,
            "version": time_entry.version,
            "created_at": time_entry.created_at,
            "updated_at": time_entry.updated_at,
        }

    def model_to_domain(self, model: TimeEntryModel) -> TimeEntry:
        """Convert TimeEntryModel to TimeEntry domain entity."""
        time_entry = TimeEntry(
            user_id=model.user_id,
            company_id=model.company_id,
            project_id=model.project_id,
            task_id=model.task_id,
            description=model.description,
            duration=model.duration,
            date=model.date,
            billable=bool(model.billable),
            bill_rate=model.bill_rate,
            status=TimeEntryStatus(model.status) if model.status else TimeEntryStatus.DRAFT,
            submitted_at=model.submitted_at,
            approved_by=model.approved_by,
            approved_at=model.approved_at,
            rejection_reason=model.rejection_reason,
            created_by=model.created_by,
            updated_by=model.updated_by
        )

        # Set entity metadata
        time_entry.id = model.id
        time_entry.created_at = model.created_at
        time_entry.updated_at = model.updated_at
        time_entry.version = model.version or 1

        return time_entry
