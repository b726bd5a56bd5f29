"""
TimeEntry domain model.
Represents a unit of logged work moving through the approval workflow.
"""

import math
from datetime import datetime, date
from typing import Optional, Dict, Any, Iterable
from enum import Enum

from timesheet_engine.domain.models.base import (
    AggregateRoot,
    ValidationError,
    StateError,
)


class TimeEntryStatus(str, Enum):
    """Time entry workflow status."""
    DRAFT = "Draft"
    SUBMITTED = "Submitted"
    APPROVED = "Approved"
    REJECTED = "Rejected"


EDITABLE_STATUSES = frozenset({TimeEntryStatus.DRAFT, TimeEntryStatus.REJECTED})
REVIEWED_STATUSES = frozenset({TimeEntryStatus.APPROVED, TimeEntryStatus.REJECTED})
CLEARABLE_FIELDS = frozenset({"task_id", "bill_rate"})

MIN_DESCRIPTION_LENGTH = 5
MAX_DESCRIPTION_LENGTH = 1000
MIN_DURATION_HOURS = 0.25
MAX_DURATION_HOURS = 24.0
DURATION_STEP_HOURS = 0.25


def validate_content(
    description: Optional[str],
    duration: Optional[float],
    bill_rate: Optional[float] = None,
) -> None:
    """Validate the user-editable content of an entry."""
    if description is None or not description.strip():
        raise ValidationError("Description is required", "description")

    if len(description.strip()) < MIN_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters",
            "description"
        )

    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError(
            f"Description too long (max {MAX_DESCRIPTION_LENGTH} characters)",
            "description"
        )

    if duration is None:
        raise ValidationError("Duration is required", "duration")

    if not math.isfinite(duration):
        raise ValidationError("Duration must be a finite number", "duration")

    if duration < MIN_DURATION_HOURS:
        raise ValidationError(f"Duration must be at least {MIN_DURATION_HOURS} hours", "duration")

    if duration > MAX_DURATION_HOURS:
        raise ValidationError(f"Duration cannot exceed {MAX_DURATION_HOURS:g} hours", "duration")

    # Quarter-hour steps; tolerate float noise from JSON clients
    steps = duration / DURATION_STEP_HOURS
    if abs(steps - round(steps)) > 1e-6:
        raise ValidationError(
            f"Duration must be a multiple of {DURATION_STEP_HOURS} hours",
            "duration"
        )

    if bill_rate is not None and not math.isfinite(bill_rate):
        raise ValidationError("Bill rate must be a finite number", "bill_rate")

    if bill_rate is not None and bill_rate < 0:
        raise ValidationError("Bill rate cannot be negative", "bill_rate")


class TimeEntry(AggregateRoot):
    """
    TimeEntry aggregate.

    Content fields may only change while the entry is Draft or Rejected.
    Workflow fields change through ``transition_to`` which is driven by the
    batch transition service after the transition validator allowed it.
    """

    def __init__(
        self,
        user_id: str,
        company_id: str,
        project_id: int,
        description: str,
        duration: float,
        date: Optional[date] = None,
        task_id: Optional[int] = None,
        billable: bool = False,
        bill_rate: Optional[float] = None,
        status: TimeEntryStatus = TimeEntryStatus.DRAFT,
        approved_by: Optional[str] = None,
        approved_at: Optional[datetime] = None,
        rejection_reason: Optional[str] = None,
        submitted_at: Optional[datetime] = None,
        created_by: Optional[str] = None,
        updated_by: Optional[str] = None,
        **kwargs
    ):
        super().__init__(**kwargs)

        # Ownership
        self.user_id = user_id
        self.company_id = company_id
        self.project_id = project_id
        self.task_id = task_id

        # Content
        self.description = description
        self.duration = float(duration) if duration is not None else None
        self.date = date or datetime.utcnow().date()
        self.billable = billable
        self.bill_rate = float(bill_rate) if bill_rate is not None else None

        # Approval workflow
        self.status = TimeEntryStatus(status)
        self.approved_by = approved_by
        self.approved_at = approved_at
        self.rejection_reason = rejection_reason
        self.submitted_at = submitted_at

        # Audit
        self.created_by = created_by or user_id
        self.updated_by = updated_by or self.created_by

    def validate(self) -> None:
        """Validate time entry state."""
        if not self.user_id:
            raise ValidationError("User ID is required", "user_id")

        if not self.company_id:
            raise ValidationError("Company ID is required", "company_id")

        if not self.project_id:
            raise ValidationError("Project ID is required", "project_id")

        validate_content(self.description, self.duration, self.bill_rate)

        # Workflow invariants
        if self.status in REVIEWED_STATUSES:
            if not self.approved_by or not self.approved_at:
                raise ValidationError("Reviewed entries require approver and timestamp", "approved_by")
        elif self.approved_by or self.approved_at:
            raise ValidationError("Only reviewed entries carry an approver", "approved_by")

        if self.status == TimeEntryStatus.REJECTED:
            if not self.rejection_reason or not self.rejection_reason.strip():
                raise ValidationError("Rejection reason is required", "rejection_reason")
        elif self.rejection_reason:
            raise ValidationError("Only rejected entries carry a rejection reason", "rejection_reason")

    @property
    def is_editable(self) -> bool:
        """Content edits are allowed while Draft or Rejected."""
        return self.status in EDITABLE_STATUSES

    @property
    def is_deletable(self) -> bool:
        """Only drafts may be deleted."""
        return self.status == TimeEntryStatus.DRAFT

    @property
    def billed_amount(self) -> float:
        """Duration times bill rate for billable entries."""
        if not self.billable or not self.bill_rate:
            return 0.0
        return round(self.duration * self.bill_rate, 2)

    def is_owned_by(self, user_id: Optional[str]) -> bool:
        """Check if the given user owns this entry."""
        return user_id is not None and self.user_id == user_id

    def update_content(
        self,
        updated_by: str,
        description: Optional[str] = None,
        duration: Optional[float] = None,
        date: Optional[date] = None,
        task_id: Optional[int] = None,
        billable: Optional[bool] = None,
        bill_rate: Optional[float] = None,
        clear: Iterable[str] = (),
    ) -> None:
        """
        Update the content fields of the entry.

        ``None`` leaves a field unchanged. Optional fields named in ``clear``
        (``task_id``, ``bill_rate``) are reset to ``None``.

        Editing a Rejected entry moves it back to Draft and clears the review
        fields. It does not resubmit the entry.
        """
        if not self.is_editable:
            raise StateError(
                f"Cannot edit a time entry with status {self.status.value}",
                self.status
            )

        clear = set(clear)
        unknown = sorted(clear - CLEARABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Field {unknown[0]} cannot be cleared", unknown[0])

        if "bill_rate" in clear:
            new_bill_rate = None
        else:
            new_bill_rate = bill_rate if bill_rate is not None else self.bill_rate

        validate_content(
            description if description is not None else self.description,
            duration if duration is not None else self.duration,
            new_bill_rate,
        )

        if description is not None:
            self.description = description.strip()
        if duration is not None:
            self.duration = float(duration)
        if date is not None:
            self.date = date
        if task_id is not None:
            self.task_id = task_id
        if billable is not None:
            self.billable = billable
        if bill_rate is not None:
            self.bill_rate = float(bill_rate)
        for field_name in clear:
            setattr(self, field_name, None)

        if self.status == TimeEntryStatus.REJECTED:
            self._clear_review()
            self.status = TimeEntryStatus.DRAFT

        self.updated_by = updated_by
        self.mark_as_updated()

    def transition_to(
        self,
        target: TimeEntryStatus,
        actor_id: str,
        rejection_reason: Optional[str] = None,
    ) -> None:
        """
        Move the entry to ``target`` and set the associated workflow fields.
        Legality of the edge is decided by the transition validator.
        """
        now = datetime.utcnow()

        if target == TimeEntryStatus.SUBMITTED:
            self._clear_review()
            self.submitted_at = now
        elif target == TimeEntryStatus.APPROVED:
            self.approved_by = actor_id
            self.approved_at = now
            self.rejection_reason = None
        elif target == TimeEntryStatus.REJECTED:
            if not rejection_reason or not rejection_reason.strip():
                raise ValidationError("Rejection reason is required", "reason")
            self.approved_by = actor_id
            self.approved_at = now
            self.rejection_reason = rejection_reason.strip()
        else:
            self._clear_review()

        self.status = target
        self.updated_by = actor_id
        self.mark_as_updated()

    def workflow_fields(self) -> Dict[str, Any]:
        """Fields written together with the status in a compare-and-swap."""
        return {
            "approved_by": self.approved_by,
            "approved_at": self.approved_at,
            "rejection_reason": self.rejection_reason,
            "submitted_at": self.submitted_at,
            "updated_by": self.updated_by,
            "updated_at": self.updated_at,
        }

    def _clear_review(self) -> None:
        self.approved_by = None
        self.approved_at = None
        self.rejection_reason = None

    @classmethod
    def create_draft(
        cls,
        user_id: str,
        company_id: str,
        project_id: int,
        description: str,
        duration: float,
        date: Optional[date] = None,
        task_id: Optional[int] = None,
        billable: bool = False,
        bill_rate: Optional[float] = None,
    ) -> 'TimeEntry':
        """Create a validated Draft entry owned by ``user_id``."""
        entry = cls(
            user_id=user_id,
            company_id=company_id,
            project_id=project_id,
            task_id=task_id,
            description=description.strip() if description else description,
            duration=duration,
            date=date,
            billable=billable,
            bill_rate=bill_rate,
            status=TimeEntryStatus.DRAFT,
            created_by=user_id,
        )
        entry.validate()
        return entry

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data = super().to_dict()
        data["is_editable"] = self.is_editable
        data["billed_amount"] = self.billed_amount
        return data
