"""
Domain models for the timesheet engine.
This module exports all domain entities and exceptions.
"""

# Base classes
from .base import (
    BaseEntity,
    AggregateRoot,
    DomainException,
    ValidationError,
    StateError,
    AuthorizationError,
    ConcurrencyConflict,
    EntityNotFoundError,
)

# Domain entities
from .time_entry import (
    TimeEntry,
    TimeEntryStatus,
    EDITABLE_STATUSES,
    validate_content,
)

# Collaborator references
from .project import ProjectReference, TaskReference
from .user import UserReference

__all__ = [
    # Base
    "BaseEntity",
    "AggregateRoot",
    "DomainException",
    "ValidationError",
    "StateError",
    "AuthorizationError",
    "ConcurrencyConflict",
    "EntityNotFoundError",

    # Time entries
    "TimeEntry",
    "TimeEntryStatus",
    "EDITABLE_STATUSES",
    "validate_content",

    # References
    "ProjectReference",
    "TaskReference",
    "UserReference",
]
