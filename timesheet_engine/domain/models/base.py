"""
Base entity and domain exceptions for the domain layer.
This module contains the foundational classes for all domain entities.
"""

from datetime import datetime, date
from enum import Enum
from typing import Optional, Any, Dict
from abc import ABC
from dataclasses import dataclass, field


@dataclass
class BaseEntity(ABC):
    """
    Base class for all domain entities.
    Provides common attributes and behavior for all entities.
    """

    id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.utcnow)
    updated_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self):
        """Initialize entity after creation."""
        if self.created_at is None:
            self.created_at = datetime.utcnow()
        if self.updated_at is None:
            self.updated_at = datetime.utcnow()

    def __eq__(self, other: Any) -> bool:
        """Entities are equal if they have the same ID and are of the same type."""
        if not isinstance(other, self.__class__):
            return False
        if self.id is None or other.id is None:
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        """Hash based on entity ID."""
        if self.id is None:
            return hash(id(self))
        return hash((self.__class__.__name__, self.id))

    def mark_as_updated(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = datetime.utcnow()

    def validate(self) -> None:
        """
        Validate the entity's state.
        Should be overridden by subclasses to implement specific validation rules.
        Raises ValidationError if the entity is in an invalid state.
        """
        pass

    def to_dict(self) -> Dict[str, Any]:
        """Convert entity to dictionary representation."""
        data = {}
        for key, value in self.__dict__.items():
            if key.startswith('_'):
                continue
            if isinstance(value, (datetime, date)):
                data[key] = value.isoformat()
            elif isinstance(value, Enum):
                data[key] = value.value
            elif isinstance(value, BaseEntity):
                data[key] = value.to_dict()
            else:
                data[key] = value
        return data


@dataclass(eq=False)
class AggregateRoot(BaseEntity):
    """
    Base class for aggregate roots.
    Carries a version counter bumped on every persisted mutation.
    """

    version: int = field(default=1)


class DomainException(Exception):
    """Base exception for domain errors."""

    def __init__(self, message: str, code: Optional[str] = None):
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(self.message)


class ValidationError(DomainException):
    """Malformed or out-of-range input. Raised before any store access."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message, "ValidationError")
        self.field = field


class StateError(DomainException):
    """Operation is not legal for the entry's current status."""

    def __init__(self, message: str, current_status: Optional[Any] = None):
        super().__init__(message, "StateError")
        self.current_status = getattr(current_status, "value", current_status)


class AuthorizationError(DomainException):
    """The caller's role lacks the capability for the operation."""

    def __init__(self, message: str = "Insufficient permissions"):
        super().__init__(message, "AuthorizationError")


class ConcurrencyConflict(DomainException):
    """A compare-and-swap write lost the race against another actor."""

    def __init__(self, entity_type: str, entity_id: Any):
        message = f"{entity_type} with id {entity_id} was modified concurrently"
        super().__init__(message, "ConcurrencyConflict")
        self.entity_type = entity_type
        self.entity_id = entity_id


class EntityNotFoundError(DomainException):
    """
    Exception raised when an entity is not found.
    Also used for entities outside the caller's visibility scope.
    """

    def __init__(self, entity_type: str, entity_id: Any):
        message = f"{entity_type} with id {entity_id} not found"
        super().__init__(message, "NotFound")
        self.entity_type = entity_type
        self.entity_id = entity_id
