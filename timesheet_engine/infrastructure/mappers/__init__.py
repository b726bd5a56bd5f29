"""
Infrastructure mappers module.
Contains mappers for converting between domain entities and database models.
"""

from .time_entry_mapper import TimeEntryMapper
from .reference_mapper import ReferenceMapper

__all__ = [
    "TimeEntryMapper",
    "ReferenceMapper",
]
