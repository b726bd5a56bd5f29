"""
Infrastructure repositories module.
Contains SQLAlchemy and in-memory implementations of domain repositories.
"""

from .time_entry_repository import SQLAlchemyTimeEntryRepository
from .project_repository import SQLAlchemyProjectRepository
from .user_repository import SQLAlchemyUserRepository
from .memory_repository import (
    InMemoryTimeEntryRepository,
    InMemoryProjectRepository,
    InMemoryUserRepository,
)

__all__ = [
    "SQLAlchemyTimeEntryRepository",
    "SQLAlchemyProjectRepository",
    "SQLAlchemyUserRepository",
    "InMemoryTimeEntryRepository",
    "InMemoryProjectRepository",
    "InMemoryUserRepository",
]
