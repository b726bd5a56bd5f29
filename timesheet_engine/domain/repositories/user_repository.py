"""User repository interface."""

from abc import ABC, abstractmethod
from typing import Optional

from timesheet_engine.domain.models.user import UserReference


class UserRepository(ABC):
    """Repository interface for user display data."""

    @abstractmethod
    async def find_by_id(self, user_id: str) -> Optional[UserReference]:
        """
        Find a user by ID.
        Returns None if not found.
        """
        pass
