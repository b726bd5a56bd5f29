"""Project repository interface.
Read-only access to the project/task collaborator.
"""

from abc import ABC, abstractmethod
from typing import Optional

from timesheet_engine.domain.models.project import ProjectReference, TaskReference


class ProjectRepository(ABC):
    """
    Repository interface for projects and tasks.
    Used for referential integrity on create and for display names.
    """

    @abstractmethod
    async def find_project(self, project_id: int) -> Optional[ProjectReference]:
        """
        Find a project by its ID.
        Returns None if not found or deleted.
        """
        pass

    @abstractmethod
    async def find_task(self, task_id: int) -> Optional[TaskReference]:
        """
        Find a task by its ID.
        Returns None if not found.
        """
        pass
