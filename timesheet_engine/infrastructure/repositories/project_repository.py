"""
Project repository implementation using SQLAlchemy.
"""

from typing import Optional
from sqlalchemy.orm import Session

from timesheet_engine.domain.models.project import ProjectReference, TaskReference
from timesheet_engine.domain.repositories.project_repository import ProjectRepository as ProjectRepositoryInterface
from timesheet_engine.infrastructure.db.models import ProjectModel, TaskModel
from timesheet_engine.infrastructure.mappers.reference_mapper import ReferenceMapper


class SQLAlchemyProjectRepository(ProjectRepositoryInterface):
    """SQLAlchemy implementation of project repository."""

    def __init__(self, session: Session):
        self.session = session
        self.mapper = ReferenceMapper()

    async def find_project(self, project_id: int) -> Optional[ProjectReference]:
        """Get a live (not deleted) project by ID."""
        model = self.session.query(ProjectModel).filter(
            ProjectModel.id == project_id,
            ProjectModel.deleted_at.is_(None)
        ).first()

        if not model:
            return None

        return self.mapper.project_to_reference(model)

    async def find_task(self, task_id: int) -> Optional[TaskReference]:
        """Get task by ID."""
        model = self.session.query(TaskModel).filter_by(id=task_id).first()

        if not model:
            return None

        return self.mapper.task_to_reference(model)
