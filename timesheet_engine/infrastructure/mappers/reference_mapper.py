"""
Mappers for the read-only collaborator references.
"""

from timesheet_engine.domain.models.project import ProjectReference, TaskReference
from timesheet_engine.domain.models.user import UserReference
from timesheet_engine.infrastructure.db.models import ProjectModel, TaskModel, UserProfileModel


class ReferenceMapper:
    """Maps project, task and user rows to domain references."""

    def project_to_reference(self, model: ProjectModel) -> ProjectReference:
        return ProjectReference(id=model.id, company_id=model.company_id, name=model.name)

    def task_to_reference(self, model: TaskModel) -> TaskReference:
        return TaskReference(
            id=model.id,
            project_id=model.project_id,
            title=model.title,
            status=model.status
        )

    def user_to_reference(self, model: UserProfileModel) -> UserReference:
        return UserReference(
            id=model.id,
            company_id=model.company_id,
            first_name=model.first_name,
            last_name=model.last_name
        )
