"""
Project and task references.
Projects and tasks are owned by the project collaborator; the engine only
reads their identity, tenant and display names.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ProjectReference:
    """Read-only view of a project."""

    id: int
    company_id: str
    name: str


@dataclass(frozen=True)
class TaskReference:
    """Read-only view of a task inside a project."""

    id: int
    project_id: int
    title: str
    status: Optional[str] = None
