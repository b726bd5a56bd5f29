"""
Shared fixtures: in-memory stores seeded with two companies, and caller contexts.
"""

import pytest
from datetime import date, datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from timesheet_engine.application.use_cases.base_use_case import UseCaseContext
from timesheet_engine.infrastructure.db.database import create_tables, drop_tables
from timesheet_engine.infrastructure.db.models import ProjectModel, TaskModel, UserProfileModel
from timesheet_engine.domain.models.project import ProjectReference, TaskReference
from timesheet_engine.domain.models.time_entry import TimeEntry, TimeEntryStatus
from timesheet_engine.domain.models.user import UserReference
from timesheet_engine.infrastructure.repositories.memory_repository import (
    InMemoryProjectRepository,
    InMemoryTimeEntryRepository,
    InMemoryUserRepository,
)


@pytest.fixture
def entry_repository():
    return InMemoryTimeEntryRepository()


@pytest.fixture
def project_repository():
    projects = InMemoryProjectRepository()
    projects.add_project(ProjectReference(id=1, company_id="acme", name="Customer Portal"))
    projects.add_project(ProjectReference(id=2, company_id="acme", name="Internal Tooling"))
    projects.add_project(ProjectReference(id=3, company_id="globex", name="Rival Project"))
    projects.add_task(TaskReference(id=10, project_id=1, title="Login page", status="open"))
    projects.add_task(TaskReference(id=11, project_id=1, title="Billing screen", status="open"))
    projects.add_task(TaskReference(id=20, project_id=2, title="CI pipeline", status="open"))
    return projects


@pytest.fixture
def user_repository():
    users = InMemoryUserRepository()
    users.add(UserReference(id="u-emp", company_id="acme", first_name="Emil", last_name="Worker"))
    users.add(UserReference(id="u-emp2", company_id="acme", first_name="Erin", last_name="Builder"))
    users.add(UserReference(id="u-admin", company_id="acme", first_name="Ada", last_name="Reviewer"))
    users.add(UserReference(id="u-hr", company_id="acme", first_name="Hugo", last_name="People"))
    users.add(UserReference(id="u-ext", company_id="globex", first_name="Xena", last_name="Outside"))
    return users


@pytest.fixture
def employee_context():
    return UseCaseContext(user_id="u-emp", role="employee", company_id="acme")


@pytest.fixture
def other_employee_context():
    return UseCaseContext(user_id="u-emp2", role="leads", company_id="acme")


@pytest.fixture
def reviewer_context():
    return UseCaseContext(user_id="u-admin", role="admin", company_id="acme")


@pytest.fixture
def second_reviewer_context():
    return UseCaseContext(user_id="u-hr", role="hr", company_id="acme")


@pytest.fixture
def outsider_context():
    return UseCaseContext(user_id="u-ext", role="superadmin", company_id="globex")


@pytest.fixture
def make_entry(entry_repository):
    """
    Store an entry directly in a given status, bypassing the workflow.
    Review fields are filled in so the entry satisfies the model invariants.
    """

    async def factory(
        user_id="u-emp",
        status=TimeEntryStatus.DRAFT,
        company_id="acme",
        project_id=1,
        task_id=None,
        description="Implemented feature work",
        duration=2.0,
        work_date=None,
        billable=False,
        bill_rate=None,
    ):
        reviewed = status in (TimeEntryStatus.APPROVED, TimeEntryStatus.REJECTED)
        entry = TimeEntry(
            user_id=user_id,
            company_id=company_id,
            project_id=project_id,
            task_id=task_id,
            description=description,
            duration=duration,
            date=work_date or date(2024, 3, 4),
            billable=billable,
            bill_rate=bill_rate,
            status=status,
            submitted_at=datetime(2024, 3, 5, 9, 0) if status != TimeEntryStatus.DRAFT else None,
            approved_by="u-admin" if reviewed else None,
            approved_at=datetime(2024, 3, 6, 9, 0) if reviewed else None,
            rejection_reason="Wrong project" if status == TimeEntryStatus.REJECTED else None,
        )
        entry.validate()
        return await entry_repository.save(entry)

    return factory


@pytest.fixture
def db_session():
    """Session on a private in-memory SQLite database with reference rows."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_tables(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()

    session.add_all([
        UserProfileModel(id="u-emp", company_id="acme", first_name="Emil", last_name="Worker", role="employee"),
        UserProfileModel(id="u-emp2", company_id="acme", first_name="Erin", last_name="Builder", role="leads"),
        UserProfileModel(id="u-admin", company_id="acme", first_name="Ada", last_name="Reviewer", role="admin"),
        UserProfileModel(id="u-ext", company_id="globex", first_name="Xena", last_name="Outside", role="superadmin"),
        ProjectModel(id=1, company_id="acme", name="Customer Portal"),
        ProjectModel(id=2, company_id="acme", name="Archived Project", deleted_at=datetime(2024, 1, 1)),
        ProjectModel(id=3, company_id="globex", name="Rival Project"),
        TaskModel(id=10, project_id=1, title="Login page", status="open"),
        TaskModel(id=30, project_id=3, title="Rival task", status="open"),
    ])
    session.commit()

    try:
        yield session
    finally:
        session.close()
        drop_tables(bind=engine)
        engine.dispose()
