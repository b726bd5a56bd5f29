"""
SQLAlchemy models for the database.
Maps domain entities to database tables.
"""

from sqlalchemy import (
    Column, Integer, String, DateTime, Text, Boolean,
    Float, Date, ForeignKey, Index, CheckConstraint
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from timesheet_engine.infrastructure.db.database import Base


class UserProfileModel(Base):
    """User profile table, display data for requesters and reviewers"""
    __tablename__ = 'user_profiles'

    id = Column(String(64), primary_key=True)
    company_id = Column(String(64), nullable=False, index=True)
    email = Column(String(255))
    first_name = Column(String(100))
    last_name = Column(String(100))
    role = Column(String(32))

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    time_entries = relationship("TimeEntryModel", back_populates="user", foreign_keys="TimeEntryModel.user_id")


class ProjectModel(Base):
    """Project table"""
    __tablename__ = 'projects'

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(String(64), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(Text)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
    deleted_at = Column(DateTime(timezone=True))

    # Relationships
    tasks = relationship("TaskModel", back_populates="project")
    time_entries = relationship("TimeEntryModel", back_populates="project")

    __table_args__ = (
        Index('idx_projects_company', 'company_id'),
    )


class TaskModel(Base):
    """Task table"""
    __tablename__ = 'tasks'

    id = Column(Integer, primary_key=True, autoincrement=True)
    project_id = Column(Integer, ForeignKey('projects.id'), nullable=False)
    title = Column(String(255), nullable=False)
    status = Column(String(32))

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    project = relationship("ProjectModel", back_populates="tasks")
    time_entries = relationship("TimeEntryModel", back_populates="task")


class TimeEntryModel(Base):
    """Time entry table"""
    __tablename__ = 'time_entries'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey('user_profiles.id'), nullable=False)
    company_id = Column(String(64), nullable=False)
    project_id = Column(Integer, ForeignKey('projects.id'), nullable=False)
    task_id = Column(Integer, ForeignKey('tasks.id'))

    # Content
    description = Column(Text, nullable=False)
    duration = Column(Float, nullable=False)
    date = Column(Date, nullable=False)

    # Billing
    billable = Column(Boolean, nullable=False, default=False)
    bill_rate = Column(Float)

    # Approval workflow
    status = Column(String(16), nullable=False, default="Draft")
    submitted_at = Column(DateTime)
    approved_by = Column(String(64))
    approved_at = Column(DateTime)
    rejection_reason = Column(Text)

    # Audit
    created_by = Column(String(64))
    updated_by = Column(String(64))
    version = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime, nullable=False)
    updated_at = Column(DateTime, nullable=False)

    # Relationships
    user = relationship("UserProfileModel", back_populates="time_entries", foreign_keys=[user_id])
    project = relationship("ProjectModel", back_populates="time_entries")
    task = relationship("TaskModel", back_populates="time_entries")

    # Constraints and indexes
    __table_args__ = (
        Index('idx_time_entries_company_user', 'company_id', 'user_id'),
        Index('idx_time_entries_date', 'date'),
        Index('idx_time_entries_status', 'status'),
        Index('idx_time_entries_project', 'project_id'),
        CheckConstraint(
            "status IN ('Draft', 'Submitted', 'Approved', 'Rejected')",
            name='time_entry_valid_status'
        ),
        CheckConstraint('duration > 0 AND duration <= 24', name='time_entry_valid_duration'),
    )
