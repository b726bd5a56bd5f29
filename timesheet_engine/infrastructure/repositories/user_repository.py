"""
User repository implementation using SQLAlchemy.
"""

from typing import Optional
from sqlalchemy.orm import Session

from timesheet_engine.domain.models.user import UserReference
from timesheet_engine.domain.repositories.user_repository import UserRepository as UserRepositoryInterface
from timesheet_engine.infrastructure.db.models import UserProfileModel
from timesheet_engine.infrastructure.mappers.reference_mapper import ReferenceMapper


class SQLAlchemyUserRepository(UserRepositoryInterface):
    """SQLAlchemy implementation of user repository."""

    def __init__(self, session: Session):
        self.session = session
        self.mapper = ReferenceMapper()

    async def find_by_id(self, user_id: str) -> Optional[UserReference]:
        """Get user by ID."""
        model = self.session.query(UserProfileModel).filter_by(id=user_id).first()

        if not model:
            return None

        return self.mapper.user_to_reference(model)
