"""
Base use case classes for the application layer.
Provides common patterns and structure for use case implementations.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, TypeVar, Generic
from datetime import datetime

from timesheet_engine.domain.models.base import (
    AuthorizationError,
    DomainException,
    ValidationError,
)
from timesheet_engine.domain.services.access_policy import Capability, can


logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


class UseCaseContext:
    """
    Caller identity for one use case execution.
    Supplied by the HTTP layer and trusted as-is.
    """

    def __init__(
        self,
        user_id: Optional[str] = None,
        role: Optional[str] = None,
        company_id: Optional[str] = None,
        request_id: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None
    ):
        self.user_id = user_id
        self.role = role
        self.company_id = company_id
        self.request_id = request_id
        self.metadata = metadata or {}
        self.execution_start = datetime.utcnow()

    def is_authenticated(self) -> bool:
        """Check if user is authenticated."""
        return bool(self.user_id) and bool(self.company_id)

    def can(self, capability: Capability) -> bool:
        """Check if the caller's role holds a capability."""
        return can(self.role, capability)


class BaseUseCase(ABC, Generic[T, R]):
    """
    Base class for all use cases.
    Provides common structure and error handling.

    Domain exceptions propagate to the caller after being logged.
    """

    def __init__(self):
        self.context: Optional[UseCaseContext] = None
        self.execution_start: Optional[datetime] = None
        self.execution_end: Optional[datetime] = None

    async def execute(self, context: UseCaseContext, request: T) -> R:
        """
        Execute the use case for the given caller.
        """
        self.context = context
        self.execution_start = datetime.utcnow()

        try:
            # Validate input
            await self._validate_request(request)

            # Execute business logic
            return await self._execute_business_logic(request)

        except DomainException as exc:
            logger.info(
                f"{type(self).__name__} rejected for user {context.user_id}: "
                f"{exc.code}: {exc.message}"
            )
            raise

        finally:
            self.execution_end = datetime.utcnow()

    async def _validate_request(self, request: T) -> None:
        """
        Validate the request. Override in subclasses if needed.
        """
        pass

    @abstractmethod
    async def _execute_business_logic(self, request: T) -> R:
        """
        Execute the core business logic. Must be implemented by subclasses.
        """
        pass


class QueryUseCase(BaseUseCase[T, R]):
    """
    Base class for query use cases (read operations).
    """
    pass


class CommandUseCase(BaseUseCase[T, R]):
    """
    Base class for command use cases (write operations).
    """

    async def _execute_business_logic(self, request: T) -> R:
        return await self._execute_command_logic(request)

    @abstractmethod
    async def _execute_command_logic(self, request: T) -> R:
        """Execute the command logic. Must be implemented by subclasses."""
        pass


class PaginatedQueryUseCase(QueryUseCase[T, R]):
    """
    Base class for paginated query use cases.
    """

    def __init__(self, default_page_size: int = 20, max_page_size: int = 100):
        super().__init__()
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size

    async def _validate_request(self, request: T) -> None:
        """Validate paginated request."""
        await super()._validate_request(request)

        if hasattr(request, 'page_size'):
            if request.page_size > self.max_page_size:
                raise ValidationError(f"Page size cannot exceed {self.max_page_size}", "page_size")
            if request.page_size < 1:
                raise ValidationError("Page size must be positive", "page_size")


# Specific use case patterns
class CreateUseCase(CommandUseCase[T, R]):
    """Base class for entity creation use cases."""
    pass


class UpdateUseCase(CommandUseCase[T, R]):
    """Base class for entity update use cases."""
    pass


class DeleteUseCase(CommandUseCase[T, R]):
    """Base class for entity deletion use cases."""
    pass


class BatchUseCase(CommandUseCase[T, R]):
    """Base class for batch transition use cases."""
    pass


class GetByIdUseCase(QueryUseCase[T, R]):
    """Base class for get-by-id use cases."""

    async def _validate_request(self, request: T) -> None:
        """Validate get-by-id request."""
        await super()._validate_request(request)

        if isinstance(request, int) and request <= 0:
            raise ValidationError("ID must be positive", "id")


class ListUseCase(PaginatedQueryUseCase[T, R]):
    """Base class for list use cases."""
    pass


# Authorization mixin
class AuthorizedUseCase(BaseUseCase[T, R]):
    """
    Mixin for use cases that require an authenticated caller.
    """

    @property
    def current_user_id(self) -> Optional[str]:
        return self.context.user_id if self.context else None

    @property
    def current_role(self) -> Optional[str]:
        return self.context.role if self.context else None

    @property
    def company_id(self) -> Optional[str]:
        return self.context.company_id if self.context else None

    async def _validate_request(self, request: T) -> None:
        """Validate request with authorization check."""
        if self.context is None or not self.context.is_authenticated():
            raise AuthorizationError("User authentication required")

        await super()._validate_request(request)
        await self._check_authorization(request)

    async def _check_authorization(self, request: T) -> None:
        """Check if the current user is authorized. Override in subclasses."""
        pass

    def _require_capability(self, capability: Capability) -> None:
        """Check if the caller's role grants a capability."""
        if self.context is None or not self.context.can(capability):
            raise AuthorizationError(
                f"Role '{self.current_role}' is not allowed to {capability.value.replace('_', ' ')}"
            )
