"""
Authentication dependencies for FastAPI.
Turns the bearer token into the caller context the use cases run with.
"""

from typing import Annotated
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from timesheet_engine.application.use_cases.base_use_case import UseCaseContext
from timesheet_engine.infrastructure.auth.jwt_handler import JWTHandler
from timesheet_engine.domain.models.base import ValidationError


# Security scheme
security = HTTPBearer()

# Global instance
jwt_handler = JWTHandler()


def get_jwt_handler() -> JWTHandler:
    """Dependency to get JWT handler."""
    return jwt_handler


async def get_current_context(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    jwt_handler: Annotated[JWTHandler, Depends(get_jwt_handler)]
) -> UseCaseContext:
    """
    FastAPI dependency to get the authenticated caller.

    Raises:
        HTTPException: If authentication fails
    """
    try:
        identity = jwt_handler.get_identity(credentials.credentials)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return UseCaseContext(
        user_id=identity["user_id"],
        role=identity["role"],
        company_id=identity["company_id"],
        request_id=request.headers.get("x-request-id"),
    )
