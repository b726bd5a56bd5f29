"""
Global error handling for the FastAPI application.
Catches and formats all exceptions consistently.
"""

import logging
import traceback
from typing import Any, Dict, Tuple
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from fastapi import status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder

from timesheet_engine.config import settings
from timesheet_engine.application.dto.base_dto import ErrorResponseDTO
from timesheet_engine.domain.models.base import (
    AuthorizationError,
    ConcurrencyConflict,
    DomainException,
    EntityNotFoundError,
    StateError,
    ValidationError,
)

logger = logging.getLogger(__name__)


def format_domain_error(exc: DomainException) -> Tuple[int, Dict[str, Any]]:
    """
    Map a domain exception to a status code and error body.
    """
    details: Dict[str, Any] = {}

    if isinstance(exc, ValidationError):
        status_code, error = status.HTTP_400_BAD_REQUEST, "Bad Request"
        if exc.field:
            details["field"] = exc.field
    elif isinstance(exc, AuthorizationError):
        status_code, error = status.HTTP_403_FORBIDDEN, "Forbidden"
    elif isinstance(exc, EntityNotFoundError):
        status_code, error = status.HTTP_404_NOT_FOUND, "Not Found"
        details["entity_type"] = exc.entity_type
        details["entity_id"] = exc.entity_id
    elif isinstance(exc, StateError):
        status_code, error = status.HTTP_409_CONFLICT, "Conflict"
        if exc.current_status:
            details["current_status"] = exc.current_status
    elif isinstance(exc, ConcurrencyConflict):
        status_code, error = status.HTTP_409_CONFLICT, "Conflict"
        details["entity_type"] = exc.entity_type
        details["entity_id"] = exc.entity_id
    else:
        status_code, error = status.HTTP_400_BAD_REQUEST, "Bad Request"

    return status_code, ErrorResponseDTO(
        error=error,
        message=exc.message,
        code=exc.code,
        details=details or None,
    ).model_dump()


async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    """Exception handler for domain errors raised by use cases."""
    status_code, body = format_domain_error(exc)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(body))


async def request_validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Exception handler for request schema errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=jsonable_encoder({
            "error": "Unprocessable Entity",
            "message": "Request validation failed",
            "code": "ValidationError",
            "details": {"errors": exc.errors()},
        })
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware to handle all uncaught exceptions and format error responses.
    """

    async def dispatch(self, request: Request, call_next):
        """
        Process the request and handle any exceptions.
        """
        try:
            response = await call_next(request)
            return response
        except Exception as exc:
            return await self.handle_exception(request, exc)

    async def handle_exception(self, request: Request, exc: Exception) -> JSONResponse:
        """
        Handle different types of exceptions and return appropriate responses.
        """
        if isinstance(exc, DomainException):
            return await domain_exception_handler(request, exc)

        # Log the full exception with traceback
        logger.error(
            f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
            exc_info=True,
            extra={
                "request_path": request.url.path,
                "request_method": request.method,
                "client_host": request.client.host if request.client else None
            }
        )

        error_response: Dict[str, Any] = {
            "error": "Internal Server Error",
            "message": "An unexpected error occurred",
            "code": "InternalError",
            "details": None,
        }

        # In development, add more debug information
        if settings.debug:
            error_response["details"] = {
                "exception_type": type(exc).__name__,
                "traceback": traceback.format_exc().split("\n")
            }

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_response
        )
