"""
Authentication infrastructure module.
Handles JWT validation and caller identity.
"""

from .jwt_handler import JWTHandler
from .dependencies import get_current_context, get_jwt_handler

__all__ = [
    "JWTHandler",
    "get_current_context",
    "get_jwt_handler",
]
