"""
JWT token handler.
Validates bearer tokens and extracts the caller identity claims.
"""

from typing import Optional, Dict, Any
from datetime import datetime, timedelta, timezone
from jose import JWTError, jwt as jose_jwt

from timesheet_engine.config import get_settings
from timesheet_engine.domain.models.base import ValidationError


class JWTHandler:
    """Handles JWT token validation and identity extraction."""

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None):
        self.settings = get_settings()
        self.jwt_secret = secret or self.settings.jwt_secret_key
        self.jwt_algorithm = algorithm or self.settings.jwt_algorithm

    def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify and decode a JWT token.

        Args:
            token: JWT token string

        Returns:
            Dict containing token payload

        Raises:
            ValidationError: If token is invalid, expired or missing identity claims
        """
        # Remove 'Bearer ' prefix if present
        if token.startswith('Bearer '):
            token = token[7:]

        try:
            payload = jose_jwt.decode(
                token,
                self.jwt_secret,
                algorithms=[self.jwt_algorithm],
                options={"verify_exp": True, "verify_aud": False}
            )
        except JWTError as e:
            raise ValidationError(f"Invalid JWT token: {str(e)}")

        # Validate required claims
        if not payload.get('sub'):
            raise ValidationError("Token missing user ID (sub claim)")

        if not payload.get('company_id'):
            raise ValidationError("Token missing company (company_id claim)")

        return payload

    def get_identity(self, token: str) -> Dict[str, Optional[str]]:
        """
        Extract user ID, role and company from a token.
        """
        payload = self.verify_token(token)
        return {
            "user_id": str(payload['sub']),
            "role": payload.get('role'),
            "company_id": str(payload['company_id']),
        }

    def generate_token(
        self,
        user_id: str,
        role: str,
        company_id: str,
        expires_minutes: int = 60
    ) -> str:
        """
        Generate a signed token for development and tests.

        Args:
            user_id: User ID to include in token
            role: Company role of the user
            company_id: Tenant of the user
            expires_minutes: Token expiration in minutes (default: 60)

        Returns:
            JWT token string
        """
        now = datetime.now(timezone.utc)
        expire = now + timedelta(minutes=expires_minutes)

        payload = {
            "sub": user_id,  # Subject (user ID)
            "role": role,
            "company_id": company_id,
            "iat": int(now.timestamp()),  # Issued at
            "exp": int(expire.timestamp()),  # Expires at
        }

        return jose_jwt.encode(
            payload,
            self.jwt_secret,
            algorithm=self.jwt_algorithm
        )
