"""
Unit tests for JWTHandler.
"""

import pytest
from jose import jwt as jose_jwt

from timesheet_engine.domain.models.base import ValidationError
from timesheet_engine.infrastructure.auth.jwt_handler import JWTHandler


class TestJWTHandler:
    """Test cases for token validation."""

    def setup_method(self):
        """Set up test fixtures."""
        self.handler = JWTHandler(secret="test-secret", algorithm="HS256")

    def test_identity_round_trip(self):
        token = self.handler.generate_token("u-emp", "employee", "acme")

        assert self.handler.get_identity(f"Bearer {token}") == {
            "user_id": "u-emp",
            "role": "employee",
            "company_id": "acme",
        }

    def test_expired_token(self):
        token = self.handler.generate_token("u-emp", "employee", "acme", expires_minutes=-5)

        with pytest.raises(ValidationError, match="Invalid JWT token"):
            self.handler.verify_token(token)

    def test_wrong_secret(self):
        token = JWTHandler(secret="other-secret", algorithm="HS256").generate_token("u-emp", "employee", "acme")

        with pytest.raises(ValidationError):
            self.handler.verify_token(token)

    def test_missing_company_claim(self):
        token = jose_jwt.encode({"sub": "u-emp", "role": "employee"}, "test-secret", algorithm="HS256")

        with pytest.raises(ValidationError, match="company_id"):
            self.handler.verify_token(token)
