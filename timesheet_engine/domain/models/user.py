"""
User reference supplied by the identity collaborator.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class UserReference:
    """Read-only view of a user used for display joins."""

    id: str
    company_id: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def full_name(self) -> str:
        """Get the display name of the user."""
        parts = [part for part in (self.first_name, self.last_name) if part]
        return " ".join(parts) or self.id
