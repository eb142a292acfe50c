"""User model and roles."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class UserRole(str, Enum):
    """Role of a user account."""

    USER = "USER"
    ADMIN = "ADMIN"


@dataclass
class User:
    """Represents a registered user.

    Attributes:
        id: Unique identifier (auto-generated).
        username: Login name, unique regardless of case.
        display_name: Name shown in the UI.
        password: bcrypt digest of the password. Never the plaintext.
        role: USER or ADMIN.
        refresh_token: Currently valid refresh token, empty string when logged out.
        logout_timestamp: Time of the last explicit logout, if any.
    """

    id: int
    username: str
    display_name: str
    password: str
    role: UserRole = UserRole.USER
    refresh_token: str = ""
    logout_timestamp: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def to_dict(self) -> dict:
        """Convert user to a dictionary safe to hand out (no secrets)."""
        return {
            "id": self.id,
            "username": self.username,
            "display_name": self.display_name,
            "role": self.role.value,
        }
