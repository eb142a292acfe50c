"""Helper utilities for tests."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from models.requests import UserCreate
from models.user import User, UserRole

DEFAULT_PASSWORD = "correct horse"


class FakeClock:
    """Callable clock that only moves when told to.

    Starts at the real current time because token expiry is checked against
    the real clock when decoding.
    """

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


def make_user(
    services,
    username: str,
    role: UserRole = UserRole.USER,
    password: str = DEFAULT_PASSWORD,
) -> User:
    """Create a user (with default categories) straight through the user service."""
    return services.users.create(
        UserCreate(username=username, display_name=username.title(), password=password),
        role=role,
    )