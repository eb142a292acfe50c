"""Session service: registration, login, token refresh and logout."""

from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from auth.tokens import TokenKind, TokenPair, TokenService, utc_now
from errors import NotFoundError, UnauthorizedError
from logger import get_logger
from models.requests import LoginRequest, UserCreate, UserUpdate
from models.user import User

logger = get_logger()

_BAD_CREDENTIALS = "wrong username or password"
_BAD_REFRESH_TOKEN = "Your refresh token is invalid or has expired"
_BAD_ACCESS_TOKEN = "Your access token is invalid or has expired"


@dataclass
class AuthResult:
    """A user together with a freshly issued token pair."""

    user: User
    tokens: TokenPair


class AuthService:
    """Ties the token service to the user directory.

    Args:
        users: UserService for lookups and session bookkeeping.
        tokens: TokenService issuing and verifying tokens.
        clock: Returns the current time; used for logout timestamps.
    """

    def __init__(
        self, users, tokens: TokenService, clock: Callable[[], datetime] = utc_now
    ):
        self.users = users
        self.tokens = tokens
        self.clock = clock

    def register(self, user_create: UserCreate) -> AuthResult:
        """Create a regular user and log them in.

        Raises:
            ConflictError: If the username is taken.
        """
        user = self.users.create(user_create)
        return self._start_session(user)

    def login(self, login_request: LoginRequest) -> AuthResult:
        """Check credentials and start a new session.

        A new refresh token replaces whatever the user had stored, which ends
        any previous session.

        Raises:
            UnauthorizedError: If the username is unknown or the password is wrong.
        """
        user = self.users.find_by_username(login_request.username)
        if not user or not self.users.verify_password(user, login_request.password):
            logger.warning(f"Failed login for username {login_request.username!r}")
            raise UnauthorizedError(_BAD_CREDENTIALS)
        return self._start_session(user)

    def refresh(self, refresh_token: str) -> str:
        """Mint a new access token from a refresh token.

        The token must verify as a refresh token and must still be the one
        stored on the user; the refresh token itself is not rotated.

        Returns:
            A new access token.

        Raises:
            UnauthorizedError: If the token is invalid, expired, replaced or
                from before the user's last logout.
        """
        payload = self.tokens.verify(refresh_token, TokenKind.REFRESH)
        user = self.users.find_by_refresh_token(refresh_token) if payload else None

        if not user or self._issued_before_logout(refresh_token, user):
            logger.warning("Rejected refresh attempt")
            raise UnauthorizedError(_BAD_REFRESH_TOKEN)

        return self.tokens.issue_access(user)

    def logout(self, user_id: int) -> None:
        """End the user's session.

        Clears the stored refresh token and records the logout time. Access
        tokens already handed out keep working until they expire.

        Raises:
            NotFoundError: If the user does not exist.
        """
        if not self.users.end_session(user_id, self.clock()):
            raise NotFoundError("User you want to log out does not exist")
        logger.info(f"User {user_id} logged out")

    def authenticate(self, access_token: str) -> User:
        """Resolve an access token to the user it was issued to.

        Raises:
            UnauthorizedError: If the token is invalid or the user is gone.
        """
        payload = self.tokens.verify(access_token, TokenKind.ACCESS)
        user = self.users.find(payload.id) if payload else None
        if not user:
            raise UnauthorizedError(_BAD_ACCESS_TOKEN)
        return user

    def change_password(self, user_id: int, current_password: str, new_password: str) -> User:
        """Change a password after checking the current one.

        Raises:
            NotFoundError: If the user does not exist.
            UnauthorizedError: If ``current_password`` is wrong.
        """
        user = self.users.find(user_id)
        if not user:
            raise NotFoundError("User does not exist")
        if not self.users.verify_password(user, current_password):
            raise UnauthorizedError(_BAD_CREDENTIALS)
        return self.users.update(user_id, UserUpdate(password=new_password))

    def _start_session(self, user: User) -> AuthResult:
        tokens = self.tokens.issue_pair(user)
        self.users.set_refresh_token(user.id, tokens.refresh_token)
        user.refresh_token = tokens.refresh_token
        logger.info(f"Started session for user {user.id}")
        return AuthResult(user=user, tokens=tokens)

    def _issued_before_logout(self, token: str, user: User) -> bool:
        if user.logout_timestamp is None:
            return False
        issued_at = self.tokens.issued_at(token)
        if issued_at is None:
            return True
        # iat has whole-second precision
        return issued_at < user.logout_timestamp.replace(microsecond=0)
