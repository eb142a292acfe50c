"""JWT access and refresh tokens.

Both token kinds carry the same payload (user id, username, role) plus a
``type`` claim, and differ in signing key and lifetime. Access tokens
authenticate requests and live for minutes; refresh tokens live for days,
are stored on the user record and are only good for minting new access
tokens.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional
from jose import jwt
from jose.exceptions import JOSEError
from config import Config
from models.user import User, UserRole


class TokenKind(str, Enum):
    ACCESS = "access"
    REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPayload:
    """Identity claims shared by access and refresh tokens."""

    id: int
    username: str
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "TokenPayload":
        return cls(id=user.id, username=user.username, role=user.role)

    def to_claims(self) -> dict:
        return {"id": self.id, "username": self.username, "role": self.role.value}

    @classmethod
    def from_claims(cls, claims: dict) -> Optional["TokenPayload"]:
        """Build a payload from decoded claims, or None if they are malformed."""
        user_id = claims.get("id")
        username = claims.get("username")
        role = claims.get("role")
        # bool is an int subclass and must not pass as a user id
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            return None
        if not isinstance(username, str) or not username:
            return None
        try:
            return cls(id=user_id, username=username, role=UserRole(role))
        except ValueError:
            return None


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies signed tokens.

    Args:
        config: Supplies the per-kind secrets, lifetimes and the algorithm.
        clock: Returns the current time; used for ``iat`` and ``exp``.
    """

    def __init__(self, config: Config, clock: Callable[[], datetime] = utc_now):
        self.algorithm = config.jwt_algorithm
        self.clock = clock
        self._secrets = {
            TokenKind.ACCESS: config.access_token_secret,
            TokenKind.REFRESH: config.refresh_token_secret,
        }
        self._lifetimes = {
            TokenKind.ACCESS: timedelta(minutes=config.access_token_ttl_minutes),
            TokenKind.REFRESH: timedelta(days=config.refresh_token_ttl_days),
        }

    def issue(self, user: User, kind: TokenKind) -> str:
        """Sign a token of the given kind for a user."""
        issued_at = self.clock()
        claims = TokenPayload.from_user(user).to_claims()
        claims["type"] = kind.value
        claims["iat"] = int(issued_at.timestamp())
        claims["exp"] = int((issued_at + self._lifetimes[kind]).timestamp())
        return jwt.encode(claims, self._secrets[kind], algorithm=self.algorithm)

    def issue_access(self, user: User) -> str:
        return self.issue(user, TokenKind.ACCESS)

    def issue_refresh(self, user: User) -> str:
        return self.issue(user, TokenKind.REFRESH)

    def issue_pair(self, user: User) -> TokenPair:
        return TokenPair(
            access_token=self.issue_access(user),
            refresh_token=self.issue_refresh(user),
        )

    def verify(self, token: str, kind: TokenKind) -> Optional[TokenPayload]:
        """Check signature, expiry and payload shape of a token.

        Every kind of failure gives the same answer: None. Callers must not
        be able to tell an expired token from a forged one.

        Args:
            token: Encoded token.
            kind: Which key to verify with.

        Returns:
            The token payload, or None if the token is not valid for ``kind``.
        """
        if not isinstance(token, str) or not token:
            return None
        try:
            claims = jwt.decode(token, self._secrets[kind], algorithms=[self.algorithm])
        except JOSEError:
            return None
        # Guards against both kinds sharing one secret
        if claims.get("type") != kind.value:
            return None
        return TokenPayload.from_claims(claims)

    def issued_at(self, token: str) -> Optional[datetime]:
        """Read the ``iat`` claim without verifying. Only use on verified tokens."""
        try:
            claims = jwt.get_unverified_claims(token)
        except JOSEError:
            return None
        iat = claims.get("iat")
        if not isinstance(iat, int):
            return None
        return datetime.fromtimestamp(iat, tz=timezone.utc)
