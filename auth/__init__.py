"""Authentication and authorization building blocks."""

from auth.passwords import PasswordHasher
from auth.policy import Action, Actor, Decision
from auth.tokens import TokenKind, TokenPair, TokenPayload, TokenService

__all__ = [
    "Action",
    "Actor",
    "Decision",
    "PasswordHasher",
    "TokenKind",
    "TokenPair",
    "TokenPayload",
    "TokenService",
]
