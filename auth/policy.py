"""Authorization policy.

Pure decision functions answering "may this actor do this to a resource
owned by that user?". Nothing here touches storage; services look up the
resource and its owner first, then ask.

Rules:
    - anyone may do anything to what they own;
    - a regular user may not touch anyone else's resources;
    - an admin may read everything and modify anything owned by a regular
      user, but may not modify or delete another admin's resources;
    - only an admin can change a role, so nobody can promote themselves.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Protocol
from errors import ForbiddenError
from models.user import User, UserRole


class Action(str, Enum):
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Owner(Protocol):
    """Anything with an id and a role, typically a ``User``."""

    id: int
    role: UserRole


@dataclass(frozen=True)
class Actor:
    """The authenticated principal performing an operation."""

    user_id: int
    role: UserRole

    @classmethod
    def of(cls, user: User) -> "Actor":
        return cls(user_id=user.id, role=user.role)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def owns(self, owner: Owner) -> bool:
        return self.user_id == owner.id


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[str] = None

    def __bool__(self) -> bool:
        return self.allowed

    @classmethod
    def deny(cls, reason: str) -> "Decision":
        return cls(allowed=False, reason=reason)


ALLOW = Decision(allowed=True)


def can_act(actor: Actor, action: Action, owner: Owner) -> Decision:
    """Decide whether ``actor`` may perform ``action`` on a resource of ``owner``."""
    if actor.owns(owner):
        return ALLOW
    if not actor.is_admin:
        return Decision.deny(f"You are not allowed to {action.value} resources of another user")
    if action == Action.READ:
        return ALLOW
    if owner.role == UserRole.ADMIN:
        return Decision.deny(
            f"You are not allowed to {action.value} resources of another Administrator"
        )
    return ALLOW


def can_change_role(actor: Actor, target: Owner, new_role: UserRole) -> Decision:
    """Decide whether ``actor`` may set ``target``'s role to ``new_role``."""
    if new_role == target.role:
        return ALLOW
    if not actor.is_admin:
        return Decision.deny("You are not allowed to change your role")
    return can_act(actor, Action.UPDATE, target)


def can_manage_defaults(actor: Actor) -> Decision:
    """Only admins may change the default category template."""
    if actor.is_admin:
        return ALLOW
    return Decision.deny("Only Administrators may change default categories")


def requires_password_confirmation(actor: Actor, target: Owner) -> bool:
    """Deleting your own account needs your password; deleting others' does not."""
    return actor.owns(target)


def enforce(decision: Decision) -> None:
    """Raise ForbiddenError for a denied decision."""
    if not decision:
        raise ForbiddenError(decision.reason or "Forbidden")


def authorize(actor: Optional[Actor], action: Action, owner: Owner) -> None:
    """Raise ForbiddenError unless ``actor`` may act on ``owner``'s resource.

    A missing actor stands for a trusted internal caller and is always allowed.
    """
    if actor is None:
        return
    enforce(can_act(actor, action, owner))
