import pytest

from auth.policy import (
    Action,
    Actor,
    authorize,
    can_act,
    can_change_role,
    can_manage_defaults,
    requires_password_confirmation,
)
from errors import ForbiddenError
from models.user import User, UserRole


def _user(user_id, role=UserRole.USER):
    return User(
        id=user_id,
        username=f"user{user_id}",
        display_name=f"User {user_id}",
        password="",
        role=role,
    )


alice = _user(1)
bob = _user(2)
root = _user(10, UserRole.ADMIN)
other_admin = _user(11, UserRole.ADMIN)


class TestCanAct:
    """Tests for can_act."""

    @pytest.mark.parametrize("action", list(Action))
    def test_owner_may_do_anything(self, action):
        assert can_act(Actor.of(alice), action, alice)
        assert can_act(Actor.of(root), action, root)

    @pytest.mark.parametrize("action", list(Action))
    def test_regular_user_may_not_touch_others(self, action):
        decision = can_act(Actor.of(alice), action, bob)

        assert not decision
        assert "another user" in decision.reason

    @pytest.mark.parametrize("action", list(Action))
    def test_admin_may_act_on_regular_users(self, action):
        assert can_act(Actor.of(root), action, alice)

    @pytest.mark.parametrize("action", [Action.UPDATE, Action.DELETE])
    def test_admin_may_not_modify_another_admin(self, action):
        decision = can_act(Actor.of(root), action, other_admin)

        assert not decision
        assert "another Administrator" in decision.reason

    def test_admin_may_read_another_admin(self):
        assert can_act(Actor.of(root), Action.READ, other_admin)

    def test_regular_user_may_not_touch_admin(self):
        assert not can_act(Actor.of(alice), Action.UPDATE, root)


class TestCanChangeRole:
    """Tests for can_change_role."""

    def test_user_cannot_promote_themselves(self):
        decision = can_change_role(Actor.of(alice), alice, UserRole.ADMIN)

        assert not decision
        assert decision.reason == "You are not allowed to change your role"

    def test_setting_the_same_role_is_not_a_change(self):
        assert can_change_role(Actor.of(alice), alice, UserRole.USER)

    def test_admin_can_promote_regular_user(self):
        assert can_change_role(Actor.of(root), alice, UserRole.ADMIN)

    def test_admin_cannot_demote_another_admin(self):
        assert not can_change_role(Actor.of(root), other_admin, UserRole.USER)

    def test_admin_can_demote_themselves(self):
        assert can_change_role(Actor.of(root), root, UserRole.USER)


class TestMisc:
    def test_only_admins_manage_defaults(self):
        assert can_manage_defaults(Actor.of(root))
        assert not can_manage_defaults(Actor.of(alice))

    def test_password_needed_only_for_self(self):
        assert requires_password_confirmation(Actor.of(alice), alice)
        assert not requires_password_confirmation(Actor.of(root), alice)

    def test_authorize_raises_forbidden(self):
        with pytest.raises(ForbiddenError, match="another Administrator"):
            authorize(Actor.of(root), Action.DELETE, other_admin)

    def test_authorize_without_actor_is_trusted(self):
        authorize(None, Action.DELETE, other_admin)

    def test_actor_of_user(self):
        actor = Actor.of(root)

        assert actor.user_id == 10
        assert actor.is_admin
        assert not Actor.of(alice).is_admin
