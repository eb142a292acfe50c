"""User service for database operations."""

import sqlite3
from datetime import datetime, timezone
from typing import List, Optional
from auth.passwords import PasswordHasher
from auth.policy import (
    Action,
    Actor,
    authorize,
    can_change_role,
    enforce,
    requires_password_confirmation,
)
from errors import ConflictError, NotFoundError, ValidationError
from logger import get_logger
from models.requests import UserCreate, UserUpdate
from models.user import User, UserRole

logger = get_logger()

_USER_SELECT_FIELDS = (
    "id, username, display_name, password, role, refresh_token, logout_timestamp"
)


def _row_to_user(row: tuple) -> User:
    """Convert a database row to a User object."""
    return User(
        id=row[0],
        username=row[1],
        display_name=row[2],
        password=row[3],
        role=UserRole(row[4]),
        refresh_token=row[5],
        logout_timestamp=datetime.fromisoformat(row[6]) if row[6] else None,
    )


def _format_timestamp(value: datetime) -> str:
    # Fixed width UTC so stored timestamps compare correctly as text
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def find_user(conn: sqlite3.Connection, user_id: int) -> Optional[User]:
    """Load a user on an already open connection.

    Used by the other services to fetch the owner of a resource before
    consulting the authorization policy.
    """
    cursor = conn.execute(
        f"SELECT {_USER_SELECT_FIELDS} FROM users WHERE id = ?", (user_id,)
    )
    row = cursor.fetchone()
    return _row_to_user(row) if row else None


class UserService:
    """Service for managing users."""

    def __init__(self, db_manager, categories, passwords: PasswordHasher):
        """Initialize the user service.

        Args:
            db_manager: Database manager instance for database operations.
            categories: CategoryService used to provision new users' categories.
            passwords: Hasher for storing and checking passwords.
        """
        self.db_manager = db_manager
        self.categories = categories
        self.passwords = passwords

    def find_all(self) -> List[User]:
        """Get all users, ordered by id."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(f"SELECT {_USER_SELECT_FIELDS} FROM users ORDER BY id")
            return [_row_to_user(row) for row in cursor.fetchall()]

    def find(self, user_id: int) -> Optional[User]:
        """Get a single user by ID.

        Args:
            user_id: The user ID to find.

        Returns:
            User object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            return find_user(conn, user_id)

    def find_by_username(self, username: str) -> Optional[User]:
        """Get a single user by username, ignoring case."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_USER_SELECT_FIELDS} FROM users WHERE username = ? COLLATE NOCASE",
                (username,),
            )
            row = cursor.fetchone()
            return _row_to_user(row) if row else None

    def find_by_refresh_token(self, refresh_token: str) -> Optional[User]:
        """Get the user whose stored refresh token is exactly ``refresh_token``.

        The empty string marks a logged-out user and never matches.
        """
        if not refresh_token:
            return None
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_USER_SELECT_FIELDS} FROM users WHERE refresh_token = ?",
                (refresh_token,),
            )
            row = cursor.fetchone()
            return _row_to_user(row) if row else None

    def create(self, user_create: UserCreate, role: UserRole = UserRole.USER) -> User:
        """Create a user together with their starting categories.

        The user row and the categories are written in one unit of work, so a
        user never exists without an "Other" category. Only the bcrypt digest
        of the password reaches the database.

        Args:
            user_create: Username, display name and plaintext password.
            role: Role of the new account. Registration always uses USER.

        Returns:
            The created User object with id populated.

        Raises:
            ConflictError: If the username is taken (in any letter case).
        """
        if self.find_by_username(user_create.username):
            raise ConflictError(f"username {user_create.username} is already in use")

        digest = self.passwords.hash(user_create.password)

        with self.db_manager.transaction() as conn:
            try:
                cursor = conn.execute(
                    "INSERT INTO users (username, display_name, password, role) VALUES (?, ?, ?, ?)",
                    (user_create.username, user_create.display_name, digest, role.value),
                )
            except sqlite3.IntegrityError as e:
                raise ConflictError(
                    f"username {user_create.username} is already in use"
                ) from e
            user_id = cursor.lastrowid
            self.categories.create_defaults(conn, user_id)

        logger.info(f"Created user {user_id} ({role.value})")
        return User(
            id=user_id,
            username=user_create.username,
            display_name=user_create.display_name,
            password=digest,
            role=role,
        )

    def update(
        self, user_id: int, user_update: UserUpdate, actor: Optional[Actor] = None
    ) -> User:
        """Apply a partial update to a user.

        Args:
            user_id: The user ID to update.
            user_update: Fields to change; None fields are left alone.
            actor: Who is asking. None for trusted internal callers.

        Returns:
            The updated User object.

        Raises:
            NotFoundError: If the user does not exist.
            ForbiddenError: If the actor may not touch this user or change the role.
            ConflictError: If the new username is taken.
        """
        user = self.find(user_id)
        if not user:
            raise NotFoundError("User you want to update does not exist")

        authorize(actor, Action.UPDATE, user)

        changes = {}
        if user_update.role is not None and user_update.role != user.role:
            if actor is not None:
                enforce(can_change_role(actor, user, user_update.role))
            changes["role"] = user_update.role.value

        if user_update.username is not None and user_update.username != user.username:
            existing = self.find_by_username(user_update.username)
            if existing and existing.id != user.id:
                raise ConflictError(
                    "Another user with same username already exists, please choose another username"
                )
            changes["username"] = user_update.username

        if user_update.display_name is not None:
            changes["display_name"] = user_update.display_name

        if user_update.password is not None:
            changes["password"] = self.passwords.hash(user_update.password)

        if changes:
            set_clause = ", ".join(f"{column} = ?" for column in changes)
            with self.db_manager.transaction() as conn:
                try:
                    conn.execute(
                        f"UPDATE users SET {set_clause} WHERE id = ?",
                        (*changes.values(), user_id),
                    )
                except sqlite3.IntegrityError as e:
                    raise ConflictError(
                        "Another user with same username already exists, please choose another username"
                    ) from e
            logger.info(f"Updated user {user_id}: {', '.join(sorted(changes))}")

        return self.find(user_id)

    def delete(
        self,
        user_id: int,
        actor: Optional[Actor] = None,
        password: Optional[str] = None,
    ) -> None:
        """Delete a user along with their categories and transactions.

        Args:
            user_id: The user ID to delete.
            actor: Who is asking. None for trusted internal callers, which
                skip every check except existence.
            password: Confirmation password, required when deleting yourself.

        Raises:
            NotFoundError: If the user does not exist.
            ValidationError: If a self-delete lacks the correct password.
            ForbiddenError: If the actor may not delete this user.
        """
        if actor is not None:
            user = self.find(user_id)
            if not user:
                raise NotFoundError("User you want to delete does not exist")

            if requires_password_confirmation(actor, user):
                if not password or not self.passwords.verify(password, user.password):
                    raise ValidationError("Password confirmation is missing or incorrect")
            else:
                authorize(actor, Action.DELETE, user)

        with self.db_manager.transaction() as conn:
            cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            if cursor.rowcount == 0:
                raise NotFoundError("User you want to delete does not exist")

        logger.info(f"Deleted user {user_id}")

    def verify_password(self, user: User, password: str) -> bool:
        return self.passwords.verify(password, user.password)

    def set_refresh_token(self, user_id: int, refresh_token: str) -> bool:
        """Store the user's current refresh token, replacing any previous one."""
        with self.db_manager.transaction() as conn:
            cursor = conn.execute(
                "UPDATE users SET refresh_token = ? WHERE id = ?",
                (refresh_token, user_id),
            )
            return cursor.rowcount > 0

    def end_session(self, user_id: int, logged_out_at: datetime) -> bool:
        """Forget the stored refresh token and record the logout time.

        The logout timestamp never moves backwards.

        Returns:
            True if the user exists, False otherwise.
        """
        stamp = _format_timestamp(logged_out_at)
        with self.db_manager.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE users
                SET refresh_token = '',
                    logout_timestamp = CASE
                        WHEN logout_timestamp IS NULL OR logout_timestamp < ? THEN ?
                        ELSE logout_timestamp
                    END
                WHERE id = ?
                """,
                (stamp, stamp, user_id),
            )
            return cursor.rowcount > 0
