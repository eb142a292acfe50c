"""Category service for database operations."""

import sqlite3
from typing import Iterable, List, Optional, Tuple
from auth.policy import Action, Actor, authorize, can_manage_defaults, enforce
from errors import ConflictError, ForbiddenError, NotFoundError
from logger import get_logger
from models.category import OTHER_CATEGORY_LABEL, Category
from models.requests import CategoryCreate, CategoryUpdate, DefaultCategoriesUpdate
from models.user import User
from services.users import find_user

logger = get_logger()

_CATEGORY_SELECT_FIELDS = "id, label, user_id"


def _row_to_category(row: tuple) -> Category:
    return Category(id=row[0], label=row[1], user_id=row[2])


def _clean_default_labels(labels: Iterable[str]) -> List[str]:
    """Strip, drop blanks and duplicates, and leave out "Other" (always added separately)."""
    cleaned = []
    for label in labels:
        label = label.strip()
        if label and label != OTHER_CATEGORY_LABEL and label not in cleaned:
            cleaned.append(label)
    return cleaned


class CategoryService:
    """Service for managing categories."""

    def __init__(self, db_manager, default_labels: Optional[Iterable[str]] = None):
        """Initialize the category service.

        Args:
            db_manager: Database manager instance for database operations.
            default_labels: Initial template of categories for new users.
        """
        self.db_manager = db_manager
        self._default_labels = _clean_default_labels(default_labels or [])

    def find_all(self) -> List[Category]:
        """Get all categories of all users, ordered by owner then id."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories ORDER BY user_id, id"
            )
            return [_row_to_category(row) for row in cursor.fetchall()]

    def find(self, category_id: int) -> Optional[Category]:
        """Get a single category by ID regardless of owner.

        Args:
            category_id: The category ID to find.

        Returns:
            Category object if found, None otherwise.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE id = ?",
                (category_id,),
            )
            row = cursor.fetchone()
            return _row_to_category(row) if row else None

    def find_by_user(self, user_id: int) -> List[Category]:
        """Get all categories owned by a user, in creation order."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE user_id = ? ORDER BY id",
                (user_id,),
            )
            return [_row_to_category(row) for row in cursor.fetchall()]

    def find_for_user(self, user_id: int, category_id: int) -> Optional[Category]:
        """Get a category by ID only if it belongs to ``user_id``."""
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE user_id = ? AND id = ?",
                (user_id, category_id),
            )
            row = cursor.fetchone()
            return _row_to_category(row) if row else None

    def find_by_label(self, user_id: int, label: str) -> Optional[Category]:
        """Get a user's category by label.

        Labels are matched exactly, so "Food" and "food" are different categories.
        """
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_CATEGORY_SELECT_FIELDS} FROM categories WHERE user_id = ? AND label = ?",
                (user_id, label),
            )
            row = cursor.fetchone()
            return _row_to_category(row) if row else None

    def find_other(self, user_id: int) -> Optional[Category]:
        return self.find_by_label(user_id, OTHER_CATEGORY_LABEL)

    def count_transactions(self, category_id: int) -> int:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                "SELECT COUNT(*) FROM transactions WHERE category_id = ?",
                (category_id,),
            )
            return cursor.fetchone()[0]

    def get(self, category_id: int, actor: Optional[Actor] = None) -> Category:
        """Get a category on behalf of an actor.

        Raises:
            NotFoundError: If the category does not exist or is not visible to the actor.
        """
        category, _ = self._resolve(category_id, actor, Action.READ)
        return category

    def create(self, user_id: int, category_create: CategoryCreate) -> Category:
        """Create a new category for a user.

        Args:
            user_id: Owner of the new category.
            category_create: The label of the category.

        Returns:
            The created Category object with id populated.

        Raises:
            NotFoundError: If the user does not exist.
            ConflictError: If the user already has a category with this label.
        """
        label = category_create.label
        if self.find_by_label(user_id, label):
            raise ConflictError("Category with this label already exists")

        with self.db_manager.transaction() as conn:
            if not find_user(conn, user_id):
                raise NotFoundError("User you want to create category for does not exist")
            try:
                cursor = conn.execute(
                    "INSERT INTO categories (label, user_id) VALUES (?, ?)",
                    (label, user_id),
                )
            except sqlite3.IntegrityError as e:
                raise ConflictError("Category with this label already exists") from e

        return Category(id=cursor.lastrowid, label=label, user_id=user_id)

    def create_defaults(self, conn: sqlite3.Connection, user_id: int) -> List[Category]:
        """Give a new user the template categories plus "Other".

        Runs on the caller's connection so it commits or rolls back together
        with the creation of the user.

        Args:
            conn: Connection with the caller's open transaction.
            user_id: The freshly inserted user.

        Returns:
            The created categories, "Other" last.
        """
        categories = []
        for label in [*self._default_labels, OTHER_CATEGORY_LABEL]:
            cursor = conn.execute(
                "INSERT INTO categories (label, user_id) VALUES (?, ?)",
                (label, user_id),
            )
            categories.append(Category(id=cursor.lastrowid, label=label, user_id=user_id))
        return categories

    def update(
        self,
        category_id: int,
        category_update: CategoryUpdate,
        actor: Optional[Actor] = None,
    ) -> Category:
        """Rename a category.

        Args:
            category_id: The category ID to update.
            category_update: The new label (None leaves it unchanged).
            actor: Who is asking. A regular user only sees their own
                categories; admins and internal callers look up by id.

        Returns:
            The updated Category object.

        Raises:
            NotFoundError: If the category does not exist for the actor.
            ForbiddenError: If the policy denies it or the category is "Other".
            ConflictError: If the owner already has a category with the new label.
        """
        category, _ = self._resolve(category_id, actor, Action.UPDATE)

        if category.is_other:
            raise ForbiddenError("You are not allowed to rename this category")

        new_label = category_update.label
        if new_label is None or new_label == category.label:
            return category

        if self.find_by_label(category.user_id, new_label):
            raise ConflictError(
                "You already have category with this label, please choose another label"
            )

        with self.db_manager.transaction() as conn:
            try:
                conn.execute(
                    "UPDATE categories SET label = ? WHERE id = ?",
                    (new_label, category.id),
                )
            except sqlite3.IntegrityError as e:
                raise ConflictError(
                    "You already have category with this label, please choose another label"
                ) from e

        return Category(id=category.id, label=new_label, user_id=category.user_id)

    def delete(self, category_id: int, actor: Optional[Actor] = None) -> int:
        """Delete a category, moving its transactions to the owner's "Other".

        Reassignment and deletion happen in one unit of work: if either step
        fails, nothing changes.

        Args:
            category_id: The category ID to delete.
            actor: Who is asking (see ``update``).

        Returns:
            Number of transactions moved to "Other".

        Raises:
            NotFoundError: If the category does not exist for the actor.
            ForbiddenError: If the policy denies it or the category is "Other".
            ConflictError: If transactions remain and there is no "Other" to take them.
        """
        category, _ = self._resolve(category_id, actor, Action.DELETE)

        if category.is_other:
            raise ForbiddenError("You are not allowed to delete this category")

        other = self.find_other(category.user_id)

        with self.db_manager.transaction() as conn:
            moved = 0
            if other:
                cursor = conn.execute(
                    "UPDATE transactions SET category_id = ? WHERE category_id = ?",
                    (other.id, category.id),
                )
                moved = cursor.rowcount
            try:
                cursor = conn.execute("DELETE FROM categories WHERE id = ?", (category.id,))
            except sqlite3.IntegrityError as e:
                # With "Other" present this is a storage failure, not a conflict
                if other:
                    raise
                raise ConflictError(
                    "Category still has transactions and there is no Other category to move them to"
                ) from e
            if cursor.rowcount == 0:
                raise NotFoundError("Category you want to delete does not exist")

        logger.info(
            f"Deleted category {category.id} of user {category.user_id}, "
            f"moved {moved} transaction(s) to {OTHER_CATEGORY_LABEL}"
        )
        return moved

    def get_defaults(self) -> List[str]:
        """Labels every new user gets, not counting "Other"."""
        return list(self._default_labels)

    def update_defaults(
        self, defaults_update: DefaultCategoriesUpdate, actor: Optional[Actor] = None
    ) -> List[str]:
        """Replace the template of categories given to new users.

        Existing users are not affected. "Other" is always created anyway,
        so it is dropped from the list.

        Raises:
            ForbiddenError: If a non-admin actor asks.
        """
        if actor is not None:
            enforce(can_manage_defaults(actor))
        self._default_labels = _clean_default_labels(defaults_update.categories)
        logger.info(f"Default categories set to: {', '.join(self._default_labels)}")
        return list(self._default_labels)

    def _resolve(
        self, category_id: int, actor: Optional[Actor], action: Action
    ) -> Tuple[Category, User]:
        """Find the category the actor addresses and check the policy on it.

        Regular users look among their own categories only; admins and
        internal callers look the id up globally.
        """
        if actor is not None and not actor.is_admin:
            category = self.find_for_user(actor.user_id, category_id)
        else:
            category = self.find(category_id)

        if not category:
            raise NotFoundError(f"Category you want to {action.value} does not exist")

        with self.db_manager.connect() as conn:
            owner = find_user(conn, category.user_id)
        authorize(actor, action, owner)
        return category, owner
