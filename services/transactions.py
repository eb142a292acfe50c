"""Transaction service for database operations."""

from datetime import date
from typing import List, Optional, Tuple
from auth.policy import Action, Actor, authorize
from errors import NotFoundError
from logger import get_logger
from models.requests import TransactionCreate, TransactionUpdate
from models.transaction import Transaction
from models.user import User
from services.users import find_user

logger = get_logger()

# SQL Query Constants
_TRANSACTION_SELECT_FIELDS = "id, label, date, amount, category_id, user_id"


class TransactionService:
    """Service for managing transactions."""

    def __init__(self, db_manager, categories):
        """Initialize the transaction service.

        Args:
            db_manager: Database manager instance for database operations.
            categories: CategoryService used to resolve categories by label.
        """
        self.db_manager = db_manager
        self.categories = categories

    def find_all(self) -> List[Transaction]:
        """Get every transaction of every user, newest first."""
        return self._select("ORDER BY date DESC, id")

    def find(self, transaction_id: int) -> Optional[Transaction]:
        """Get a single transaction by ID regardless of owner.

        Args:
            transaction_id: The transaction ID.

        Returns:
            Transaction object if found, None otherwise.
        """
        rows = self._select("WHERE id = ?", (transaction_id,))
        return rows[0] if rows else None

    def find_by_user(self, user_id: int) -> List[Transaction]:
        """Get all transactions of a user, newest first."""
        return self._select("WHERE user_id = ? ORDER BY date DESC, id", (user_id,))

    def find_for_user(self, user_id: int, transaction_id: int) -> Optional[Transaction]:
        """Get a transaction by ID only if it belongs to ``user_id``."""
        rows = self._select(
            "WHERE user_id = ? AND id = ?", (user_id, transaction_id)
        )
        return rows[0] if rows else None

    def find_by_category(self, category_id: int) -> List[Transaction]:
        return self._select(
            "WHERE category_id = ? ORDER BY date DESC, id", (category_id,)
        )

    def get(self, transaction_id: int, actor: Optional[Actor] = None) -> Transaction:
        """Get a transaction on behalf of an actor.

        Raises:
            NotFoundError: If it does not exist or is not visible to the actor.
        """
        transaction, _ = self._resolve(transaction_id, actor, Action.READ)
        return transaction

    def create(self, user_id: int, transaction_create: TransactionCreate) -> Transaction:
        """Create a transaction in one of the user's categories.

        The category is looked up by label among the user's own categories;
        owner and category of the stored row come from that lookup.

        Args:
            user_id: The user creating the transaction.
            transaction_create: Label, date, amount and category label.

        Returns:
            The created Transaction object with id populated.

        Raises:
            NotFoundError: If the user has no category with that label.
        """
        category = self.categories.find_by_label(
            user_id, transaction_create.category_label
        )
        if not category:
            raise NotFoundError(
                "Category you want to create transaction for does not exist"
            )

        with self.db_manager.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO transactions (label, date, amount, category_id, user_id)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    transaction_create.label,
                    transaction_create.date.isoformat(),
                    float(transaction_create.amount),
                    category.id,
                    category.user_id,
                ),
            )

        return Transaction(
            id=cursor.lastrowid,
            label=transaction_create.label,
            date=transaction_create.date,
            amount=float(transaction_create.amount),
            category_id=category.id,
            user_id=category.user_id,
        )

    def update(
        self,
        transaction_id: int,
        transaction_update: TransactionUpdate,
        actor: Optional[Actor] = None,
    ) -> Transaction:
        """Apply a partial update to a transaction.

        A new ``category_label`` is looked up among the categories of the
        transaction's owner, not the caller's.

        Args:
            transaction_id: The transaction ID to update.
            transaction_update: Fields to change; None fields are left alone.
            actor: Who is asking. Regular users only see their own
                transactions; admins and internal callers look up by id.

        Returns:
            The updated Transaction object.

        Raises:
            NotFoundError: If the transaction or the target category does not exist.
            ForbiddenError: If the policy denies the update.
        """
        transaction, _ = self._resolve(transaction_id, actor, Action.UPDATE)

        changes = {}
        if transaction_update.category_label is not None:
            category = self.categories.find_by_label(
                transaction.user_id, transaction_update.category_label
            )
            if not category:
                raise NotFoundError(
                    "Category you want to move transaction to does not exist"
                )
            changes["category_id"] = category.id

        if transaction_update.label is not None:
            changes["label"] = transaction_update.label
        if transaction_update.date is not None:
            changes["date"] = transaction_update.date.isoformat()
        if transaction_update.amount is not None:
            changes["amount"] = float(transaction_update.amount)

        if not changes:
            return transaction

        set_clause = ", ".join(f"{field} = ?" for field in changes)
        with self.db_manager.transaction() as conn:
            conn.execute(
                f"UPDATE transactions SET {set_clause} WHERE id = ?",
                (*changes.values(), transaction.id),
            )

        return self.find(transaction.id)

    def delete(self, transaction_id: int, actor: Optional[Actor] = None) -> None:
        """Delete a transaction by ID.

        Without an actor the row is removed unconditionally. With one, the
        transaction is looked up and checked against the policy first.

        Raises:
            NotFoundError: If the transaction does not exist for the actor.
            ForbiddenError: If the policy denies the deletion.
        """
        if actor is not None:
            self._resolve(transaction_id, actor, Action.DELETE)

        with self.db_manager.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM transactions WHERE id = ?", (transaction_id,)
            )
            if cursor.rowcount == 0:
                raise NotFoundError("Transaction you want to delete does not exist")

        logger.info(f"Deleted transaction {transaction_id}")

    def _resolve(
        self, transaction_id: int, actor: Optional[Actor], action: Action
    ) -> Tuple[Transaction, User]:
        """Find the transaction the actor addresses, with its owner, and check the policy."""
        if actor is not None and not actor.is_admin:
            transaction = self.find_for_user(actor.user_id, transaction_id)
        else:
            transaction = self.find(transaction_id)

        if not transaction:
            raise NotFoundError(f"Transaction you want to {action.value} does not exist")

        with self.db_manager.connect() as conn:
            owner = find_user(conn, transaction.user_id)
        authorize(actor, action, owner)
        return transaction, owner

    def _select(self, clause: str, params: tuple = ()) -> List[Transaction]:
        with self.db_manager.connect() as conn:
            cursor = conn.execute(
                f"SELECT {_TRANSACTION_SELECT_FIELDS} FROM transactions {clause}",
                params,
            )
            return [self._row_to_transaction(row) for row in cursor.fetchall()]

    def _row_to_transaction(self, row: tuple) -> Transaction:
        """Convert a database row to a Transaction object."""
        return Transaction(
            id=row[0],
            label=row[1],
            date=date.fromisoformat(row[2]),
            amount=row[3],
            category_id=row[4],
            user_id=row[5],
        )
