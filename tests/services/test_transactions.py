from datetime import date

import pytest

from auth.policy import Actor
from errors import ForbiddenError, NotFoundError
from models.category import OTHER_CATEGORY_LABEL
from models.requests import CategoryCreate, TransactionCreate, TransactionUpdate
from models.user import UserRole
from tests.helpers import make_user


def _coffee(category_label=OTHER_CATEGORY_LABEL, **overrides):
    data = dict(
        label="Coffee", date=date(2025, 1, 15), amount=-3.5, category_label=category_label
    )
    data.update(overrides)
    return TransactionCreate(**data)


class TestTransactionServiceCreate:
    """Tests for TransactionService.create."""

    def test_create_transaction(self, services):
        alice = make_user(services, "alice")
        other = services.categories.find_other(alice.id)

        created = services.transactions.create(alice.id, _coffee())

        assert created.id > 0
        assert created.label == "Coffee"
        assert created.date == date(2025, 1, 15)
        assert created.amount == -3.5
        assert created.is_expense
        assert created.category_id == other.id
        assert created.user_id == alice.id
        assert services.transactions.find(created.id) == created

    def test_income_is_positive(self, services):
        alice = make_user(services, "alice")

        salary = services.transactions.create(
            alice.id, _coffee(label="Salary", amount=2500.0)
        )

        assert not salary.is_expense

    def test_create_in_unknown_category(self, services):
        alice = make_user(services, "alice")

        with pytest.raises(NotFoundError):
            services.transactions.create(alice.id, _coffee("Travel"))

    def test_category_is_resolved_among_own_categories_only(self, services):
        alice = make_user(services, "alice")
        bob = make_user(services, "bob")
        services.categories.create(bob.id, CategoryCreate(label="Travel"))

        with pytest.raises(NotFoundError):
            services.transactions.create(alice.id, _coffee("Travel"))

    def test_date_string_is_parsed(self, services):
        alice = make_user(services, "alice")

        created = services.transactions.create(alice.id, _coffee(date="2025-02-01"))

        assert services.transactions.find(created.id).date == date(2025, 2, 1)


class TestTransactionServiceFind:
    """Tests for transaction lookups."""

    def test_find_not_found(self, services):
        assert services.transactions.find(9999) is None

    def test_find_by_user_newest_first(self, services):
        alice = make_user(services, "alice")
        bob = make_user(services, "bob")
        old = services.transactions.create(alice.id, _coffee(date=date(2025, 1, 1)))
        new = services.transactions.create(alice.id, _coffee(date=date(2025, 3, 1)))
        services.transactions.create(bob.id, _coffee())

        assert [t.id for t in services.transactions.find_by_user(alice.id)] == [new.id, old.id]
        assert len(services.transactions.find_all()) == 3

    def test_get_hides_other_users_transactions(self, services):
        alice = make_user(services, "alice")
        bob = make_user(services, "bob")
        coffee = services.transactions.create(alice.id, _coffee())

        assert services.transactions.get(coffee.id, Actor.of(alice)) == coffee
        with pytest.raises(NotFoundError):
            services.transactions.get(coffee.id, Actor.of(bob))


class TestTransactionServiceUpdate:
    """Tests for TransactionService.update."""

    def test_update_fields(self, services):
        alice = make_user(services, "alice")
        coffee = services.transactions.create(alice.id, _coffee())

        updated = services.transactions.update(
            coffee.id,
            TransactionUpdate(label="Latte", amount=-4.2, date=date(2025, 1, 16)),
            Actor.of(alice),
        )

        assert updated.label == "Latte"
        assert updated.amount == -4.2
        assert updated.date == date(2025, 1, 16)
        assert updated.category_id == coffee.category_id

    def test_move_to_another_category(self, services):
        alice = make_user(services, "alice")
        food = services.categories.find_by_label(alice.id, "Food")
        coffee = services.transactions.create(alice.id, _coffee())

        updated = services.transactions.update(
            coffee.id, TransactionUpdate(category_label="Food"), Actor.of(alice)
        )

        assert updated.category_id == food.id
        assert updated.label == "Coffee"

    def test_move_to_unknown_category(self, services):
        alice = make_user(services, "alice")
        coffee = services.transactions.create(alice.id, _coffee())

        with pytest.raises(NotFoundError, match="move transaction"):
            services.transactions.update(
                coffee.id, TransactionUpdate(category_label="Travel"), Actor.of(alice)
            )

    def test_admin_move_resolves_against_owner(self, services):
        admin = make_user(services, "root", role=UserRole.ADMIN)
        alice = make_user(services, "alice")
        services.categories.create(admin.id, CategoryCreate(label="Travel"))
        coffee = services.transactions.create(alice.id, _coffee())

        # Admin has "Travel", alice does not
        with pytest.raises(NotFoundError):
            services.transactions.update(
                coffee.id, TransactionUpdate(category_label="Travel"), Actor.of(admin)
            )

        moved = services.transactions.update(
            coffee.id, TransactionUpdate(category_label="Transport"), Actor.of(admin)
        )
        assert moved.category_id == services.categories.find_by_label(alice.id, "Transport").id
        assert moved.user_id == alice.id

    def test_user_cannot_update_someone_elses_transaction(self, services):
        alice = make_user(services, "alice")
        bob = make_user(services, "bob")
        coffee = services.transactions.create(alice.id, _coffee())

        with pytest.raises(NotFoundError):
            services.transactions.update(coffee.id, TransactionUpdate(label="Mine"), Actor.of(bob))

    def test_admin_cannot_update_another_admins_transaction(self, services):
        admin_x = make_user(services, "x", role=UserRole.ADMIN)
        admin_y = make_user(services, "y", role=UserRole.ADMIN)
        coffee = services.transactions.create(admin_y.id, _coffee())

        with pytest.raises(ForbiddenError):
            services.transactions.update(
                coffee.id, TransactionUpdate(label="Tea"), Actor.of(admin_x)
            )

        assert services.transactions.find(coffee.id).label == "Coffee"

    def test_update_missing_transaction(self, services):
        with pytest.raises(NotFoundError):
            services.transactions.update(9999, TransactionUpdate(label="Tea"))

    def test_empty_update_is_noop(self, services):
        alice = make_user(services, "alice")
        coffee = services.transactions.create(alice.id, _coffee())

        assert services.transactions.update(coffee.id, TransactionUpdate()) == coffee


class TestTransactionServiceDelete:
    """Tests for TransactionService.delete."""

    def test_unconditional_delete(self, services):
        alice = make_user(services, "alice")
        coffee = services.transactions.create(alice.id, _coffee())

        services.transactions.delete(coffee.id)

        assert services.transactions.find(coffee.id) is None

    def test_unconditional_delete_missing(self, services):
        with pytest.raises(NotFoundError):
            services.transactions.delete(9999)

    def test_owner_deletes(self, services):
        alice = make_user(services, "alice")
        coffee = services.transactions.create(alice.id, _coffee())

        services.transactions.delete(coffee.id, Actor.of(alice))

        assert services.transactions.find(coffee.id) is None

    def test_admin_deletes_regular_users_transaction(self, services):
        admin = make_user(services, "root", role=UserRole.ADMIN)
        alice = make_user(services, "alice")
        coffee = services.transactions.create(alice.id, _coffee())

        services.transactions.delete(coffee.id, Actor.of(admin))

        assert services.transactions.find(coffee.id) is None

    def test_admin_cannot_delete_another_admins_transaction(self, services):
        admin_x = make_user(services, "x", role=UserRole.ADMIN)
        admin_y = make_user(services, "y", role=UserRole.ADMIN)
        coffee = services.transactions.create(admin_y.id, _coffee())

        with pytest.raises(ForbiddenError, match="another Administrator"):
            services.transactions.delete(coffee.id, Actor.of(admin_x))

        assert services.transactions.find(coffee.id) is not None

    def test_admin_deletes_own_transaction(self, services):
        admin = make_user(services, "root", role=UserRole.ADMIN)
        coffee = services.transactions.create(admin.id, _coffee())

        services.transactions.delete(coffee.id, Actor.of(admin))

        assert services.transactions.find(coffee.id) is None

    def test_user_cannot_delete_someone_elses_transaction(self, services):
        alice = make_user(services, "alice")
        bob = make_user(services, "bob")
        coffee = services.transactions.create(alice.id, _coffee())

        with pytest.raises(NotFoundError):
            services.transactions.delete(coffee.id, Actor.of(bob))

        assert services.transactions.find(coffee.id) is not None
