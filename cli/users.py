#!/usr/bin/env python3

import sys
from getpass import getpass
from errors import BudgeteerError
from logger import get_logger
from models.requests import UserCreate, UserUpdate
from models.user import UserRole

logger = get_logger()


def cmd_list(args, services):
    """List all users in the database."""
    users = services.users.find_all()

    if not users:
        logger.info("No users found.")
        return

    logger.info("\nUsers:")
    logger.info("=" * 80)
    for user in users:
        logger.info(f"ID: {user.id}")
        logger.info(f"Username: {user.username}")
        logger.info(f"Display name: {user.display_name}")
        logger.info(f"Role: {user.role.value}")
        logger.info(f"Categories: {len(services.categories.find_by_user(user.id))}")
        logger.info("-" * 80)

    logger.info(f"\nTotal users: {len(users)}")


def cmd_create(args, services):
    """Interactively create a user, optionally as an administrator."""
    role = UserRole.ADMIN if args.admin else UserRole.USER

    print(f"\nCreate New {'Administrator' if args.admin else 'User'}")
    print("=" * 80)

    username = input("Username: ").strip()
    display_name = input("Display name: ").strip() or username
    password = getpass("Password: ")
    if password != getpass("Repeat password: "):
        logger.error("Passwords do not match.")
        sys.exit(1)

    try:
        user = services.users.create(
            UserCreate(username=username, display_name=display_name, password=password),
            role=role,
        )
    except (BudgeteerError, ValueError) as e:
        logger.error(f"Error creating user: {e}")
        sys.exit(1)

    logger.info(f"\n✓ User created successfully with ID: {user.id}")
    logger.info(f"  Username: {user.username}")
    logger.info(f"  Role: {user.role.value}")


def cmd_promote(args, services):
    """Give an existing user the administrator role."""
    existing = services.users.find(args.user_id)
    if existing and existing.is_admin:
        logger.info(f"User '{existing.username}' is already an administrator.")
        return

    try:
        user = services.users.update(args.user_id, UserUpdate(role=UserRole.ADMIN))
    except BudgeteerError as e:
        logger.error(f"Error promoting user: {e}")
        sys.exit(1)

    logger.info(f"✓ User '{user.username}' is now an administrator.")


def cmd_delete(args, services):
    """Delete a user and everything they own."""
    user = services.users.find(args.user_id)
    if not user:
        logger.error(f"User with ID {args.user_id} not found.")
        sys.exit(1)

    logger.info("\nUser to delete:")
    logger.info(f"  ID: {user.id}")
    logger.info(f"  Username: {user.username}")
    logger.info(f"  Transactions: {len(services.transactions.find_by_user(user.id))}")

    confirm = (
        input("\nAre you sure you want to delete this user and all their data? (yes/no): ")
        .strip()
        .lower()
    )
    if confirm != "yes":
        logger.info("Deletion cancelled.")
        return

    try:
        services.users.delete(user.id)
    except BudgeteerError as e:
        logger.error(f"Error deleting user: {e}")
        sys.exit(1)

    logger.info(f"✓ User '{user.username}' deleted successfully.")


def setup_parser(subparsers):
    """Setup users subcommand parser.

    Args:
        subparsers: The subparsers object from the main CLI
    """
    parser = subparsers.add_parser(
        "users",
        help="Manage users",
        description="List, create, promote and delete users",
    )

    users_subparsers = parser.add_subparsers(
        title="subcommands",
        description="Available user commands",
        dest="subcommand",
        required=True,
    )

    list_parser = users_subparsers.add_parser("list", help="List all users")
    list_parser.set_defaults(func=cmd_list)

    create_parser = users_subparsers.add_parser("create", help="Create a new user")
    create_parser.add_argument(
        "--admin", action="store_true", help="Create the user as an administrator"
    )
    create_parser.set_defaults(func=cmd_create)

    promote_parser = users_subparsers.add_parser(
        "promote", help="Make a user an administrator"
    )
    promote_parser.add_argument("user_id", type=int, help="ID of the user to promote")
    promote_parser.set_defaults(func=cmd_promote)

    delete_parser = users_subparsers.add_parser("delete", help="Delete a user")
    delete_parser.add_argument("user_id", type=int, help="ID of the user to delete")
    delete_parser.set_defaults(func=cmd_delete)
