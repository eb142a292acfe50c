#!/usr/bin/env python3

from db.migrator import get_applied_migrations, get_available_migrations
from logger import get_logger

logger = get_logger()


def cmd_status(args, db_manager):
    """Show which migrations have been applied to the database."""
    if not db_manager.get_db_path().exists():
        logger.info(
            "Database does not exist. Run 'python -m cli migrate apply' to create it."
        )
        return

    available = get_available_migrations(db_manager.get_migrations_dir())
    pending = set(db_manager.pending_migrations())
    with db_manager.connect() as conn:
        applied = get_applied_migrations(conn)

    logger.info(f"Database: {db_manager.get_db_path()}")
    for migration in available:
        logger.info(f"  [{'pending' if migration in pending else 'applied'}] {migration}")
    logger.info(f"{len(applied)} applied, {len(pending)} pending")


def cmd_apply(args, db_manager):
    """Apply pending migrations, or only list them with --dry-run."""
    pending = db_manager.pending_migrations()
    if not pending:
        logger.info("Schema is up to date.")
        return

    if args.dry_run:
        logger.info("Would apply:")
        for migration in pending:
            logger.info(f"  {migration}")
        return

    applied = db_manager.migrate()
    logger.info(f"Applied {len(applied)} migration(s).")


def setup_parser(subparsers):
    """Register the migrate command and its subcommands."""
    parser = subparsers.add_parser(
        "migrate",
        help="Database migrations",
        description="Create or upgrade the database schema",
    )
    migrate_subparsers = parser.add_subparsers(
        title="subcommands", dest="subcommand", required=True
    )

    migrate_subparsers.add_parser(
        "status", help="List applied and pending migrations"
    ).set_defaults(func=cmd_status)

    apply_parser = migrate_subparsers.add_parser("apply", help="Apply pending migrations")
    apply_parser.add_argument(
        "--dry-run", action="store_true", help="Only list what would be applied"
    )
    apply_parser.set_defaults(func=cmd_apply)
