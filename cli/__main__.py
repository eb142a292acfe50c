#!/usr/bin/env python3
"""
Budgeteer administration CLI.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    users        List, create, promote and delete users
    migrate      Create or upgrade the database schema

Examples:
    python -m cli migrate apply
    python -m cli users create --admin
    python -m cli users promote 3

Everything run from here is trusted: no ownership rules are applied.
"""

import sqlite3
import sys
import argparse
from cli import migrate, users
from config import load_config
from db.manager import DatabaseManager
from errors import BudgeteerError
from logger import setup_logging
from services.base import Services

# Commands that operate on the raw database rather than on services
_DATABASE_COMMANDS = {"migrate"}


def main():
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Budgeteer - Personal finance tracker administration",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log at DEBUG level"
    )
    subparsers = parser.add_subparsers(title="commands", dest="command", required=True)
    for command in (users, migrate):
        command.setup_parser(subparsers)

    args = parser.parse_args()

    try:
        config = load_config()
        if args.verbose:
            config.log_level = "DEBUG"
        setup_logging(config)

        if args.command in _DATABASE_COMMANDS:
            args.func(args, DatabaseManager(config))
        else:
            args.func(args, Services(config))
    except (BudgeteerError, ValueError, sqlite3.Error) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
