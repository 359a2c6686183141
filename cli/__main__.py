#!/usr/bin/env python3
"""
Smeta CLI - Command-line interface for the construction reference catalogs.

Usage:
    python -m cli <command> <subcommand> [options]

Commands:
    categories   List and resolve hierarchical categories
    materials    Import, export and list materials
    works        Import, export and list works
    migrate      Database migrations

Examples:
    python -m cli migrate apply
    python -m cli categories resolve Строительство Смеси Гипс --global
    python -m cli categories tree --type material --tenant acme
    python -m cli materials import prices.csv --tenant acme --mode replace
    python -m cli works export works.csv --global-only
"""

import sys
import argparse
from cli import catalog, categories, migrate
from config import load_config
from services.base import Services
from db.manager import DatabaseManager
from logger import setup_logging


def main():
    """Main CLI entry point with subcommands."""
    parser = argparse.ArgumentParser(
        prog="cli",
        description="Smeta - Construction materials and works reference catalogs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    subparsers = parser.add_subparsers(
        title="commands",
        description="Available commands",
        dest="command",
        required=True,
    )

    categories.setup_parser(subparsers)
    catalog.setup_parser(subparsers)
    migrate.setup_parser(subparsers)

    args = parser.parse_args()

    if hasattr(args, "func"):
        try:
            config = load_config()
            setup_logging(config)

            # migrate works on raw connections; everything else goes
            # through the services container
            if args.command == "migrate":
                args.func(args, DatabaseManager(config))
            else:
                args.func(args, Services(config))
        except Exception as e:
            print(f"Error: {e}")
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
