#!/usr/bin/env python3
"""Reset script for Smeta.

Deletes the data directory (database, logs and archived imports) and
re-applies all migrations to an empty database. Only runs when
enable_reset = true is set in ~/.config/smeta.toml.
"""

import shutil
import sys

from config import load_config
from db.manager import DatabaseManager
from cli.migrate import cmd_apply


def reset():
    """Reset the application state."""
    print("Smeta Reset Script")
    print("=" * 50)

    config = load_config()

    if not config.enable_reset:
        print("\nReset is disabled in configuration (enable_reset=false).")
        print("To enable reset, set enable_reset=true in ~/.config/smeta.toml")
        sys.exit(1)

    print(f"\nData directory: {config.base_dir}")
    print(f"Database: {config.db_path}")
    print(f"Logs: {config.log_dir}")
    print(f"Archives: {config.archive_dir}")

    response = input(
        "\nThis will delete ALL categories, materials and works. Continue? (yes/no): "
    )
    if response.lower() != "yes":
        print("Reset cancelled.")
        sys.exit(0)

    if config.base_dir.exists():
        print(f"\nDeleting {config.base_dir}...")
        shutil.rmtree(config.base_dir)
        print("✓ Data directory deleted")
    else:
        print(f"\n✓ Data directory does not exist: {config.base_dir}")

    print("\nRunning migrations...")
    applied = cmd_apply(None, DatabaseManager(config))

    print("\n" + "=" * 50)
    print(f"Reset complete! Applied {applied} migration(s).")
    print(f"Database location: {config.db_path}")


if __name__ == "__main__":
    reset()
