#!/usr/bin/env python3
"""
Apply pending SQL migrations.

Runs the numbered files in cashdesk/migrations in order through the exec_sql
RPC, skipping files already recorded in the migrations table. Stops at the
first failing migration.

Requires a service-role key and exec_sql installed once from the SQL editor
(cashdesk/migrations/bootstrap_exec_sql.sql).

Usage:
    python scripts/run_migrations.py
    python scripts/run_migrations.py --dir path/to/migrations --yes
"""

import argparse
import logging
import os
import sys
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from cashdesk.services.migration_service import list_migration_files, run_all_migrations
from cashdesk.utils.cli import confirm, run_script

logger = logging.getLogger("run_migrations")


def main() -> int:
    parser = argparse.ArgumentParser(description="Apply pending SQL migrations")
    parser.add_argument("--dir", type=Path, default=None, help="Migrations directory")
    parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    args = parser.parse_args()

    files = list_migration_files(args.dir)
    print(f"Found {len(files)} migration files:")
    for path in files:
        print(f"  - {path.name}")

    if not confirm("Apply pending migrations?", args.yes):
        print("Aborted.")
        return 0

    async def operation(client) -> bool:
        summary = await run_all_migrations(client, args.dir)
        if summary.failed:
            logger.error(f"Migration {summary.failed.name} failed: {summary.failed.error}")
        return summary.success

    return run_script(operation)


if __name__ == "__main__":
    sys.exit(main())
