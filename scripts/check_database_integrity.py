#!/usr/bin/env python3
"""
Report on the database state the maintenance scripts manage.

Exit code 0 when every check passes, 1 otherwise.

Usage:
    python scripts/check_database_integrity.py
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from cashdesk.services.integrity_service import check_database_integrity
from cashdesk.utils.cli import run_script


async def operation(client) -> bool:
    report = await check_database_integrity(client)

    print("\nDatabase integrity report")
    print("=" * 40)
    for check in report.checks:
        mark = "OK  " if check.ok else "FAIL"
        print(f"[{mark}] {check.name}{' - ' + check.detail if check.detail else ''}")
    print("=" * 40)
    print(f"{len(report.checks) - len(report.failures)}/{len(report.checks)} checks passed")

    return report.ok


if __name__ == "__main__":
    sys.exit(run_script(operation))
