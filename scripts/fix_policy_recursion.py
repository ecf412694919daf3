#!/usr/bin/env python3
"""
Recreate the manager_ids view and the manager policies on profiles and roles.

Fixes "infinite recursion detected in policy" errors from policies that query
profiles from inside a profiles policy.

Usage:
    python scripts/fix_policy_recursion.py --yes
"""

import argparse
import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from cashdesk.services.policy_service import fix_policy_recursion
from cashdesk.utils.cli import confirm, run_script

logger = logging.getLogger("fix_policy_recursion")


def main() -> int:
    parser = argparse.ArgumentParser(description="Recreate manager policies")
    parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    args = parser.parse_args()

    if not confirm("Drop and recreate the manager policies on profiles and roles?", args.yes):
        print("Aborted.")
        return 0

    async def operation(client) -> bool:
        manager_ids = await fix_policy_recursion(client)
        logger.info(f"Policies applied; {len(manager_ids)} managers visible through manager_ids")
        return True

    return run_script(operation)


if __name__ == "__main__":
    sys.exit(main())
