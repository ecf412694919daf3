#!/usr/bin/env python3
"""
Ensure the four default roles exist (manager, treasurer, cashier,
dealings_executioner), updating descriptions in place.

Usage:
    python scripts/fix_roles_table.py
"""

import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from cashdesk.services.role_service import ensure_default_roles
from cashdesk.utils.cli import run_script

logger = logging.getLogger("fix_roles_table")


async def operation(client) -> bool:
    roles = await ensure_default_roles(client)
    for role in roles:
        logger.info(f"  {role.get('name')}: {role.get('description')}")
    return True


if __name__ == "__main__":
    sys.exit(run_script(operation))
