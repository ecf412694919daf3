#!/usr/bin/env python3
"""
Add notifications.action_payload (JSONB NOT NULL DEFAULT '{}') if missing.

Usage:
    python scripts/add_action_payload_column.py
"""

import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from cashdesk.services.migration_service import execute_sql
from cashdesk.services.schema_service import ensure_column
from cashdesk.utils.cli import run_script
from cashdesk.utils.constants import TABLES

logger = logging.getLogger("add_action_payload_column")


async def operation(client) -> bool:
    added = await ensure_column(
        client,
        TABLES['NOTIFICATIONS'],
        "action_payload",
        "JSONB NOT NULL DEFAULT '{}'::jsonb"
    )
    if added:
        # Make PostgREST pick up the new column
        await execute_sql(client, "NOTIFY pgrst, 'reload schema'")
        logger.info("action_payload column added")
    else:
        logger.info("action_payload column already present, nothing to do")
    return True


if __name__ == "__main__":
    sys.exit(run_script(operation))
