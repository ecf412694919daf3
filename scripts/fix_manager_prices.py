#!/usr/bin/env python3
"""
Move manager_prices to lowercase column names (sellold, sellnew, buyold, buynew).

Safe to run repeatedly: the row is upserted in place, never deleted.

Usage:
    python scripts/fix_manager_prices.py
"""

import logging
import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from cashdesk.services.manager_price_service import migrate_manager_prices_to_lowercase
from cashdesk.utils.cli import run_script

logger = logging.getLogger("fix_manager_prices")


async def operation(client) -> bool:
    row = await migrate_manager_prices_to_lowercase(client)
    logger.info(
        f"Manager prices: sellold={row.get('sellold')} sellnew={row.get('sellnew')} "
        f"buyold={row.get('buyold')} buynew={row.get('buynew')}"
    )
    return True


if __name__ == "__main__":
    sys.exit(run_script(operation))
