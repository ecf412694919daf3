#!/usr/bin/env python3
"""
Seed the custody table with one random balance per user and currency.

Amounts are whole numbers in [100, 10000). Records are inserted in batches
(SEED_BATCH_SIZE, default 20); a failed batch does not stop the next ones.

Usage:
    python scripts/add_test_custody_records.py
    python scripts/add_test_custody_records.py --seed 42 --yes
"""

import argparse
import logging
import os
import random
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dotenv import load_dotenv

load_dotenv()

from cashdesk.services.seed_service import (
    fetch_seed_inputs,
    prepare_custody_records,
    seed_custody_records,
)
from cashdesk.utils.cli import confirm, run_script

logger = logging.getLogger("add_test_custody_records")


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed test custody records")
    parser.add_argument("--seed", type=int, default=None, help="Random seed for reproducible amounts")
    parser.add_argument("--batch-size", type=int, default=None, help="Records per insert")
    parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    args = parser.parse_args()

    async def operation(client) -> bool:
        users, currencies = await fetch_seed_inputs(client)
        if not users:
            logger.warning("No users found. Please create users first.")
            return False
        if not currencies:
            logger.warning("No currencies found. Please add currency types first.")
            return False

        records = prepare_custody_records(users, currencies, rng=random.Random(args.seed))
        print(f"Prepared {len(records)} custody records "
              f"({len(users)} users x {len(currencies)} currencies)")

        if not confirm("Insert these records?", args.yes):
            print("Aborted.")
            return True

        result = await seed_custody_records(client, records, batch_size=args.batch_size)
        if result.failed_batches:
            logger.error(f"Failed batches: {', '.join(str(b) for b in result.failed_batches)}")
        return result.success

    return run_script(operation)


if __name__ == "__main__":
    sys.exit(main())
