"""
Test data seeding for the ``custody`` balances table.

One record per (user, currency) with a random amount in
[SEED_AMOUNT_MIN, SEED_AMOUNT_MAX). Records are inserted in batches, one
batch after the other; a failed batch is logged and the next one still runs.
"""

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from postgrest.exceptions import APIError

from cashdesk.config import settings
from cashdesk.utils.constants import SEED_AMOUNT_MAX, SEED_AMOUNT_MIN, TABLES
from cashdesk.utils.errors import handle_api_error
from cashdesk.utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)


@dataclass
class SeedResult:
    """Outcome of seed_custody_records."""
    total: int
    inserted: int = 0
    failed_batches: List[int] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.failed_batches


def prepare_custody_records(
    users: Sequence[Dict[str, Any]],
    currencies: Sequence[Dict[str, Any]],
    rng: Optional[random.Random] = None
) -> List[Dict[str, Any]]:
    """
    Build one custody record per user and currency.

    Args:
        users: Profile rows (need "user_id")
        currencies: currency_types rows (need "code")
        rng: Random source (seed it for reproducible data)

    Returns:
        len(users) * len(currencies) records
    """
    rng = rng or random.Random()
    now = utc_now_iso()

    return [
        {
            "user_id": user["user_id"],
            "currency_code": currency["code"],
            "amount": rng.randrange(SEED_AMOUNT_MIN, SEED_AMOUNT_MAX),
            "updated_at": now,
        }
        for user in users
        for currency in currencies
    ]


async def fetch_seed_inputs(
    supabase_client: Any
) -> Tuple[List[Dict[str, Any]], List[Dict[str, Any]]]:
    """Fetch the profiles and currency types to seed for."""
    try:
        users = supabase_client.table(TABLES['PROFILES']).select("user_id").execute()
        currencies = supabase_client.table(TABLES['CURRENCY_TYPES']).select("code").execute()
    except APIError as e:
        raise handle_api_error(e, "Fetch Seed Inputs") from e

    logger.info(f"Found {len(users.data or [])} users and {len(currencies.data or [])} currencies")
    return users.data or [], currencies.data or []


async def seed_custody_records(
    supabase_client: Any,
    records: Sequence[Dict[str, Any]],
    batch_size: Optional[int] = None
) -> SeedResult:
    """
    Insert records in sequential batches.

    Args:
        supabase_client: Supabase client
        records: Records from prepare_custody_records()
        batch_size: Records per insert (default settings.SEED_BATCH_SIZE)

    Returns:
        SeedResult with the inserted count and failed batch numbers (1-based)
    """
    batch_size = batch_size or settings.SEED_BATCH_SIZE
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")

    result = SeedResult(total=len(records))

    for start in range(0, len(records), batch_size):
        batch = list(records[start:start + batch_size])
        batch_number = start // batch_size + 1

        try:
            response = supabase_client.table(TABLES['CUSTODY']).insert(batch).execute()
        except APIError as e:
            logger.error(f"Error inserting batch {batch_number}: {e.message}")
            result.failed_batches.append(batch_number)
            continue

        inserted = len(response.data or [])
        result.inserted += inserted
        logger.info(f"Inserted batch {batch_number} ({inserted} records)")

    logger.info(f"Seeded {result.inserted}/{result.total} custody records")
    return result
