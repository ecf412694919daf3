"""
Manager exchange prices.

``manager_prices`` holds a single row (id 1) with the previous and current
buy/sell prices: sellold, sellnew, buyold, buynew.

Older databases created the columns with mixed-case quoted names
("sellOld", ...). migrate_manager_prices_to_lowercase() moves them to the
lowercase names without ever leaving the table without its row.
"""

import logging
from typing import Any, Dict, Optional, cast

from postgrest.exceptions import APIError

from cashdesk.services import schema_service
from cashdesk.utils.constants import (
    DEFAULT_MANAGER_PRICES,
    MANAGER_PRICE_FIELD_RENAMES,
    MANAGER_PRICES_ID,
    TABLES,
)
from cashdesk.utils.errors import handle_api_error
from cashdesk.utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

PRICE_COLUMN_DEFINITION = "NUMERIC"


async def _fetch_prices_row(supabase_client: Any) -> Optional[Dict[str, Any]]:
    try:
        result = (
            supabase_client.table(TABLES['MANAGER_PRICES'])
            .select("*")
            .eq("id", MANAGER_PRICES_ID)
            .limit(1)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Get Manager Prices") from e

    return cast(Dict[str, Any], result.data[0]) if result.data else None


async def _write_prices_row(supabase_client: Any, values: Dict[str, Any]) -> Dict[str, Any]:
    row = {"id": MANAGER_PRICES_ID, **values, "updated_at": utc_now_iso()}

    try:
        result = (
            supabase_client.table(TABLES['MANAGER_PRICES'])
            .upsert(row, on_conflict="id")
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Save Manager Prices") from e

    if not result.data:
        raise Exception("Failed to save manager prices: no data returned")

    return cast(Dict[str, Any], result.data[0])


async def get_manager_prices(supabase_client: Any) -> Dict[str, Any]:
    """
    Fetch the manager prices row, creating it with defaults when absent.
    """
    row = await _fetch_prices_row(supabase_client)
    if row is not None:
        return row

    logger.info("No manager prices found, inserting defaults")
    return await _write_prices_row(supabase_client, dict(DEFAULT_MANAGER_PRICES))


async def update_manager_prices(
    supabase_client: Any,
    buy_price: float,
    sell_price: float
) -> Dict[str, Any]:
    """
    Set new buy and sell prices.

    The current prices become the "old" prices; the given ones become the
    "new" prices. When no row exists yet, old and new start equal.

    Raises:
        ValueError: If a price is not a positive number
    """
    try:
        buy_price = float(buy_price)
        sell_price = float(sell_price)
    except (TypeError, ValueError):
        raise ValueError("Prices must be numbers")
    if buy_price <= 0 or sell_price <= 0:
        raise ValueError("Prices must be greater than zero")

    current = await _fetch_prices_row(supabase_client)

    if current is None:
        previous_buy, previous_sell = buy_price, sell_price
    else:
        previous_buy = current.get("buynew")
        previous_sell = current.get("sellnew")
        if previous_buy is None:
            previous_buy = buy_price
        if previous_sell is None:
            previous_sell = sell_price

    logger.info(f"Updating manager prices: buy {previous_buy} -> {buy_price}, sell {previous_sell} -> {sell_price}")

    return await _write_prices_row(supabase_client, {
        "buyold": previous_buy,
        "buynew": buy_price,
        "sellold": previous_sell,
        "sellnew": sell_price,
    })


def resolve_lowercase_prices(row: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Decide the lowercase price values for a (possibly legacy) row.

    1. Lowercase fields already populated -> keep them
    2. Legacy mixed-case fields present -> copy them
    3. Otherwise -> defaults
    Each field is resolved independently.
    """
    row = row or {}
    values: Dict[str, Any] = {}

    for legacy, lowercase in MANAGER_PRICE_FIELD_RENAMES.items():
        if row.get(lowercase) is not None:
            values[lowercase] = row[lowercase]
        elif row.get(legacy) is not None:
            values[lowercase] = row[legacy]
        else:
            values[lowercase] = DEFAULT_MANAGER_PRICES[lowercase]

    return values


async def migrate_manager_prices_to_lowercase(supabase_client: Any) -> Dict[str, Any]:
    """
    Move manager_prices to lowercase column names.

    Steps:
    1. Try the rename_manager_prices_columns RPC, which renames the columns
       in a single transaction on the server
    2. Otherwise add any missing lowercase columns and upsert row 1 with the
       resolved values (one statement; the row is never deleted)
    3. Remove any rows other than id 1

    Safe to run repeatedly.

    Returns:
        The manager prices row after the migration
    """
    try:
        supabase_client.rpc("rename_manager_prices_columns", {}).execute()
        logger.info("Renamed manager_prices columns server-side")
    except APIError as e:
        if e.code != schema_service.MISSING_FUNCTION_CODE:
            raise handle_api_error(e, "Rename Manager Prices Columns") from e
        logger.warning("rename_manager_prices_columns RPC not available, migrating from the client")

        for column in MANAGER_PRICE_FIELD_RENAMES.values():
            await schema_service.ensure_column(
                supabase_client,
                TABLES['MANAGER_PRICES'],
                column,
                PRICE_COLUMN_DEFINITION
            )

    row = await _fetch_prices_row(supabase_client)
    values = resolve_lowercase_prices(row)
    saved = await _write_prices_row(supabase_client, values)

    try:
        (
            supabase_client.table(TABLES['MANAGER_PRICES'])
            .delete()
            .neq("id", MANAGER_PRICES_ID)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Remove Extra Manager Prices Rows") from e

    logger.info(f"Manager prices migrated: {values}")
    return saved
