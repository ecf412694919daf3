"""
Wallet lookups used by cash custody.

A wallet's balances live in its ``currencies`` JSON map ({"USD": 1200, ...}).
Older wallets only have one numeric column per currency (``usd``, ``lyd``);
those are read as a fallback.
"""

import logging
from typing import Any, Dict, Optional, cast

from postgrest.exceptions import APIError

from cashdesk.utils.constants import TABLES
from cashdesk.utils.errors import handle_api_error

logger = logging.getLogger(__name__)


async def get_wallet_by_id(
    supabase_client: Any,
    wallet_id: str
) -> Optional[Dict[str, Any]]:
    """Fetch a wallet, or None if it does not exist."""
    try:
        result = (
            supabase_client.table(TABLES['WALLETS'])
            .select("*")
            .eq("id", wallet_id)
            .limit(1)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Get Wallet") from e

    if not result.data:
        logger.warning(f"Wallet {wallet_id} not found")
        return None

    return cast(Dict[str, Any], result.data[0])


def get_currency_balance(wallet: Dict[str, Any], currency_code: str) -> float:
    """
    Balance of one currency in a wallet.

    Reads wallet["currencies"][code] first, then the legacy lowercase
    column (wallet["usd"]). Missing balances count as 0.
    """
    currencies = wallet.get("currencies") or {}
    if isinstance(currencies, dict) and currency_code in currencies:
        return float(currencies[currency_code] or 0)

    legacy = wallet.get(currency_code.lower())
    if legacy is not None:
        return float(legacy)

    return 0.0
