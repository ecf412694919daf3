"""
Per-cashier custody balances (the ``custody`` table).

One row per (user_id, currency_code) holding the amount the user currently
has in custody. Giving custody credits the cashier; rejecting or returning
it debits the same amount again.

Writes go through the ``adjust_custody_balance`` RPC (006_staff_access.sql),
which upserts on the (user_id, currency_code) unique constraint as the
function owner: a treasurer can credit a cashier without being able to read
or write the cashier's rows directly. Databases without the function fall
back to a read-then-write from the client.
"""

import logging
from typing import Any, Dict, List, cast

from postgrest.exceptions import APIError

from cashdesk.services.schema_service import MISSING_FUNCTION_CODE
from cashdesk.utils.constants import TABLES
from cashdesk.utils.errors import handle_api_error
from cashdesk.utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

ADJUST_BALANCE_RPC = "adjust_custody_balance"


async def get_user_custody_balances(
    supabase_client: Any,
    user_id: str
) -> List[Dict[str, Any]]:
    """All custody balances held by a user, by currency."""
    try:
        result = (
            supabase_client.table(TABLES['CUSTODY'])
            .select("*")
            .eq("user_id", user_id)
            .order("currency_code")
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Get Custody Balances") from e

    return cast(List[Dict[str, Any]], result.data or [])


async def _adjust_from_client(
    supabase_client: Any,
    user_id: str,
    currency_code: str,
    delta: float
) -> Dict[str, Any]:
    existing = (
        supabase_client.table(TABLES['CUSTODY'])
        .select("id, amount")
        .eq("user_id", user_id)
        .eq("currency_code", currency_code)
        .limit(1)
        .execute()
    )

    if existing.data:
        row = existing.data[0]
        new_amount = max(float(row.get("amount") or 0) + delta, 0.0)
        result = (
            supabase_client.table(TABLES['CUSTODY'])
            .update({"amount": new_amount, "updated_at": utc_now_iso()})
            .eq("id", row["id"])
            .execute()
        )
    else:
        logger.info(f"Creating custody balance for user {user_id} ({currency_code})")
        result = (
            supabase_client.table(TABLES['CUSTODY'])
            .insert({
                "user_id": user_id,
                "currency_code": currency_code,
                "amount": max(delta, 0.0),
                "updated_at": utc_now_iso(),
            })
            .execute()
        )

    if not result.data:
        raise Exception("Failed to adjust custody balance: no data returned")

    return cast(Dict[str, Any], result.data[0])


async def adjust_custody(
    supabase_client: Any,
    user_id: str,
    currency_code: str,
    delta: float
) -> Dict[str, Any]:
    """
    Add `delta` (negative to debit) to a user's custody balance.

    The balance never goes below zero; a debit larger than the balance
    leaves it at 0.

    Returns:
        The custody row after the change
    """
    delta = float(delta)
    logger.info(f"Adjusting custody balance for user {user_id} ({currency_code}) by {delta}")

    try:
        result = supabase_client.rpc(ADJUST_BALANCE_RPC, {
            "p_user_id": user_id,
            "p_currency_code": currency_code,
            "p_amount": delta,
        }).execute()
    except APIError as e:
        if e.code != MISSING_FUNCTION_CODE:
            raise handle_api_error(e, "Adjust Custody Balance") from e
        logger.warning(f"{ADJUST_BALANCE_RPC} RPC not available, updating balance from the client")
        try:
            return await _adjust_from_client(supabase_client, user_id, currency_code, delta)
        except APIError as client_error:
            raise handle_api_error(client_error, "Adjust Custody Balance") from client_error

    data = result.data
    if isinstance(data, list):
        data = data[0] if data else None
    if not data:
        raise Exception("Failed to adjust custody balance: no data returned")

    return cast(Dict[str, Any], data)


async def credit_custody(
    supabase_client: Any,
    user_id: str,
    currency_code: str,
    amount: float
) -> Dict[str, Any]:
    """Add `amount` to the user's custody balance for a currency."""
    return await adjust_custody(supabase_client, user_id, currency_code, float(amount))


async def debit_custody(
    supabase_client: Any,
    user_id: str,
    currency_code: str,
    amount: float
) -> Dict[str, Any]:
    """Take `amount` off the user's custody balance for a currency."""
    return await adjust_custody(supabase_client, user_id, currency_code, -float(amount))
