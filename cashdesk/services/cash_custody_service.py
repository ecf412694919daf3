"""
Cash custody service.

A treasurer hands cash from a wallet to a cashier. The record starts
``pending`` and the cashier receives a ``custody_request`` notification;
approving or rejecting it notifies the treasurer back. An approved custody
can later be returned, which creates a new ``returned`` record referencing
the original.

CRITICAL RULES:
1. treasurer_id, cashier_id and wallet_id must reference existing rows
   (foreign keys in cash_custody)
2. A record with is_returned = true must reference its originating record
   (reference_custody_id), enforced by a CHECK constraint
3. Only pending custody can be approved or rejected; only the cashier of an
   approved, not yet returned custody can return it
4. The cashier's custody balance is credited on give and debited again on
   reject or return
5. RLS: treasurers see what they gave, cashiers see what they received
"""

import logging
from typing import Any, Dict, List, Optional, cast
from uuid import uuid4

from postgrest.exceptions import APIError

from cashdesk.services import notification_service
from cashdesk.services.custody_balance_service import credit_custody, debit_custody
from cashdesk.services.enrichment import fetch_related_data
from cashdesk.services.role_service import get_users_by_role
from cashdesk.services.wallet_service import get_currency_balance, get_wallet_by_id
from cashdesk.utils.constants import (
    CUSTODY_STATUS,
    CUSTODY_STATUS_UPDATES,
    NOTIFICATION_TYPES,
    ROLE_NAMES,
    TABLES,
)
from cashdesk.utils.errors import handle_api_error
from cashdesk.utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)


def _format_amount(record: Dict[str, Any]) -> str:
    return f"{record.get('amount')} {record.get('currency_code')}"


async def get_all_cash_custody(
    supabase_client: Any,
    user_id: str
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Fetch custody given and received by a user, newest first.

    Each record gets ``treasurer``, ``cashier`` and ``wallet`` attached
    (None when the related row is missing or not visible).

    Returns:
        {"given": [...], "received": [...]}
    """
    logger.info(f"Fetching custody records for user {user_id}")

    try:
        given = (
            supabase_client.table(TABLES['CASH_CUSTODY'])
            .select("*")
            .eq("treasurer_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        received = (
            supabase_client.table(TABLES['CASH_CUSTODY'])
            .select("*")
            .eq("cashier_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Get All Cash Custody") from e

    given_records = await fetch_related_data(supabase_client, given.data or [])
    received_records = await fetch_related_data(supabase_client, received.data or [])

    logger.info(
        f"Found {len(given_records)} given and {len(received_records)} received "
        f"custody records for user {user_id}"
    )

    return {"given": given_records, "received": received_records}


async def get_cash_custody(
    supabase_client: Any,
    custody_id: str
) -> Optional[Dict[str, Any]]:
    """Fetch a single custody record, or None."""
    try:
        result = (
            supabase_client.table(TABLES['CASH_CUSTODY'])
            .select("*")
            .eq("id", custody_id)
            .limit(1)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Get Cash Custody") from e

    return cast(Dict[str, Any], result.data[0]) if result.data else None


async def give_cash_custody(
    supabase_client: Any,
    treasurer_id: str,
    cashier_id: str,
    wallet_id: str,
    currency_code: str,
    amount: float,
    notes: str = ""
) -> Dict[str, Any]:
    """
    Give cash custody from a wallet to a cashier.

    Steps:
    1. Validate input and check the wallet holds enough of the currency
    2. Insert a pending cash_custody record
    3. Credit the cashier's custody balance (best effort)
    4. Send the cashier a custody_request notification (best effort)

    Args:
        supabase_client: Supabase client
        treasurer_id: The giving user (auth.uid())
        cashier_id: The receiving cashier
        wallet_id: Wallet the cash comes from
        currency_code: Currency code (e.g. "USD")
        amount: Amount (must be > 0)
        notes: Free text

    Returns:
        The created custody record

    Raises:
        ValueError: If validation fails, the wallet is missing or has
                    insufficient funds
    """
    if not cashier_id:
        raise ValueError("Cashier ID is required")
    if not wallet_id:
        raise ValueError("Wallet ID is required")
    if not currency_code:
        raise ValueError("Currency code is required")
    try:
        amount = float(amount)
    except (TypeError, ValueError):
        raise ValueError("Valid amount is required")
    if amount <= 0:
        raise ValueError("Valid amount is required")

    logger.info(f"Treasurer {treasurer_id} giving {amount} {currency_code} to cashier {cashier_id}")

    wallet = await get_wallet_by_id(supabase_client, wallet_id)
    if wallet is None:
        raise ValueError("Wallet not found")

    balance = get_currency_balance(wallet, currency_code)
    if balance < amount:
        raise ValueError(
            f"Insufficient funds: Wallet has {balance} {currency_code}, "
            f"but {amount} {currency_code} is required"
        )

    now = utc_now_iso()
    custody_record = {
        "id": str(uuid4()),
        "treasurer_id": treasurer_id,
        "cashier_id": cashier_id,
        "wallet_id": wallet_id,
        "currency_code": currency_code,
        "amount": amount,
        "notes": notes or "",
        "status": CUSTODY_STATUS['PENDING'],
        "is_returned": False,
        "created_at": now,
        "updated_at": now,
    }

    try:
        result = supabase_client.table(TABLES['CASH_CUSTODY']).insert(custody_record).execute()
    except APIError as e:
        raise handle_api_error(e, "Give Cash Custody") from e

    if not result.data:
        raise Exception("Failed to create custody record: no data returned")

    created = cast(Dict[str, Any], result.data[0])

    # The cash_custody record is the source of truth; the follow-ups below
    # are logged but do not fail the operation.
    try:
        await credit_custody(supabase_client, cashier_id, currency_code, amount)
    except Exception as e:
        logger.warning(f"Failed to credit cashier custody balance: {e}")

    try:
        await notification_service.create_notification(
            supabase_client,
            user_id=cashier_id,
            title="New Custody Request",
            message=f"You have received a custody request for {_format_amount(created)}.",
            type=NOTIFICATION_TYPES['CUSTODY_REQUEST'],
            reference_id=created["id"],
            requires_action=True,
            action_payload={
                "custody_id": created["id"],
                "treasurer_id": treasurer_id,
                "wallet_id": wallet_id,
                "currency_code": currency_code,
                "amount": amount,
            }
        )
    except Exception as e:
        logger.warning(f"Failed to notify cashier {cashier_id} of custody request: {e}")

    logger.info(f"Custody record {created['id']} created (pending)")
    return created


async def update_custody_status(
    supabase_client: Any,
    custody_id: str,
    status: str,
    extra_fields: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Move a custody record to approved, rejected or returned.

    Raises:
        ValueError: If the id is missing, the status is not allowed, or the
                    record does not exist
    """
    if not custody_id:
        raise ValueError("Custody ID is required")
    if status not in CUSTODY_STATUS_UPDATES:
        raise ValueError(
            f"Invalid status: must be {', '.join(CUSTODY_STATUS_UPDATES[:-1])} "
            f"or {CUSTODY_STATUS_UPDATES[-1]}"
        )

    logger.info(f"Updating custody {custody_id} status to {status}")

    updates: Dict[str, Any] = {"status": status, "updated_at": utc_now_iso()}
    if extra_fields:
        updates.update(extra_fields)

    try:
        result = (
            supabase_client.table(TABLES['CASH_CUSTODY'])
            .update(updates)
            .eq("id", custody_id)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Update Custody Status") from e

    if not result.data:
        raise LookupError("Custody record not found")

    return cast(Dict[str, Any], result.data[0])


async def _get_pending_custody(supabase_client: Any, custody_id: str) -> Dict[str, Any]:
    custody = await get_cash_custody(supabase_client, custody_id)
    if custody is None:
        raise LookupError("Custody record not found")

    if custody.get("status") != CUSTODY_STATUS['PENDING']:
        raise ValueError(f"Custody is already {custody.get('status')}")

    return custody


async def _reverse_credit(supabase_client: Any, custody: Dict[str, Any]) -> None:
    try:
        await debit_custody(
            supabase_client,
            custody["cashier_id"],
            custody["currency_code"],
            custody["amount"]
        )
    except Exception as e:
        logger.warning(f"Failed to debit custody balance of cashier {custody['cashier_id']}: {e}")


async def approve_custody_request(supabase_client: Any, custody_id: str) -> Dict[str, Any]:
    """
    Approve a pending custody and notify the treasurer.

    Raises:
        LookupError: If the custody does not exist
        ValueError: If the custody is no longer pending
    """
    custody = await _get_pending_custody(supabase_client, custody_id)

    updated = await update_custody_status(supabase_client, custody_id, CUSTODY_STATUS['APPROVED'])
    await notification_service.mark_request_actioned(supabase_client, custody_id)

    await notification_service.create_notification(
        supabase_client,
        user_id=custody["treasurer_id"],
        title="Custody Request Approved",
        message=f"The custody request for {_format_amount(custody)} has been approved.",
        type=NOTIFICATION_TYPES['CUSTODY_APPROVAL'],
        reference_id=custody_id
    )

    return updated


async def reject_custody_request(
    supabase_client: Any,
    custody_id: str,
    reason: str
) -> Dict[str, Any]:
    """
    Reject a pending custody, record the reason in notes and notify the
    treasurer. The amount credited to the cashier on give is debited again.

    Raises:
        LookupError: If the custody does not exist
        ValueError: If the custody is no longer pending
    """
    custody = await _get_pending_custody(supabase_client, custody_id)

    reason_line = f"Rejection reason: {reason}"
    notes = f"{custody['notes']}\n{reason_line}" if custody.get("notes") else reason_line

    updated = await update_custody_status(
        supabase_client,
        custody_id,
        CUSTODY_STATUS['REJECTED'],
        extra_fields={"notes": notes}
    )
    await notification_service.mark_request_actioned(supabase_client, custody_id)
    await _reverse_credit(supabase_client, custody)

    await notification_service.create_notification(
        supabase_client,
        user_id=custody["treasurer_id"],
        title="Custody Request Rejected",
        message=(
            f"The custody request for {_format_amount(custody)} has been rejected. "
            f"Reason: {reason}"
        ),
        type=NOTIFICATION_TYPES['CUSTODY_REJECTION'],
        reference_id=custody_id
    )

    return updated


async def return_custody(
    supabase_client: Any,
    user_id: str,
    custody_id: str,
    notes: Optional[str] = None
) -> Dict[str, Any]:
    """
    Return an approved custody to the treasurer.

    Creates a new record (status returned, is_returned true) that points
    at the original through reference_custody_id, then marks the original
    returned and notifies the treasurer.

    Args:
        supabase_client: Supabase client
        user_id: The cashier returning the custody
        custody_id: The original custody record
        notes: Optional return notes

    Returns:
        The new return record

    Raises:
        LookupError: If the custody does not exist
        PermissionError: If user_id is not the custody's cashier
        ValueError: If the custody is not approved or was already returned
    """
    custody = await get_cash_custody(supabase_client, custody_id)
    if custody is None:
        raise LookupError("Custody record not found")

    if custody.get("cashier_id") != user_id:
        raise PermissionError("Only the cashier holding this custody can return it")

    if custody.get("is_returned") or custody.get("status") == CUSTODY_STATUS['RETURNED']:
        raise ValueError("This custody has already been returned")

    if custody.get("status") != CUSTODY_STATUS['APPROVED']:
        raise ValueError("Only approved custody can be returned")

    logger.info(f"Cashier {user_id} returning custody {custody_id}")

    now = utc_now_iso()
    return_record = {
        "id": str(uuid4()),
        "treasurer_id": custody["treasurer_id"],
        "cashier_id": custody["cashier_id"],
        "wallet_id": custody["wallet_id"],
        "currency_code": custody["currency_code"],
        "amount": custody["amount"],
        "notes": notes or "",
        "status": CUSTODY_STATUS['RETURNED'],
        "is_returned": True,
        "reference_custody_id": custody_id,
        "created_at": now,
        "updated_at": now,
    }

    try:
        result = supabase_client.table(TABLES['CASH_CUSTODY']).insert(return_record).execute()
    except APIError as e:
        raise handle_api_error(e, "Return Custody") from e

    if not result.data:
        raise Exception("Failed to create return record: no data returned")

    created = cast(Dict[str, Any], result.data[0])

    await update_custody_status(supabase_client, custody_id, CUSTODY_STATUS['RETURNED'])
    await _reverse_credit(supabase_client, custody)

    await notification_service.create_notification(
        supabase_client,
        user_id=custody["treasurer_id"],
        title="Custody Returned",
        message=f"The custody of {_format_amount(custody)} has been returned.",
        type=NOTIFICATION_TYPES['CUSTODY_RETURN'],
        reference_id=created["id"]
    )

    return created


async def get_cashiers(supabase_client: Any) -> List[Dict[str, Any]]:
    """Profiles holding the cashier role."""
    return await get_users_by_role(supabase_client, ROLE_NAMES['CASHIER'])


async def get_treasurers(supabase_client: Any) -> List[Dict[str, Any]]:
    """Profiles holding the treasurer role."""
    return await get_users_by_role(supabase_client, ROLE_NAMES['TREASURER'])
