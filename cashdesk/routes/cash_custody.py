"""
Cash custody API endpoints.

Endpoints:
- GET /cash-custody - Custody given and received by the caller
- POST /cash-custody - Give custody to a cashier (treasurers)
- GET /cash-custody/cashiers - Users with the cashier role
- GET /cash-custody/treasurers - Users with the treasurer role
- GET /cash-custody/{custody_id} - Single record
- PATCH /cash-custody/{custody_id}/status - Approve, reject or return
- POST /cash-custody/{custody_id}/return - Return approved custody (cashier)

RLS limits every query to records where the caller is treasurer or cashier.
"""

import logging
from typing import Annotated, Any, Dict

from fastapi import APIRouter, Depends, Path, status

from cashdesk.auth.dependencies import AuthenticatedUser, get_authenticated_user, require_roles
from cashdesk.db.client import get_supabase_client
from cashdesk.routes.errors import to_http_exception
from cashdesk.schemas.cash_custody import (
    CashCustodyListResponse,
    CashCustodyResponse,
    GiveCustodyRequest,
    ReturnCustodyRequest,
    UpdateCustodyStatusRequest,
    UserListResponse,
)
from cashdesk.services import cash_custody_service
from cashdesk.services.enrichment import fetch_related_data
from cashdesk.utils.constants import CUSTODY_STATUS, ROLE_NAMES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cash-custody", tags=["cash-custody"])


def _to_response(record: Dict[str, Any]) -> CashCustodyResponse:
    return CashCustodyResponse.model_validate(record)


@router.get(
    "",
    response_model=CashCustodyListResponse,
    summary="List cash custody",
    description="""
    Custody the caller gave (as treasurer) and received (as cashier),
    newest first, with treasurer, cashier and wallet attached.
    """
)
async def list_cash_custody(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> CashCustodyListResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        records = await cash_custody_service.get_all_cash_custody(supabase_client, auth_user.user_id)
    except Exception as e:
        raise to_http_exception(e, "fetch cash custody")

    return CashCustodyListResponse(
        given=[_to_response(r) for r in records["given"]],
        received=[_to_response(r) for r in records["received"]],
    )


@router.post(
    "",
    response_model=CashCustodyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Give cash custody",
    description="""
    Hand cash from a wallet to a cashier.

    This endpoint:
    - Checks the wallet holds enough of the currency
    - Creates a pending custody record
    - Credits the cashier's custody balance
    - Sends the cashier a custody request notification

    Security:
    - Requires the treasurer role (managers always allowed)
    """
)
async def give_custody(
    request: GiveCustodyRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(require_roles(ROLE_NAMES['TREASURER']))]
) -> CashCustodyResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        created = await cash_custody_service.give_cash_custody(
            supabase_client,
            treasurer_id=auth_user.user_id,
            cashier_id=request.cashier_id,
            wallet_id=request.wallet_id,
            currency_code=request.currency_code,
            amount=request.amount,
            notes=request.notes,
        )
    except Exception as e:
        raise to_http_exception(e, "give cash custody")

    return _to_response(created)


@router.get("/cashiers", response_model=UserListResponse, summary="List cashiers")
async def list_cashiers(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> UserListResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        users = await cash_custody_service.get_cashiers(supabase_client)
    except Exception as e:
        raise to_http_exception(e, "fetch cashiers")

    return UserListResponse(users=users, count=len(users))


@router.get("/treasurers", response_model=UserListResponse, summary="List treasurers")
async def list_treasurers(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> UserListResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        users = await cash_custody_service.get_treasurers(supabase_client)
    except Exception as e:
        raise to_http_exception(e, "fetch treasurers")

    return UserListResponse(users=users, count=len(users))


@router.get(
    "/{custody_id}",
    response_model=CashCustodyResponse,
    summary="Get cash custody record",
)
async def get_custody(
    custody_id: Annotated[str, Path(description="Custody UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> CashCustodyResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        record = await cash_custody_service.get_cash_custody(supabase_client, custody_id)
        if record is None:
            raise LookupError("Custody record not found")
        enriched = await fetch_related_data(supabase_client, [record])
    except Exception as e:
        raise to_http_exception(e, "fetch cash custody")

    return _to_response(enriched[0])


@router.patch(
    "/{custody_id}/status",
    response_model=CashCustodyResponse,
    summary="Update custody status",
    description="""
    Move a custody record to approved, rejected or returned.

    - approved / rejected: only the receiving cashier; the treasurer is notified
    - returned: same as POST /cash-custody/{custody_id}/return
    """
)
async def update_status(
    request: UpdateCustodyStatusRequest,
    custody_id: Annotated[str, Path(description="Custody UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> CashCustodyResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        if request.status == CUSTODY_STATUS['RETURNED']:
            updated = await cash_custody_service.return_custody(
                supabase_client, auth_user.user_id, custody_id
            )
            return _to_response(updated)

        record = await cash_custody_service.get_cash_custody(supabase_client, custody_id)
        if record is None:
            raise LookupError("Custody record not found")
        if record.get("cashier_id") != auth_user.user_id:
            raise PermissionError("Only the receiving cashier can approve or reject custody")

        if request.status == CUSTODY_STATUS['APPROVED']:
            updated = await cash_custody_service.approve_custody_request(supabase_client, custody_id)
        else:
            updated = await cash_custody_service.reject_custody_request(
                supabase_client, custody_id, request.reason or "No reason given"
            )
    except Exception as e:
        raise to_http_exception(e, "update custody status")

    return _to_response(updated)


@router.post(
    "/{custody_id}/return",
    response_model=CashCustodyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Return cash custody",
    description="""
    Return approved custody to the treasurer.

    Creates a return record referencing the original and marks the original
    returned. Only the cashier holding the custody can return it.
    """
)
async def return_cash_custody(
    custody_id: Annotated[str, Path(description="Custody UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    request: ReturnCustodyRequest | None = None,
) -> CashCustodyResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        created = await cash_custody_service.return_custody(
            supabase_client,
            auth_user.user_id,
            custody_id,
            notes=request.notes if request else None,
        )
    except Exception as e:
        raise to_http_exception(e, "return cash custody")

    return _to_response(created)
