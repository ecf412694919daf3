"""
Custody balance API endpoints.

- GET /custody/balances - What the caller currently holds in custody, per currency
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from cashdesk.auth.dependencies import AuthenticatedUser, get_authenticated_user
from cashdesk.db.client import get_supabase_client
from cashdesk.routes.errors import to_http_exception
from cashdesk.schemas.custody import CustodyBalanceListResponse, CustodyBalanceResponse
from cashdesk.services import custody_balance_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/custody", tags=["custody"])


@router.get(
    "/balances",
    response_model=CustodyBalanceListResponse,
    summary="Get own custody balances",
    description="""
    Amounts the caller holds in custody, one entry per currency.

    Credited when custody is given to the caller and debited when it is
    rejected or returned.
    """
)
async def list_custody_balances(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> CustodyBalanceListResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        balances = await custody_balance_service.get_user_custody_balances(
            supabase_client, auth_user.user_id
        )
    except Exception as e:
        raise to_http_exception(e, "fetch custody balances")

    return CustodyBalanceListResponse(
        balances=[CustodyBalanceResponse.model_validate(b) for b in balances],
        count=len(balances),
    )
