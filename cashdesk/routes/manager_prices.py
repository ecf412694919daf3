"""
Manager price API endpoints.

- GET /manager-prices - Current and previous buy/sell prices
- PUT /manager-prices - Set new prices (managers only)
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from cashdesk.auth.dependencies import AuthenticatedUser, get_authenticated_user, require_roles
from cashdesk.db.client import get_supabase_client
from cashdesk.routes.errors import to_http_exception
from cashdesk.schemas.manager_prices import ManagerPricesResponse, UpdateManagerPricesRequest
from cashdesk.services import manager_price_service
from cashdesk.utils.constants import ROLE_NAMES

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/manager-prices", tags=["manager-prices"])


@router.get("", response_model=ManagerPricesResponse, summary="Get manager prices")
async def get_prices(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> ManagerPricesResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        prices = await manager_price_service.get_manager_prices(supabase_client)
    except Exception as e:
        raise to_http_exception(e, "fetch manager prices")

    return ManagerPricesResponse.model_validate(prices)


@router.put(
    "",
    response_model=ManagerPricesResponse,
    summary="Update manager prices",
    description="""
    Set new buy and sell prices; the current ones become the old prices.

    Security:
    - Requires the manager role
    """
)
async def update_prices(
    request: UpdateManagerPricesRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(require_roles(ROLE_NAMES['MANAGER']))]
) -> ManagerPricesResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        prices = await manager_price_service.update_manager_prices(
            supabase_client,
            buy_price=request.buy_price,
            sell_price=request.sell_price,
        )
    except Exception as e:
        raise to_http_exception(e, "update manager prices")

    return ManagerPricesResponse.model_validate(prices)
