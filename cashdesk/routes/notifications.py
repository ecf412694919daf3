"""
Notification API endpoints.

Endpoints:
- GET /notifications - The caller's notifications (optionally unread only)
- POST /notifications/read-all - Mark all as read
- POST /notifications/{notification_id}/read - Mark one as read
- POST /notifications/{notification_id}/action - Approve or reject the request behind it
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query

from cashdesk.auth.dependencies import AuthenticatedUser, get_authenticated_user
from cashdesk.db.client import get_supabase_client
from cashdesk.routes.errors import to_http_exception
from cashdesk.schemas.cash_custody import CashCustodyResponse
from cashdesk.schemas.notifications import (
    MarkAllReadResponse,
    NotificationActionRequest,
    NotificationListResponse,
    NotificationResponse,
)
from cashdesk.services import notification_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get(
    "",
    response_model=NotificationListResponse,
    summary="List notifications",
)
async def list_notifications(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    unread_only: bool = Query(False, description="Only unread notifications"),
) -> NotificationListResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        notifications = await notification_service.get_user_notifications(
            supabase_client, auth_user.user_id, unread_only=unread_only
        )
    except Exception as e:
        raise to_http_exception(e, "fetch notifications")

    items = [NotificationResponse.model_validate(n) for n in notifications]
    return NotificationListResponse(
        notifications=items,
        count=len(items),
        unread_count=sum(1 for n in items if not n.is_read),
    )


@router.post(
    "/read-all",
    response_model=MarkAllReadResponse,
    summary="Mark all notifications as read",
)
async def read_all(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> MarkAllReadResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        updated = await notification_service.mark_all_as_read(supabase_client, auth_user.user_id)
    except Exception as e:
        raise to_http_exception(e, "mark notifications as read")

    return MarkAllReadResponse(updated=updated)


@router.post(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    summary="Mark a notification as read",
)
async def read_one(
    notification_id: Annotated[str, Path(description="Notification UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> NotificationResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        notification = await notification_service.mark_as_read(
            supabase_client, auth_user.user_id, notification_id
        )
        if notification is None:
            raise LookupError("Notification not found")
    except Exception as e:
        raise to_http_exception(e, "mark notification as read")

    return NotificationResponse.model_validate(notification)


@router.post(
    "/{notification_id}/action",
    response_model=CashCustodyResponse,
    summary="Act on a notification",
    description="""
    Approve or reject the custody request behind a notification.

    The notification must belong to the caller, require action and not
    have been actioned yet. Returns the updated custody record.
    """
)
async def act_on_notification(
    request: NotificationActionRequest,
    notification_id: Annotated[str, Path(description="Notification UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> CashCustodyResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        result = await notification_service.take_action(
            supabase_client,
            auth_user.user_id,
            notification_id,
            request.action,
            reason=request.reason,
        )
    except Exception as e:
        raise to_http_exception(e, f"{request.action} notification")

    return CashCustodyResponse.model_validate(result)
