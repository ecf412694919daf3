"""
Notification service.

Notifications tell a user about custody events. Some of them (custody
requests) require an action from the recipient; the action is recorded on
the notification (action_taken) and carried out on the referenced
cash_custody record.

RULES:
1. Users only read and update their own notifications (RLS: user_id = auth.uid())
2. action_payload is always written; absent payloads become {}
3. A notification can be actioned once; approving or rejecting the custody
   by any path closes its custody_request notification
"""

import json
import logging
from typing import Any, Dict, List, Optional, cast
from uuid import uuid4

from postgrest.exceptions import APIError

from cashdesk.utils.constants import NOTIFICATION_ACTIONS, NOTIFICATION_TYPES, TABLES
from cashdesk.utils.errors import handle_api_error
from cashdesk.utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)


def normalize_action_payload(payload: Any) -> Any:
    """
    Turn an action payload into a plain JSON value for the JSONB column.

    - None -> {}
    - JSON strings are parsed; other strings -> {}
    - Objects are round-tripped through json; unserialisable -> {}
    """
    if payload is None:
        return {}

    if isinstance(payload, str):
        try:
            return json.loads(payload)
        except ValueError:
            logger.warning("Could not parse action_payload as JSON, using empty object")
            return {}

    try:
        return json.loads(json.dumps(payload))
    except (TypeError, ValueError) as e:
        logger.warning(f"Invalid action_payload, using empty object: {e}")
        return {}


async def get_user_notifications(
    supabase_client: Any,
    user_id: str,
    unread_only: bool = False
) -> List[Dict[str, Any]]:
    """
    Fetch a user's notifications, newest first.

    Args:
        supabase_client: Supabase client
        user_id: Recipient
        unread_only: Only return notifications with is_read = false
    """
    logger.debug(f"Fetching notifications for user {user_id} (unread_only={unread_only})")

    try:
        query = (
            supabase_client.table(TABLES['NOTIFICATIONS'])
            .select("*")
            .eq("user_id", user_id)
        )
        if unread_only:
            query = query.eq("is_read", False)
        result = query.order("created_at", desc=True).execute()
    except APIError as e:
        raise handle_api_error(e, "Get User Notifications") from e

    notifications = cast(List[Dict[str, Any]], result.data or [])
    logger.info(f"Found {len(notifications)} notifications for user {user_id}")
    return notifications


async def get_notification(
    supabase_client: Any,
    user_id: str,
    notification_id: str
) -> Optional[Dict[str, Any]]:
    """Fetch one of the user's notifications, or None."""
    try:
        result = (
            supabase_client.table(TABLES['NOTIFICATIONS'])
            .select("*")
            .eq("id", notification_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Get Notification") from e

    return cast(Dict[str, Any], result.data[0]) if result.data else None


async def mark_as_read(
    supabase_client: Any,
    user_id: str,
    notification_id: str
) -> Optional[Dict[str, Any]]:
    """
    Mark one notification as read.

    Returns:
        The updated notification, or None if the user has no such notification
    """
    logger.info(f"Marking notification {notification_id} as read")

    try:
        result = (
            supabase_client.table(TABLES['NOTIFICATIONS'])
            .update({"is_read": True, "updated_at": utc_now_iso()})
            .eq("id", notification_id)
            .eq("user_id", user_id)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Mark Notification As Read") from e

    return cast(Dict[str, Any], result.data[0]) if result.data else None


async def mark_all_as_read(supabase_client: Any, user_id: str) -> int:
    """
    Mark all of a user's unread notifications as read.

    Returns:
        Number of notifications updated
    """
    logger.info(f"Marking all notifications as read for user {user_id}")

    try:
        result = (
            supabase_client.table(TABLES['NOTIFICATIONS'])
            .update({"is_read": True, "updated_at": utc_now_iso()})
            .eq("user_id", user_id)
            .eq("is_read", False)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Mark All Notifications As Read") from e

    return len(result.data or [])


async def create_notification(
    supabase_client: Any,
    user_id: str,
    title: str,
    message: str,
    type: str,
    reference_id: Optional[str] = None,
    requires_action: bool = False,
    action_payload: Any = None
) -> Dict[str, Any]:
    """
    Create a notification for a user.

    Args:
        supabase_client: Supabase client
        user_id: Recipient
        title: Short title
        message: Body text
        type: Notification type (custody_request, custody_approval, ...)
        reference_id: Related record id (e.g. cash_custody.id); dropped
                      unless it is a non-empty string
        requires_action: Whether the recipient must approve/reject
        action_payload: Structured description of the pending action

    Returns:
        The created notification

    Raises:
        ValueError: If a required field is missing
    """
    if not user_id:
        raise ValueError("User ID is required")
    if not title:
        raise ValueError("Title is required")
    if not message:
        raise ValueError("Message is required")
    if not type:
        raise ValueError("Type is required")

    now = utc_now_iso()
    notification = {
        "id": str(uuid4()),
        "user_id": user_id,
        "title": title,
        "message": message,
        "type": type,
        "reference_id": reference_id if isinstance(reference_id, str) and reference_id else None,
        "requires_action": requires_action,
        "is_read": False,
        "action_taken": False,
        "action_payload": normalize_action_payload(action_payload),
        "created_at": now,
        "updated_at": now,
    }

    logger.info(f"Creating {type} notification for user {user_id}")

    try:
        result = supabase_client.table(TABLES['NOTIFICATIONS']).insert(notification).execute()
    except APIError as e:
        raise handle_api_error(e, "Create Notification") from e

    if not result.data:
        raise Exception("Failed to create notification: no data returned")

    return cast(Dict[str, Any], result.data[0])


async def mark_request_actioned(supabase_client: Any, custody_id: str) -> int:
    """
    Close the custody_request notifications of a custody once it has been
    approved or rejected, whichever way that happened.

    Returns:
        Number of notifications updated
    """
    try:
        result = (
            supabase_client.table(TABLES['NOTIFICATIONS'])
            .update({"action_taken": True, "is_read": True, "updated_at": utc_now_iso()})
            .eq("reference_id", custody_id)
            .eq("type", NOTIFICATION_TYPES['CUSTODY_REQUEST'])
            .eq("action_taken", False)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Mark Custody Request Actioned") from e

    return len(result.data or [])


async def take_action(
    supabase_client: Any,
    user_id: str,
    notification_id: str,
    action: str,
    reason: Optional[str] = None
) -> Dict[str, Any]:
    """
    Approve or reject the request behind a notification.

    Args:
        supabase_client: Supabase client
        user_id: The recipient acting on the notification
        notification_id: Notification to act on
        action: 'approve' or 'reject'
        reason: Rejection reason (reject only)

    Returns:
        The updated record the action was applied to (cash_custody row)

    Raises:
        LookupError: If the notification does not exist for this user
        ValueError: If the notification does not take this action
    """
    # Imported here: cash_custody_service notifies through this module
    from cashdesk.services import cash_custody_service

    if action not in NOTIFICATION_ACTIONS:
        raise ValueError(f"Invalid action {action}: must be one of {', '.join(NOTIFICATION_ACTIONS)}")

    logger.info(f"Taking action {action} on notification {notification_id}")

    notification = await get_notification(supabase_client, user_id, notification_id)
    if notification is None:
        raise LookupError("Notification not found")

    if not notification.get("requires_action"):
        raise ValueError("This notification does not require action")

    if notification.get("action_taken"):
        raise ValueError("Action has already been taken on this notification")

    if notification.get("type") != NOTIFICATION_TYPES['CUSTODY_REQUEST']:
        raise ValueError(f"Unsupported notification type: {notification.get('type')}")

    custody_id = notification.get("reference_id")
    if not custody_id:
        raise ValueError("Notification does not reference a custody record")

    if action == "approve":
        result = await cash_custody_service.approve_custody_request(supabase_client, custody_id)
    else:
        result = await cash_custody_service.reject_custody_request(
            supabase_client, custody_id, reason or "No reason given"
        )

    try:
        (
            supabase_client.table(TABLES['NOTIFICATIONS'])
            .update({"action_taken": True, "is_read": True, "updated_at": utc_now_iso()})
            .eq("id", notification_id)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, f"Take Action: {action}") from e

    logger.info(f"Action {action} taken on notification {notification_id}")
    return result
