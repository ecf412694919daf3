"""
Pydantic schemas for notification endpoints.
"""

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field

NotificationAction = Literal["approve", "reject"]


class NotificationResponse(BaseModel):
    id: str = Field(..., description="Notification UUID")
    user_id: str = Field(..., description="Recipient UUID")
    title: str = Field(..., description="Short title")
    message: str = Field(..., description="Body text")
    type: str = Field(..., description="custody_request | custody_approval | custody_rejection | custody_return")
    reference_id: Optional[str] = Field(None, description="Related record UUID")
    is_read: bool = Field(False, description="Read flag")
    requires_action: bool = Field(False, description="Whether the recipient must approve or reject")
    action_taken: bool = Field(False, description="Whether the action was already taken")
    action_payload: Any = Field(default_factory=dict, description="Structured action data (always present)")
    created_at: Optional[str] = Field(None, description="ISO-8601 creation timestamp")
    updated_at: Optional[str] = Field(None, description="ISO-8601 last update timestamp")


class NotificationListResponse(BaseModel):
    notifications: List[NotificationResponse] = Field(..., description="Newest first")
    count: int = Field(..., description="Number of notifications returned")
    unread_count: int = Field(..., description="Unread notifications among those returned")


class MarkAllReadResponse(BaseModel):
    updated: int = Field(..., description="Number of notifications marked as read")


class NotificationActionRequest(BaseModel):
    action: NotificationAction = Field(..., description="approve or reject")
    reason: Optional[str] = Field(None, description="Rejection reason")
