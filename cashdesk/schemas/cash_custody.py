"""
Pydantic schemas for cash custody endpoints.

A custody record moves cash from a treasurer's wallet to a cashier. Related
rows (treasurer, cashier, wallet) are attached by the service and are null
when missing or not visible under RLS.
"""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

# Matches the cash_custody.status CHECK constraint
CustodyStatus = Literal["pending", "approved", "rejected", "returned"]

# Statuses a record can be moved to through PATCH /cash-custody/{id}/status
CustodyStatusUpdate = Literal["approved", "rejected", "returned"]


class ProfileSummary(BaseModel):
    user_id: str = Field(..., description="User UUID")
    first_name: Optional[str] = Field(None, description="First name")
    last_name: Optional[str] = Field(None, description="Last name")
    email: Optional[str] = Field(None, description="Email")
    role_id: Optional[str] = Field(None, description="Role UUID")


class CashCustodyResponse(BaseModel):
    id: str = Field(..., description="Custody UUID")
    treasurer_id: str = Field(..., description="Giving user UUID")
    cashier_id: str = Field(..., description="Receiving cashier UUID")
    wallet_id: str = Field(..., description="Source wallet UUID")
    currency_code: str = Field(..., description="Currency code (e.g. USD)")
    amount: float = Field(..., description="Amount handed over")
    notes: Optional[str] = Field(None, description="Free text, includes rejection reasons")
    status: CustodyStatus = Field(..., description="Lifecycle status")
    is_returned: bool = Field(False, description="True for return records")
    reference_custody_id: Optional[str] = Field(
        None,
        description="Original custody record (set on return records)"
    )
    created_at: Optional[str] = Field(None, description="ISO-8601 creation timestamp")
    updated_at: Optional[str] = Field(None, description="ISO-8601 last update timestamp")
    treasurer: Optional[ProfileSummary] = Field(None, description="Treasurer profile")
    cashier: Optional[ProfileSummary] = Field(None, description="Cashier profile")
    wallet: Optional[Dict[str, Any]] = Field(None, description="Source wallet row")


class CashCustodyListResponse(BaseModel):
    given: List[CashCustodyResponse] = Field(..., description="Custody given by the user (as treasurer)")
    received: List[CashCustodyResponse] = Field(..., description="Custody received by the user (as cashier)")


class GiveCustodyRequest(BaseModel):
    """
    Request to give cash custody.

    The treasurer is the authenticated user; the wallet must hold at least
    `amount` of `currency_code`.
    """
    cashier_id: str = Field(..., description="Receiving cashier UUID")
    wallet_id: str = Field(..., description="Source wallet UUID")
    currency_code: str = Field(..., min_length=1, description="Currency code", examples=["USD", "LYD"])
    amount: float = Field(..., gt=0, description="Amount to hand over", examples=[500.0])
    notes: str = Field("", description="Optional notes")


class UpdateCustodyStatusRequest(BaseModel):
    status: CustodyStatusUpdate = Field(..., description="New status")
    reason: Optional[str] = Field(None, description="Rejection reason (status=rejected only)")


class ReturnCustodyRequest(BaseModel):
    notes: Optional[str] = Field(None, description="Optional return notes")


class UserListResponse(BaseModel):
    users: List[ProfileSummary] = Field(..., description="Profiles holding the role")
    count: int = Field(..., description="Number of users returned")
