"""
Pydantic schemas for custody balance endpoints.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class CustodyBalanceResponse(BaseModel):
    currency_code: str = Field(..., description="Currency code (e.g. USD)")
    amount: float = Field(..., description="Amount currently held in custody")
    updated_at: Optional[str] = Field(None, description="ISO-8601 last update timestamp")


class CustodyBalanceListResponse(BaseModel):
    balances: List[CustodyBalanceResponse] = Field(..., description="One entry per currency")
    count: int = Field(..., description="Number of currencies held")
