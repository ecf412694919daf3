"""
Pydantic schemas for manager price endpoints.
"""

from typing import Optional

from pydantic import BaseModel, Field


class ManagerPricesResponse(BaseModel):
    """The singleton manager prices row (previous and current prices)."""
    sellold: float = Field(..., description="Previous sell price")
    sellnew: float = Field(..., description="Current sell price")
    buyold: float = Field(..., description="Previous buy price")
    buynew: float = Field(..., description="Current buy price")
    updated_at: Optional[str] = Field(None, description="ISO-8601 last update timestamp")


class UpdateManagerPricesRequest(BaseModel):
    buy_price: float = Field(..., gt=0, description="New buy price", examples=[4.9])
    sell_price: float = Field(..., gt=0, description="New sell price", examples=[5.3])
