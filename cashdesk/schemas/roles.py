"""
Pydantic schemas for role endpoints.
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class RoleResponse(BaseModel):
    id: Optional[str] = Field(None, description="Role UUID (null when the user has no role)")
    name: Optional[str] = Field(None, description="manager | treasurer | cashier | dealings_executioner")
    description: Optional[str] = Field(None, description="Role description")


class RoleListResponse(BaseModel):
    roles: List[RoleResponse] = Field(..., description="All roles ordered by name")
    count: int = Field(..., description="Number of roles")


class AssignRoleRequest(BaseModel):
    role_id: str = Field(..., description="Role UUID to assign")


class AssignRoleResponse(BaseModel):
    user_id: str = Field(..., description="User whose role changed")
    role_id: str = Field(..., description="Assigned role UUID")
