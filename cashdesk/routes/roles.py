"""
Role API endpoints.

- GET /roles - All roles
- GET /roles/me - The caller's role (null role when unassigned)
- PUT /roles/users/{user_id} - Assign a role (managers only)
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Path

from cashdesk.auth.dependencies import AuthenticatedUser, get_authenticated_user
from cashdesk.db.client import get_supabase_client
from cashdesk.routes.errors import to_http_exception
from cashdesk.schemas.roles import (
    AssignRoleRequest,
    AssignRoleResponse,
    RoleListResponse,
    RoleResponse,
)
from cashdesk.services import role_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/roles", tags=["roles"])


@router.get("", response_model=RoleListResponse, summary="List roles")
async def list_roles(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> RoleListResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        roles = await role_service.get_all_roles(supabase_client)
    except Exception as e:
        raise to_http_exception(e, "fetch roles")

    return RoleListResponse(
        roles=[RoleResponse.model_validate(r) for r in roles],
        count=len(roles),
    )


@router.get("/me", response_model=RoleResponse, summary="Get own role")
async def my_role(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> RoleResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        role = await role_service.get_user_role(supabase_client, auth_user.user_id)
    except Exception as e:
        raise to_http_exception(e, "fetch role")

    return RoleResponse.model_validate(role)


@router.put(
    "/users/{user_id}",
    response_model=AssignRoleResponse,
    summary="Assign a role to a user",
    description="""
    Set a user's role.

    Security:
    - Only managers can assign roles (403 otherwise)
    - RLS on profiles enforces the same rule through the manager_ids view
    """
)
async def assign_role(
    request: AssignRoleRequest,
    user_id: Annotated[str, Path(description="Target user UUID")],
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> AssignRoleResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        await role_service.assign_role_to_user(
            supabase_client,
            acting_user_id=auth_user.user_id,
            user_id=user_id,
            role_id=request.role_id,
        )
    except Exception as e:
        raise to_http_exception(e, "assign role")

    logger.info(f"User {auth_user.user_id} assigned role {request.role_id} to {user_id}")
    return AssignRoleResponse(user_id=user_id, role_id=request.role_id)
