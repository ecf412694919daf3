"""
Auth API endpoints.

- POST /auth/signup - Create a Supabase Auth user (public)
- POST /auth/password-check - Evaluate a password (public)
- GET /auth/me - Authenticated user with profile and role
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from cashdesk.auth.dependencies import AuthenticatedUser, get_authenticated_user
from cashdesk.db.client import get_shared_client, get_supabase_client
from cashdesk.routes.errors import to_http_exception
from cashdesk.schemas.auth import (
    MeResponse,
    PasswordCheckRequest,
    PasswordCheckResponse,
    SignupRequest,
    SignupResponse,
)
from cashdesk.services.auth_service import sign_up
from cashdesk.services.profile_service import get_profile
from cashdesk.services.role_service import get_user_role
from cashdesk.utils.validation import validate_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up",
    description="""
    Create a Supabase Auth user.

    The email format and password rules are checked before Supabase is
    called. The profile row is created by the database trigger.
    """
)
async def signup(request: SignupRequest) -> SignupResponse:
    try:
        result = await sign_up(
            get_shared_client(),
            email=request.email,
            password=request.password,
            name=request.name,
        )
    except Exception as e:
        raise to_http_exception(e, "sign up")

    return SignupResponse(**result)


@router.post(
    "/password-check",
    response_model=PasswordCheckResponse,
    summary="Check password strength",
)
async def password_check(request: PasswordCheckRequest) -> PasswordCheckResponse:
    """Validate a password and score it; never fails on odd input."""
    result = validate_password(request.password)
    return PasswordCheckResponse(
        is_valid=result.is_valid,
        errors=result.errors,
        strength=result.strength,
    )


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get authenticated user",
    description="""
    Return the caller's identity, profile fields and role name.

    Security:
    - Requires valid Authorization Bearer token
    - RLS: users can read their own profile
    """
)
async def get_me(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> MeResponse:
    supabase_client = get_supabase_client(auth_user.access_token)

    try:
        profile = await get_profile(supabase_client, auth_user.user_id)
        role = await get_user_role(supabase_client, auth_user.user_id)
    except Exception as e:
        raise to_http_exception(e, "fetch user")

    if profile is None:
        logger.warning(f"No profile for authenticated user {auth_user.user_id}")
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "details": "Profile not found"}
        )

    return MeResponse(
        user_id=auth_user.user_id,
        email=profile.get("email"),
        first_name=profile.get("first_name"),
        last_name=profile.get("last_name"),
        role=role.get("name"),
    )
