"""
Supabase Auth wrapper: sign up, sign in, sign out, current session.

Credentials are checked locally (email format, password rules) before any
network call. Auth failures are converted with handle_api_error, which maps
"Email not confirmed" / "Invalid login credentials" to user-facing text.
"""

import logging
from typing import Any, Dict, Optional

from supabase import AuthError

from cashdesk.services.profile_service import get_profile
from cashdesk.utils.errors import handle_api_error
from cashdesk.utils.validation import is_valid_email, validate_password

logger = logging.getLogger(__name__)


async def sign_up(
    supabase_client: Any,
    email: str,
    password: str,
    name: Optional[str] = None
) -> Dict[str, Any]:
    """
    Create a Supabase Auth user.

    The profile row is created by the on_auth_user_created trigger.

    Returns:
        {"user_id": ..., "email": ..., "confirmation_required": bool}

    Raises:
        ValueError: If the email or password is invalid
        CashDeskError: If Supabase rejects the signup
    """
    if not is_valid_email(email):
        raise ValueError("Invalid email address")

    check = validate_password(password)
    if not check.is_valid:
        # Only the hard requirements, not the special-character advice
        raise ValueError("; ".join(e for e in check.errors if not e.startswith("Consider")))

    logger.info("Signing up new user")

    credentials: Dict[str, Any] = {"email": email, "password": password}
    if name:
        credentials["options"] = {"data": {"name": name}}

    try:
        response = supabase_client.auth.sign_up(credentials)
    except AuthError as e:
        raise handle_api_error(e, "Sign Up") from e

    user = response.user
    if user is None:
        raise Exception("Sign up failed: no user returned")

    return {
        "user_id": user.id,
        "email": user.email,
        "confirmation_required": response.session is None,
    }


async def sign_in(supabase_client: Any, email: str, password: str) -> Dict[str, Any]:
    """
    Sign in with email and password.

    Returns:
        {"session": Session, "access_token": str, "user_id": str, "profile": dict | None}
    """
    try:
        response = supabase_client.auth.sign_in_with_password(
            {"email": email, "password": password}
        )
    except AuthError as e:
        raise handle_api_error(e, "Authentication") from e

    if response.session is None or response.user is None:
        raise Exception("Sign in failed: no session returned")

    profile = await get_profile(supabase_client, response.user.id)

    logger.info(f"User {response.user.id} signed in")

    return {
        "session": response.session,
        "access_token": response.session.access_token,
        "user_id": response.user.id,
        "profile": profile,
    }


async def sign_out(supabase_client: Any) -> None:
    """Sign out the client's current session."""
    try:
        supabase_client.auth.sign_out()
    except AuthError as e:
        raise handle_api_error(e, "Sign Out") from e


async def get_current_session(supabase_client: Any) -> Optional[Any]:
    """The client's current session, or None (errors are logged, not raised)."""
    try:
        return supabase_client.auth.get_session()
    except AuthError as e:
        logger.error(f"Error getting current session: {e}")
        return None
