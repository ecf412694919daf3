"""
User profile service.

Profiles are 1:1 with auth.users (profiles.user_id) and carry the user's
optional role reference (profiles.role_id).
"""

import logging
from typing import Any, Dict, Optional, cast

from postgrest.exceptions import APIError

from cashdesk.utils.constants import TABLES
from cashdesk.utils.errors import handle_api_error

logger = logging.getLogger(__name__)


async def get_profile(
    supabase_client: Any,
    user_id: str
) -> Optional[Dict[str, Any]]:
    """
    Fetch a user's profile.

    Args:
        supabase_client: Supabase client
        user_id: auth.users id

    Returns:
        The profile dict, or None if not found

    Security:
        - RLS lets users read their own profile; managers read all
    """
    logger.debug(f"Fetching profile for user {user_id}")

    try:
        result = (
            supabase_client.table(TABLES['PROFILES'])
            .select("*")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Get Profile") from e

    if not result.data:
        logger.warning(f"Profile not found for user {user_id}")
        return None

    return cast(Dict[str, Any], result.data[0])
