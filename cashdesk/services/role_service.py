"""
Role service.

Roles are rows in ``roles`` (unique name); a profile references at most one
role through ``profiles.role_id``. The manager role has access to everything.

RULES:
1. Only managers may assign roles (also enforced by the roles/profiles RLS
   policies through the manager_ids view)
2. A profile without role_id has no role (get_user_role returns a null role)
3. ensure_default_roles() is idempotent: upsert on name
"""

import logging
from typing import Any, Dict, List, Optional, Sequence, cast

from postgrest.exceptions import APIError

from cashdesk.utils.constants import DEFAULT_ROLES, ROLE_NAMES, STAFF_PROFILES_VIEW, TABLES
from cashdesk.utils.errors import handle_api_error

logger = logging.getLogger(__name__)

NO_ROLE: Dict[str, Any] = {"id": None, "name": None}

STAFF_PROFILE_COLUMNS = "user_id, first_name, last_name, email, role_id, role_name"


async def get_all_roles(supabase_client: Any) -> List[Dict[str, Any]]:
    """Fetch all roles ordered by name."""
    logger.debug("Fetching all roles")

    try:
        result = (
            supabase_client.table(TABLES['ROLES'])
            .select("*")
            .order("name")
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Get All Roles") from e

    roles = cast(List[Dict[str, Any]], result.data or [])
    logger.info(f"Found {len(roles)} roles")
    return roles


async def get_role_by_id(supabase_client: Any, role_id: str) -> Optional[Dict[str, Any]]:
    """Fetch a role by id, or None."""
    try:
        result = (
            supabase_client.table(TABLES['ROLES'])
            .select("*")
            .eq("id", role_id)
            .limit(1)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Get Role By ID") from e

    return cast(Dict[str, Any], result.data[0]) if result.data else None


async def get_role_by_name(supabase_client: Any, role_name: str) -> Optional[Dict[str, Any]]:
    """Fetch a role by its unique name, or None."""
    try:
        result = (
            supabase_client.table(TABLES['ROLES'])
            .select("*")
            .eq("name", role_name)
            .limit(1)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Get Role By Name") from e

    return cast(Dict[str, Any], result.data[0]) if result.data else None


async def get_user_role(supabase_client: Any, user_id: str) -> Dict[str, Any]:
    """
    Resolve a user's role.

    Returns:
        The role row, or {"id": None, "name": None} when the user has no
        profile, no role_id, or a dangling role_id.
    """
    try:
        result = (
            supabase_client.table(TABLES['PROFILES'])
            .select("user_id, role_id")
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Get User Role") from e

    if not result.data:
        logger.warning(f"No profile found for user {user_id}")
        return dict(NO_ROLE)

    role_id = result.data[0].get("role_id")
    if not role_id:
        logger.warning(f"Profile exists but has no role_id for user {user_id}")
        return dict(NO_ROLE)

    role = await get_role_by_id(supabase_client, role_id)
    if role is None:
        logger.error(f"No role found with ID {role_id}")
        return dict(NO_ROLE)

    return role


async def has_any_role(
    supabase_client: Any,
    user_id: str,
    roles: Sequence[str] = ()
) -> bool:
    """
    Check whether the user holds any of `roles`.

    An empty list allows everyone; managers are always allowed. Lookup
    failures deny access instead of raising.
    """
    if not roles:
        return True

    try:
        user_role = await get_user_role(supabase_client, user_id)
    except Exception as e:
        logger.error(f"Error checking roles for user {user_id}: {e}")
        return False

    name = user_role.get("name")
    if not name:
        return False

    if name == ROLE_NAMES['MANAGER']:
        return True

    return name in roles


async def assign_role_to_user(
    supabase_client: Any,
    acting_user_id: str,
    user_id: str,
    role_id: str
) -> Dict[str, Any]:
    """
    Assign a role to a user's profile.

    Args:
        supabase_client: Supabase client
        acting_user_id: The user performing the assignment (must be a manager)
        user_id: The user whose role changes
        role_id: The role to assign

    Returns:
        The updated profile

    Raises:
        PermissionError: If the acting user is not a manager
        ValueError: If the role or the target profile does not exist
    """
    acting_role = await get_user_role(supabase_client, acting_user_id)
    if acting_role.get("name") != ROLE_NAMES['MANAGER']:
        raise PermissionError("Only managers can assign roles")

    role = await get_role_by_id(supabase_client, role_id)
    if role is None:
        raise ValueError(f"Role {role_id} not found")

    logger.info(f"Assigning role {role['name']} to user {user_id}")

    try:
        result = (
            supabase_client.table(TABLES['PROFILES'])
            .update({"role_id": role_id})
            .eq("user_id", user_id)
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, "Assign Role To User") from e

    if not result.data:
        raise ValueError(f"Profile for user {user_id} not found")

    return cast(Dict[str, Any], result.data[0])


async def get_users_by_role(supabase_client: Any, role_name: str) -> List[Dict[str, Any]]:
    """
    Staff holding the named role, ordered by first name.

    Reads the staff_profiles view, so a treasurer can list cashiers even
    though RLS on profiles only shows them their own row.
    """
    try:
        result = (
            supabase_client.table(STAFF_PROFILES_VIEW)
            .select(STAFF_PROFILE_COLUMNS)
            .eq("role_name", role_name)
            .order("first_name")
            .execute()
        )
    except APIError as e:
        raise handle_api_error(e, f"Get {role_name} users") from e

    users = cast(List[Dict[str, Any]], result.data or [])
    logger.info(f"Found {len(users)} users with role {role_name}")
    return users


async def ensure_default_roles(supabase_client: Any) -> List[Dict[str, Any]]:
    """
    Make sure every default role exists, updating descriptions in place.

    Each role is upserted on its unique name. If the upsert is rejected,
    a plain insert is tried and a duplicate-key error is ignored.

    Returns:
        The roles table after the repair
    """
    for role in DEFAULT_ROLES:
        try:
            supabase_client.table(TABLES['ROLES']).upsert(role, on_conflict="name").execute()
            logger.info(f"Ensured role exists: {role['name']}")
        except APIError as e:
            logger.warning(f"Upsert failed for role {role['name']}: {e.message}; trying insert")
            try:
                supabase_client.table(TABLES['ROLES']).insert(role).execute()
            except APIError as insert_error:
                if insert_error.code != "23505":
                    raise handle_api_error(insert_error, f"Insert role {role['name']}") from insert_error
                logger.info(f"Role {role['name']} already exists")

    return await get_all_roles(supabase_client)
