"""
Manager access policies.

The profiles, roles and manager_prices tables are protected by RLS policies
that grant managers full access. A policy on profiles cannot look up the
caller's role in profiles itself without recursing, so the policies read the
``manager_ids`` view instead. The view is a plain (live) view: role changes
are visible to the policies immediately.
"""

import logging
from typing import Any, Dict, Iterable, List, Set

from postgrest.exceptions import APIError

from cashdesk.services.migration_service import execute_sql
from cashdesk.utils.constants import MANAGER_IDS_VIEW, ROLE_NAMES
from cashdesk.utils.errors import handle_api_error

logger = logging.getLogger(__name__)

MANAGER_POLICY_STATEMENTS: List[str] = [
    """
    CREATE OR REPLACE VIEW public.manager_ids AS
    SELECT p.user_id
    FROM public.profiles p
    JOIN public.roles r ON r.id = p.role_id
    WHERE r.name = 'manager'
    """,
    "GRANT SELECT ON public.manager_ids TO authenticated",
    'DROP POLICY IF EXISTS "Managers can manage all profiles" ON public.profiles',
    """
    CREATE POLICY "Managers can manage all profiles" ON public.profiles
    FOR ALL
    USING (auth.uid() IN (SELECT user_id FROM public.manager_ids))
    WITH CHECK (auth.uid() IN (SELECT user_id FROM public.manager_ids))
    """,
    'DROP POLICY IF EXISTS "Users can view own profile" ON public.profiles',
    """
    CREATE POLICY "Users can view own profile" ON public.profiles
    FOR SELECT
    USING (auth.uid() = user_id)
    """,
    'DROP POLICY IF EXISTS "Managers can manage roles" ON public.roles',
    """
    CREATE POLICY "Managers can manage roles" ON public.roles
    FOR ALL
    USING (auth.uid() IN (SELECT user_id FROM public.manager_ids))
    WITH CHECK (auth.uid() IN (SELECT user_id FROM public.manager_ids))
    """,
    'DROP POLICY IF EXISTS "Authenticated users can view roles" ON public.roles',
    """
    CREATE POLICY "Authenticated users can view roles" ON public.roles
    FOR SELECT
    USING (auth.role() = 'authenticated')
    """,
    "DROP POLICY IF EXISTS manager_prices_manager_write ON public.manager_prices",
    """
    CREATE POLICY manager_prices_manager_write ON public.manager_prices
    FOR ALL TO authenticated
    USING (auth.uid() IN (SELECT user_id FROM public.manager_ids))
    WITH CHECK (auth.uid() IN (SELECT user_id FROM public.manager_ids))
    """,
]


def compute_manager_ids(
    profiles: Iterable[Dict[str, Any]],
    roles: Iterable[Dict[str, Any]]
) -> Set[str]:
    """
    The user ids the manager_ids view would contain.

    A profile is included iff its role_id references a role named 'manager'.
    """
    manager_role_ids = {
        role["id"] for role in roles
        if role.get("name") == ROLE_NAMES['MANAGER']
    }
    return {
        profile["user_id"] for profile in profiles
        if profile.get("role_id") is not None and profile.get("role_id") in manager_role_ids
    }


async def get_manager_ids(supabase_client: Any) -> Set[str]:
    """Read the manager_ids view."""
    try:
        result = supabase_client.table(MANAGER_IDS_VIEW).select("user_id").execute()
    except APIError as e:
        raise handle_api_error(e, "Get Manager IDs") from e

    return {row["user_id"] for row in result.data or []}


async def is_manager(supabase_client: Any, user_id: str) -> bool:
    return user_id in await get_manager_ids(supabase_client)


async def fix_policy_recursion(supabase_client: Any) -> Set[str]:
    """
    (Re)create the manager_ids view and the manager policies on profiles,
    roles and manager_prices.

    Returns:
        The manager ids visible through the view afterwards
    """
    logger.info("Applying manager_ids view and manager policies")

    for statement in MANAGER_POLICY_STATEMENTS:
        await execute_sql(supabase_client, statement.strip())

    manager_ids = await get_manager_ids(supabase_client)
    logger.info(f"manager_ids view returns {len(manager_ids)} managers")
    return manager_ids
