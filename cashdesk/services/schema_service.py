"""
Schema introspection and additive schema changes.

PostgREST has no metadata endpoint, so table/column lookups go through the
``check_table_exists`` and ``get_table_columns`` RPCs defined in
002_schema_introspection.sql. DDL goes through ``exec_sql``.

Every change here is additive and guarded (IF NOT EXISTS), so calling any
function twice leaves the schema as after the first call.
"""

import logging
import re
from typing import Any, List

from postgrest.exceptions import APIError

from cashdesk.utils.errors import handle_api_error

logger = logging.getLogger(__name__)

# Error codes for "relation does not exist" (Postgres / PostgREST schema cache)
MISSING_TABLE_CODES = ("42P01", "PGRST205")

# Error code for "function not found" in the PostgREST schema cache
MISSING_FUNCTION_CODE = "PGRST202"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _require_identifier(name: str) -> str:
    if not name or not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid SQL identifier: {name!r}")
    return name


async def check_table_exists(supabase_client: Any, table_name: str) -> bool:
    """
    Check whether a table exists in the public schema.

    Uses the check_table_exists RPC; if that function is not installed,
    probes the table with a one-row select instead.
    """
    try:
        result = supabase_client.rpc("check_table_exists", {"p_table_name": table_name}).execute()
        return bool(result.data)
    except APIError as e:
        if e.code != MISSING_FUNCTION_CODE:
            raise handle_api_error(e, f"Check Table {table_name}") from e
        logger.warning("check_table_exists RPC not available, probing table directly")

    try:
        supabase_client.table(table_name).select("*").limit(1).execute()
        return True
    except APIError as e:
        if e.code in MISSING_TABLE_CODES:
            return False
        raise handle_api_error(e, f"Check Table {table_name}") from e


async def get_table_columns(supabase_client: Any, table_name: str) -> List[str]:
    """
    Column names of a public table, in ordinal order.

    Returns:
        Column names (empty if the table does not exist)
    """
    try:
        result = supabase_client.rpc("get_table_columns", {"p_table_name": table_name}).execute()
    except APIError as e:
        raise handle_api_error(e, f"Get Columns {table_name}") from e

    columns: List[str] = []
    for row in result.data or []:
        # Rows come back as {"column_name": ..., "data_type": ...}
        columns.append(row["column_name"] if isinstance(row, dict) else str(row))
    return columns


async def column_exists(supabase_client: Any, table_name: str, column_name: str) -> bool:
    columns = await get_table_columns(supabase_client, table_name)
    return column_name in columns


async def ensure_column(
    supabase_client: Any,
    table_name: str,
    column_name: str,
    definition: str
) -> bool:
    """
    Add a column if it is missing.

    Args:
        supabase_client: Supabase client (service role, exec_sql installed)
        table_name: Target table
        column_name: Column to add
        definition: Type and constraints, e.g. "JSONB NOT NULL DEFAULT '{}'::jsonb"

    Returns:
        True if the column was added, False if it already existed
    """
    # Deferred import: migration_service imports this module
    from cashdesk.services.migration_service import execute_sql

    _require_identifier(table_name)
    _require_identifier(column_name)

    if await column_exists(supabase_client, table_name, column_name):
        logger.info(f"Column {table_name}.{column_name} already exists")
        return False

    logger.info(f"Adding column {table_name}.{column_name} ({definition})")
    await execute_sql(
        supabase_client,
        f"ALTER TABLE public.{table_name} ADD COLUMN IF NOT EXISTS {column_name} {definition}"
    )
    return True


async def ensure_table(supabase_client: Any, table_name: str, columns_ddl: str) -> bool:
    """
    Create a table if it is missing.

    Args:
        columns_ddl: Column and constraint list, without the surrounding parentheses

    Returns:
        True if the table was created, False if it already existed
    """
    from cashdesk.services.migration_service import execute_sql

    _require_identifier(table_name)

    if await check_table_exists(supabase_client, table_name):
        logger.info(f"Table {table_name} already exists")
        return False

    logger.info(f"Creating table {table_name}")
    await execute_sql(
        supabase_client,
        f"CREATE TABLE IF NOT EXISTS public.{table_name} ({columns_ddl})"
    )
    return True
