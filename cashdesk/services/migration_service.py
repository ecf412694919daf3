"""
SQL migration runner.

Migrations are the numbered files in cashdesk/migrations (``NNN_name.sql``).
Each file is split into statements and every statement is sent through the
``exec_sql`` RPC. Applied files are recorded in the ``migrations`` table so a
second run only executes new files.

``exec_sql`` itself cannot be created through exec_sql: install
bootstrap_exec_sql.sql once from the Supabase SQL editor.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Set, Union

from postgrest.exceptions import APIError

from cashdesk.utils.constants import TABLES
from cashdesk.utils.errors import handle_api_error
from cashdesk.utils.timestamps import utc_now_iso

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).resolve().parent.parent / "migrations"

_MIGRATION_FILE = re.compile(r"^\d{3}_[A-Za-z0-9_]+\.sql$")
_DOLLAR_TAG = re.compile(r"\$[A-Za-z_][A-Za-z0-9_]*\$|\$\$")


@dataclass
class MigrationResult:
    """Outcome of running one migration."""
    name: str
    success: bool
    statements_executed: int = 0
    error: Optional[str] = None


@dataclass
class MigrationRunSummary:
    """Outcome of run_all_migrations."""
    applied: List[MigrationResult] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failed: Optional[MigrationResult] = None

    @property
    def success(self) -> bool:
        return self.failed is None


def split_sql_statements(sql: str) -> List[str]:
    """
    Split a SQL script into statements on top-level semicolons.

    Semicolons inside single/double quotes, dollar-quoted bodies
    ($$ ... $$, $tag$ ... $tag$), line comments and block comments do not
    split. Comment-only and empty statements are dropped.
    """
    statements: List[str] = []
    current: List[str] = []
    has_code = False
    i = 0
    n = len(sql)

    while i < n:
        ch = sql[i]

        # -- line comment
        if ch == "-" and sql.startswith("--", i):
            end = sql.find("\n", i)
            end = n if end == -1 else end
            current.append(sql[i:end])
            i = end
            continue

        # /* block comment */
        if ch == "/" and sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            end = n if end == -1 else end + 2
            current.append(sql[i:end])
            i = end
            continue

        if ch in ("'", '"'):
            j = i + 1
            while j < n:
                if sql[j] == ch:
                    # Doubled quote is an escaped quote
                    if j + 1 < n and sql[j + 1] == ch:
                        j += 2
                        continue
                    break
                j += 1
            current.append(sql[i:j + 1])
            has_code = True
            i = j + 1
            continue

        if ch == "$":
            match = _DOLLAR_TAG.match(sql, i)
            if match:
                tag = match.group(0)
                end = sql.find(tag, match.end())
                end = n if end == -1 else end + len(tag)
                current.append(sql[i:end])
                has_code = True
                i = end
                continue

        if ch == ";":
            if has_code:
                statements.append("".join(current).strip())
            current = []
            has_code = False
            i += 1
            continue

        if not ch.isspace():
            has_code = True
        current.append(ch)
        i += 1

    if has_code:
        statements.append("".join(current).strip())

    return statements


async def execute_sql(supabase_client: Any, sql: str) -> Any:
    """Execute one SQL statement through the exec_sql RPC."""
    try:
        result = supabase_client.rpc("exec_sql", {"sql": sql}).execute()
    except APIError as e:
        raise handle_api_error(e, "Execute SQL") from e
    return result.data


async def run_migration(
    supabase_client: Any,
    sql_or_path: Union[str, Path],
    name: Optional[str] = None
) -> MigrationResult:
    """
    Run every statement of a migration, stopping at the first failure.

    Args:
        supabase_client: Supabase client (service role)
        sql_or_path: A Path to a .sql file, or the SQL text itself
        name: Migration name (defaults to the file name)

    Returns:
        MigrationResult; errors are reported, not raised
    """
    if isinstance(sql_or_path, Path):
        sql = sql_or_path.read_text(encoding="utf-8")
        name = name or sql_or_path.name
    else:
        sql = sql_or_path
        name = name or "inline"

    statements = split_sql_statements(sql)
    logger.info(f"Running migration {name} ({len(statements)} statements)")

    executed = 0
    for statement in statements:
        try:
            await execute_sql(supabase_client, statement)
        except Exception as e:
            logger.error(f"Migration {name} failed at statement {executed + 1}: {e}")
            return MigrationResult(name=name, success=False, statements_executed=executed, error=str(e))
        executed += 1

    logger.info(f"Migration {name} completed")
    return MigrationResult(name=name, success=True, statements_executed=executed)


def list_migration_files(directory: Optional[Path] = None) -> List[Path]:
    """Numbered migration files, sorted by name."""
    directory = directory or MIGRATIONS_DIR
    return sorted(p for p in directory.iterdir() if _MIGRATION_FILE.match(p.name))


async def get_applied_migrations(supabase_client: Any) -> Set[str]:
    """Names recorded in the migrations table (empty if the table is missing)."""
    try:
        result = supabase_client.table(TABLES['MIGRATIONS']).select("name").execute()
    except APIError as e:
        logger.warning(f"Could not read applied migrations: {e.message}")
        return set()

    return {row["name"] for row in result.data or []}


async def record_migration(supabase_client: Any, name: str) -> None:
    try:
        supabase_client.table(TABLES['MIGRATIONS']).insert(
            {"name": name, "executed_at": utc_now_iso()}
        ).execute()
    except APIError as e:
        raise handle_api_error(e, f"Record Migration {name}") from e


async def run_all_migrations(
    supabase_client: Any,
    directory: Optional[Path] = None
) -> MigrationRunSummary:
    """
    Apply pending migrations in file-name order.

    Already recorded migrations are skipped; the run stops at the first
    failing migration, leaving later files pending.
    """
    summary = MigrationRunSummary()
    applied = await get_applied_migrations(supabase_client)

    for path in list_migration_files(directory):
        if path.name in applied:
            logger.info(f"Skipping already applied migration {path.name}")
            summary.skipped.append(path.name)
            continue

        result = await run_migration(supabase_client, path)
        if not result.success:
            summary.failed = result
            break

        await record_migration(supabase_client, path.name)
        summary.applied.append(result)

    logger.info(
        f"Migrations: {len(summary.applied)} applied, {len(summary.skipped)} skipped, "
        f"{'1 failed' if summary.failed else '0 failed'}"
    )
    return summary
