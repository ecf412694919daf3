"""
Database integrity check.

Read-only report over the pieces the maintenance scripts repair: required
tables, the notifications.action_payload column, the manager_prices
singleton, the default roles, the manager_ids view and returned custody
references.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from postgrest.exceptions import APIError

from cashdesk.services import policy_service, schema_service
from cashdesk.utils.constants import (
    DEFAULT_ROLES,
    MANAGER_PRICE_FIELD_RENAMES,
    TABLES,
)

logger = logging.getLogger(__name__)

REQUIRED_TABLES = (
    TABLES['CASH_CUSTODY'],
    TABLES['CUSTODY'],
    TABLES['NOTIFICATIONS'],
    TABLES['PROFILES'],
    TABLES['ROLES'],
    TABLES['WALLETS'],
    TABLES['MANAGER_PRICES'],
)


@dataclass
class IntegrityCheck:
    name: str
    ok: bool
    detail: str = ""


@dataclass
class IntegrityReport:
    checks: List[IntegrityCheck] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return all(check.ok for check in self.checks)

    @property
    def failures(self) -> List[IntegrityCheck]:
        return [check for check in self.checks if not check.ok]

    def add(self, name: str, ok: bool, detail: str = "") -> None:
        level = logging.INFO if ok else logging.WARNING
        logger.log(level, f"[{'OK' if ok else 'FAIL'}] {name}{': ' + detail if detail else ''}")
        self.checks.append(IntegrityCheck(name=name, ok=ok, detail=detail))


def _rows(supabase_client: Any, table: str, columns: str = "*") -> List[Dict[str, Any]]:
    return supabase_client.table(table).select(columns).execute().data or []


async def check_database_integrity(supabase_client: Any) -> IntegrityReport:
    """
    Run every check and collect the results.

    A check that errors is reported as failed with the error text; the
    remaining checks still run.
    """
    report = IntegrityReport()

    for table in REQUIRED_TABLES:
        try:
            exists = await schema_service.check_table_exists(supabase_client, table)
            report.add(f"table {table}", exists, "" if exists else "missing")
        except Exception as e:
            report.add(f"table {table}", False, str(e))

    try:
        has_payload = await schema_service.column_exists(
            supabase_client, TABLES['NOTIFICATIONS'], "action_payload"
        )
        report.add("notifications.action_payload", has_payload, "" if has_payload else "missing column")
    except Exception as e:
        report.add("notifications.action_payload", False, str(e))

    try:
        columns = await schema_service.get_table_columns(supabase_client, TABLES['MANAGER_PRICES'])
        missing = [c for c in MANAGER_PRICE_FIELD_RENAMES.values() if c not in columns]
        report.add(
            "manager_prices lowercase columns",
            not missing,
            f"missing {', '.join(missing)}" if missing else ""
        )
        rows = _rows(supabase_client, TABLES['MANAGER_PRICES'], "id")
        report.add("manager_prices single row", len(rows) == 1, f"{len(rows)} rows")
    except Exception as e:
        report.add("manager_prices", False, str(e))

    try:
        roles = _rows(supabase_client, TABLES['ROLES'])
        names = {role.get("name") for role in roles}
        missing_roles = [r['name'] for r in DEFAULT_ROLES if r['name'] not in names]
        report.add(
            "default roles",
            not missing_roles,
            f"missing {', '.join(missing_roles)}" if missing_roles else ""
        )

        profiles = _rows(supabase_client, TABLES['PROFILES'], "user_id, role_id")
        expected = policy_service.compute_manager_ids(profiles, roles)
        actual = await policy_service.get_manager_ids(supabase_client)
        report.add(
            "manager_ids view",
            expected == actual,
            "" if expected == actual else f"expected {len(expected)} managers, view has {len(actual)}"
        )
    except Exception as e:
        report.add("roles", False, str(e))

    try:
        dangling = (
            supabase_client.table(TABLES['CASH_CUSTODY'])
            .select("id")
            .eq("is_returned", True)
            .is_("reference_custody_id", "null")
            .execute()
        ).data or []
        report.add(
            "returned custody references",
            not dangling,
            f"{len(dangling)} returned records without reference" if dangling else ""
        )
    except APIError as e:
        report.add("returned custody references", False, e.message)

    logger.info(f"Integrity check: {len(report.checks) - len(report.failures)}/{len(report.checks)} passed")
    return report
