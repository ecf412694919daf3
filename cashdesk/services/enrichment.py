"""
Client-side relation enrichment.

PostgREST embedded selects (``select("*, cashier:cashier_id(*)")``) depend on
the foreign keys being present in the schema cache, which has not been
reliable for cash_custody. Instead, related rows are fetched with one
batched ``in`` query per relation and attached in Python.

Guarantees:
- The output has exactly one row per input row, in the same order.
- A missing related row is attached as None; it never drops the base row.
- A failing relation query is logged and degrades to None for that relation.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from postgrest.exceptions import APIError

from cashdesk.utils.constants import STAFF_PROFILES_VIEW, TABLES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RelationSpec:
    """
    How to resolve one foreign-key-like field.

    Attributes:
        field: Column on the base row holding the reference (e.g. "cashier_id")
        table: Table holding the related rows
        key: Column on the related table matched against `field`
        columns: Columns to select from the related table
        attach_as: Key under which the related row is attached
    """
    field: str
    table: str
    key: str
    columns: str
    attach_as: str


# Treasurer and cashier are read from staff_profiles; profiles RLS only
# exposes the caller's own row
PROFILE_COLUMNS = "user_id, first_name, last_name, email, role_id"

CUSTODY_RELATIONS: Sequence[RelationSpec] = (
    RelationSpec("treasurer_id", STAFF_PROFILES_VIEW, "user_id", PROFILE_COLUMNS, "treasurer"),
    RelationSpec("cashier_id", STAFF_PROFILES_VIEW, "user_id", PROFILE_COLUMNS, "cashier"),
    RelationSpec("wallet_id", TABLES['WALLETS'], "id", "*", "wallet"),
)


def _distinct_values(records: Sequence[Dict[str, Any]], field: str) -> List[Any]:
    seen: Dict[Any, None] = {}
    for record in records:
        value = record.get(field)
        if value is not None:
            seen.setdefault(value, None)
    return list(seen)


def _fetch_lookup(supabase_client: Any, spec: RelationSpec, values: List[Any]) -> Dict[Any, Dict[str, Any]]:
    """Fetch related rows for `values` and index them by spec.key."""
    if not values:
        return {}

    columns = spec.columns
    if columns != "*" and spec.key not in [c.strip() for c in columns.split(",")]:
        columns = f"{spec.key}, {columns}"

    try:
        result = (
            supabase_client.table(spec.table)
            .select(columns)
            .in_(spec.key, values)
            .execute()
        )
    except APIError as e:
        logger.warning(
            f"Could not resolve {spec.attach_as} from {spec.table}: {e.message}"
        )
        return {}

    return {row[spec.key]: row for row in (result.data or []) if spec.key in row}


async def fetch_related_data(
    supabase_client: Any,
    records: List[Dict[str, Any]],
    relations: Sequence[RelationSpec] = CUSTODY_RELATIONS
) -> List[Dict[str, Any]]:
    """
    Attach related rows to each record.

    Args:
        supabase_client: Supabase client
        records: Base rows (not modified)
        relations: Relations to resolve

    Returns:
        New list of the same length with one key per relation added.
    """
    if not records:
        return []

    # Relations pointing at the same table/key share one query
    lookups: Dict[tuple, Dict[Any, Dict[str, Any]]] = {}
    grouped: Dict[tuple, List[RelationSpec]] = {}
    for spec in relations:
        grouped.setdefault((spec.table, spec.key, spec.columns), []).append(spec)

    for group_key, specs in grouped.items():
        values: List[Any] = []
        for spec in specs:
            for value in _distinct_values(records, spec.field):
                if value not in values:
                    values.append(value)
        lookups[group_key] = _fetch_lookup(supabase_client, specs[0], values)

    enriched: List[Dict[str, Any]] = []
    for record in records:
        row = dict(record)
        for spec in relations:
            lookup = lookups[(spec.table, spec.key, spec.columns)]
            row[spec.attach_as] = lookup.get(record.get(spec.field))
        enriched.append(row)

    logger.debug(f"Enriched {len(enriched)} records with {len(relations)} relations")
    return enriched
