"""
Service layer for the cashdesk backend.

Contains the data-access and maintenance logic that:
- Reads and writes cash custody, notifications, roles and manager prices
  through supabase-py (RLS applies with the caller's token)
- Validates input before any network call
- Converts driver errors into CashDeskError with user-facing messages
- Runs schema maintenance (migrations, column backfills, policy fixes, seeding)

Services act as the glue between routes/scripts and the database.
"""

from .auth_service import get_current_session, sign_in, sign_out, sign_up
from .cash_custody_service import (
    approve_custody_request,
    get_all_cash_custody,
    get_cash_custody,
    get_cashiers,
    get_treasurers,
    give_cash_custody,
    reject_custody_request,
    return_custody,
    update_custody_status,
)
from .custody_balance_service import (
    adjust_custody,
    credit_custody,
    debit_custody,
    get_user_custody_balances,
)
from .enrichment import CUSTODY_RELATIONS, RelationSpec, fetch_related_data
from .integrity_service import IntegrityReport, check_database_integrity
from .manager_price_service import (
    get_manager_prices,
    migrate_manager_prices_to_lowercase,
    update_manager_prices,
)
from .migration_service import (
    MigrationResult,
    execute_sql,
    run_all_migrations,
    run_migration,
    split_sql_statements,
)
from .notification_service import (
    create_notification,
    mark_request_actioned,
    get_user_notifications,
    mark_all_as_read,
    mark_as_read,
    normalize_action_payload,
    take_action,
)
from .policy_service import compute_manager_ids, fix_policy_recursion, get_manager_ids, is_manager
from .profile_service import get_profile
from .role_service import (
    assign_role_to_user,
    ensure_default_roles,
    get_all_roles,
    get_role_by_id,
    get_role_by_name,
    get_user_role,
    get_users_by_role,
    has_any_role,
)
from .schema_service import (
    check_table_exists,
    column_exists,
    ensure_column,
    ensure_table,
    get_table_columns,
)
from .seed_service import SeedResult, fetch_seed_inputs, prepare_custody_records, seed_custody_records
from .wallet_service import get_currency_balance, get_wallet_by_id

__all__ = [
    # Auth
    "sign_up",
    "sign_in",
    "sign_out",
    "get_current_session",
    # Cash custody
    "get_all_cash_custody",
    "get_cash_custody",
    "give_cash_custody",
    "update_custody_status",
    "approve_custody_request",
    "reject_custody_request",
    "return_custody",
    "get_cashiers",
    "get_treasurers",
    # Custody balances
    "adjust_custody",
    "credit_custody",
    "debit_custody",
    "get_user_custody_balances",
    # Enrichment
    "RelationSpec",
    "CUSTODY_RELATIONS",
    "fetch_related_data",
    # Notifications
    "create_notification",
    "mark_request_actioned",
    "get_user_notifications",
    "mark_as_read",
    "mark_all_as_read",
    "normalize_action_payload",
    "take_action",
    # Roles
    "get_all_roles",
    "get_role_by_id",
    "get_role_by_name",
    "get_user_role",
    "has_any_role",
    "assign_role_to_user",
    "get_users_by_role",
    "ensure_default_roles",
    # Profiles / wallets
    "get_profile",
    "get_wallet_by_id",
    "get_currency_balance",
    # Manager prices
    "get_manager_prices",
    "update_manager_prices",
    "migrate_manager_prices_to_lowercase",
    # Maintenance
    "check_table_exists",
    "get_table_columns",
    "column_exists",
    "ensure_column",
    "ensure_table",
    "MigrationResult",
    "split_sql_statements",
    "execute_sql",
    "run_migration",
    "run_all_migrations",
    "compute_manager_ids",
    "get_manager_ids",
    "is_manager",
    "fix_policy_recursion",
    "SeedResult",
    "prepare_custody_records",
    "fetch_seed_inputs",
    "seed_custody_records",
    "IntegrityReport",
    "check_database_integrity",
]
