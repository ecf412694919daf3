"""
Pytest configuration for cashdesk backend tests.

Sets up the test environment and global fixtures.
"""
import os

import pytest
from unittest.mock import MagicMock

# Disable config validation during tests
os.environ["VALIDATE_CONFIG"] = "false"

# Test environment variables (never real credentials)
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("SUPABASE_URL", "http://localhost:54321")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("SESSION_REFRESH_ENABLED", "false")

from fakes import FakeSupabase, manager_ids_view, staff_profiles_view  # noqa: E402


@pytest.fixture
def supabase_client():
    """
    Mock Supabase client for tests that only check calls.
    """
    return MagicMock()


@pytest.fixture
def fake_db():
    """Empty in-memory Supabase with the manager_ids and staff_profiles views and SQL functions."""
    db = FakeSupabase()
    db.views["manager_ids"] = manager_ids_view
    db.views["staff_profiles"] = staff_profiles_view
    db.install_sql_functions()
    return db


@pytest.fixture
def roles():
    return [
        {"id": "role-manager", "name": "manager", "description": "Manager"},
        {"id": "role-treasurer", "name": "treasurer", "description": "Treasurer"},
        {"id": "role-cashier", "name": "cashier", "description": "Cashier"},
        {"id": "role-dealings", "name": "dealings_executioner", "description": "Dealings"},
    ]


@pytest.fixture
def custody_db(fake_db, roles):
    """
    Fake database with a treasurer, a cashier, a manager and one wallet.

    The wallet holds 1000 USD (currencies map) and 300 LYD (legacy column).
    """
    fake_db.tables.update({
        "roles": [dict(r) for r in roles],
        "profiles": [
            {"id": "p-1", "user_id": "treasurer-1", "first_name": "Tara", "last_name": "T",
             "email": "tara@example.com", "role_id": "role-treasurer"},
            {"id": "p-2", "user_id": "cashier-1", "first_name": "Carl", "last_name": "C",
             "email": "carl@example.com", "role_id": "role-cashier"},
            {"id": "p-3", "user_id": "manager-1", "first_name": "Mona", "last_name": "M",
             "email": "mona@example.com", "role_id": "role-manager"},
        ],
        "wallets": [
            {"id": "wallet-1", "name": "Main", "currencies": {"USD": 1000}, "lyd": 300},
        ],
        "cash_custody": [],
        "notifications": [],
        "custody": [],
    })
    return fake_db
