"""
Fixtures for API route tests.

Routes get the in-memory fake database instead of a real per-request
Supabase client, and the caller is chosen with the `login` fixture.
"""

from contextlib import ExitStack
from unittest.mock import patch

import pytest

from cashdesk.auth.dependencies import AuthenticatedUser, get_authenticated_user
from cashdesk.main import app

ROUTE_MODULES = (
    "cashdesk.routes.auth",
    "cashdesk.routes.cash_custody",
    "cashdesk.routes.custody",
    "cashdesk.routes.notifications",
    "cashdesk.routes.roles",
    "cashdesk.routes.manager_prices",
)


@pytest.fixture
def api_db(custody_db):
    """Serve custody_db to every router and to require_roles()."""
    with ExitStack() as stack:
        for module in ROUTE_MODULES:
            stack.enter_context(patch(f"{module}.get_supabase_client", return_value=custody_db))
        stack.enter_context(patch("cashdesk.db.client.get_supabase_client", return_value=custody_db))
        yield custody_db


@pytest.fixture
def login():
    """Override get_authenticated_user; call login("cashier-1") to switch users."""
    def _login(user_id: str) -> None:
        async def _authenticated_user():
            return AuthenticatedUser(user_id=user_id, access_token=f"token-{user_id}")

        app.dependency_overrides[get_authenticated_user] = _authenticated_user

    yield _login
    app.dependency_overrides.clear()
