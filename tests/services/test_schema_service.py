"""
Tests for schema introspection and additive schema changes.
"""

import pytest

from cashdesk.services import schema_service
from cashdesk.utils.errors import CashDeskError
from fakes import FakeSupabase, api_error


class TestCheckTableExists:

    @pytest.mark.asyncio
    async def test_uses_rpc(self, fake_db):
        fake_db.tables["wallets"] = []

        assert await schema_service.check_table_exists(fake_db, "wallets")
        assert not await schema_service.check_table_exists(fake_db, "ledger")
        assert ("check_table_exists", {"p_table_name": "wallets"}) in fake_db.rpc_calls

    @pytest.mark.asyncio
    async def test_probe_fallback_without_rpc(self):
        db = FakeSupabase(tables={"wallets": []}, strict=True)

        assert await schema_service.check_table_exists(db, "wallets")
        assert not await schema_service.check_table_exists(db, "ledger")

    @pytest.mark.asyncio
    async def test_other_errors_raise(self):
        db = FakeSupabase(tables={"wallets": []})
        db.fail_tables["wallets"] = api_error("42501", "permission denied")

        with pytest.raises(CashDeskError) as exc_info:
            await schema_service.check_table_exists(db, "wallets")
        assert exc_info.value.code == "42501"


class TestColumns:

    @pytest.mark.asyncio
    async def test_get_table_columns(self):
        db = FakeSupabase(columns={"notifications": {"id", "title"}})
        db.install_sql_functions()

        assert await schema_service.get_table_columns(db, "notifications") == ["id", "title"]
        assert await schema_service.column_exists(db, "notifications", "title")
        assert not await schema_service.column_exists(db, "notifications", "action_payload")

    @pytest.mark.asyncio
    async def test_ensure_column_is_idempotent(self):
        db = FakeSupabase(columns={"notifications": {"id", "title"}})
        db.install_sql_functions()

        added = await schema_service.ensure_column(
            db, "notifications", "action_payload", "JSONB NOT NULL DEFAULT '{}'::jsonb"
        )
        added_again = await schema_service.ensure_column(
            db, "notifications", "action_payload", "JSONB NOT NULL DEFAULT '{}'::jsonb"
        )

        assert added is True
        assert added_again is False
        assert db.executed_sql == [
            "ALTER TABLE public.notifications ADD COLUMN IF NOT EXISTS action_payload "
            "JSONB NOT NULL DEFAULT '{}'::jsonb"
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("table,column", [
        ("notifications; DROP TABLE x", "c"),
        ("notifications", "bad column"),
        ("", "c"),
    ])
    async def test_ensure_column_rejects_bad_identifiers(self, fake_db, table, column):
        with pytest.raises(ValueError, match="Invalid SQL identifier"):
            await schema_service.ensure_column(fake_db, table, column, "TEXT")
        assert fake_db.executed_sql == []


class TestEnsureTable:

    @pytest.mark.asyncio
    async def test_creates_missing_table(self, fake_db):
        created = await schema_service.ensure_table(fake_db, "migrations", "name TEXT PRIMARY KEY")

        assert created is True
        assert fake_db.executed_sql == ["CREATE TABLE IF NOT EXISTS public.migrations (name TEXT PRIMARY KEY)"]

    @pytest.mark.asyncio
    async def test_existing_table_untouched(self, fake_db):
        fake_db.tables["migrations"] = []

        assert await schema_service.ensure_table(fake_db, "migrations", "name TEXT") is False
        assert fake_db.executed_sql == []
