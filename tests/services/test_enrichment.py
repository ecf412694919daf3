"""
Tests for client-side relation enrichment.
"""

import pytest

from cashdesk.services.enrichment import CUSTODY_RELATIONS, RelationSpec, fetch_related_data
from fakes import api_error


def _custody(custody_id, treasurer_id, cashier_id, wallet_id):
    return {
        "id": custody_id,
        "treasurer_id": treasurer_id,
        "cashier_id": cashier_id,
        "wallet_id": wallet_id,
    }


class TestFetchRelatedData:

    @pytest.mark.asyncio
    async def test_attaches_related_rows(self, custody_db):
        records = [_custody("c-1", "treasurer-1", "cashier-1", "wallet-1")]

        enriched = await fetch_related_data(custody_db, records)

        assert enriched[0]["treasurer"]["first_name"] == "Tara"
        assert enriched[0]["cashier"]["first_name"] == "Carl"
        assert enriched[0]["wallet"]["name"] == "Main"
        # Input is not modified
        assert "treasurer" not in records[0]

    @pytest.mark.asyncio
    async def test_missing_relations_are_none_and_rows_kept(self, custody_db):
        records = [
            _custody("c-1", "treasurer-1", "ghost", "wallet-1"),
            _custody("c-2", "ghost", "cashier-1", "no-wallet"),
            _custody("c-3", None, None, None),
        ]

        enriched = await fetch_related_data(custody_db, records)

        assert [r["id"] for r in enriched] == ["c-1", "c-2", "c-3"]
        assert enriched[0]["cashier"] is None
        assert enriched[1]["treasurer"] is None
        assert enriched[1]["wallet"] is None
        assert enriched[2]["treasurer"] is None and enriched[2]["wallet"] is None

    @pytest.mark.asyncio
    async def test_one_query_per_table(self, custody_db):
        records = [
            _custody(f"c-{i}", "treasurer-1", "cashier-1", "wallet-1")
            for i in range(5)
        ]

        await fetch_related_data(custody_db, records)

        selects = [table for table, op in custody_db.calls if op == "select"]
        assert selects.count("staff_profiles") == 1
        assert selects.count("wallets") == 1

    @pytest.mark.asyncio
    async def test_failing_relation_degrades_to_none(self, custody_db):
        custody_db.fail_tables["wallets"] = api_error("42501", "permission denied for table wallets")
        records = [_custody("c-1", "treasurer-1", "cashier-1", "wallet-1")]

        enriched = await fetch_related_data(custody_db, records)

        assert len(enriched) == 1
        assert enriched[0]["wallet"] is None
        assert enriched[0]["cashier"]["user_id"] == "cashier-1"

    @pytest.mark.asyncio
    async def test_counterparty_resolved_without_profiles_access(self, custody_db):
        custody_db.fail_tables["profiles"] = api_error("42501", "permission denied for table profiles")
        records = [_custody("c-1", "treasurer-1", "cashier-1", "wallet-1")]

        enriched = await fetch_related_data(custody_db, records)

        assert enriched[0]["treasurer"]["email"] == "tara@example.com"
        assert enriched[0]["cashier"]["first_name"] == "Carl"

    @pytest.mark.asyncio
    async def test_empty_input(self, custody_db):
        assert await fetch_related_data(custody_db, []) == []
        assert custody_db.calls == []

    @pytest.mark.asyncio
    async def test_custom_relation(self, custody_db):
        relation = RelationSpec("owner", "profiles", "user_id", "user_id, email", "owner_profile")

        enriched = await fetch_related_data(custody_db, [{"owner": "manager-1"}], [relation])

        assert enriched[0]["owner_profile"] == {"user_id": "manager-1", "email": "mona@example.com"}

    def test_default_relations(self):
        assert [r.attach_as for r in CUSTODY_RELATIONS] == ["treasurer", "cashier", "wallet"]
