"""
Tests for custody test-data seeding.
"""

import random

import pytest

from cashdesk.services import seed_service
from cashdesk.services.seed_service import prepare_custody_records
from cashdesk.utils.constants import SEED_AMOUNT_MAX, SEED_AMOUNT_MIN
from fakes import FakeSupabase, api_error


USERS = [{"user_id": "u-1"}, {"user_id": "u-2"}, {"user_id": "u-3"}]
CURRENCIES = [{"code": "USD"}, {"code": "EUR"}]


class TestPrepareCustodyRecords:

    def test_one_record_per_user_and_currency(self):
        records = prepare_custody_records(USERS, CURRENCIES, rng=random.Random(7))

        assert len(records) == 6
        assert {(r["user_id"], r["currency_code"]) for r in records} == {
            (u["user_id"], c["code"]) for u in USERS for c in CURRENCIES
        }
        assert all(SEED_AMOUNT_MIN <= r["amount"] < SEED_AMOUNT_MAX for r in records)
        assert all(r["updated_at"] for r in records)

    def test_reproducible_with_seeded_rng(self):
        first = prepare_custody_records(USERS, CURRENCIES, rng=random.Random(42))
        second = prepare_custody_records(USERS, CURRENCIES, rng=random.Random(42))

        assert [r["amount"] for r in first] == [r["amount"] for r in second]

    def test_empty_inputs(self):
        assert prepare_custody_records([], CURRENCIES) == []
        assert prepare_custody_records(USERS, []) == []


class TestSeedCustodyRecords:

    def _records(self, count):
        return [
            {"user_id": f"u-{i}", "currency_code": "USD", "amount": 100, "updated_at": "2025-01-01T00:00:00+00:00"}
            for i in range(count)
        ]

    @pytest.mark.asyncio
    async def test_inserts_in_batches(self):
        db = FakeSupabase()

        result = await seed_service.seed_custody_records(db, self._records(45), batch_size=20)

        assert result.success
        assert result.total == 45
        assert result.inserted == 45
        assert db.calls.count(("custody", "insert")) == 3
        assert len(db.rows("custody")) == 45

    @pytest.mark.asyncio
    async def test_failed_batch_does_not_stop_the_rest(self, supabase_client):
        insert = supabase_client.table.return_value.insert
        ok = type("Response", (), {"data": [{}] * 20})()
        insert.return_value.execute.side_effect = [ok, api_error("23503", "violates foreign key"), ok]

        result = await seed_service.seed_custody_records(supabase_client, self._records(60), batch_size=20)

        assert not result.success
        assert result.failed_batches == [2]
        assert result.inserted == 40
        assert insert.call_count == 3

    @pytest.mark.asyncio
    async def test_rejects_non_positive_batch_size(self):
        with pytest.raises(ValueError):
            await seed_service.seed_custody_records(FakeSupabase(), self._records(1), batch_size=-1)

    @pytest.mark.asyncio
    async def test_fetch_seed_inputs(self):
        db = FakeSupabase(tables={
            "profiles": [{"user_id": "u-1", "first_name": "A"}],
            "currency_types": [{"code": "USD", "name": "Dollar"}],
        })

        users, currencies = await seed_service.fetch_seed_inputs(db)

        assert users == [{"user_id": "u-1"}]
        assert currencies == [{"code": "USD"}]
