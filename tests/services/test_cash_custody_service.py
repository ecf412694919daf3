"""
Tests for the cash custody service.

Cover the give -> approve/reject -> return lifecycle against the in-memory
Supabase fake, including the notifications each step produces.
"""

import pytest

from cashdesk.services import cash_custody_service, notification_service
from cashdesk.utils.errors import CashDeskError
from fakes import api_error


async def _give(db, amount=250.0, currency="USD", notes=""):
    return await cash_custody_service.give_cash_custody(
        db,
        treasurer_id="treasurer-1",
        cashier_id="cashier-1",
        wallet_id="wallet-1",
        currency_code=currency,
        amount=amount,
        notes=notes,
    )


class TestGiveCashCustody:

    @pytest.mark.asyncio
    async def test_creates_pending_record(self, custody_db):
        created = await _give(custody_db, notes="Morning float")

        assert created["status"] == "pending"
        assert created["is_returned"] is False
        assert created["amount"] == 250.0
        assert custody_db.rows("cash_custody") == [created]

    @pytest.mark.asyncio
    async def test_notifies_cashier_with_action_payload(self, custody_db):
        created = await _give(custody_db)

        [notification] = custody_db.rows("notifications")
        assert notification["user_id"] == "cashier-1"
        assert notification["type"] == "custody_request"
        assert notification["requires_action"] is True
        assert notification["reference_id"] == created["id"]
        assert notification["action_payload"]["custody_id"] == created["id"]
        assert notification["action_payload"]["amount"] == 250.0

    @pytest.mark.asyncio
    async def test_credits_cashier_balance(self, custody_db):
        await _give(custody_db, amount=100)
        await _give(custody_db, amount=50)

        [balance] = custody_db.rows("custody")
        assert balance["user_id"] == "cashier-1"
        assert balance["currency_code"] == "USD"
        assert balance["amount"] == 150.0

    @pytest.mark.asyncio
    async def test_reads_legacy_wallet_column(self, custody_db):
        created = await _give(custody_db, amount=300, currency="LYD")
        assert created["currency_code"] == "LYD"

    @pytest.mark.asyncio
    async def test_insufficient_funds(self, custody_db):
        with pytest.raises(ValueError, match="Insufficient funds"):
            await _give(custody_db, amount=1000.01)
        assert custody_db.rows("cash_custody") == []

    @pytest.mark.asyncio
    async def test_unknown_wallet(self, custody_db):
        with pytest.raises(ValueError, match="Wallet not found"):
            await cash_custody_service.give_cash_custody(
                custody_db, "treasurer-1", "cashier-1", "missing", "USD", 10
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", [0, -5, "abc", None])
    async def test_invalid_amount(self, custody_db, amount):
        with pytest.raises(ValueError, match="Valid amount is required"):
            await _give(custody_db, amount=amount)

    @pytest.mark.asyncio
    async def test_missing_cashier(self, custody_db):
        with pytest.raises(ValueError, match="Cashier ID is required"):
            await cash_custody_service.give_cash_custody(
                custody_db, "treasurer-1", "", "wallet-1", "USD", 10
            )

    @pytest.mark.asyncio
    async def test_notification_failure_does_not_fail_give(self, custody_db):
        custody_db.fail_tables["notifications"] = api_error("42501", "denied")

        created = await _give(custody_db)

        assert created["status"] == "pending"

    @pytest.mark.asyncio
    async def test_insert_error_is_wrapped(self, custody_db):
        custody_db.fail_tables["cash_custody"] = api_error("23503", "fk violation")

        with pytest.raises(CashDeskError) as exc_info:
            await _give(custody_db)

        assert exc_info.value.code == "23503"


class TestApproveReject:

    @pytest.mark.asyncio
    async def test_approve_notifies_treasurer(self, custody_db):
        created = await _give(custody_db)

        updated = await cash_custody_service.approve_custody_request(custody_db, created["id"])

        assert updated["status"] == "approved"
        approval = [n for n in custody_db.rows("notifications") if n["type"] == "custody_approval"]
        assert len(approval) == 1
        assert approval[0]["user_id"] == "treasurer-1"
        assert approval[0]["action_payload"] == {}

    @pytest.mark.asyncio
    async def test_reject_appends_reason_to_notes(self, custody_db):
        created = await _give(custody_db, notes="Float")

        updated = await cash_custody_service.reject_custody_request(
            custody_db, created["id"], "Wrong amount"
        )

        assert updated["status"] == "rejected"
        assert updated["notes"] == "Float\nRejection reason: Wrong amount"
        rejection = [n for n in custody_db.rows("notifications") if n["type"] == "custody_rejection"]
        assert "Wrong amount" in rejection[0]["message"]

    @pytest.mark.asyncio
    async def test_missing_record(self, custody_db):
        with pytest.raises(LookupError):
            await cash_custody_service.approve_custody_request(custody_db, "missing")

    @pytest.mark.asyncio
    async def test_update_status_rejects_pending(self, custody_db):
        created = await _give(custody_db)

        with pytest.raises(ValueError, match="Invalid status"):
            await cash_custody_service.update_custody_status(custody_db, created["id"], "pending")


class TestReturnCustody:

    @pytest.mark.asyncio
    async def test_return_creates_referencing_record(self, custody_db):
        created = await _give(custody_db)
        await cash_custody_service.approve_custody_request(custody_db, created["id"])

        returned = await cash_custody_service.return_custody(
            custody_db, "cashier-1", created["id"], notes="End of shift"
        )

        assert returned["status"] == "returned"
        assert returned["is_returned"] is True
        assert returned["reference_custody_id"] == created["id"]
        assert returned["id"] != created["id"]

        original = next(r for r in custody_db.rows("cash_custody") if r["id"] == created["id"])
        assert original["status"] == "returned"

        # Every returned record references its original
        for row in custody_db.rows("cash_custody"):
            if row.get("is_returned"):
                assert row.get("reference_custody_id")

        returns = [n for n in custody_db.rows("notifications") if n["type"] == "custody_return"]
        assert returns[0]["user_id"] == "treasurer-1"

    @pytest.mark.asyncio
    async def test_only_cashier_can_return(self, custody_db):
        created = await _give(custody_db)
        await cash_custody_service.approve_custody_request(custody_db, created["id"])

        with pytest.raises(PermissionError):
            await cash_custody_service.return_custody(custody_db, "treasurer-1", created["id"])

    @pytest.mark.asyncio
    async def test_pending_cannot_be_returned(self, custody_db):
        created = await _give(custody_db)

        with pytest.raises(ValueError, match="Only approved"):
            await cash_custody_service.return_custody(custody_db, "cashier-1", created["id"])

    @pytest.mark.asyncio
    async def test_cannot_return_twice(self, custody_db):
        created = await _give(custody_db)
        await cash_custody_service.approve_custody_request(custody_db, created["id"])
        await cash_custody_service.return_custody(custody_db, "cashier-1", created["id"])

        with pytest.raises(ValueError, match="already been returned"):
            await cash_custody_service.return_custody(custody_db, "cashier-1", created["id"])

    @pytest.mark.asyncio
    async def test_missing_record(self, custody_db):
        with pytest.raises(LookupError):
            await cash_custody_service.return_custody(custody_db, "cashier-1", "missing")


class TestListing:

    @pytest.mark.asyncio
    async def test_given_and_received_are_enriched(self, custody_db):
        await _give(custody_db)

        as_treasurer = await cash_custody_service.get_all_cash_custody(custody_db, "treasurer-1")
        as_cashier = await cash_custody_service.get_all_cash_custody(custody_db, "cashier-1")

        assert len(as_treasurer["given"]) == 1 and as_treasurer["received"] == []
        assert len(as_cashier["received"]) == 1 and as_cashier["given"] == []
        record = as_cashier["received"][0]
        assert record["treasurer"]["user_id"] == "treasurer-1"
        assert record["wallet"]["id"] == "wallet-1"

    @pytest.mark.asyncio
    async def test_get_cashiers_and_treasurers(self, custody_db):
        cashiers = await cash_custody_service.get_cashiers(custody_db)
        treasurers = await cash_custody_service.get_treasurers(custody_db)

        assert [u["user_id"] for u in cashiers] == ["cashier-1"]
        assert [u["user_id"] for u in treasurers] == ["treasurer-1"]


class TestLifecycleGuards:

    @pytest.mark.asyncio
    async def test_approve_closes_request_notification(self, custody_db):
        created = await _give(custody_db)

        await cash_custody_service.approve_custody_request(custody_db, created["id"])

        [request] = [n for n in custody_db.rows("notifications") if n["type"] == "custody_request"]
        assert request["action_taken"] is True
        assert request["is_read"] is True

    @pytest.mark.asyncio
    async def test_reject_closes_request_notification(self, custody_db):
        created = await _give(custody_db)

        await cash_custody_service.reject_custody_request(custody_db, created["id"], "No")

        [request] = [n for n in custody_db.rows("notifications") if n["type"] == "custody_request"]
        assert request["action_taken"] is True

    @pytest.mark.asyncio
    @pytest.mark.parametrize("first", ["approve", "reject"])
    async def test_only_pending_can_be_decided(self, custody_db, first):
        created = await _give(custody_db)
        if first == "approve":
            await cash_custody_service.approve_custody_request(custody_db, created["id"])
        else:
            await cash_custody_service.reject_custody_request(custody_db, created["id"], "No")

        with pytest.raises(ValueError, match="Custody is already"):
            await cash_custody_service.approve_custody_request(custody_db, created["id"])
        with pytest.raises(ValueError, match="Custody is already"):
            await cash_custody_service.reject_custody_request(custody_db, created["id"], "Again")

    @pytest.mark.asyncio
    async def test_returned_custody_cannot_be_reapproved_from_notification(self, custody_db):
        created = await _give(custody_db)
        [request] = custody_db.rows("notifications")
        await cash_custody_service.approve_custody_request(custody_db, created["id"])
        await cash_custody_service.return_custody(custody_db, "cashier-1", created["id"])

        with pytest.raises(ValueError):
            await notification_service.take_action(custody_db, "cashier-1", request["id"], "approve")

        # Even with the notification reopened, the custody state blocks it
        custody_db.tables["notifications"][0]["action_taken"] = False
        with pytest.raises(ValueError, match="Custody is already returned"):
            await notification_service.take_action(custody_db, "cashier-1", request["id"], "approve")

        original = next(r for r in custody_db.rows("cash_custody") if r["id"] == created["id"])
        assert original["status"] == "returned"
        with pytest.raises(ValueError, match="already been returned"):
            await cash_custody_service.return_custody(custody_db, "cashier-1", created["id"])
        returns = [r for r in custody_db.rows("cash_custody") if r.get("reference_custody_id") == created["id"]]
        assert len(returns) == 1


class TestCustodyBalance:

    def _balance(self, db, currency="USD"):
        rows = [r for r in db.rows("custody") if r["user_id"] == "cashier-1" and r["currency_code"] == currency]
        assert len(rows) == 1
        return rows[0]["amount"]

    @pytest.mark.asyncio
    async def test_reject_reverses_credit(self, custody_db):
        await _give(custody_db, amount=100)
        rejected = await _give(custody_db, amount=40)

        await cash_custody_service.reject_custody_request(custody_db, rejected["id"], "Wrong amount")

        assert self._balance(custody_db) == 100.0

    @pytest.mark.asyncio
    async def test_return_reverses_credit(self, custody_db):
        created = await _give(custody_db, amount=100)
        await cash_custody_service.approve_custody_request(custody_db, created["id"])
        assert self._balance(custody_db) == 100.0

        await cash_custody_service.return_custody(custody_db, "cashier-1", created["id"])

        assert self._balance(custody_db) == 0.0

    @pytest.mark.asyncio
    async def test_balance_failure_does_not_fail_reject(self, custody_db):
        created = await _give(custody_db)
        custody_db.fail_tables["custody"] = api_error("42501", "denied")

        updated = await cash_custody_service.reject_custody_request(custody_db, created["id"], "No")

        assert updated["status"] == "rejected"
