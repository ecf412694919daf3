"""
Tests for the notification service.
"""

import pytest

from cashdesk.services import cash_custody_service, notification_service
from cashdesk.services.notification_service import normalize_action_payload


def _notification(notification_id, user_id="cashier-1", **overrides):
    row = {
        "id": notification_id,
        "user_id": user_id,
        "title": "t",
        "message": "m",
        "type": "custody_approval",
        "reference_id": None,
        "is_read": False,
        "requires_action": False,
        "action_taken": False,
        "action_payload": {},
        "created_at": f"2025-10-0{notification_id[-1]}T10:00:00+00:00",
    }
    row.update(overrides)
    return row


class TestNormalizeActionPayload:

    def test_none_becomes_empty_object(self):
        assert normalize_action_payload(None) == {}

    def test_json_string_is_parsed(self):
        assert normalize_action_payload('{"custody_id": "c-1"}') == {"custody_id": "c-1"}

    def test_invalid_string_becomes_empty_object(self):
        assert normalize_action_payload("{broken") == {}

    def test_object_is_copied(self):
        payload = {"amount": 10, "nested": {"a": [1, 2]}}
        normalized = normalize_action_payload(payload)
        assert normalized == payload
        assert normalized is not payload

    def test_unserialisable_becomes_empty_object(self):
        assert normalize_action_payload({"when": object()}) == {}


class TestCreateNotification:

    @pytest.mark.asyncio
    async def test_always_writes_action_payload(self, custody_db):
        created = await notification_service.create_notification(
            custody_db, "cashier-1", "Title", "Message", "custody_approval"
        )

        assert created["action_payload"] == {}
        assert created["is_read"] is False
        assert created["action_taken"] is False

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reference_id,expected", [
        ("c-1", "c-1"),
        ("", None),
        (123, None),
        (None, None),
    ])
    async def test_reference_id_kept_only_when_non_empty_string(self, custody_db, reference_id, expected):
        created = await notification_service.create_notification(
            custody_db, "cashier-1", "Title", "Message", "custody_approval",
            reference_id=reference_id
        )
        assert created["reference_id"] == expected

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["user_id", "title", "message", "type"])
    async def test_required_fields(self, custody_db, field):
        kwargs = {"user_id": "cashier-1", "title": "T", "message": "M", "type": "custody_request"}
        kwargs[field] = ""

        with pytest.raises(ValueError, match="is required"):
            await notification_service.create_notification(custody_db, **kwargs)


class TestReadState:

    @pytest.mark.asyncio
    async def test_list_newest_first_and_unread_filter(self, custody_db):
        custody_db.tables["notifications"] = [
            _notification("n-1"),
            _notification("n-2", is_read=True),
            _notification("n-3"),
            _notification("n-4", user_id="treasurer-1"),
        ]

        all_items = await notification_service.get_user_notifications(custody_db, "cashier-1")
        unread = await notification_service.get_user_notifications(custody_db, "cashier-1", unread_only=True)

        assert [n["id"] for n in all_items] == ["n-3", "n-2", "n-1"]
        assert [n["id"] for n in unread] == ["n-3", "n-1"]

    @pytest.mark.asyncio
    async def test_mark_as_read(self, custody_db):
        custody_db.tables["notifications"] = [_notification("n-1")]

        updated = await notification_service.mark_as_read(custody_db, "cashier-1", "n-1")

        assert updated["is_read"] is True

    @pytest.mark.asyncio
    async def test_mark_as_read_other_users_notification(self, custody_db):
        custody_db.tables["notifications"] = [_notification("n-1", user_id="treasurer-1")]

        assert await notification_service.mark_as_read(custody_db, "cashier-1", "n-1") is None
        assert custody_db.rows("notifications")[0]["is_read"] is False

    @pytest.mark.asyncio
    async def test_mark_all_as_read(self, custody_db):
        custody_db.tables["notifications"] = [
            _notification("n-1"),
            _notification("n-2", is_read=True),
            _notification("n-3"),
        ]

        assert await notification_service.mark_all_as_read(custody_db, "cashier-1") == 2
        assert all(n["is_read"] for n in custody_db.rows("notifications"))


class TestTakeAction:

    async def _request(self, db):
        custody = await cash_custody_service.give_cash_custody(
            db, "treasurer-1", "cashier-1", "wallet-1", "USD", 100
        )
        [notification] = db.rows("notifications")
        return custody, notification

    @pytest.mark.asyncio
    async def test_approve(self, custody_db):
        custody, notification = await self._request(custody_db)

        result = await notification_service.take_action(
            custody_db, "cashier-1", notification["id"], "approve"
        )

        assert result["id"] == custody["id"]
        assert result["status"] == "approved"
        stored = next(n for n in custody_db.rows("notifications") if n["id"] == notification["id"])
        assert stored["action_taken"] is True
        assert stored["is_read"] is True

    @pytest.mark.asyncio
    async def test_reject_with_reason(self, custody_db):
        _, notification = await self._request(custody_db)

        result = await notification_service.take_action(
            custody_db, "cashier-1", notification["id"], "reject", reason="Count mismatch"
        )

        assert result["status"] == "rejected"
        assert "Rejection reason: Count mismatch" in result["notes"]

    @pytest.mark.asyncio
    async def test_action_only_once(self, custody_db):
        _, notification = await self._request(custody_db)
        await notification_service.take_action(custody_db, "cashier-1", notification["id"], "approve")

        with pytest.raises(ValueError, match="already been taken"):
            await notification_service.take_action(custody_db, "cashier-1", notification["id"], "reject")

    @pytest.mark.asyncio
    async def test_other_user_cannot_act(self, custody_db):
        _, notification = await self._request(custody_db)

        with pytest.raises(LookupError):
            await notification_service.take_action(custody_db, "treasurer-1", notification["id"], "approve")

    @pytest.mark.asyncio
    async def test_invalid_action(self, custody_db):
        _, notification = await self._request(custody_db)

        with pytest.raises(ValueError, match="Invalid action"):
            await notification_service.take_action(custody_db, "cashier-1", notification["id"], "archive")

    @pytest.mark.asyncio
    async def test_informational_notification(self, custody_db):
        custody_db.tables["notifications"] = [_notification("n-1")]

        with pytest.raises(ValueError, match="does not require action"):
            await notification_service.take_action(custody_db, "cashier-1", "n-1", "approve")
