"""
Tests for validation and error formatting utilities.
"""

import pytest
from postgrest.exceptions import APIError

from cashdesk.utils.errors import CashDeskError, handle_api_error, http_status_for
from cashdesk.utils.timestamps import seconds_until
from cashdesk.utils.validation import (
    calculate_password_strength,
    format_error_message,
    is_valid_email,
    sanitize_json_data,
    validate_password,
)


def _api_error(code: str, message: str = "boom") -> APIError:
    return APIError({"message": message, "code": code, "hint": "", "details": ""})


class TestFormatErrorMessage:
    """Tests for format_error_message()"""

    def test_none_is_unknown_error(self):
        assert format_error_message(None) == "Unknown error occurred"

    @pytest.mark.parametrize("context", ["", "Give Cash Custody", "x"])
    def test_duplicate_key_mentions_already_exists(self, context):
        message = format_error_message({"code": "23505", "message": "dup"}, context)
        assert "already exists" in message

    def test_context_prefix(self):
        message = format_error_message(_api_error("23503"), "Create Notification")
        assert message == "[Create Notification] This operation references a record that doesn't exist."

    def test_invalid_json(self):
        error = _api_error("22P02", 'invalid input syntax for type json')
        assert format_error_message(error) == "Invalid JSON format in request."

    def test_invalid_text_representation_without_json_uses_driver_message(self):
        error = _api_error("22P02", "invalid input syntax for type uuid")
        assert format_error_message(error) == "invalid input syntax for type uuid"

    def test_rls_violation(self):
        error = _api_error("42501", 'new row violates row-level security policy for table "roles"')
        assert format_error_message(error) == "You are not authorized to perform this action."

    def test_auth_messages(self):
        assert "confirm your account" in format_error_message({"message": "Email not confirmed"})
        assert format_error_message({"message": "Invalid login credentials"}) == "Invalid email or password."

    def test_falls_back_to_generic_message(self):
        assert format_error_message({"code": "XX000"}) == "An error occurred while processing your request."

    def test_plain_exception_uses_its_text(self):
        assert format_error_message(RuntimeError("network down"), "Sync") == "[Sync] network down"


class TestHandleApiError:

    def test_wraps_driver_error(self):
        wrapped = handle_api_error(_api_error("23505"), "Insert role")
        assert isinstance(wrapped, CashDeskError)
        assert wrapped.code == "23505"
        assert wrapped.context == "Insert role"
        assert "already exists" in wrapped.message

    def test_none_error(self):
        assert handle_api_error(None).message == "Unknown error occurred"

    @pytest.mark.parametrize("code,expected", [
        ("23505", 409),
        ("23503", 400),
        ("22P02", 400),
        ("42501", 403),
        ("PGRST116", 500),
        (None, 500),
    ])
    def test_http_status_mapping(self, code, expected):
        status_code, _ = http_status_for(CashDeskError("x", code=code))
        assert status_code == expected


class TestEmail:

    @pytest.mark.parametrize("email", ["a@b.co", "treasurer.one@example.com"])
    def test_valid(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", ["", "no-at.example.com", "a@b", "a b@c.com", None, 42])
    def test_invalid(self, email):
        assert not is_valid_email(email)


class TestPasswordValidation:

    def test_valid_without_special_character(self):
        result = validate_password("Abcdef12")
        assert result.is_valid
        # Only the advisory message remains
        assert result.errors == ["Consider adding a special character for stronger security"]

    def test_valid_with_special_character_has_no_errors(self):
        result = validate_password("Abcdef1!")
        assert result.is_valid
        assert result.errors == []

    @pytest.mark.parametrize("password", ["Abc12", "abcdefg1", "ABCDEFG1", "Abcdefgh"])
    def test_invalid(self, password):
        assert not validate_password(password).is_valid

    @pytest.mark.parametrize("password", [None, 12345678, ["Abcdef12"], ""])
    def test_never_raises(self, password):
        result = validate_password(password)
        assert result.is_valid is False
        assert result.strength == 0

    def test_strength_scores(self):
        assert calculate_password_strength("") == 0
        assert calculate_password_strength("Abcdef12") == 56
        assert calculate_password_strength("Abcdef1!") == 81
        # One run of repeated characters costs 5 points
        assert calculate_password_strength("aa") == 9

    def test_strength_is_bounded(self):
        assert 0 <= calculate_password_strength("aaaaaaaaaaaaaaaaaaaaaaaaaa") <= 100
        assert calculate_password_strength("Xy9!Xy9!Xy9!Xy9!Xy9!Xy9!Xy9!") == 90


class TestSanitizeJson:

    def test_none(self):
        assert sanitize_json_data(None) == "{}"

    def test_valid_string_passthrough(self):
        assert sanitize_json_data('{"a": 1}') == '{"a": 1}'

    def test_invalid_string(self):
        assert sanitize_json_data("{not json") == "{}"

    def test_object(self):
        assert sanitize_json_data({"custody_id": "c-1"}) == '{"custody_id": "c-1"}'

    def test_unserialisable(self):
        assert sanitize_json_data({"x": object()}) == "{}"


def test_seconds_until():
    assert seconds_until(1_000_300, now=1_000_000) == 300
    assert seconds_until(1_000_000, now=1_000_010) == -10
