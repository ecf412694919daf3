"""
Validation and error-formatting utilities.

Pure functions: nothing here touches the database or raises on bad input.
"""

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
SPECIAL_CHARACTERS = re.compile(r"[!@#$%^&*(),.?\":{}|<>]")
PASSWORD_MIN_LENGTH = 8

GENERIC_ERROR_MESSAGE = "An error occurred while processing your request."


def _error_attr(error: Any, name: str) -> Optional[str]:
    """Read `code` / `message` from an exception object or a dict."""
    if isinstance(error, dict):
        value = error.get(name)
    else:
        value = getattr(error, name, None)
    return str(value) if value is not None else None


def format_error_message(error: Any, context: str = "") -> str:
    """
    Format a database or auth error into a user-facing message.

    Args:
        error: APIError / AuthError instance, or a dict with code/message
        context: Optional context shown as a "[context] " prefix

    Returns:
        The formatted message.
    """
    if not error:
        return "Unknown error occurred"

    prefix = f"[{context}] " if context else ""
    code = _error_attr(error, "code")
    message = _error_attr(error, "message")
    if message is None and isinstance(error, Exception):
        message = str(error) or None

    if code == "23505":
        return f"{prefix}This record already exists."

    if code == "23503":
        return f"{prefix}This operation references a record that doesn't exist."

    if code == "22P02" and message and "input syntax for type json" in message:
        return f"{prefix}Invalid JSON format in request."

    # Row-level-security and privilege violations
    if code == "42501":
        return f"{prefix}You are not authorized to perform this action."

    if message and "Email not confirmed" in message:
        return f"{prefix}Please check your email to confirm your account before logging in."

    if message and "Invalid login credentials" in message:
        return f"{prefix}Invalid email or password."

    return f"{prefix}{message or GENERIC_ERROR_MESSAGE}"


def is_valid_email(email: Any) -> bool:
    """Check that email looks like local@domain.tld."""
    if not isinstance(email, str):
        return False
    return bool(EMAIL_PATTERN.match(email))


@dataclass
class PasswordValidation:
    """Result of validate_password()."""
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    strength: int = 0


def validate_password(password: Any) -> PasswordValidation:
    """
    Validate a password against the signup rules.

    A password is valid when it has at least 8 characters including an
    uppercase letter, a lowercase letter and a digit. A missing special
    character only adds an advisory message.
    """
    if not isinstance(password, str):
        password = ""

    has_upper = bool(re.search(r"[A-Z]", password))
    has_lower = bool(re.search(r"[a-z]", password))
    has_digit = bool(re.search(r"[0-9]", password))
    has_special = bool(SPECIAL_CHARACTERS.search(password))

    errors: List[str] = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if not has_upper:
        errors.append("Password must contain at least one uppercase letter")
    if not has_lower:
        errors.append("Password must contain at least one lowercase letter")
    if not has_digit:
        errors.append("Password must contain at least one number")
    if not has_special:
        errors.append("Consider adding a special character for stronger security")

    is_valid = (
        len(password) >= PASSWORD_MIN_LENGTH
        and has_upper
        and has_lower
        and has_digit
    )

    return PasswordValidation(
        is_valid=is_valid,
        errors=errors,
        strength=calculate_password_strength(password)
    )


def calculate_password_strength(password: Any) -> int:
    """Score a password from 0 to 100."""
    if not password or not isinstance(password, str):
        return 0

    score = min(25, len(password) * 2)

    classes = [
        bool(re.search(r"[A-Z]", password)),
        bool(re.search(r"[a-z]", password)),
        bool(re.search(r"[0-9]", password)),
    ]
    has_special = bool(SPECIAL_CHARACTERS.search(password))

    score += 10 * sum(classes)
    if has_special:
        score += 15

    types_count = sum(classes) + int(has_special)
    if types_count >= 3:
        score += 10
    if types_count == 4:
        score += 10

    # Runs of the same character ("aa", "111")
    repeats = re.findall(r"((.)\2+)", password)
    if repeats:
        score -= min(20, len(repeats) * 5)

    return max(0, min(100, score))


def sanitize_json_data(data: Any) -> str:
    """
    Serialise data into a JSON string safe to send to a JSON column.

    Returns "{}" for None or anything that is not valid JSON.
    """
    if data is None:
        return "{}"

    try:
        if isinstance(data, str):
            json.loads(data)
            return data
        return json.dumps(data)
    except (TypeError, ValueError) as e:
        logger.warning(f"Failed to sanitize JSON data: {e}")
        return "{}"
