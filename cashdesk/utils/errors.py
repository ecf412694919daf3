"""
Error types shared by services and routes.

Driver errors (postgrest APIError, supabase AuthError) are converted into
CashDeskError with a user-facing message; the raw error is logged once, here.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from cashdesk.utils.validation import format_error_message

logger = logging.getLogger(__name__)


class CashDeskError(Exception):
    """A database or auth failure, carrying a user-facing message."""

    def __init__(self, message: str, code: Optional[str] = None, context: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.context = context


def handle_api_error(error: Any, context: str = "") -> CashDeskError:
    """
    Log a driver error and wrap it for the caller.

    Args:
        error: The exception raised by supabase-py / postgrest
        context: Operation name, used as message prefix

    Returns:
        CashDeskError to be raised by the caller (``raise ... from error``).
    """
    prefix = f"[{context}] " if context else ""

    if error is None:
        return CashDeskError(f"{prefix}Unknown error occurred", context=context)

    logger.error(f"{prefix}Supabase error: {error}")

    code = getattr(error, "code", None)
    return CashDeskError(
        format_error_message(error, context),
        code=str(code) if code is not None else None,
        context=context
    )


# Driver error code -> (HTTP status, error key)
_HTTP_STATUS_BY_CODE: Dict[str, Tuple[int, str]] = {
    "23505": (409, "conflict"),
    "23503": (400, "invalid_reference"),
    "22P02": (400, "invalid_input"),
    "42501": (403, "forbidden"),
}


def http_status_for(error: CashDeskError) -> Tuple[int, str]:
    """Map a CashDeskError to (status_code, error key) for API responses."""
    return _HTTP_STATUS_BY_CODE.get(error.code or "", (500, "database_error"))
