"""
Timestamp helpers.

All timestamps written to the database are ISO-8601 strings in UTC.
"""

import time
from datetime import datetime, timezone
from typing import Optional


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def seconds_until(epoch_seconds: float, now: Optional[float] = None) -> int:
    """
    Whole seconds from `now` until `epoch_seconds` (negative if already past).

    Args:
        epoch_seconds: Target instant as a Unix timestamp in seconds
        now: Reference instant (defaults to time.time())
    """
    if now is None:
        now = time.time()
    return int(epoch_seconds - now)
