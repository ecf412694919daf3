"""
Helpers shared by the maintenance scripts in scripts/.

Each script loads .env, configures logging, builds the shared Supabase client,
runs one async operation and exits 0 on success, 1 on failure.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable

from cashdesk.utils.logging import configure_logging

logger = logging.getLogger(__name__)


def confirm(prompt: str, assume_yes: bool = False) -> bool:
    """Ask a y/n question on stdin; `assume_yes` skips the prompt."""
    if assume_yes:
        return True
    try:
        answer = input(f"{prompt} (y/n): ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def run_script(operation: Callable[[Any], Awaitable[bool]], log_level: str = "INFO") -> int:
    """
    Run `operation(client)` with the shared Supabase client.

    Args:
        operation: Async callable returning True on success
        log_level: Root log level

    Returns:
        Process exit code (0 success, 1 failure)
    """
    configure_logging(log_level)

    from cashdesk.db.client import get_shared_client

    try:
        client = get_shared_client()
        ok = asyncio.run(operation(client))
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        return 1
    except Exception as e:
        logger.error(f"Script failed: {e}", exc_info=True)
        return 1

    return 0 if ok else 1
