"""
Session refresh watchdog.

Keeps a long-lived Supabase client's auth session alive by checking the
session expiry on a fixed interval and refreshing it shortly before it
expires. A failed refresh is not retried immediately: the next tick checks
again.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from cashdesk.config import settings
from cashdesk.utils.timestamps import seconds_until

logger = logging.getLogger(__name__)


async def refresh_session(
    supabase_client: Any,
    threshold_seconds: Optional[int] = None,
    now: Optional[float] = None
) -> bool:
    """
    Refresh the client's session if it expires within the threshold.

    Args:
        supabase_client: Supabase client whose auth session is checked
        threshold_seconds: Refresh when fewer seconds than this remain
                           (defaults to SESSION_REFRESH_THRESHOLD_SECONDS)
        now: Reference Unix time, for tests

    Returns:
        True if a refresh was performed successfully, False otherwise.
        Never raises.
    """
    if threshold_seconds is None:
        threshold_seconds = settings.SESSION_REFRESH_THRESHOLD_SECONDS

    try:
        session = supabase_client.auth.get_session()

        if not session or not getattr(session, "expires_at", None):
            logger.debug("Session check: no active session")
            return False

        remaining = seconds_until(session.expires_at, now=now)
        logger.info(f"Session check: expires in {remaining} seconds")

        if remaining >= threshold_seconds:
            return False

        logger.info("Session expiring soon, refreshing...")
        response = supabase_client.auth.refresh_session()

        new_session = getattr(response, "session", None)
        if new_session is None:
            logger.error("Session refresh returned no session")
            return False

        logger.info(f"Session refreshed successfully, new expiry: {new_session.expires_at}")
        return True

    except Exception as e:
        # The next tick checks again
        logger.error(f"Error checking or refreshing session: {e}")
        return False


class SessionRefresher:
    """
    Periodically checks and refreshes a client's auth session.

    Runs as a single asyncio task. The only way to end it is stop().
    """

    def __init__(
        self,
        supabase_client: Any,
        interval_seconds: Optional[float] = None,
        threshold_seconds: Optional[int] = None
    ) -> None:
        self.supabase_client = supabase_client
        self.interval_seconds = (
            interval_seconds
            if interval_seconds is not None
            else settings.SESSION_REFRESH_INTERVAL_SECONDS
        )
        self.threshold_seconds = (
            threshold_seconds
            if threshold_seconds is not None
            else settings.SESSION_REFRESH_THRESHOLD_SECONDS
        )
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def check(self) -> bool:
        """Run a single expiry check."""
        return await refresh_session(
            self.supabase_client,
            threshold_seconds=self.threshold_seconds
        )

    async def start(self) -> None:
        """Run an initial check, then keep checking every interval."""
        if self.running:
            logger.debug("Session refresher already running")
            return

        await self.check()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Session refresher started (interval={self.interval_seconds}s)")

    async def stop(self) -> None:
        """Cancel the repeating check."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        finally:
            self._task = None

        logger.info("Session refresher stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            await self.check()


async def setup_session_refresh(supabase_client: Any) -> Callable[[], Awaitable[None]]:
    """
    Start a session refresher for the client.

    Returns:
        An async callable that stops the refresher.
    """
    refresher = SessionRefresher(supabase_client)
    await refresher.start()
    return refresher.stop
