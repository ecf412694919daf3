"""
Supabase client factory.

Two kinds of client are handed out:

1. The shared client: one process-wide instance built from SUPABASE_URL /
   SUPABASE_KEY. Maintenance scripts and the session refresh watchdog use it.
2. Per-request clients: built for API requests with the caller's JWT so that
   Row Level Security evaluates auth.uid() as the calling user.

There is no retry, pooling or lifecycle management beyond the single shared
instance.
"""

import logging
from typing import Optional

from cashdesk.config import settings
from supabase import Client, create_client

logger = logging.getLogger(__name__)

_shared_client: Optional[Client] = None


def _require_credentials() -> None:
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        raise ValueError(
            "Missing Supabase credentials. Set SUPABASE_URL and SUPABASE_KEY "
            "(or VITE_SUPABASE_URL and VITE_SUPABASE_ANON_KEY) in your .env file."
        )


def get_shared_client() -> Client:
    """
    Return the shared Supabase client, creating it on first use.

    Returns:
        The process-wide Supabase client.

    Raises:
        ValueError: If the Supabase URL or key is not configured.
    """
    global _shared_client

    if _shared_client is None:
        _require_credentials()
        logger.info(f"Connecting to Supabase at {settings.SUPABASE_URL[:30]}...")
        _shared_client = create_client(
            supabase_url=settings.SUPABASE_URL,
            supabase_key=settings.SUPABASE_KEY
        )

    return _shared_client


def reset_shared_client() -> None:
    """Drop the shared client so the next call builds a fresh one."""
    global _shared_client
    _shared_client = None


def get_supabase_client(access_token: str) -> Client:
    """
    Create an authenticated Supabase client for a specific user.

    The client carries the user's JWT, so every query is evaluated by the
    row-level-security policies with auth.uid() = the token's subject.

    Args:
        access_token: The user's JWT access token from Supabase Auth
                      (verified in cashdesk/auth/dependencies.py).

    Returns:
        An authenticated Supabase client that enforces RLS.
    """
    _require_credentials()

    client: Client = create_client(
        supabase_url=settings.SUPABASE_URL,
        supabase_key=settings.SUPABASE_KEY
    )

    # PostgREST only needs the bearer token; setting it on the query client
    # avoids a round trip to the auth server for every request.
    client.postgrest.auth(access_token)

    logger.debug("Created authenticated Supabase client with user token (RLS enforced)")

    return client
