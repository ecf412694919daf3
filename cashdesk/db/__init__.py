"""
Database access layer for the cashdesk backend.

All reads and writes go through supabase-py against the hosted project.
Consistency (uniqueness, referential integrity, access control) is owned by
the database: table constraints and row-level-security policies.

Includes:
- The shared Supabase client and per-request authenticated clients
- The session refresh watchdog for long-lived clients
"""

from .client import get_shared_client, get_supabase_client, reset_shared_client
from .session_refresh import SessionRefresher, refresh_session, setup_session_refresh

__all__ = [
    "get_shared_client",
    "get_supabase_client",
    "reset_shared_client",
    "SessionRefresher",
    "refresh_session",
    "setup_session_refresh",
]
