"""
FastAPI routers for all API endpoints.

Each module defines a router for one domain (cash custody, custody balances,
notifications, roles, manager prices). Protected routers authenticate with
get_authenticated_user and build an RLS-scoped client from the caller's token.
"""
