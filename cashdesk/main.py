"""
FastAPI application entry point for the cashdesk backend.

Creates the app, registers the routers and, when enabled, runs the session
refresh watchdog for the shared Supabase client for the app's lifetime.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from cashdesk.config import settings
from cashdesk.routes.auth import router as auth_router
from cashdesk.routes.cash_custody import router as cash_custody_router
from cashdesk.routes.custody import router as custody_router
from cashdesk.routes.health import router as health_router
from cashdesk.routes.manager_prices import router as manager_prices_router
from cashdesk.routes.notifications import router as notifications_router
from cashdesk.routes.roles import router as roles_router
from cashdesk.utils.logging import configure_logging

configure_logging(settings.LOG_LEVEL)

logger = logging.getLogger(__name__)


def _get_cors_origins() -> list[str]:
    """
    Allowed CORS origins.

    - production: CORS_ALLOWED_ORIGINS (none when unset)
    - anything else: all origins
    """
    if settings.is_production():
        if settings.CORS_ALLOWED_ORIGINS:
            logger.info(f"CORS configured for production with {len(settings.CORS_ALLOWED_ORIGINS)} allowed origins")
            return settings.CORS_ALLOWED_ORIGINS
        logger.warning(
            "CORS_ALLOWED_ORIGINS not set in production. "
            "No web origins allowed. Set CORS_ALLOWED_ORIGINS for the web client."
        )
        return []

    logger.info(f"CORS configured for {settings.ENVIRONMENT}: allowing all origins")
    return ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start the session refresh watchdog on startup, stop it on shutdown."""
    from cashdesk.db.client import get_shared_client
    from cashdesk.db.session_refresh import SessionRefresher

    refresher = None
    if settings.SESSION_REFRESH_ENABLED:
        try:
            refresher = SessionRefresher(get_shared_client())
            await refresher.start()
        except ValueError as e:
            logger.warning(f"Session refresh disabled: {e}")
            refresher = None

    yield

    if refresher is not None:
        await refresher.stop()


app = FastAPI(
    title="Cashdesk API",
    description="Backend service for cash custody tracking",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Log validation errors (422) with the request path."""
    logger.error(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"error": "validation_error", "details": jsonable_encoder(exc.errors())}
    )


app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(cash_custody_router)
app.include_router(custody_router)
app.include_router(notifications_router)
app.include_router(roles_router)
app.include_router(manager_prices_router)

logger.info("FastAPI app initialized successfully")
