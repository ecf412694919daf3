"""
Logging utilities for the cashdesk backend.

CRITICAL SECURITY RULES:
- NEVER log Supabase keys, access tokens or refresh tokens
- NEVER log passwords, even when validation fails
- Log the Supabase URL only truncated

Acceptable logging:
- High-level events (e.g., "Custody record created", "Migration completed")
- Record identifiers and counts
- Error codes and sanitized error messages
"""

import logging
from typing import Optional, Union

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def _resolve_level(level: Optional[Union[int, str]]) -> int:
    if level is None:
        return logging.INFO
    if isinstance(level, str):
        value = logging.getLevelName(level.upper())
        return value if isinstance(value, int) else logging.INFO
    return level


def configure_logging(level: Optional[Union[int, str]] = None) -> None:
    """
    Configure root logging for the API process and the maintenance scripts.

    Args:
        level: Level name ("DEBUG", "INFO", ...) or number; defaults to INFO
    """
    logging.basicConfig(level=_resolve_level(level), format=LOG_FORMAT, datefmt=DATE_FORMAT)


def get_logger(name: str, level: Optional[Union[int, str]] = None) -> logging.Logger:
    """
    Get a logger with its own stream handler.

    Used by entry points that may run before configure_logging().

    Args:
        name: Module name (typically __name__)
        level: Optional logging level (defaults to INFO)

    Usage:
        >>> from cashdesk.utils.logging import get_logger
        >>> logger = get_logger(__name__)
        >>> logger.info("Migration started")
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    # Avoid duplicate handlers on repeated calls
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(handler)

    return logger
