"""
Exception -> HTTPException mapping shared by all routers.

- ValueError -> 400 invalid_request
- PermissionError -> 403 forbidden
- LookupError -> 404 not_found
- CashDeskError -> by driver code (23505 -> 409, 42501 -> 403, ...)
- anything else -> 500
"""

import logging

from fastapi import HTTPException, status

from cashdesk.utils.errors import CashDeskError, http_status_for

logger = logging.getLogger(__name__)


def to_http_exception(error: Exception, action: str) -> HTTPException:
    """
    Convert a service exception into an HTTPException.

    Args:
        error: Exception raised by a service function
        action: Short description for logs and 500 bodies ("create custody")
    """
    if isinstance(error, HTTPException):
        return error

    if isinstance(error, PermissionError):
        logger.warning(f"Forbidden: {action}: {error}")
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": "forbidden", "details": str(error)}
        )

    if isinstance(error, LookupError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "not_found", "details": str(error)}
        )

    if isinstance(error, ValueError):
        logger.warning(f"Invalid request: {action}: {error}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_request", "details": str(error)}
        )

    if isinstance(error, CashDeskError):
        status_code, key = http_status_for(error)
        return HTTPException(
            status_code=status_code,
            detail={"error": key, "details": error.message}
        )

    logger.error(f"Failed to {action}: {error}", exc_info=True)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "internal_error", "details": f"Failed to {action}"}
    )
