"""
FastAPI dependency functions for authentication.

Every protected route receives an AuthenticatedUser built from the Supabase
access token in the Authorization header. The token is verified against the
project's JWT signing keys (JWKS, ES256) and the caller's identity is the
token's 'sub' claim; any user id in a request body is ignored.

Role-gated routes additionally depend on require_roles(...), which resolves
the caller's role through profiles.role_id (managers always pass).
"""

import logging
from dataclasses import dataclass
from typing import Annotated, Any, Awaitable, Callable, Dict

from fastapi import Depends, Header, HTTPException, status
from jwt import PyJWKClient, decode
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError, PyJWKClientError

from cashdesk.config import settings

logger = logging.getLogger(__name__)

# Lazily created; PyJWKClient caches keys and follows key rotation
_jwks_client: PyJWKClient | None = None


@dataclass
class AuthenticatedUser:
    """
    An authenticated caller.

    Attributes:
        user_id: The user's UUID from the JWT token's 'sub' claim
        access_token: The raw JWT, used to build an RLS-scoped Supabase client
    """
    user_id: str
    access_token: str


def get_jwks_client() -> PyJWKClient:
    """
    Get or create the JWKS client instance.

    Raises:
        ValueError: If SUPABASE_URL is not configured
    """
    global _jwks_client

    if _jwks_client is None:
        jwks_url = settings.SUPABASE_JWKS_URL
        if not jwks_url:
            raise ValueError(
                "SUPABASE_URL is not configured. "
                "Cannot construct JWKS URL for JWT verification."
            )

        logger.info(f"Initializing JWKS client with URL: {jwks_url}")
        _jwks_client = PyJWKClient(jwks_url, cache_keys=True, max_cached_keys=16)

    return _jwks_client


def _unauthorized(error: str, details: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "details": details}
    )


def _extract_bearer_token(authorization: str | None) -> str:
    if not authorization:
        logger.warning("Missing Authorization header")
        raise _unauthorized("unauthorized", "Missing Authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.warning("Invalid Authorization header format")
        raise _unauthorized("unauthorized", "Invalid Authorization header format")

    return parts[1]


def decode_supabase_token(token: str) -> Dict[str, Any]:
    """
    Verify a Supabase access token and return its claims.

    Checks the ES256 signature against the project JWKS, expiry, the
    'authenticated' audience and the <SUPABASE_URL>/auth/v1 issuer.
    """
    signing_key = get_jwks_client().get_signing_key_from_jwt(token)
    issuer = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1"

    return decode(
        token,
        signing_key.key,
        algorithms=["ES256"],
        audience="authenticated",
        issuer=issuer,
        options={
            "verify_signature": True,
            "verify_exp": True,
            "verify_aud": True,
            "verify_iss": True,
        }
    )


async def get_authenticated_user(
    authorization: Annotated[str | None, Header()] = None
) -> AuthenticatedUser:
    """
    Verify the Bearer token and return the caller.

    Raises:
        HTTPException: 401 if the token is missing, malformed, invalid or expired

    Usage:
        @router.get("/cash-custody")
        async def list_custody(
            auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
        ):
            supabase_client = get_supabase_client(auth_user.access_token)
    """
    token = _extract_bearer_token(authorization)

    try:
        payload = decode_supabase_token(token)
    except ExpiredSignatureError:
        logger.warning("Token has expired")
        raise _unauthorized("token_expired", "Authentication token has expired")
    except PyJWKClientError as e:
        logger.error(f"JWKS client error: {str(e)}")
        raise _unauthorized("jwks_error", "Unable to verify token signature")
    except InvalidTokenError as e:
        logger.warning(f"Invalid token: {str(e)}")
        raise _unauthorized("invalid_token", "Invalid authentication token")
    except Exception as e:
        logger.error(f"Unexpected error during token verification: {str(e)}")
        raise _unauthorized("unauthorized", "Token verification failed")

    user_id = payload.get("sub")
    if not user_id:
        logger.error("Token payload missing 'sub' claim")
        raise _unauthorized("unauthorized", "Invalid token: missing user ID")

    logger.debug(f"Token verified for user_id={user_id}")
    return AuthenticatedUser(user_id=str(user_id), access_token=token)


def require_roles(*roles: str) -> Callable[..., Awaitable[AuthenticatedUser]]:
    """
    Dependency factory: allow the caller only if they hold one of `roles`.

    Managers are always allowed; no roles means any authenticated user.

    Usage:
        auth_user: Annotated[AuthenticatedUser, Depends(require_roles("treasurer"))]
    """
    async def _dependency(
        auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
    ) -> AuthenticatedUser:
        from cashdesk.db.client import get_supabase_client
        from cashdesk.services.role_service import has_any_role

        supabase_client = get_supabase_client(auth_user.access_token)
        if not await has_any_role(supabase_client, auth_user.user_id, roles):
            logger.warning(f"User {auth_user.user_id} lacks required role ({', '.join(roles)})")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail={
                    "error": "forbidden",
                    "details": f"Requires one of the roles: {', '.join(roles)}"
                }
            )
        return auth_user

    return _dependency
