"""
FastAPI dependency functions for authentication.

Zesty never issues sessions itself: users sign in through Supabase Auth in
the browser and send the access token as a Bearer header. These dependencies
only verify that token and expose the caller's user_id.

Uses Supabase's JWT Signing Keys (ES256, fetched from the project JWKS).
"""

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Header, HTTPException, status
from jwt import PyJWKClient, decode
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError, PyJWKClientError

from zesty.config import settings

logger = logging.getLogger(__name__)

_jwks_client: PyJWKClient | None = None


@dataclass
class AuthenticatedUser:
    """
    Represents an authenticated user with their token.

    Attributes:
        user_id: The user's UUID from the JWT token's 'sub' claim
        access_token: The raw JWT, used to build an RLS-scoped Supabase client
    """
    user_id: str
    access_token: str


def get_jwks_client() -> PyJWKClient:
    """
    Get or create the JWKS client instance (keys are cached by PyJWT).

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


def extract_bearer_token(authorization: str | None) -> str:
    """
    Pull the token out of an "Authorization: Bearer <token>" header.

    Raises:
        HTTPException: 401 if the header is missing or malformed
    """
    if not authorization:
        logger.warning("Missing Authorization header")
        raise _unauthorized("unauthorized", "Missing Authorization header")

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        logger.warning("Invalid Authorization header format")
        raise _unauthorized("unauthorized", "Invalid Authorization header format")

    return parts[1]


async def get_authenticated_user(
    authorization: Annotated[str | None, Header()] = None
) -> AuthenticatedUser:
    """
    Verify the Supabase bearer token and return the caller.

    Raises:
        HTTPException: 401 if the token is missing, invalid, or expired

    Usage:
        @router.get("/api/challenges")
        async def list_challenges(
            auth_user: AuthenticatedUser = Depends(get_authenticated_user)
        ):
            supabase_client = get_supabase_client(auth_user.access_token)
    """
    token = extract_bearer_token(authorization)

    try:
        signing_key = get_jwks_client().get_signing_key_from_jwt(token)

        # Supabase issuers include the /auth/v1 path
        issuer = f"{settings.SUPABASE_URL.rstrip('/')}/auth/v1"

        payload = decode(
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
    except ExpiredSignatureError:
        logger.warning("Token has expired")
        raise _unauthorized("token_expired", "Authentication token has expired")
    except PyJWKClientError as e:
        logger.error(f"JWKS client error: {str(e)}")
        raise _unauthorized("jwks_error", "Unable to verify token signature")
    except InvalidTokenError as e:
        logger.warning(f"Invalid token: {str(e)}")
        raise _unauthorized("invalid_token", "Invalid authentication token")
    except ValueError as e:
        logger.error(f"Token verification unavailable: {str(e)}")
        raise _unauthorized("unauthorized", "Token verification failed")

    user_id = payload.get("sub")
    if not user_id:
        logger.error("Token payload missing 'sub' claim")
        raise _unauthorized("unauthorized", "Invalid token: missing user ID")

    logger.info(f"Token verified successfully for user_id={user_id}")
    return AuthenticatedUser(user_id=str(user_id), access_token=token)
