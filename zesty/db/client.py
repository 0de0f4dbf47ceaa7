"""
Supabase client factory with RLS enforcement.

Zesty reads and writes user data (taste preferences, accepted challenges)
only on behalf of the signed-in user:
1. Clients are created per request with the user's JWT
2. RLS policies scope every query to user_id = auth.uid()
3. The service_role key is never used
"""

import logging

from supabase import Client, create_client

from zesty.config import settings

logger = logging.getLogger(__name__)


def is_supabase_configured() -> bool:
    """True when both the project URL and publishable key are set."""
    return bool(settings.SUPABASE_URL and settings.SUPABASE_PUBLISHABLE_KEY)


def get_supabase_client(access_token: str) -> Client:
    """
    Create an authenticated Supabase client for a specific user.

    Args:
        access_token: The user's JWT access token, as verified by
                      zesty/auth/dependencies.py

    Returns:
        A Supabase client whose queries are subject to RLS

    Raises:
        RuntimeError: If Supabase is not configured
    """
    if not is_supabase_configured():
        raise RuntimeError("SUPABASE_URL and SUPABASE_PUBLISHABLE_KEY must be set")

    client: Client = create_client(
        supabase_url=settings.SUPABASE_URL,
        supabase_key=settings.SUPABASE_PUBLISHABLE_KEY
    )

    # The token's 'sub' claim becomes auth.uid() in RLS policies
    client.auth.set_session(access_token, access_token)

    logger.debug("Created authenticated Supabase client with user token (RLS enforced)")

    return client
