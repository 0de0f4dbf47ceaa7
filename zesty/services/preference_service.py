"""
Taste preference service.

Reads and writes the `taste_preferences` table in Supabase. Each row holds
one domain's ordered preference list for one user:

    taste_preferences(user_id, domain, preferences[], dislikes[])

Domain keys stored by older clients ("movies", "books") are normalized on
read, so callers always get a canonical UserPreferenceSet.
"""

import logging
from typing import Any, Dict, List, Mapping

from supabase import Client

from zesty.schemas.preferences import UserPreferenceSet, normalize_domain

logger = logging.getLogger(__name__)

PREFERENCES_TABLE = "taste_preferences"


async def get_user_preferences(
    supabase_client: Client,
    user_id: str
) -> UserPreferenceSet:
    """
    Fetch the user's preferences from Supabase.

    Args:
        supabase_client: Authenticated Supabase client
        user_id: The authenticated user's ID

    Returns:
        The user's preferences (empty set if none are stored)

    Security:
        - RLS enforces user_id = auth.uid()
    """
    logger.debug(f"Fetching taste preferences for user {user_id}")

    result = (
        supabase_client.table(PREFERENCES_TABLE)
        .select("domain, preferences")
        .eq("user_id", user_id)
        .execute()
    )

    raw: Dict[str, List[Any]] = {}
    for row in result.data or []:
        domain = row.get("domain")
        values = row.get("preferences") or []
        if isinstance(domain, str):
            raw.setdefault(domain, []).extend(values)

    preferences = UserPreferenceSet.from_mapping(raw)
    logger.info(
        f"Loaded preferences for user {user_id}: "
        f"domains={[d.value for d in preferences.preferences]}"
    )
    return preferences


async def update_user_preferences(
    supabase_client: Client,
    user_id: str,
    updates: Mapping[str, Any]
) -> UserPreferenceSet:
    """
    Replace the preference lists for the domains present in `updates`.

    Keys may use any known domain spelling; unknown keys are dropped.
    Domains not mentioned are left untouched.

    Returns:
        The user's full preference set after the update

    Security:
        - RLS enforces user_id = auth.uid()
    """
    normalized = UserPreferenceSet.from_mapping(updates)

    # A domain sent with an empty list clears it
    for key, values in updates.items():
        domain = normalize_domain(key)
        if domain is not None and not values:
            normalized.preferences.setdefault(domain, [])

    rows = [
        {
            "user_id": user_id,
            "domain": domain.value,
            "preferences": names,
        }
        for domain, names in normalized.preferences.items()
    ]

    if rows:
        logger.info(
            f"Upserting preferences for user {user_id}: "
            f"domains={[row['domain'] for row in rows]}"
        )
        (
            supabase_client.table(PREFERENCES_TABLE)
            .upsert(rows, on_conflict="user_id,domain")
            .execute()
        )
    else:
        logger.info(f"No recognized domains in preference update for user {user_id}")

    return await get_user_preferences(supabase_client, user_id)
