"""
Taste preference endpoints.

- GET /api/preferences: the user's stored preferences
- PUT /api/preferences: replace the lists of the domains sent

Both require a Supabase bearer token; RLS scopes rows to the caller.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from zesty.auth.dependencies import AuthenticatedUser, get_authenticated_user
from zesty.db.client import get_supabase_client
from zesty.schemas.preferences import PreferencesUpdateRequest, UserPreferenceSet
from zesty.services.preference_service import get_user_preferences, update_user_preferences

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/preferences", tags=["preferences"])


@router.get(
    "",
    response_model=UserPreferenceSet,
    status_code=status.HTTP_200_OK,
    summary="Get taste preferences",
)
async def get_preferences(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> UserPreferenceSet:
    logger.info(f"GET /api/preferences called by user_id={auth_user.user_id}")

    try:
        supabase_client = get_supabase_client(auth_user.access_token)
        return await get_user_preferences(supabase_client, auth_user.user_id)
    except Exception as e:
        logger.error(f"Failed to fetch preferences for user {auth_user.user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "fetch_error",
                "details": "Failed to retrieve preferences"
            }
        )


@router.put(
    "",
    response_model=UserPreferenceSet,
    status_code=status.HTTP_200_OK,
    summary="Update taste preferences",
    description="""
    Replaces the preference list of every domain present in the request.

    Keys accept any known domain spelling ("movies", "film", ...); unknown
    keys are ignored. Sending an empty list clears that domain.
    """
)
async def update_preferences(
    request: PreferencesUpdateRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> UserPreferenceSet:
    logger.info(
        f"PUT /api/preferences called by user_id={auth_user.user_id}, "
        f"keys={list(request.preferences)}"
    )

    try:
        supabase_client = get_supabase_client(auth_user.access_token)
        return await update_user_preferences(supabase_client, auth_user.user_id, request.preferences)
    except Exception as e:
        logger.error(f"Failed to update preferences for user {auth_user.user_id}: {e}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "error": "persistence_error",
                "details": "Failed to update preferences"
            }
        )
