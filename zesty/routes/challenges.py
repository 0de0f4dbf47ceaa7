"""
Accepted challenge endpoints.

Server-side challenges always live in Supabase (`recommendations` table,
RLS scoped). The local tier is only used by device-side card sessions.

Endpoints:
- GET    /api/challenges
- POST   /api/challenges
- PATCH  /api/challenges/{challenge_id}/complete
- PATCH  /api/challenges/{challenge_id}/reactivate
- DELETE /api/challenges/{challenge_id}
"""

import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, status

from zesty.auth.dependencies import AuthenticatedUser, get_authenticated_user
from zesty.db.client import get_supabase_client
from zesty.schemas.challenges import (
    Challenge,
    ChallengeCompleteRequest,
    ChallengeCreateRequest,
    ChallengeDeleteResponse,
    ChallengeListResponse,
)
from zesty.services.challenge_store import (
    ChallengeNotFoundError,
    ChallengeStore,
    ChallengeStoreError,
    SupabaseChallengeStore,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/challenges", tags=["challenges"])


def get_challenge_store(
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)]
) -> ChallengeStore:
    """RLS-scoped Supabase store for the caller."""
    try:
        supabase_client = get_supabase_client(auth_user.access_token)
    except RuntimeError as e:
        logger.error(f"Challenge store unavailable: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "persistence_error", "details": "Challenge storage is not available"}
        )
    return SupabaseChallengeStore(supabase_client, auth_user.user_id)


def _not_found(challenge_id: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"error": "not_found", "details": f"Challenge {challenge_id} not found"}
    )


def _store_failure(details: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "persistence_error", "details": details}
    )


@router.get(
    "",
    response_model=ChallengeListResponse,
    summary="List accepted challenges",
)
async def list_challenges(
    store: Annotated[ChallengeStore, Depends(get_challenge_store)]
) -> ChallengeListResponse:
    try:
        challenges = await store.list()
    except ChallengeStoreError as e:
        logger.error(f"Failed to list challenges: {e}", exc_info=True)
        raise _store_failure("Failed to retrieve challenges")

    completed = sum(1 for c in challenges if c.is_completed)
    return ChallengeListResponse(
        challenges=challenges,
        total=len(challenges),
        active=len(challenges) - completed,
        completed=completed,
    )


@router.post(
    "",
    response_model=Challenge,
    status_code=status.HTTP_201_CREATED,
    summary="Accept a card as a challenge",
)
async def create_challenge(
    request: ChallengeCreateRequest,
    store: Annotated[ChallengeStore, Depends(get_challenge_store)]
) -> Challenge:
    challenge = Challenge.from_card(request.card)
    logger.info(f"POST /api/challenges domain={challenge.domain.value}")

    try:
        return await store.add(challenge)
    except ChallengeStoreError as e:
        logger.error(f"Failed to save challenge: {e}", exc_info=True)
        raise _store_failure("Failed to save challenge")


@router.patch(
    "/{challenge_id}/complete",
    response_model=Challenge,
    summary="Mark a challenge completed",
)
async def complete_challenge(
    challenge_id: str,
    store: Annotated[ChallengeStore, Depends(get_challenge_store)],
    request: Optional[ChallengeCompleteRequest] = None,
) -> Challenge:
    rating = request.user_rating if request else None
    try:
        return await store.complete(challenge_id, rating)
    except ChallengeNotFoundError:
        raise _not_found(challenge_id)
    except ChallengeStoreError as e:
        logger.error(f"Failed to complete challenge {challenge_id}: {e}", exc_info=True)
        raise _store_failure("Failed to update challenge")


@router.patch(
    "/{challenge_id}/reactivate",
    response_model=Challenge,
    summary="Move a completed challenge back to active",
)
async def reactivate_challenge(
    challenge_id: str,
    store: Annotated[ChallengeStore, Depends(get_challenge_store)]
) -> Challenge:
    try:
        return await store.reactivate(challenge_id)
    except ChallengeNotFoundError:
        raise _not_found(challenge_id)
    except ChallengeStoreError as e:
        logger.error(f"Failed to reactivate challenge {challenge_id}: {e}", exc_info=True)
        raise _store_failure("Failed to update challenge")


@router.delete(
    "/{challenge_id}",
    response_model=ChallengeDeleteResponse,
    summary="Remove a challenge",
)
async def delete_challenge(
    challenge_id: str,
    store: Annotated[ChallengeStore, Depends(get_challenge_store)]
) -> ChallengeDeleteResponse:
    try:
        await store.remove(challenge_id)
    except ChallengeNotFoundError:
        raise _not_found(challenge_id)
    except ChallengeStoreError as e:
        logger.error(f"Failed to delete challenge {challenge_id}: {e}", exc_info=True)
        raise _store_failure("Failed to delete challenge")

    return ChallengeDeleteResponse(challenge_id=challenge_id)
