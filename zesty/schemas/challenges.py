"""
Pydantic schemas for accepted challenges.

A Challenge is the persisted form of a DiscomfortCard the user accepted.
Rows live in the Supabase `recommendations` table (RLS scoped) or, when
Supabase is unreachable, in the local challenge store.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from zesty.schemas.cards import DiscomfortCard
from zesty.schemas.preferences import Domain


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Challenge(BaseModel):
    """An accepted discomfort card the user is working through."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    title: str = Field(..., min_length=1)
    description: str = ""
    domain: Domain
    difficulty: int = Field(..., ge=1, le=5)
    cultural_context: Optional[str] = None
    explanation: Optional[str] = None
    image_url: Optional[str] = None
    source_card_id: Optional[str] = Field(None, description="Id of the card this came from")
    is_completed: bool = False
    user_rating: Optional[int] = Field(None, ge=1, le=5)
    created_at: str = Field(default_factory=_utc_now_iso)
    completed_at: Optional[str] = None

    @classmethod
    def from_card(cls, card: DiscomfortCard) -> "Challenge":
        """Derive a new, active challenge from an accepted card."""
        return cls(
            title=card.title,
            description=card.description,
            domain=card.domain,
            difficulty=card.difficulty,
            cultural_context=card.cultural_context,
            explanation=card.explanation,
            image_url=card.image_url,
            source_card_id=card.id,
        )


class ChallengeCreateRequest(BaseModel):
    """Request for POST /api/challenges: the card being accepted."""
    card: DiscomfortCard


class ChallengeCompleteRequest(BaseModel):
    """Optional body for PATCH /api/challenges/{id}/complete."""
    user_rating: Optional[int] = Field(None, ge=1, le=5, alias="userRating")

    model_config = {"populate_by_name": True}


class ChallengeListResponse(BaseModel):
    """Response for GET /api/challenges."""
    challenges: list[Challenge]
    total: int
    active: int
    completed: int


class ChallengeDeleteResponse(BaseModel):
    """Response for DELETE /api/challenges/{id}."""
    status: str = "DELETED"
    challenge_id: str
    message: str = "Challenge removed"
