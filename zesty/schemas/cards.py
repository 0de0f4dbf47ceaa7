"""
Pydantic schemas for discomfort cards and the card generation endpoints.

Cards are serialized with camelCase keys (culturalContext, imageUrl) because
that is what the web client renders; both spellings are accepted on input.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from zesty.schemas.preferences import (
    PREFERENCE_NAME_MAX_LENGTH,
    Domain,
    PreferenceItem,
    normalize_domain,
)


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _normalize_domain_list(value: Any) -> Any:
    if not isinstance(value, list):
        return value
    normalized = []
    for raw in value:
        domain = normalize_domain(raw)
        # Unknown spellings fall through so pydantic reports them
        normalized.append(domain if domain is not None else raw)
    return normalized


class DiscomfortCard(BaseModel):
    """
    One suggestion shown during a browsing session.

    Cards are created fresh on every generation call and never loaded from
    storage. Accepting a card turns it into a Challenge.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Unique within a batch: '<source>-<domain>-<key>'")
    domain: Domain
    title: str = Field(..., min_length=1)
    description: str = Field(..., description="Short rationale")
    cultural_context: str = Field(..., description="How this differs from the user's taste")
    difficulty: int = Field(..., ge=1, le=5, description="1 (mild) .. 5 (very uncomfortable)")
    explanation: Optional[str] = Field(None, description="Longer justification")
    image_url: Optional[str] = None
    growth_benefit: Optional[str] = None
    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="source ('graph' | 'curated' | 'bonus'), fallback flag, genre"
    )
    created_at: str = Field(default_factory=_utc_now_iso)


class GenerateCardsRequest(BaseModel):
    """
    Request for POST /api/zesty/generate-cards.

    Preference items whose `type` is not a known domain spelling, or whose
    name is blank, are dropped rather than rejected, and over-long names are
    truncated, so one bad item never costs the client its batch.
    """
    model_config = ConfigDict(populate_by_name=True)

    user_preferences: List[PreferenceItem] = Field(
        ...,
        alias="userPreferences",
        examples=[[{"name": "Inception", "type": "movie"}, {"name": "Taylor Swift", "type": "music"}]]
    )
    domains: Optional[List[Domain]] = Field(
        None,
        description="Domains to generate for (default: movie, music, book, food)",
        examples=[["movie", "music"]]
    )

    @field_validator("user_preferences", mode="before")
    @classmethod
    def _drop_unusable_items(cls, value: Any) -> Any:
        if not isinstance(value, list):
            return value
        kept = []
        for item in value:
            if isinstance(item, dict):
                if normalize_domain(item.get("type", item.get("domain"))) is None:
                    continue
                name = item.get("name")
                if not isinstance(name, str) or not name.strip():
                    continue
                item = {**item, "name": name.strip()[:PREFERENCE_NAME_MAX_LENGTH]}
            kept.append(item)
        return kept

    @field_validator("domains", mode="before")
    @classmethod
    def _normalize_domains(cls, value: Any) -> Any:
        return _normalize_domain_list(value)


class MyCardsRequest(BaseModel):
    """Request for POST /api/zesty/my-cards (preferences come from Supabase)."""
    domains: Optional[List[Domain]] = None

    @field_validator("domains", mode="before")
    @classmethod
    def _normalize_domains(cls, value: Any) -> Any:
        return _normalize_domain_list(value)


class GenerateCardsResponse(BaseModel):
    """Response for card generation endpoints."""
    cards: List[DiscomfortCard]
    total: int
