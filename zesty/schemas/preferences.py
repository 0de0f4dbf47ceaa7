"""
Pydantic schemas for taste preferences.

The browser and older onboarding flows send preferences in several shapes
("movies" vs "movie", graph URNs, "restaurant" for food). Everything is
normalized to the five canonical domains here, at the system boundary, so
services never see an ambiguous key.
"""

import logging
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

PREFERENCE_NAME_MAX_LENGTH = 200


class Domain(str, Enum):
    """The five content domains Zesty recommends in."""
    MUSIC = "music"
    MOVIE = "movie"
    BOOK = "book"
    FOOD = "food"
    FASHION = "fashion"


_DOMAIN_ALIASES: Dict[str, Domain] = {
    # music
    "music": Domain.MUSIC,
    "artist": Domain.MUSIC,
    "artists": Domain.MUSIC,
    "album": Domain.MUSIC,
    "albums": Domain.MUSIC,
    "song": Domain.MUSIC,
    "songs": Domain.MUSIC,
    # movie
    "movie": Domain.MOVIE,
    "movies": Domain.MOVIE,
    "film": Domain.MOVIE,
    "films": Domain.MOVIE,
    "tv_show": Domain.MOVIE,
    "tv_shows": Domain.MOVIE,
    "cinema": Domain.MOVIE,
    # book
    "book": Domain.BOOK,
    "books": Domain.BOOK,
    "literature": Domain.BOOK,
    # food
    "food": Domain.FOOD,
    "foods": Domain.FOOD,
    "restaurant": Domain.FOOD,
    "restaurants": Domain.FOOD,
    "place": Domain.FOOD,
    "cuisine": Domain.FOOD,
    "dining": Domain.FOOD,
    # fashion
    "fashion": Domain.FASHION,
    "brand": Domain.FASHION,
    "brands": Domain.FASHION,
    "style": Domain.FASHION,
    "clothing": Domain.FASHION,
}


def normalize_domain(raw: Any) -> Optional[Domain]:
    """
    Map any known domain spelling to its canonical Domain.

    Examples:
        - "movies" -> Domain.MOVIE
        - "urn:entity:book" -> Domain.BOOK
        - "Restaurant" -> Domain.FOOD
        - "podcasts" -> None

    Returns:
        The canonical Domain, or None when the spelling is unknown
    """
    if isinstance(raw, Domain):
        return raw
    if not isinstance(raw, str):
        return None

    key = raw.strip().lower().replace("-", "_").replace(" ", "_")
    if key.startswith("urn:entity:"):
        key = key[len("urn:entity:"):]

    return _DOMAIN_ALIASES.get(key)


def _coerce_domain(value: Any) -> Any:
    domain = normalize_domain(value)
    # Unknown spellings fall through so pydantic reports them
    return domain if domain is not None else value


class PreferenceItem(BaseModel):
    """
    A single stated preference, e.g. {"name": "Inception", "type": "movie"}.

    `type` accepts any known domain spelling.
    """
    name: str = Field(..., min_length=1, max_length=PREFERENCE_NAME_MAX_LENGTH, examples=["Inception", "Taylor Swift"])
    domain: Domain = Field(..., alias="type", examples=["movie", "music"])

    model_config = {"populate_by_name": True}

    @field_validator("domain", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Any:
        return _coerce_domain(value)

    @field_validator("name")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class UserPreferenceSet(BaseModel):
    """
    Per-domain preference lists, most salient first.

    Created during onboarding and edited from Settings.
    """
    preferences: Dict[Domain, List[str]] = Field(
        default_factory=dict,
        description="Domain -> ordered preference names",
        examples=[{"movie": ["Inception", "Interstellar"], "music": ["Taylor Swift"]}]
    )

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "UserPreferenceSet":
        """
        Build a preference set from any legacy mapping shape.

        Keys are normalized with normalize_domain (unknown keys are dropped
        and logged). Values may be a list or a single string; blank and
        repeated names are dropped, keeping first-seen order.
        """
        merged: Dict[Domain, List[str]] = {}

        for key, values in raw.items():
            domain = normalize_domain(key)
            if domain is None:
                logger.warning(f"Dropping preferences under unknown domain key '{key}'")
                continue

            if isinstance(values, str):
                values = [values]

            bucket = merged.setdefault(domain, [])
            for value in values or []:
                if not isinstance(value, str):
                    continue
                name = value.strip()
                if name and name not in bucket:
                    bucket.append(name)

        return cls(preferences=merged)

    @classmethod
    def from_items(cls, items: List["PreferenceItem"]) -> "UserPreferenceSet":
        """Group PreferenceItem pairs by domain, keeping request order."""
        grouped: Dict[str, List[str]] = {}
        for item in items:
            grouped.setdefault(item.domain.value, []).append(item.name)
        return cls.from_mapping(grouped)

    def for_domain(self, domain: Domain) -> List[str]:
        return list(self.preferences.get(domain, []))

    def to_items(self) -> List[PreferenceItem]:
        """Flatten into PreferenceItem pairs, domain by domain."""
        return [
            PreferenceItem(name=name, domain=domain)
            for domain, names in self.preferences.items()
            for name in names
        ]

    def is_empty(self) -> bool:
        return not any(self.preferences.values())


class PreferencesUpdateRequest(BaseModel):
    """
    Request for PUT /api/preferences.

    Only the domains present are replaced; other domains are left alone.
    Keys may use any known domain spelling.
    """
    preferences: Dict[str, List[str]] = Field(
        ...,
        description="Domain -> ordered preference names",
        examples=[{"movies": ["Inception"], "food": ["Sushi", "Tacos"]}]
    )
