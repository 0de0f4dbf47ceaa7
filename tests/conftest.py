"""
Pytest configuration for Zesty backend tests.

Sets up the test environment and shared fixtures. Environment variables are
set before any zesty module is imported so Settings picks them up.
"""
import os
from typing import List, Optional
from unittest.mock import MagicMock

import pytest

# Disable config validation during tests
os.environ["VALIDATE_CONFIG"] = "false"

# No real upstreams: every integration runs on its fallback unless a test
# injects a client
os.environ["ENVIRONMENT"] = "testing"
os.environ["QLOO_API_KEY"] = ""
os.environ["GOOGLE_API_KEY"] = ""
os.environ["SUPABASE_URL"] = "http://localhost:54321"
os.environ["SUPABASE_PUBLISHABLE_KEY"] = "test-publishable-key"
os.environ["RATE_LIMIT"] = "1000/15minutes"
os.environ["CARD_EXPLANATION_BUDGET"] = "0"

from zesty.schemas.cards import DiscomfortCard  # noqa: E402
from zesty.schemas.preferences import Domain  # noqa: E402
from zesty.schemas.taste import TasteEntity  # noqa: E402


@pytest.fixture
def supabase_client():
    """
    Mock Supabase client.
    Returns a MagicMock that simulates the chained query builder.
    """
    return MagicMock()


def make_card(
    card_id: str = "curated-movie-stalker-1979",
    title: str = "Stalker (1979)",
    domain: Domain = Domain.MOVIE,
    difficulty: int = 5,
    description: str = "A slow, meditative journey into the Zone.",
) -> DiscomfortCard:
    return DiscomfortCard(
        id=card_id,
        domain=domain,
        title=title,
        description=description,
        cultural_context="Soviet Sci-Fi far from blockbuster pacing.",
        difficulty=difficulty,
        metadata={"source": "curated", "fallback": True, "genre": "Soviet Sci-Fi"},
    )


def make_entity(entity_id: str, name: Optional[str] = None, tags: Optional[List[str]] = None) -> TasteEntity:
    return TasteEntity(
        id=entity_id,
        name=name or f"Entity {entity_id}",
        type="urn:entity:movie",
        tags=tags or [],
    )


@pytest.fixture
def card_factory():
    return make_card


@pytest.fixture
def entity_factory():
    return make_entity
