"""
Tests for the taste preference service (Supabase mocked).
"""

from unittest.mock import MagicMock

import pytest

from zesty.schemas.preferences import Domain
from zesty.services.preference_service import (
    PREFERENCES_TABLE,
    get_user_preferences,
    update_user_preferences,
)


def stored_rows(supabase_client, rows):
    (
        supabase_client.table.return_value
        .select.return_value
        .eq.return_value
        .execute.return_value
    ) = MagicMock(data=rows)


@pytest.mark.asyncio
async def test_get_preferences_normalizes_legacy_domains(supabase_client):
    stored_rows(supabase_client, [
        {"domain": "movies", "preferences": ["Inception", "Interstellar"]},
        {"domain": "restaurant", "preferences": ["Sushi"]},
        {"domain": "podcasts", "preferences": ["Serial"]},
    ])

    prefs = await get_user_preferences(supabase_client, "user-123")

    supabase_client.table.assert_called_with(PREFERENCES_TABLE)
    assert prefs.for_domain(Domain.MOVIE) == ["Inception", "Interstellar"]
    assert prefs.for_domain(Domain.FOOD) == ["Sushi"]
    assert set(prefs.preferences) == {Domain.MOVIE, Domain.FOOD}


@pytest.mark.asyncio
async def test_get_preferences_empty(supabase_client):
    stored_rows(supabase_client, [])

    prefs = await get_user_preferences(supabase_client, "user-123")

    assert prefs.is_empty()


@pytest.mark.asyncio
async def test_update_preferences_upserts_canonical_rows(supabase_client):
    stored_rows(supabase_client, [{"domain": "book", "preferences": ["Dune"]}])

    await update_user_preferences(supabase_client, "user-123", {
        "books": ["Dune", "Dune", " "],
        "music": [],
        "podcasts": ["Serial"],
    })

    upsert = supabase_client.table.return_value.upsert
    rows = upsert.call_args.args[0]
    assert rows == [
        {"user_id": "user-123", "domain": "book", "preferences": ["Dune"]},
        {"user_id": "user-123", "domain": "music", "preferences": []},
    ]
    assert upsert.call_args.kwargs["on_conflict"] == "user_id,domain"


@pytest.mark.asyncio
async def test_update_with_only_unknown_keys_skips_write(supabase_client):
    stored_rows(supabase_client, [])

    await update_user_preferences(supabase_client, "user-123", {"podcasts": ["Serial"]})

    supabase_client.table.return_value.upsert.assert_not_called()
