"""
Tests for the card generation pipeline.

The taste graph and Gemini clients are replaced with AsyncMocks (or a real
client without credentials) so every fallback path can be exercised.
"""

import random
from collections import Counter
from unittest.mock import AsyncMock, MagicMock

import pytest

from zesty.schemas.preferences import Domain, UserPreferenceSet
from zesty.services.card_pipeline import (
    GRAPH_DIFFICULTY_MAX,
    GRAPH_DIFFICULTY_MIN,
    MAX_GRAPH_CARDS_PER_DOMAIN,
    MIN_BATCH_SIZE,
    MIN_CARDS_PER_DOMAIN,
    CardGenerationPipeline,
    graph_difficulty,
)
from zesty.services.curated_content import CURATED_CONTENT, default_curated
from zesty.services.taste_graph import TasteGraphClient
from zesty.services.text_generation import FALLBACK_TEXT, TextGenerationClient

DEFAULT_DOMAINS = [Domain.MOVIE, Domain.MUSIC, Domain.BOOK, Domain.FOOD]


@pytest.fixture
def preferences():
    return UserPreferenceSet.from_mapping({
        "movie": ["Inception", "Interstellar"],
        "music": ["Taylor Swift"],
        "book": ["Harry Potter"],
        "food": ["Pizza"],
    })


@pytest.fixture
def offline_pipeline():
    """Pipeline whose upstreams have no credentials."""
    return CardGenerationPipeline(
        taste_graph=TasteGraphClient(api_key="", base_url="https://graph.test"),
        text_generator=TextGenerationClient(api_key=""),
        explanation_budget=4,
        rng=random.Random(7),
    )


def graph_mock(search_result=None, antitheses=None, search_error=None):
    graph = MagicMock(spec=TasteGraphClient)
    graph.search_entity = AsyncMock(return_value=search_result, side_effect=search_error)
    graph.get_antitheses = AsyncMock(return_value=antitheses or [])
    return graph


# =============================================================================
# FALLBACKS
# =============================================================================

@pytest.mark.asyncio
async def test_all_upstreams_unavailable_still_fills_batch(offline_pipeline, preferences):
    batch = await offline_pipeline.generate(preferences)

    assert batch.total == len(batch.cards) >= MIN_BATCH_SIZE
    assert len({card.id for card in batch.cards}) == batch.total
    assert all(card.metadata["fallback"] for card in batch.cards)

    per_domain = Counter(card.domain for card in batch.cards)
    for domain in DEFAULT_DOMAINS:
        assert per_domain[domain] >= MIN_CARDS_PER_DOMAIN


@pytest.mark.asyncio
async def test_empty_preferences_use_curated_defaults(offline_pipeline):
    batch = await offline_pipeline.generate(UserPreferenceSet())

    titles = {card.title for card in batch.cards}
    for domain in DEFAULT_DOMAINS:
        for entry in default_curated(domain):
            assert entry.name in titles


@pytest.mark.asyncio
async def test_graph_exceptions_are_isolated(preferences):
    pipeline = CardGenerationPipeline(
        taste_graph=graph_mock(search_error=RuntimeError("boom")),
        rng=random.Random(1),
    )

    batch = await pipeline.generate(preferences)

    assert batch.total >= MIN_BATCH_SIZE
    assert all(card.metadata["source"] in ("curated", "bonus") for card in batch.cards)


@pytest.mark.asyncio
async def test_curated_cards_keep_editorial_difficulty(offline_pipeline, preferences):
    batch = await offline_pipeline.generate(preferences, [Domain.MOVIE])

    stalker = next(card for card in batch.cards if card.title == "Stalker (1979)")
    assert stalker.difficulty == 5
    assert stalker.id == "curated-movie-stalker-1979"
    assert stalker.metadata["genre"] == "Soviet Sci-Fi"
    assert "Inception" in stalker.explanation


# =============================================================================
# GRAPH CANDIDATES
# =============================================================================

@pytest.mark.asyncio
async def test_graph_candidates_become_cards(preferences, entity_factory):
    seed = entity_factory("seed", "Inception")
    opposites = [entity_factory(f"opp-{i}", f"Opposite {i}", tags=["Art House"]) for i in range(5)]
    graph = graph_mock(search_result=seed, antitheses=opposites)
    pipeline = CardGenerationPipeline(taste_graph=graph, rng=random.Random(3))

    batch = await pipeline.generate(preferences, [Domain.MOVIE])

    graph_cards = [card for card in batch.cards if card.metadata["source"] == "graph"]
    assert len(graph_cards) == MAX_GRAPH_CARDS_PER_DOMAIN
    assert {card.id for card in graph_cards} == {f"graph-movie-opp-{i}" for i in range(4)}
    for card in graph_cards:
        assert GRAPH_DIFFICULTY_MIN <= card.difficulty <= GRAPH_DIFFICULTY_MAX
        assert card.metadata["fallback"] is False
        assert card.metadata["genre"] == "Art House"

    # Both movie preferences are used as seeds
    searched = [call.args[0] for call in graph.search_entity.call_args_list]
    assert searched == ["Inception", "Interstellar"]


@pytest.mark.asyncio
async def test_single_graph_candidate_is_topped_up(preferences, entity_factory):
    graph = graph_mock(
        search_result=entity_factory("seed", "Harry Potter"),
        antitheses=[entity_factory("only", "Finnegans Wake Audio")],
    )
    pipeline = CardGenerationPipeline(taste_graph=graph, rng=random.Random(5))

    batch = await pipeline.generate(preferences, [Domain.BOOK])

    book_sources = Counter(card.metadata["source"] for card in batch.cards if card.domain == Domain.BOOK)
    assert book_sources["graph"] == 1
    assert book_sources["curated"] >= 1


@pytest.mark.asyncio
async def test_seed_entities_are_not_recommended_back(preferences, entity_factory):
    graph = graph_mock(
        search_result=entity_factory("seed", "Inception"),
        antitheses=[entity_factory("seed", "Inception"), entity_factory("other", "Persona")],
    )
    pipeline = CardGenerationPipeline(taste_graph=graph, rng=random.Random(5))

    batch = await pipeline.generate(preferences, [Domain.MOVIE])

    assert "Inception" not in {card.title for card in batch.cards}
    assert "graph-movie-other" in {card.id for card in batch.cards}


@pytest.mark.parametrize("index", range(0, 25))
def test_graph_difficulty_stays_in_range(index):
    assert GRAPH_DIFFICULTY_MIN <= graph_difficulty(index) <= GRAPH_DIFFICULTY_MAX


@pytest.mark.asyncio
@pytest.mark.parametrize("seed_count", range(0, 4))
@pytest.mark.parametrize("candidate_count", range(0, 11))
async def test_any_seed_and_candidate_count_gives_valid_batch(seed_count, candidate_count, entity_factory):
    rng = random.Random(seed_count * 100 + candidate_count)
    domains = rng.sample(list(Domain), rng.randint(1, len(Domain)))
    preferences = UserPreferenceSet.from_mapping({
        domain.value: [f"Liked {domain.value} {i}" for i in range(seed_count)]
        for domain in Domain
    })
    graph = graph_mock(
        search_result=entity_factory("seed", "Seed"),
        antitheses=[entity_factory(f"opp-{i}", f"Opposite {i}") for i in range(candidate_count)],
    )
    pipeline = CardGenerationPipeline(taste_graph=graph, rng=rng)

    batch = await pipeline.generate(preferences, domains)

    assert batch.total >= MIN_BATCH_SIZE
    assert len({card.id for card in batch.cards}) == batch.total
    for card in batch.cards:
        assert 1 <= card.difficulty <= 5
        assert card.domain in domains
    per_domain = Counter(card.domain for card in batch.cards)
    for domain in domains:
        assert per_domain[domain] >= MIN_CARDS_PER_DOMAIN


# =============================================================================
# PADDING / SHUFFLE
# =============================================================================

@pytest.mark.asyncio
async def test_single_domain_pads_with_bonus_cards(offline_pipeline):
    batch = await offline_pipeline.generate(UserPreferenceSet(), [Domain.FASHION])

    assert batch.total == MIN_BATCH_SIZE
    assert all(card.domain == Domain.FASHION for card in batch.cards)
    ids = [card.id for card in batch.cards]
    assert len(set(ids)) == len(ids)

    curated_count = len(CURATED_CONTENT[Domain.FASHION])
    bonus = [card for card in batch.cards if card.id.startswith("bonus-fashion-")]
    assert len(bonus) == MIN_BATCH_SIZE - curated_count


@pytest.mark.asyncio
async def test_shuffle_is_reproducible_with_seeded_rng(preferences):
    def build(seed):
        return CardGenerationPipeline(
            taste_graph=TasteGraphClient(api_key="", base_url="https://graph.test"),
            rng=random.Random(seed),
        )

    first = await build(11).generate(preferences)
    second = await build(11).generate(preferences)

    assert [c.id for c in first.cards] == [c.id for c in second.cards]
    assert sorted(c.id for c in first.cards) == sorted(c.id for c in second.cards)


# =============================================================================
# GENERATED EXPLANATIONS
# =============================================================================

@pytest.mark.asyncio
async def test_explanations_generated_within_budget(preferences):
    text_generator = MagicMock(spec=TextGenerationClient)
    text_generator.is_configured = True
    text_generator.explain_discomfort_recommendation = AsyncMock(return_value="Generated explanation")
    pipeline = CardGenerationPipeline(
        taste_graph=TasteGraphClient(api_key="", base_url="https://graph.test"),
        text_generator=text_generator,
        explanation_budget=3,
        rng=random.Random(2),
    )

    batch = await pipeline.generate(preferences)

    generated = [card for card in batch.cards if card.explanation == "Generated explanation"]
    assert len(generated) == 3
    assert text_generator.explain_discomfort_recommendation.await_count == 3


@pytest.mark.asyncio
async def test_fallback_explanation_keeps_template(preferences):
    text_generator = MagicMock(spec=TextGenerationClient)
    text_generator.is_configured = True
    text_generator.explain_discomfort_recommendation = AsyncMock(return_value=FALLBACK_TEXT)
    pipeline = CardGenerationPipeline(
        taste_graph=TasteGraphClient(api_key="", base_url="https://graph.test"),
        text_generator=text_generator,
        explanation_budget=4,
        rng=random.Random(2),
    )

    batch = await pipeline.generate(preferences)

    assert all(card.explanation != FALLBACK_TEXT for card in batch.cards)
    assert all(card.explanation for card in batch.cards)


@pytest.mark.asyncio
async def test_explanation_budget_is_spread_over_domains(preferences):
    text_generator = MagicMock(spec=TextGenerationClient)
    text_generator.is_configured = True
    text_generator.explain_discomfort_recommendation = AsyncMock(return_value="Generated explanation")
    pipeline = CardGenerationPipeline(
        taste_graph=TasteGraphClient(api_key="", base_url="https://graph.test"),
        text_generator=text_generator,
        explanation_budget=len(DEFAULT_DOMAINS),
        rng=random.Random(2),
    )

    batch = await pipeline.generate(preferences)

    generated = Counter(card.domain for card in batch.cards if card.explanation == "Generated explanation")
    assert generated == Counter(DEFAULT_DOMAINS)
