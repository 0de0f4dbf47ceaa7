"""
Card Generation Pipeline

Turns a user's stated preferences into a shuffled batch of discomfort cards.

Flow per requested domain (domains run concurrently):
1. Take the first SEEDS_PER_DOMAIN preferences as seeds.
2. For each seed (concurrently): search the taste graph, then fetch the
   heuristic antitheses of the best match.
3. Graph candidates become cards; when there are none, the domain falls back
   to curated content, and when there are too few it is topped up from it.

Then, over the whole batch:
4. Optionally replace templated explanations with generated ones, spread
   over domains and capped by the explanation budget.
5. Deduplicate by card id, pad to MIN_BATCH_SIZE with bonus cards, shuffle.

The pipeline never raises for upstream failures: every graph or text call
that fails degrades to curated or templated content, so a batch always has
at least MIN_BATCH_SIZE cards.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from zesty.schemas.cards import DiscomfortCard
from zesty.schemas.preferences import Domain, UserPreferenceSet
from zesty.schemas.taste import TasteEntity
from zesty.services.curated_content import CuratedEntry, curated_for, default_curated
from zesty.services.taste_graph import TasteGraphClient
from zesty.services.text_generation import FALLBACK_TEXT, TextGenerationClient
from zesty.utils.constants import DEFAULT_CARD_DOMAINS, GROWTH_BENEFITS

logger = logging.getLogger(__name__)

SEEDS_PER_DOMAIN = 2
MAX_GRAPH_CARDS_PER_DOMAIN = 4
MIN_CARDS_PER_DOMAIN = 2
MIN_BATCH_SIZE = 10

# Graph cards get increasing difficulty by rank, clamped to this range
GRAPH_DIFFICULTY_OFFSET = 3
GRAPH_DIFFICULTY_MIN = 2
GRAPH_DIFFICULTY_MAX = 5

BONUS_DIFFICULTY = 4


def graph_difficulty(index: int) -> int:
    """Difficulty for the index-th graph candidate of a domain."""
    return max(GRAPH_DIFFICULTY_MIN, min(GRAPH_DIFFICULTY_MAX, GRAPH_DIFFICULTY_OFFSET + index))


def _template_explanation(seed: str, title: str, genre: str) -> str:
    return (
        f'Since you enjoy {seed}, trying "{title}" will challenge your comfort zone significantly. '
        f"This {genre} represents a completely different aesthetic that could dramatically broaden "
        f"your cultural understanding and push you into unexplored territory."
    )


@dataclass
class CardBatch:
    """Result of one generation run."""
    cards: List[DiscomfortCard] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.cards)


class CardGenerationPipeline:
    """Builds discomfort card batches from the taste graph and curated content."""

    def __init__(
        self,
        taste_graph: TasteGraphClient,
        text_generator: Optional[TextGenerationClient] = None,
        explanation_budget: int = 0,
        rng: Optional[random.Random] = None,
    ):
        self.taste_graph = taste_graph
        self.text_generator = text_generator
        self.explanation_budget = max(0, explanation_budget)
        self.rng = rng or random.Random()

    async def generate(
        self,
        preferences: UserPreferenceSet,
        domains: Optional[Sequence[Domain]] = None,
    ) -> CardBatch:
        """
        Generate a shuffled batch of at least MIN_BATCH_SIZE cards.

        Args:
            preferences: The user's stated preferences
            domains: Domains to cover (default: movie, music, book, food)

        Returns:
            CardBatch with unique card ids
        """
        requested = list(dict.fromkeys(domains or [])) or [Domain(d) for d in DEFAULT_CARD_DOMAINS]

        logger.info(f"Generating cards for domains={[d.value for d in requested]}")

        per_domain = await asyncio.gather(
            *(self._domain_cards(domain, preferences) for domain in requested)
        )

        cards: Dict[str, DiscomfortCard] = {}
        for domain_cards in per_domain:
            for card in domain_cards:
                cards.setdefault(card.id, card)

        batch = list(cards.values())
        batch = await self._apply_generated_explanations(batch, preferences)
        self._pad(batch, requested)
        self.rng.shuffle(batch)

        sources: Dict[str, int] = {}
        for card in batch:
            source = card.metadata.get("source", "unknown")
            sources[source] = sources.get(source, 0) + 1
        logger.info(f"Generated {len(batch)} cards (by source: {sources})")

        return CardBatch(cards=batch)

    # =========================================================================
    # Per-domain generation
    # =========================================================================

    async def _domain_cards(self, domain: Domain, preferences: UserPreferenceSet) -> List[DiscomfortCard]:
        likes = preferences.for_domain(domain)
        seed_label = likes[0] if likes else f"mainstream {domain.value}"

        try:
            entities = await self._graph_candidates(domain, likes[:SEEDS_PER_DOMAIN])
        except Exception as e:
            logger.error(f"Graph lookup failed for domain={domain.value}: {e}", exc_info=True)
            entities = []

        cards = [
            self._graph_card(domain, entity, index, seed_label)
            for index, entity in enumerate(entities[:MAX_GRAPH_CARDS_PER_DOMAIN])
        ]

        if not cards:
            return [self._curated_card(domain, entry, seed_label, "curated") for entry in default_curated(domain)]

        if len(cards) < MIN_CARDS_PER_DOMAIN:
            for entry in curated_for(domain)[:MIN_CARDS_PER_DOMAIN - len(cards)]:
                cards.append(self._curated_card(domain, entry, seed_label, "curated"))

        return cards

    async def _graph_candidates(self, domain: Domain, seeds: List[str]) -> List[TasteEntity]:
        """Antitheses of every seed, merged in seed order without repeats."""
        if not seeds:
            return []

        results = await asyncio.gather(*(self._seed_antitheses(seed, domain) for seed in seeds))

        seed_names = {seed.lower() for seed in seeds}
        seen = set()
        merged: List[TasteEntity] = []
        for entities in results:
            for entity in entities:
                if entity.id in seen or entity.name.lower() in seed_names:
                    continue
                seen.add(entity.id)
                merged.append(entity)
        return merged

    async def _seed_antitheses(self, seed: str, domain: Domain) -> List[TasteEntity]:
        try:
            entity = await self.taste_graph.search_entity(seed, domain)
            if entity is None:
                return []
            return await self.taste_graph.get_antitheses(entity.id, domain)
        except Exception as e:
            logger.warning(f"Seed lookup failed for domain={domain.value}: {e}")
            return []

    # =========================================================================
    # Card builders
    # =========================================================================

    def _graph_card(self, domain: Domain, entity: TasteEntity, index: int, seed: str) -> DiscomfortCard:
        genre = entity.tags[0] if entity.tags else domain.value
        return DiscomfortCard(
            id=f"graph-{domain.value}-{entity.id}",
            domain=domain,
            title=entity.name,
            description=f'Since you enjoy {seed}, "{entity.name}" sits far outside your usual {domain.value} picks.',
            cultural_context=f"This {genre} represents a completely different aesthetic from what you usually choose.",
            difficulty=graph_difficulty(index),
            explanation=_template_explanation(seed, entity.name, genre),
            image_url=entity.image_url,
            growth_benefit=GROWTH_BENEFITS[domain.value],
            metadata={
                "source": "graph",
                "fallback": False,
                "genre": genre,
                "entity_id": entity.id,
                "heuristic": True,
            },
        )

    def _curated_card(self, domain: Domain, entry: CuratedEntry, seed: str, source: str) -> DiscomfortCard:
        return DiscomfortCard(
            id=f"curated-{domain.value}-{entry.slug}",
            domain=domain,
            title=entry.name,
            description=f'Since you enjoy {seed}, try "{entry.name}", a {entry.genre} pick well outside your comfort zone.',
            cultural_context=f"This {entry.genre} represents a completely different aesthetic from what you usually choose.",
            difficulty=entry.difficulty,
            explanation=_template_explanation(seed, entry.name, entry.genre),
            growth_benefit=GROWTH_BENEFITS[domain.value],
            metadata={"source": source, "fallback": True, "genre": entry.genre},
        )

    def _bonus_card(self, domain: Domain, number: int) -> DiscomfortCard:
        label = domain.value.capitalize()
        return DiscomfortCard(
            id=f"bonus-{domain.value}-{number}",
            domain=domain,
            title=f"Bonus {label} Challenge",
            description=f"An extra challenge to push your {domain.value} boundaries even further.",
            cultural_context=f"Pick something in {domain.value} you would normally scroll past.",
            difficulty=BONUS_DIFFICULTY,
            explanation=f"Step outside your {domain.value} comfort zone and discover something completely new.",
            growth_benefit="Extended cultural exploration",
            metadata={"source": "bonus", "fallback": True},
        )

    # =========================================================================
    # Batch-level steps
    # =========================================================================

    async def _apply_generated_explanations(
        self,
        cards: List[DiscomfortCard],
        preferences: UserPreferenceSet,
    ) -> List[DiscomfortCard]:
        """
        Replace templated explanations on up to `explanation_budget` cards.

        Targets are taken round-robin over domains, so a small budget still
        reaches every requested domain.
        """
        if not self.explanation_budget or self.text_generator is None or not self.text_generator.is_configured:
            return cards

        by_domain: Dict[Domain, List[int]] = {}
        for index, card in enumerate(cards):
            by_domain.setdefault(card.domain, []).append(index)

        targets: List[int] = []
        queues = list(by_domain.values())
        while queues and len(targets) < self.explanation_budget:
            for queue in queues:
                if queue and len(targets) < self.explanation_budget:
                    targets.append(queue.pop(0))
            queues = [queue for queue in queues if queue]

        async def explain(index: int) -> Optional[str]:
            card = cards[index]
            try:
                text = await self.text_generator.explain_discomfort_recommendation(
                    preferences.for_domain(card.domain), card.title, card.domain.value
                )
            except Exception as e:
                logger.warning(f"Explanation generation failed for card {card.id}: {e}")
                return None
            return None if not text or text == FALLBACK_TEXT else text

        explanations = await asyncio.gather(*(explain(index) for index in targets))

        updated = list(cards)
        for index, text in zip(targets, explanations):
            if text:
                updated[index] = updated[index].model_copy(update={"explanation": text})
        return updated

    def _pad(self, cards: List[DiscomfortCard], domains: List[Domain]) -> None:
        """Top the batch up to MIN_BATCH_SIZE, preferring unused curated entries."""
        used_ids = {card.id for card in cards}
        unused: Dict[Domain, List[CuratedEntry]] = {
            domain: [
                entry for entry in curated_for(domain)
                if f"curated-{domain.value}-{entry.slug}" not in used_ids
            ]
            for domain in domains
        }

        bonus_number = 0
        while len(cards) < MIN_BATCH_SIZE:
            with_curated = [domain for domain in domains if unused[domain]]
            if with_curated:
                domain = self.rng.choice(with_curated)
                entry = unused[domain].pop(0)
                cards.append(self._curated_card(domain, entry, f"mainstream {domain.value}", "bonus"))
            else:
                domain = self.rng.choice(domains)
                bonus_number += 1
                cards.append(self._bonus_card(domain, bonus_number))
