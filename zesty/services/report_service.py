"""
Onboarding report and growth reflection service.

Both reports are written by Gemini when it is available. The onboarding
report always succeeds: generated fields are merged over a templated
default. The growth reflection falls back to a templated reflection when the
model answers with something unparseable, but an unreachable model is
reported to the caller.
"""

import logging
from typing import Any, Dict, List

from zesty.agents.discomfort.prompts import (
    build_growth_reflection_prompt,
    build_onboarding_report_prompt,
)
from zesty.schemas.preferences import UserPreferenceSet
from zesty.schemas.reports import GrowthReflection, OnboardingReport
from zesty.services.text_generation import TextGenerationClient
from zesty.utils.results import FailureKind, Result

logger = logging.getLogger(__name__)


GENERIC_ONBOARDING_REPORT = OnboardingReport(
    cultural_profile="You have interesting cultural preferences with great potential for growth.",
    growth_areas=["International experiences", "Diverse media consumption", "Cultural exploration"],
    recommended_challenges=[
        "Try something completely new",
        "Explore unfamiliar cultures",
        "Step outside your comfort zone",
    ],
    motivation_message="Every step outside your comfort zone is a step toward personal growth!",
)

FALLBACK_REFLECTION = GrowthReflection(
    reflection="You've shown remarkable courage in stepping outside your comfort zone.",
    growth_insights=["Increased cultural awareness", "Greater empathy for different perspectives"],
    next_challenges=["Explore a new art form", "Try cuisine from a different continent"],
)


def build_default_onboarding_report(user_name: str, preferences: UserPreferenceSet) -> OnboardingReport:
    """
    Templated onboarding report built only from the stated preferences.

    Returns the generic report when the user stated nothing.
    """
    if preferences.is_empty():
        return GENERIC_ONBOARDING_REPORT

    domains = [domain.value for domain, names in preferences.preferences.items() if names]
    highlights = [
        f"{domain.value}: {name}"
        for domain, names in preferences.preferences.items()
        for name in names
    ][:3]

    return OnboardingReport(
        cultural_profile=(
            f"You have diverse interests spanning {', '.join(domains)}. "
            f"Your taste profile shows a preference for {', '.join(highlights)}, indicating an "
            f"openness to mainstream culture with potential for exciting growth into unexplored territories."
        ),
        growth_areas=[
            "International and art house cinema",
            "World music and experimental genres",
            "Global literature and non-fiction",
            "International cuisine and fusion foods",
            "Alternative fashion and cultural styles",
        ],
        recommended_challenges=[
            "Watch a foreign film with subtitles",
            "Listen to music from a culture you've never explored",
            "Read a book by an author from a different continent",
            "Try cooking a dish from a cuisine you've never attempted",
            "Experiment with a fashion style outside your comfort zone",
        ],
        motivation_message=(
            f"{user_name}, your journey into cultural discomfort will expand your worldview and deepen "
            f"your empathy. Every challenge you accept is a step toward becoming a more culturally "
            f"intelligent and open-minded person. Embrace the discomfort, it's where growth happens!"
        ),
    )


def _clean_string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def merge_generated_report(default: OnboardingReport, generated: Dict[str, Any]) -> OnboardingReport:
    """
    Overlay generated fields on the default report.

    Only well-typed, non-empty fields replace defaults; anything else the
    model returned is ignored.
    """
    merged = default.model_dump()

    for key in ("cultural_profile", "motivation_message"):
        value = generated.get(key)
        if isinstance(value, str) and value.strip():
            merged[key] = value.strip()

    for key in ("growth_areas", "recommended_challenges"):
        items = _clean_string_list(generated.get(key))
        if items:
            merged[key] = items

    return OnboardingReport(**merged)


async def generate_onboarding_report(
    text_generator: TextGenerationClient,
    user_name: str,
    preferences: UserPreferenceSet,
) -> OnboardingReport:
    """
    Personalized onboarding report. Never fails.

    Args:
        text_generator: Gemini client
        user_name: Display name used in the motivation message
        preferences: Normalized onboarding preferences

    Returns:
        The default report with any valid generated fields merged in
    """
    report = build_default_onboarding_report(user_name, preferences)

    prompt_preferences = {domain.value: names for domain, names in preferences.preferences.items()}
    result = await text_generator.generate_json(build_onboarding_report_prompt(user_name, prompt_preferences))

    if not result.ok:
        logger.info(f"Using default onboarding report: {result.failure.value}")
        return report

    return merge_generated_report(report, result.value)


async def generate_growth_reflection(
    text_generator: TextGenerationClient,
    user_name: str,
    completed_challenges: List[Any],
) -> Result[GrowthReflection]:
    """
    Reflection on completed challenges.

    Returns:
        Result with the reflection. A malformed model answer yields the
        templated FALLBACK_REFLECTION; an unavailable model yields a failure.
    """
    result = await text_generator.generate_json(
        build_growth_reflection_prompt(user_name, completed_challenges)
    )

    if not result.ok:
        if result.failure == FailureKind.MALFORMED_RESPONSE:
            logger.warning("Growth reflection was not valid JSON, using templated reflection")
            return Result.success(FALLBACK_REFLECTION)
        return Result.fail(result.failure, result.detail)

    data = result.value
    reflection = data.get("reflection")
    if not isinstance(reflection, str) or not reflection.strip():
        logger.warning("Growth reflection missing 'reflection' text, using templated reflection")
        return Result.success(FALLBACK_REFLECTION)

    return Result.success(GrowthReflection(
        reflection=reflection.strip(),
        growth_insights=_clean_string_list(data.get("growth_insights")) or FALLBACK_REFLECTION.growth_insights,
        next_challenges=_clean_string_list(data.get("next_challenges")) or FALLBACK_REFLECTION.next_challenges,
    ))
