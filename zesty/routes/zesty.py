"""
Zesty discomfort endpoints.

Endpoints:
- POST /api/zesty/generate-cards: card batch from preferences in the request
- POST /api/zesty/my-cards: card batch from the signed-in user's stored preferences
- POST /api/zesty/onboarding-report: personalized report after onboarding
- POST /api/zesty/growth-reflection: reflection on completed challenges
- POST /api/zesty/curriculum: step-by-step plan for one domain
- POST /api/zesty/progress-insight: comment on exposure score progress

Card generation, the onboarding report, curriculum plans and progress
insights never fail: upstream problems degrade to curated and templated
content.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from zesty.auth.dependencies import AuthenticatedUser, get_authenticated_user
from zesty.config import settings
from zesty.db.client import get_supabase_client
from zesty.schemas.cards import GenerateCardsRequest, GenerateCardsResponse, MyCardsRequest
from zesty.schemas.preferences import UserPreferenceSet
from zesty.schemas.reports import (
    CurriculumPlanRequest,
    CurriculumPlanResponse,
    GrowthReflection,
    GrowthReflectionRequest,
    OnboardingReport,
    OnboardingReportRequest,
    ProgressInsightRequest,
    ProgressInsightResponse,
)
from zesty.services.card_pipeline import CardGenerationPipeline
from zesty.services.preference_service import get_user_preferences
from zesty.services.report_service import (
    GENERIC_ONBOARDING_REPORT,
    generate_growth_reflection,
    generate_onboarding_report,
)
from zesty.services.taste_graph import TasteGraphClient, get_taste_graph_client
from zesty.services.text_generation import TextGenerationClient, get_text_generation_client
from zesty.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/zesty", tags=["zesty"])


def get_card_pipeline(
    taste_graph: Annotated[TasteGraphClient, Depends(get_taste_graph_client)],
    text_generator: Annotated[TextGenerationClient, Depends(get_text_generation_client)],
) -> CardGenerationPipeline:
    """Per-request pipeline over the shared upstream clients."""
    return CardGenerationPipeline(
        taste_graph=taste_graph,
        text_generator=text_generator,
        explanation_budget=settings.CARD_EXPLANATION_BUDGET,
    )


@router.post(
    "/generate-cards",
    response_model=GenerateCardsResponse,
    summary="Generate discomfort cards",
    description="""
    Builds a shuffled batch of at least 10 discomfort cards.

    **Flow:**
    1. Up to two preferences per domain are looked up in the taste graph
    2. Their heuristic antitheses become cards
    3. Domains with no graph results use curated content
    4. The batch is padded with bonus cards and shuffled

    Preference items with an unknown `type` are ignored.
    """
)
async def generate_cards(
    request: GenerateCardsRequest,
    pipeline: Annotated[CardGenerationPipeline, Depends(get_card_pipeline)],
) -> GenerateCardsResponse:
    logger.info(
        f"POST /api/zesty/generate-cards preferences={len(request.user_preferences)}, "
        f"domains={[d.value for d in request.domains] if request.domains else 'default'}"
    )

    preferences = UserPreferenceSet.from_items(request.user_preferences)
    batch = await pipeline.generate(preferences, request.domains)

    return GenerateCardsResponse(cards=batch.cards, total=batch.total)


@router.post(
    "/my-cards",
    response_model=GenerateCardsResponse,
    summary="Generate discomfort cards from stored preferences",
    description="""
    Same as /generate-cards, but preferences are read from Supabase for the
    authenticated user.

    **Authentication:** Required (Bearer token)

    If the preferences cannot be read, cards are generated as for a user
    with no stated preferences.
    """
)
async def generate_my_cards(
    request: MyCardsRequest,
    auth_user: Annotated[AuthenticatedUser, Depends(get_authenticated_user)],
    pipeline: Annotated[CardGenerationPipeline, Depends(get_card_pipeline)],
) -> GenerateCardsResponse:
    logger.info(f"POST /api/zesty/my-cards called by user_id={auth_user.user_id}")

    try:
        supabase_client = get_supabase_client(auth_user.access_token)
        preferences = await get_user_preferences(supabase_client, auth_user.user_id)
    except Exception as e:
        logger.warning(f"Could not read preferences for user {auth_user.user_id}: {e}")
        preferences = UserPreferenceSet()

    batch = await pipeline.generate(preferences, request.domains)
    return GenerateCardsResponse(cards=batch.cards, total=batch.total)


@router.post(
    "/onboarding-report",
    response_model=OnboardingReport,
    summary="Personalized onboarding report",
)
async def onboarding_report(
    request: OnboardingReportRequest,
    text_generator: Annotated[TextGenerationClient, Depends(get_text_generation_client)],
) -> OnboardingReport:
    """
    Always returns a report: generated fields merged over a templated one,
    or a fixed generic report if anything unexpected goes wrong.
    """
    logger.info("POST /api/zesty/onboarding-report called")

    try:
        preferences = UserPreferenceSet.from_mapping(request.preferences)
        return await generate_onboarding_report(text_generator, request.user_name, preferences)
    except Exception as e:
        logger.error(f"Onboarding report failed, returning generic report: {e}", exc_info=True)
        return GENERIC_ONBOARDING_REPORT


@router.post(
    "/growth-reflection",
    response_model=GrowthReflection,
    summary="Reflection on completed challenges",
)
async def growth_reflection(
    request: GrowthReflectionRequest,
    text_generator: Annotated[TextGenerationClient, Depends(get_text_generation_client)],
) -> GrowthReflection:
    """
    - Malformed model output: templated reflection (200)
    - Gemini unavailable: 500 with a generic message
    """
    logger.info(
        f"POST /api/zesty/growth-reflection completed={len(request.completed_challenges)}"
    )

    result = await generate_growth_reflection(
        text_generator, request.user_name, request.completed_challenges
    )
    if not result.ok:
        logger.error(f"Growth reflection failed: {result.failure.value} ({result.detail})")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "upstream_error", "details": "Failed to generate growth reflection"}
        )

    return result.value


@router.post(
    "/curriculum",
    response_model=CurriculumPlanResponse,
    summary="Step-by-step curriculum for a domain",
    description="""
    A short plan (at most 6 bullet points) leading from the user's current
    taste through `stepTitles` in one domain. Returns a fixed fallback
    sentence when Gemini is unavailable.
    """
)
async def curriculum_plan(
    request: CurriculumPlanRequest,
    text_generator: Annotated[TextGenerationClient, Depends(get_text_generation_client)],
) -> CurriculumPlanResponse:
    logger.info(f"POST /api/zesty/curriculum domain={request.domain.value} steps={len(request.step_titles)}")

    plan = await text_generator.generate_curriculum_plan(
        request.preferences, request.step_titles, request.domain.value
    )
    return CurriculumPlanResponse(plan=plan)


@router.post(
    "/progress-insight",
    response_model=ProgressInsightResponse,
    summary="Insight on exposure score progress",
)
async def progress_insight(
    request: ProgressInsightRequest,
    text_generator: Annotated[TextGenerationClient, Depends(get_text_generation_client)],
) -> ProgressInsightResponse:
    """Two sentences on the score change; fallback sentence when Gemini is unavailable."""
    logger.info("POST /api/zesty/progress-insight called")

    insight = await text_generator.generate_progress_insight(
        request.previous_score, request.current_score, request.completed_challenges
    )
    return ProgressInsightResponse(insight=insight)
