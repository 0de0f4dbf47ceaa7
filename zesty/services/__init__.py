"""
Service layer for the Zesty backend.

Contains the logic between routes (HTTP layer) and upstreams:
- Taste graph and Gemini clients that report failures as Result values
- The card generation pipeline (graph -> curated -> bonus fallback)
- Report generation, preference persistence and the challenge stores
- The client-side card session state machine
"""

from .card_pipeline import CardBatch, CardGenerationPipeline
from .card_session import (
    CardSession,
    InvalidSessionTransition,
    ProxyCardSource,
    SessionState,
    SharePayload,
)
from .challenge_store import (
    ChallengeNotFoundError,
    ChallengeStoreError,
    LocalChallengeStore,
    SupabaseChallengeStore,
    TieredChallengeStore,
    select_challenge_store,
)
from .preference_service import get_user_preferences, update_user_preferences
from .report_service import generate_growth_reflection, generate_onboarding_report
from .taste_graph import TasteGraphClient, get_taste_graph_client
from .text_generation import TextGenerationClient, get_text_generation_client

__all__ = [
    "CardBatch",
    "CardGenerationPipeline",
    "CardSession",
    "InvalidSessionTransition",
    "ProxyCardSource",
    "SessionState",
    "SharePayload",
    "ChallengeNotFoundError",
    "ChallengeStoreError",
    "LocalChallengeStore",
    "SupabaseChallengeStore",
    "TieredChallengeStore",
    "select_challenge_store",
    "get_user_preferences",
    "update_user_preferences",
    "generate_growth_reflection",
    "generate_onboarding_report",
    "TasteGraphClient",
    "get_taste_graph_client",
    "TextGenerationClient",
    "get_text_generation_client",
]
