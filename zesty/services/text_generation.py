"""
Text Generation Client - Gemini via the Google Gen AI SDK

Produces the human-readable parts of Zesty: card explanations, challenge
tasks, onboarding reports and growth reflections.

Architecture:
- Pattern: Single-shot LLM call per prompt
- Model: Gemini 2.5 Flash (GEMINI_MODEL)
- API: Google Gen AI Python SDK (google-genai), async surface (client.aio)
- Timeout: every call bounded by UPSTREAM_TIMEOUT_SECONDS

Failure contract:
- generate() / generate_json() return a Result; callers pick the fallback.
- generate_content() returns FALLBACK_TEXT instead of raising.
- generate_challenge_task() always returns a well-typed ChallengeTask,
  templated when Gemini is down or answers with something that is not JSON.
"""

import asyncio
import json
import logging
import re
from typing import Any, Dict, Optional, Sequence

from google import genai
from google.genai import types
from pydantic import ValidationError

from zesty.agents.discomfort.prompts import (
    DISCOMFORT_SYSTEM_PROMPT,
    build_challenge_task_prompt,
    build_curriculum_prompt,
    build_explanation_prompt,
    build_progress_insight_prompt,
)
from zesty.config import settings
from zesty.schemas.reports import ChallengeTask
from zesty.utils.results import FailureKind, Result

logger = logging.getLogger(__name__)

FALLBACK_TEXT = "Unable to generate content at the moment."


def extract_json_object(text: str) -> Dict[str, Any]:
    """
    Parse a JSON object out of model output.

    Handles the usual LLM noise: ```json fences, prose before the object,
    trailing commas, control characters, smart quotes and long dashes.

    Raises:
        ValueError: If no JSON object can be decoded
    """
    json_content = text.strip()

    # Look for ```json ... ``` anywhere in the response
    json_block_match = re.search(r'```json\s*([\s\S]*?)```', json_content, re.IGNORECASE)
    if json_block_match:
        json_content = json_block_match.group(1).strip()
    else:
        code_block_match = re.search(r'```\s*([\s\S]*?)```', json_content)
        if code_block_match:
            json_content = code_block_match.group(1).strip()
        else:
            # No code blocks - try raw JSON starting at the first brace
            json_start = json_content.find('{')
            if json_start > 0:
                json_content = json_content[json_start:]

    # Remove trailing commas before } or ]
    json_content = re.sub(r',(\s*[}\]])', r'\1', json_content)

    # Strip control characters that break json.loads
    json_content = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', json_content)

    json_content = json_content.replace('“', '"').replace('”', '"')
    json_content = json_content.replace('‘', "'").replace('’', "'")
    json_content = json_content.replace('–', '-').replace('—', '-')

    try:
        parsed = json.loads(json_content)
    except json.JSONDecodeError as e:
        raise ValueError(f"Model output is not valid JSON: {e.msg}") from e

    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")

    return parsed


def fallback_challenge_task(domain: str) -> ChallengeTask:
    """Templated challenge used whenever Gemini cannot provide one."""
    label = domain.strip() or "culture"
    return ChallengeTask(
        title=f"{label[0].upper()}{label[1:]} Cultural Discovery",
        description=(
            f"Explore a new aspect of {label} that challenges your current preferences "
            f"and expands your cultural understanding."
        ),
        cultural_context=(
            f"Engaging with unfamiliar {label} helps develop cultural empathy "
            f"and broadens your aesthetic appreciation."
        ),
    )


def _extract_text(response: Any) -> Optional[str]:
    """
    Get the text out of a Gemini response.

    response.text can be None even when parts carry text, so the parts are
    checked as a fallback.
    """
    text = getattr(response, "text", None)
    if isinstance(text, str) and text.strip():
        return text

    candidates = getattr(response, "candidates", None) or []
    for candidate in candidates:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            part_text = getattr(part, "text", None)
            if isinstance(part_text, str) and part_text.strip():
                return part_text

    return None


class TextGenerationClient:
    """Client for Gemini free-text and JSON generation."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-2.5-flash",
        base_url: Optional[str] = None,
        timeout: float = 10.0,
        temperature: float = 0.7,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url or None
        self.timeout = timeout
        self.temperature = temperature
        self._client = None

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self):
        """
        Lazy initialization of the Gemini client.
        Returns None when no API key is configured or the SDK refuses it.
        """
        if self._client is not None:
            return self._client

        if not self.api_key:
            return None

        try:
            http_options = types.HttpOptions(base_url=self.base_url) if self.base_url else None
            self._client = genai.Client(api_key=self.api_key, http_options=http_options)
            logger.info("Gemini client initialized successfully")
            return self._client
        except Exception as e:
            logger.error(f"Failed to initialize Gemini client: {e}")
            return None

    async def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = DISCOMFORT_SYSTEM_PROMPT,
        temperature: Optional[float] = None,
    ) -> Result[str]:
        """Single generation call, bounded by the configured timeout."""
        client = self._get_client()
        if client is None:
            return Result.fail(FailureKind.NOT_CONFIGURED, "GOOGLE_API_KEY not configured")

        config = types.GenerateContentConfig(
            system_instruction=system_instruction,
            temperature=self.temperature if temperature is None else temperature,
            max_output_tokens=1024,
        )

        try:
            response = await asyncio.wait_for(
                client.aio.models.generate_content(
                    model=self.model,
                    contents=prompt,
                    config=config,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            return Result.fail(FailureKind.TIMEOUT, f"Gemini call timed out after {self.timeout}s")
        except Exception as e:
            return Result.fail(FailureKind.UPSTREAM_ERROR, f"Gemini call failed: {type(e).__name__}")

        text = _extract_text(response)
        if not text:
            return Result.fail(FailureKind.MALFORMED_RESPONSE, "Gemini returned no text")

        return Result.success(text)

    async def generate_json(self, prompt: str) -> Result[Dict[str, Any]]:
        """Generate and parse a JSON object; MALFORMED_RESPONSE if it isn't one."""
        result = await self.generate(prompt, temperature=0.4)
        if not result.ok:
            return Result.fail(result.failure, result.detail)

        try:
            return Result.success(extract_json_object(result.value))
        except ValueError as e:
            logger.warning(f"Discarding malformed Gemini JSON: {e}")
            return Result.fail(FailureKind.MALFORMED_RESPONSE, str(e))

    async def generate_content(self, prompt: str) -> str:
        """Free-form generation that never fails: FALLBACK_TEXT on any error."""
        result = await self.generate(prompt)
        if not result.ok:
            logger.warning(f"Gemini generation fell back: {result.failure.value} ({result.detail})")
            return FALLBACK_TEXT
        return result.value

    async def explain_discomfort_recommendation(
        self,
        user_likes: Sequence[str],
        recommendation: str,
        domain: str,
    ) -> str:
        """2-3 sentences on why `recommendation` is worth the discomfort."""
        return await self.generate_content(
            build_explanation_prompt(user_likes, recommendation, domain)
        )

    async def generate_challenge_task(self, domain: str, difficulty: int) -> ChallengeTask:
        """
        Structured challenge for a domain and difficulty.

        Always returns a ChallengeTask; falls back to a template when the
        model is unavailable or its answer does not match the schema.
        """
        result = await self.generate_json(build_challenge_task_prompt(domain, difficulty))
        if not result.ok:
            return fallback_challenge_task(domain)

        try:
            return ChallengeTask.model_validate(result.value)
        except ValidationError as e:
            logger.warning(f"Gemini challenge task did not match schema ({e.error_count()} errors)")
            return fallback_challenge_task(domain)

    async def generate_curriculum_plan(
        self,
        preferences: Sequence[str],
        step_titles: Sequence[str],
        domain: str,
    ) -> str:
        """Short step-by-step curriculum for a domain."""
        return await self.generate_content(build_curriculum_prompt(preferences, step_titles, domain))

    async def generate_progress_insight(
        self,
        previous_score: float,
        current_score: float,
        completed_challenges: Sequence[str],
    ) -> str:
        """Two encouraging sentences about exposure-score progress."""
        return await self.generate_content(
            build_progress_insight_prompt(previous_score, current_score, completed_challenges)
        )


_text_generation_client: Optional[TextGenerationClient] = None


def get_text_generation_client() -> TextGenerationClient:
    """Lazy singleton built from settings (FastAPI dependency)."""
    global _text_generation_client

    if _text_generation_client is None:
        if not settings.GOOGLE_API_KEY:
            logger.warning(
                "GOOGLE_API_KEY not configured. Text generation will use templated fallbacks."
            )
        _text_generation_client = TextGenerationClient(
            api_key=settings.GOOGLE_API_KEY,
            model=settings.GEMINI_MODEL,
            base_url=settings.GEMINI_API_URL,
            timeout=settings.UPSTREAM_TIMEOUT_SECONDS,
        )

    return _text_generation_client
