"""
Discomfort Mentor Prompt Templates

Contains the system prompt and the user prompt builders for every Gemini
call Zesty makes.

Architecture:
- Pattern: Single-shot LLM call per prompt (no tools, no agent loop)
- Model: Gemini 2.5 Flash (configurable via GEMINI_MODEL)
- Output: Free text, or a JSON object parsed from text for structured prompts

Structured prompts ask for JSON only; the service layer still strips code
fences and falls back to a templated object when parsing fails.
"""

import json
from typing import Any, Dict, List, Sequence

# =============================================================================
# SYSTEM PROMPT
# =============================================================================

DISCOMFORT_SYSTEM_PROMPT = """You are a cultural mentor for Zesty, an app that helps people grow by deliberately exploring culture outside their comfort zone.

<role>
You help users understand why an unfamiliar film, album, book, dish or fashion style is worth their time, even though it is very different from what they usually enjoy.
</role>

<tone>
- Encouraging but honest about the challenge
- Specific: name what is different and what the user can gain
- Respectful of every culture; no stereotypes, no exoticism
</tone>

<output_format>
When asked for JSON, return ONLY the JSON object. No markdown code blocks, no explanatory text.
</output_format>"""


# =============================================================================
# USER PROMPT BUILDERS
# =============================================================================

def build_explanation_prompt(
    user_likes: Sequence[str],
    recommendation: str,
    domain: str,
) -> str:
    """
    Ask for a 2-3 sentence justification of one discomfort recommendation.

    Args:
        user_likes: The user's seed preferences in this domain
        recommendation: Name of the suggested entity
        domain: Content domain (movie, music, ...)

    Returns:
        str: Prompt text
    """
    likes = ", ".join(user_likes) if user_likes else f"mainstream {domain}"
    return f"""A user who likes {likes} in {domain} is being recommended "{recommendation}", which is very different from their usual preferences.

<instructions>
Explain in 2-3 sentences why experiencing this would be valuable for their cultural growth.
Be encouraging but honest about the challenge. Keep it conversational and inspiring.
</instructions>"""


def build_challenge_task_prompt(domain: str, difficulty: int) -> str:
    """Ask for one actionable challenge as a JSON object."""
    return f"""Generate a {domain} cultural exploration challenge for difficulty level {difficulty}/5.

<requirements>
- Specific and actionable
- Pushes cultural boundaries appropriately for the difficulty level
- Respectful of all cultures, avoids stereotypes
- Clear cultural learning value
</requirements>

<output_schema>
{{
  "title": "Challenge title",
  "description": "What the user needs to do",
  "culturalContext": "Why this is culturally enriching"
}}
</output_schema>"""


def build_onboarding_report_prompt(user_name: str, preferences: Dict[str, List[str]]) -> str:
    """Ask for the personalized onboarding report as a JSON object."""
    return f"""Create a personalized cultural growth report for {user_name}.

<preferences>
{json.dumps(preferences, ensure_ascii=False)}
</preferences>

<output_schema>
{{
  "cultural_profile": "2-3 sentence summary",
  "growth_areas": ["area1", "area2", "area3"],
  "recommended_challenges": ["challenge1", "challenge2", "challenge3"],
  "motivation_message": "encouraging message"
}}
</output_schema>"""


def build_growth_reflection_prompt(user_name: str, completed_challenges: List[Any]) -> str:
    """Ask for a reflection on completed challenges as a JSON object."""
    return f"""{user_name} has completed these cultural challenges:

<completed_challenges>
{json.dumps(completed_challenges, ensure_ascii=False, default=str)}
</completed_challenges>

<instructions>
Write a thoughtful reflection on their growth journey. Include insights about what they have learned and suggest next steps.
</instructions>

<output_schema>
{{
  "reflection": "your reflection",
  "growth_insights": ["insight1", "insight2"],
  "next_challenges": ["challenge1", "challenge2"]
}}
</output_schema>"""


def build_curriculum_prompt(preferences: Sequence[str], step_titles: Sequence[str], domain: str) -> str:
    """Ask for a short step-by-step curriculum (max 6 bullet points)."""
    return (
        f"Create a short learning curriculum (max 6 bullet points) for someone who likes "
        f"{', '.join(preferences)} in the domain of {domain}. "
        f"The curriculum should cover these steps: {', '.join(step_titles)}."
    )


def build_progress_insight_prompt(
    previous_score: float,
    current_score: float,
    completed_challenges: Sequence[str],
) -> str:
    """Ask for a 2-sentence insight about score progress."""
    return f"""A user's cultural exposure score increased from {previous_score} to {current_score}.
They recently completed these challenges: {', '.join(completed_challenges)}.

Write an encouraging 2-sentence insight about their cultural growth journey.
Be specific about their progress and motivate them to continue exploring."""
