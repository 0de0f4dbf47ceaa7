"""
Discomfort Mentor - prompt templates for Gemini.

The service layer is in:
- zesty/services/text_generation.py

Prompt templates are in:
- zesty/agents/discomfort/prompts.py
"""

from zesty.agents.discomfort.prompts import (
    DISCOMFORT_SYSTEM_PROMPT,
    build_challenge_task_prompt,
    build_curriculum_prompt,
    build_explanation_prompt,
    build_growth_reflection_prompt,
    build_onboarding_report_prompt,
    build_progress_insight_prompt,
)

__all__ = [
    "DISCOMFORT_SYSTEM_PROMPT",
    "build_challenge_task_prompt",
    "build_curriculum_prompt",
    "build_explanation_prompt",
    "build_growth_reflection_prompt",
    "build_onboarding_report_prompt",
    "build_progress_insight_prompt",
]
