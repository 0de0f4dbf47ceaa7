"""
Pydantic schemas for Gemini-backed endpoints.

Covers the raw generation passthrough, structured challenge tasks, the
onboarding report, the growth reflection, curriculum plans and progress
insights. Report fields stay snake_case because that is the shape the web
client already consumes.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from zesty.schemas.preferences import Domain, normalize_domain


class GenerateTextRequest(BaseModel):
    """Request for POST /api/gemini/generate."""
    prompt: Optional[str] = Field(
        None,
        max_length=8000,
        examples=["Explain why a jazz fan should try Mongolian throat singing."]
    )


class GenerateTextResponse(BaseModel):
    """Response for POST /api/gemini/generate."""
    text: str


class ChallengeTask(BaseModel):
    """A structured, actionable challenge written by Gemini (or templated)."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(..., min_length=1)
    description: str
    cultural_context: str


class OnboardingReportRequest(BaseModel):
    """
    Request for POST /api/zesty/onboarding-report.

    `preferences` uses the onboarding shape (domain key -> list of names);
    any known domain spelling is accepted.
    """
    model_config = ConfigDict(populate_by_name=True)

    preferences: Dict[str, Any] = Field(
        default_factory=dict,
        examples=[{"movies": ["Inception"], "music": ["Taylor Swift"]}]
    )
    user_name: str = Field("there", alias="userName", max_length=100)


class OnboardingReport(BaseModel):
    """Personalized cultural growth report shown after onboarding."""
    cultural_profile: str
    growth_areas: List[str]
    recommended_challenges: List[str]
    motivation_message: str


class GrowthReflectionRequest(BaseModel):
    """Request for POST /api/zesty/growth-reflection."""
    model_config = ConfigDict(populate_by_name=True)

    completed_challenges: List[Any] = Field(
        ...,
        alias="completedChallenges",
        examples=[["Watched Stalker (1979)", "Tried durian"]]
    )
    user_name: str = Field(..., alias="userName", min_length=1, max_length=100)


class GrowthReflection(BaseModel):
    """Reflection on the challenges a user has completed."""
    reflection: str
    growth_insights: List[str]
    next_challenges: List[str]


class CurriculumPlanRequest(BaseModel):
    """Request for POST /api/zesty/curriculum."""
    model_config = ConfigDict(populate_by_name=True)

    domain: Domain = Field(..., examples=["music"])
    preferences: List[str] = Field(default_factory=list, examples=[["Taylor Swift"]])
    step_titles: List[str] = Field(
        ...,
        alias="stepTitles",
        min_length=1,
        examples=[["Bridge genres", "Mongolian throat singing", "Free jazz"]]
    )

    @field_validator("domain", mode="before")
    @classmethod
    def _normalize_domain(cls, value: Any) -> Any:
        domain = normalize_domain(value)
        return domain if domain is not None else value


class CurriculumPlanResponse(BaseModel):
    """Short step-by-step plan, or a fixed fallback sentence."""
    plan: str


class ProgressInsightRequest(BaseModel):
    """Request for POST /api/zesty/progress-insight."""
    model_config = ConfigDict(populate_by_name=True)

    previous_score: float = Field(..., alias="previousScore", ge=0)
    current_score: float = Field(..., alias="currentScore", ge=0)
    completed_challenges: List[str] = Field(
        default_factory=list,
        alias="completedChallenges",
        examples=[["Watched Stalker (1979)"]]
    )


class ProgressInsightResponse(BaseModel):
    insight: str
