"""
Pydantic models for provider execution profiles.

A provider profile is the execution configuration (provider, model,
temperature, token budget, rate limit) that a downstream worker would use for
a task domain. Profiles are static and read-only once loaded. A profile may
name one fallback profile, and that fallback may not have its own.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from epic_router.models.work_item import ContractModel


class TaskDomain(str, Enum):
    """Task categories a provider profile can be selected for."""

    # Development stack
    SOFTWARE_DEVELOPMENT = "software-development"
    CODE_GENERATION = "code-generation"
    CODE_REVIEW = "code-review"
    GITHUB_ACTIONS = "github-actions"
    TECHNICAL_DOCUMENTATION = "technical-documentation"
    ARCHITECTURE_DECISIONS = "architecture-decisions"
    QUALITY_INTELLIGENCE = "quality-intelligence"
    PREDICTIVE_BUG_DETECTION = "predictive-bug-detection"
    SEMANTIC_CODE_REVIEW = "semantic-code-review"
    QUALITY_METRICS_ANALYSIS = "quality-metrics-analysis"
    REGRESSION_PREDICTION = "regression-prediction"

    # Narrative stack
    NARRATIVE_GENERATION = "narrative-generation"
    STORY_CONTINUATION = "story-continuation"
    CHARACTER_DEVELOPMENT = "character-development"
    WORLD_BUILDING = "world-building"
    USER_CONTENT = "user-content"


class RateLimit(ContractModel):
    requests_per_minute: int = Field(..., ge=1, le=100000)
    tokens_per_minute: int = Field(..., ge=1)


class ProviderProfile(ContractModel):
    """
    Execution profile for a task domain.

    Example:
        ProviderProfile(
            domain="development",
            provider="github-copilot-claude4",
            model="claude-3-5-sonnet-20241022",
            temperature=0.1,
            max_tokens=8192,
            rate_limit=RateLimit(requests_per_minute=60, tokens_per_minute=100000),
        )
    """

    domain: str = Field(..., description="Profile family (development, narrative)")
    provider: str = Field(..., min_length=1, description="Provider identity")
    model: str = Field(..., min_length=1, description="Model identity")
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(4096, ge=1, le=200000)
    system_prompt: str = ""
    rate_limit: RateLimit
    enabled: bool = True
    fallback: Optional["ProviderProfile"] = None

    @model_validator(mode="after")
    def check_fallback_depth(self) -> "ProviderProfile":
        """Fallbacks are one level deep."""
        if self.fallback is not None and self.fallback.fallback is not None:
            raise ValueError(
                f"Fallback for provider '{self.provider}' may not define its own fallback"
            )
        return self

    def with_overrides(
        self,
        temperature: Optional[float] = None,
        rate_limit: Optional[RateLimit] = None,
    ) -> "ProviderProfile":
        """Copy of this profile with environment-specific tuning applied."""
        updates: dict = {}
        if temperature is not None:
            updates["temperature"] = temperature
        if rate_limit is not None:
            updates["rate_limit"] = rate_limit
        return self.model_copy(update=updates)
