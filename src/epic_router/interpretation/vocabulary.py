"""
Weighted vocabularies and scoring constants for epic interpretation.

The tables are data, not logic: ``ScoringConfig`` can be overridden from the
routing-tables YAML so the scoring can be recalibrated without code changes.
Vocabulary order matters; when two epic types score the same, the one listed
first wins.
"""

import re
from functools import lru_cache

from pydantic import BaseModel, Field, model_validator

from epic_router.models.analysis import EpicType, Level


# ==================
# Epic vocabularies
# ==================

EPIC_VOCABULARY: dict[EpicType, dict[str, float]] = {
    EpicType.FOUNDATION: {
        "foundation": 3.0,
        "infrastructure": 2.5,
        "setup": 2.0,
        "bootstrap": 2.0,
        "scaffold": 2.0,
        "scaffolding": 2.0,
        "base": 1.5,
        "core": 1.5,
        "configuration": 1.5,
        "init": 1.0,
        "initial": 1.0,
        "environment": 1.0,
        "tooling": 1.0,
    },
    EpicType.DEVELOPMENT: {
        "development": 2.5,
        "implement": 2.0,
        "implementation": 2.0,
        "feature": 2.0,
        "build": 1.5,
        "code": 1.5,
        "refactor": 1.5,
        "bug": 1.5,
        "authentication": 1.5,
        "login": 1.5,
        "registration": 1.0,
        "fix": 1.0,
        "dev": 1.0,
    },
    EpicType.ARCHITECTURE: {
        "architecture": 3.0,
        "framework": 2.0,
        "blueprint": 2.0,
        "scalability": 2.0,
        "design": 1.5,
        "system": 1.5,
        "pattern": 1.5,
        "patterns": 1.5,
        "structure": 1.5,
        "modular": 1.5,
        "decoupling": 1.5,
    },
    EpicType.INTELLIGENCE: {
        "intelligence": 3.0,
        "ai": 3.0,
        "reasoning": 2.5,
        "nlp": 2.5,
        "ml": 2.5,
        "llm": 2.5,
        "claude": 2.5,
        "copilot": 2.5,
        "metaagent": 2.5,
        "agent": 2.0,
        "agents": 2.0,
        "orchestration": 1.5,
        "learning": 1.5,
        "model": 1.0,
    },
    EpicType.UI: {
        "ui": 3.0,
        "ux": 2.5,
        "frontend": 2.5,
        "interface": 2.0,
        "layout": 2.0,
        "visual": 2.0,
        "typography": 2.0,
        "responsive": 2.0,
        "accessibility": 2.0,
        "css": 2.0,
        "component": 1.5,
        "components": 1.5,
        "button": 1.5,
        "screen": 1.5,
    },
    EpicType.INTEGRATION: {
        "integration": 3.0,
        "api": 2.5,
        "connector": 2.5,
        "webhook": 2.5,
        "connection": 2.0,
        "pipeline": 2.0,
        "third-party": 2.0,
        "oauth": 2.0,
        "service": 1.5,
        "sync": 1.5,
        "external": 1.5,
    },
}

# Terms that push the complexity score up regardless of epic type
HIGH_COMPLEXITY_KEYWORDS: tuple[str, ...] = (
    "migration",
    "migrate",
    "dependencies",
    "dependency",
    "critical",
    "multi-agent",
    "orchestration",
    "distributed",
    "refactor",
    "breaking",
    "real-time",
    "legacy",
    "concurrency",
    "enterprise",
    "security",
    "compliance",
    "scalability",
    "ecosystem",
)

EPIC_LABELS = frozenset({"epic", "epic-story"})
PRIORITY_LABEL_RE = re.compile(r"^p[01]$", re.IGNORECASE)


# ==================
# Scoring configuration
# ==================


class ScoringConfig(BaseModel):
    """Empirically tuned constants for confidence, complexity and success scoring."""

    saturation_score: float = Field(12.0, gt=0.0, description="Vocabulary score mapping to confidence 1.0")
    fallback_confidence: float = Field(0.1, gt=0.0, le=1.0, description="Confidence for unclassifiable input")
    max_occurrences_per_keyword: int = Field(3, ge=1)

    low_below: int = Field(34, ge=1, le=100, description="Scores below this bucket as low")
    medium_below: int = Field(67, ge=1, le=100, description="Scores below this bucket as medium")

    empty_input_complexity: int = Field(25, ge=0, le=100)
    label_points: float = 4.0
    label_cap: float = 16.0
    keyword_points: float = 6.0
    keyword_cap: float = 30.0
    task_points: float = 2.0
    task_cap: float = 14.0
    criteria_points: float = 1.5
    criteria_cap: float = 10.0
    epic_label_points: float = 8.0
    priority_label_points: float = 5.0

    success_complexity_weight: float = Field(0.55, ge=0.0, le=1.0)
    success_confidence_weight: float = Field(0.45, ge=0.0, le=1.0)
    acceptance_criteria_bonus: float = 5.0
    assignee_bonus: float = 5.0

    @model_validator(mode="after")
    def check_buckets(self) -> "ScoringConfig":
        if self.low_below >= self.medium_below:
            raise ValueError(
                f"low_below ({self.low_below}) must be smaller than medium_below ({self.medium_below})"
            )
        return self

    def bucket(self, score: float) -> Level:
        """Map a 0-100 score onto the three-step scale."""
        if score < self.low_below:
            return Level.LOW
        if score < self.medium_below:
            return Level.MEDIUM
        return Level.HIGH


def body_length_points(word_count: int) -> float:
    """Complexity contribution of the body length bucket (max 30)."""
    if word_count == 0:
        return 0.0
    if word_count < 50:
        return 5.0
    if word_count < 150:
        return 10.0
    if word_count < 400:
        return 18.0
    if word_count < 1000:
        return 25.0
    return 30.0


@lru_cache(maxsize=512)
def keyword_pattern(keyword: str) -> re.Pattern[str]:
    """Whole-word, case-insensitive pattern for a vocabulary term."""
    return re.compile(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])", re.IGNORECASE)
