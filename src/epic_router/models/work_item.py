"""
Pydantic models for incoming work items.

A work item is the already-fetched issue data the router classifies. Parsing
is deliberately forgiving: degraded content (missing identifiers, empty text,
stray control characters, oversized bodies) is cleaned instead of rejected,
because every incoming item must still receive a routing decision.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from epic_router.utils.validation import (
    MAX_BODY_LENGTH,
    MAX_TITLE_LENGTH,
    clean_text,
    coerce_issue_number,
    normalize_names,
)


class ContractModel(BaseModel):
    """
    Base for records that cross the service boundary.

    Records are immutable and serialize with camelCase names
    (``model_dump(by_alias=True)``) while accepting either spelling on input.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class AnalysisMode(str, Enum):
    """How much of the pipeline a caller asked for."""

    EPIC_INTERPRETATION = "epic-interpretation"
    AGENT_ROUTING = "agent-routing"
    FULL_ORCHESTRATION = "full-orchestration"


class WorkItemInput(ContractModel):
    """
    A single work item submitted for orchestration.

    Example:
        WorkItemInput(
            issue_number=100,
            title="Project Foundation Setup",
            body="Setup core infrastructure and base configuration.",
            labels=["setup", "infrastructure", "foundation"],
        )
    """

    issue_number: int = Field(-1, description="Issue identifier (may be negative/invalid)")
    title: str = Field("", description="Issue title")
    body: str = Field("", description="Issue body/description")
    labels: tuple[str, ...] = Field(default_factory=tuple, description="Issue labels")
    assignees: tuple[str, ...] = Field(default_factory=tuple, description="Issue assignees")
    analysis_mode: AnalysisMode = Field(
        AnalysisMode.FULL_ORCHESTRATION,
        description="Requested analysis depth",
    )

    @field_validator("issue_number", mode="before")
    @classmethod
    def coerce_number(cls, v: Any) -> int:
        return coerce_issue_number(v)

    @field_validator("title", mode="before")
    @classmethod
    def clean_title(cls, v: Any) -> str:
        return clean_text(v, MAX_TITLE_LENGTH)

    @field_validator("body", mode="before")
    @classmethod
    def clean_body(cls, v: Any) -> str:
        return clean_text(v, MAX_BODY_LENGTH)

    @field_validator("labels", "assignees", mode="before")
    @classmethod
    def clean_names(cls, v: Any) -> tuple[str, ...]:
        return normalize_names(v)

    @property
    def is_empty(self) -> bool:
        """True when there is no text at all to classify."""
        return not self.title and not self.body

    @property
    def combined_text(self) -> str:
        """Title, body and labels joined for vocabulary matching."""
        return " ".join(part for part in (self.title, self.body, " ".join(self.labels)) if part)

    @property
    def normalized_labels(self) -> tuple[str, ...]:
        return tuple(label.lower() for label in self.labels)
