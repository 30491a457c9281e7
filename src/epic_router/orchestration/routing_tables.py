"""
Worker routing tables for the epic router.

Maps each epic type to its primary worker, an ordered list of complementary
workers, and the task domain used for provider-profile lookup. The tables
also carry the interpreter's scoring constants so an operator can recalibrate
routing without code changes.

The built-in defaults are complete. A YAML file may override any subset of
them:

    primary_workers:
      ui: design-system-agent
    complementary_workers:
      ui: [development-agent, code-review-agent]
    epic_domains:
      general: code-review
    scoring:
      saturation_score: 10.0

Unknown epic types or domains in the file are load-time errors.
"""

from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from epic_router.interpretation.vocabulary import ScoringConfig
from epic_router.models.analysis import EpicType
from epic_router.models.provider import TaskDomain
from epic_router.utils.logging import get_logger

logger = get_logger(__name__)


class RoutingTableError(Exception):
    """Raised when a routing-table file cannot be read or is malformed."""

    pass


DEFAULT_PRIMARY_WORKERS: dict[EpicType, str] = {
    EpicType.FOUNDATION: "epic-breakdown-agent",
    EpicType.DEVELOPMENT: "development-agent",
    EpicType.ARCHITECTURE: "architecture-review-agent",
    EpicType.INTELLIGENCE: "github-copilot-claude4-agent",
    EpicType.UI: "ui-development-agent",
    EpicType.INTEGRATION: "integration-agent",
    EpicType.GENERAL: "scrum-master-agent",
}

DEFAULT_COMPLEMENTARY_WORKERS: dict[EpicType, list[str]] = {
    EpicType.FOUNDATION: [
        "scrum-master-agent",
        "architecture-review-agent",
        "observatory-monitoring",
        "quality-intelligence-agent",
    ],
    EpicType.DEVELOPMENT: [
        "quality-intelligence-agent",
        "code-review-agent",
        "observatory-monitoring",
        "scrum-master-agent",
    ],
    EpicType.ARCHITECTURE: [
        "epic-breakdown-agent",
        "development-agent",
        "quality-intelligence-agent",
        "observatory-monitoring",
    ],
    EpicType.INTELLIGENCE: [
        "development-agent",
        "quality-intelligence-agent",
        "observatory-monitoring",
        "scrum-master-agent",
    ],
    EpicType.UI: [
        "development-agent",
        "quality-intelligence-agent",
        "code-review-agent",
        "observatory-monitoring",
    ],
    EpicType.INTEGRATION: [
        "development-agent",
        "quality-intelligence-agent",
        "observatory-monitoring",
        "scrum-master-agent",
    ],
    EpicType.GENERAL: [
        "development-agent",
        "quality-intelligence-agent",
        "observatory-monitoring",
        "code-review-agent",
    ],
}

DEFAULT_EPIC_DOMAINS: dict[EpicType, TaskDomain] = {
    EpicType.FOUNDATION: TaskDomain.ARCHITECTURE_DECISIONS,
    EpicType.ARCHITECTURE: TaskDomain.ARCHITECTURE_DECISIONS,
    EpicType.DEVELOPMENT: TaskDomain.CODE_GENERATION,
    EpicType.UI: TaskDomain.CODE_GENERATION,
    EpicType.INTELLIGENCE: TaskDomain.SOFTWARE_DEVELOPMENT,
    EpicType.INTEGRATION: TaskDomain.SOFTWARE_DEVELOPMENT,
    EpicType.GENERAL: TaskDomain.TECHNICAL_DOCUMENTATION,
}


class RoutingTables(BaseModel):
    """
    Validated worker tables.

    Usage:
        tables = RoutingTables()
        tables.primary_worker(EpicType.UI)            # "ui-development-agent"
        tables.secondary_workers(EpicType.UI, 2)      # first two complementary workers
        tables.task_domain(EpicType.UI)               # TaskDomain.CODE_GENERATION
    """

    primary_workers: dict[EpicType, str] = Field(
        default_factory=lambda: dict(DEFAULT_PRIMARY_WORKERS)
    )
    complementary_workers: dict[EpicType, list[str]] = Field(
        default_factory=lambda: {k: list(v) for k, v in DEFAULT_COMPLEMENTARY_WORKERS.items()}
    )
    epic_domains: dict[EpicType, TaskDomain] = Field(
        default_factory=lambda: dict(DEFAULT_EPIC_DOMAINS)
    )
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)

    @model_validator(mode="after")
    def check_complete(self) -> "RoutingTables":
        """Every epic type needs a primary worker and a task domain."""
        for table_name in ("primary_workers", "epic_domains"):
            table = getattr(self, table_name)
            missing = [t.value for t in EpicType if t not in table]
            if missing:
                raise ValueError(f"{table_name} is missing epic types: {', '.join(missing)}")

        for epic_type, worker in self.primary_workers.items():
            if not worker or not worker.strip():
                raise ValueError(f"primary worker for '{epic_type.value}' is empty")
            complementary = self.complementary_workers.get(epic_type, [])
            if worker in complementary:
                raise ValueError(
                    f"primary worker '{worker}' for '{epic_type.value}' "
                    f"is also listed as complementary"
                )
        return self

    def primary_worker(self, epic_type: EpicType) -> str:
        return self.primary_workers[epic_type]

    def secondary_workers(self, epic_type: EpicType, count: int) -> tuple[str, ...]:
        """The first ``count`` complementary workers for an epic type, in order."""
        if count <= 0:
            return ()
        workers = self.complementary_workers.get(epic_type, [])
        if count > len(workers):
            logger.debug(
                "complementary_workers_exhausted",
                epic_type=epic_type.value,
                requested=count,
                available=len(workers),
            )
        return tuple(workers[:count])

    def task_domain(self, epic_type: EpicType) -> TaskDomain:
        return self.epic_domains[epic_type]


def _merge_sections(raw: dict[str, Any]) -> dict[str, Any]:
    """Overlay the file's sections onto the built-in defaults."""
    defaults = RoutingTables()
    merged: dict[str, Any] = {
        "primary_workers": {k.value: v for k, v in defaults.primary_workers.items()},
        "complementary_workers": {k.value: list(v) for k, v in defaults.complementary_workers.items()},
        "epic_domains": {k.value: v.value for k, v in defaults.epic_domains.items()},
        "scoring": defaults.scoring.model_dump(),
    }
    for section, current in merged.items():
        override = raw.get(section)
        if override is None:
            continue
        if not isinstance(override, dict):
            raise RoutingTableError(
                f"Section '{section}' must be a mapping, got {type(override).__name__}"
            )
        current.update(override)

    unknown = sorted(set(raw) - set(merged))
    if unknown:
        raise RoutingTableError(f"Unknown routing-table sections: {', '.join(unknown)}")
    return merged


def load_routing_tables(path: Optional[Union[str, Path]] = None) -> RoutingTables:
    """
    Load routing tables, overlaying a YAML file onto the defaults.

    Args:
        path: YAML file to load. None returns the built-in tables.

    Returns:
        Validated RoutingTables.

    Raises:
        RoutingTableError: If the file is missing, unparsable or invalid.
    """
    if path is None:
        return RoutingTables()

    file_path = Path(path)
    if not file_path.exists():
        raise RoutingTableError(f"Routing table file not found: {path}")
    if file_path.suffix not in (".yaml", ".yml"):
        raise RoutingTableError(f"Routing table file must be YAML (.yaml or .yml): {path}")

    try:
        with open(file_path, "r") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise RoutingTableError(f"Failed to parse routing table YAML: {e}") from e
    except OSError as e:
        raise RoutingTableError(f"Failed to read routing table file: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise RoutingTableError("Routing table file must contain a mapping at the top level")

    try:
        tables = RoutingTables.model_validate(_merge_sections(raw))
    except ValidationError as e:
        raise RoutingTableError(f"Invalid routing tables in {path}: {e}") from e

    logger.info(
        "routing_tables_loaded",
        path=str(file_path.resolve()),
        sections=sorted(raw.keys()),
    )
    return tables
