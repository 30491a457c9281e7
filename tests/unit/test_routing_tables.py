"""
Tests for worker routing tables (epic_router/orchestration/routing_tables.py).

Covers:
  - Built-in defaults
  - Secondary worker selection
  - Loading the shipped YAML file
  - Partial overrides from YAML
  - Load-time errors
"""

from pathlib import Path

import pytest
from pydantic import ValidationError

from epic_router.models import EpicType, TaskDomain
from epic_router.orchestration.routing_tables import (
    DEFAULT_PRIMARY_WORKERS,
    RoutingTableError,
    RoutingTables,
    load_routing_tables,
)

SHIPPED_TABLES = Path(__file__).parents[2] / "config" / "routing_tables.yaml"


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def tables():
    return RoutingTables()


@pytest.fixture
def write_yaml(tmp_path):
    def _write(content: str, name: str = "tables.yaml") -> Path:
        path = tmp_path / name
        path.write_text(content)
        return path
    return _write


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------


class TestDefaults:

    def test_every_epic_type_has_a_primary_worker(self, tables):
        for epic_type in EpicType:
            assert tables.primary_worker(epic_type)

    @pytest.mark.parametrize(
        "epic_type, worker",
        [
            (EpicType.FOUNDATION, "epic-breakdown-agent"),
            (EpicType.DEVELOPMENT, "development-agent"),
            (EpicType.ARCHITECTURE, "architecture-review-agent"),
            (EpicType.INTELLIGENCE, "github-copilot-claude4-agent"),
            (EpicType.UI, "ui-development-agent"),
            (EpicType.INTEGRATION, "integration-agent"),
            (EpicType.GENERAL, "scrum-master-agent"),
        ],
    )
    def test_primary_workers(self, tables, epic_type, worker):
        assert tables.primary_worker(epic_type) == worker

    def test_primary_never_complementary(self, tables):
        for epic_type in EpicType:
            primary = tables.primary_worker(epic_type)
            assert primary not in tables.secondary_workers(epic_type, 10)

    @pytest.mark.parametrize(
        "epic_type, domain",
        [
            (EpicType.FOUNDATION, TaskDomain.ARCHITECTURE_DECISIONS),
            (EpicType.ARCHITECTURE, TaskDomain.ARCHITECTURE_DECISIONS),
            (EpicType.DEVELOPMENT, TaskDomain.CODE_GENERATION),
            (EpicType.UI, TaskDomain.CODE_GENERATION),
            (EpicType.INTELLIGENCE, TaskDomain.SOFTWARE_DEVELOPMENT),
            (EpicType.INTEGRATION, TaskDomain.SOFTWARE_DEVELOPMENT),
            (EpicType.GENERAL, TaskDomain.TECHNICAL_DOCUMENTATION),
        ],
    )
    def test_task_domains(self, tables, epic_type, domain):
        assert tables.task_domain(epic_type) == domain

    def test_default_scoring(self, tables):
        assert tables.scoring.saturation_score == 12.0


class TestSecondaryWorkers:

    def test_takes_from_front_in_order(self, tables):
        assert tables.secondary_workers(EpicType.UI, 2) == ("development-agent", "quality-intelligence-agent")

    def test_zero_or_negative_count(self, tables):
        assert tables.secondary_workers(EpicType.UI, 0) == ()
        assert tables.secondary_workers(EpicType.UI, -3) == ()

    def test_count_beyond_list_returns_all(self, tables):
        assert len(tables.secondary_workers(EpicType.FOUNDATION, 10)) == 4


class TestValidation:

    def test_missing_primary_worker(self):
        workers = dict(DEFAULT_PRIMARY_WORKERS)
        del workers[EpicType.UI]
        with pytest.raises(ValidationError, match="missing epic types: ui"):
            RoutingTables(primary_workers=workers)

    def test_primary_listed_as_complementary(self):
        with pytest.raises(ValidationError, match="also listed as complementary"):
            RoutingTables(complementary_workers={EpicType.UI: ["ui-development-agent"]})

    def test_empty_primary_worker(self):
        workers = dict(DEFAULT_PRIMARY_WORKERS)
        workers[EpicType.UI] = "  "
        with pytest.raises(ValidationError, match="is empty"):
            RoutingTables(primary_workers=workers)


# ---------------------------------------------------------------------------
# Loading
# ---------------------------------------------------------------------------


class TestLoadRoutingTables:

    def test_none_returns_defaults(self):
        assert load_routing_tables(None) == RoutingTables()

    def test_shipped_file_matches_defaults(self):
        assert load_routing_tables(SHIPPED_TABLES) == RoutingTables()

    def test_partial_override(self, write_yaml):
        path = write_yaml(
            "primary_workers:\n"
            "  ui: design-system-agent\n"
            "complementary_workers:\n"
            "  ui: [development-agent, code-review-agent]\n"
            "scoring:\n"
            "  saturation_score: 10.0\n"
        )
        tables = load_routing_tables(path)
        assert tables.primary_worker(EpicType.UI) == "design-system-agent"
        assert tables.secondary_workers(EpicType.UI, 5) == ("development-agent", "code-review-agent")
        assert tables.scoring.saturation_score == 10.0
        # untouched entries keep defaults
        assert tables.primary_worker(EpicType.FOUNDATION) == "epic-breakdown-agent"
        assert tables.scoring.low_below == 34

    def test_empty_file_returns_defaults(self, write_yaml):
        assert load_routing_tables(write_yaml("")) == RoutingTables()

    def test_accepts_string_path_and_yml(self, write_yaml):
        path = write_yaml("epic_domains:\n  general: code-review\n", name="tables.yml")
        tables = load_routing_tables(str(path))
        assert tables.task_domain(EpicType.GENERAL) == TaskDomain.CODE_REVIEW

    def test_missing_file(self, tmp_path):
        with pytest.raises(RoutingTableError, match="not found"):
            load_routing_tables(tmp_path / "absent.yaml")

    def test_wrong_extension(self, write_yaml):
        with pytest.raises(RoutingTableError, match="must be YAML"):
            load_routing_tables(write_yaml("{}", name="tables.json"))

    def test_invalid_yaml(self, write_yaml):
        with pytest.raises(RoutingTableError, match="Failed to parse"):
            load_routing_tables(write_yaml("primary_workers: [unclosed\n"))

    def test_top_level_must_be_mapping(self, write_yaml):
        with pytest.raises(RoutingTableError, match="mapping at the top level"):
            load_routing_tables(write_yaml("- a\n- b\n"))

    def test_section_must_be_mapping(self, write_yaml):
        with pytest.raises(RoutingTableError, match="must be a mapping"):
            load_routing_tables(write_yaml("primary_workers: [a, b]\n"))

    def test_unknown_section(self, write_yaml):
        with pytest.raises(RoutingTableError, match="Unknown routing-table sections: extras"):
            load_routing_tables(write_yaml("extras:\n  a: 1\n"))

    def test_unknown_epic_type(self, write_yaml):
        with pytest.raises(RoutingTableError, match="Invalid routing tables"):
            load_routing_tables(write_yaml("primary_workers:\n  quantum: physics-agent\n"))

    def test_unknown_domain(self, write_yaml):
        with pytest.raises(RoutingTableError, match="Invalid routing tables"):
            load_routing_tables(write_yaml("epic_domains:\n  ui: painting\n"))

    def test_override_conflicting_with_complementary(self, write_yaml):
        with pytest.raises(RoutingTableError, match="also listed as complementary"):
            load_routing_tables(write_yaml("primary_workers:\n  ui: development-agent\n"))
