"""
Tests for epic interpretation (epic_router/interpretation).

Covers:
  - Epic type classification and confidence normalization
  - Keyword evidence ordering
  - Degraded and unclassifiable input
  - Body structure parsing (checklists, criteria sections, bullets)
  - Complexity and success scoring
  - Scoring configuration buckets
"""

import pytest
from pydantic import ValidationError

from epic_router.interpretation import (
    EpicClassifier,
    ScoringConfig,
    WeightedVocabularyInterpreter,
    parse_body_structure,
)
from epic_router.interpretation.vocabulary import body_length_points, keyword_pattern
from epic_router.models import EpicType, Level, WorkItemInput


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def interpreter():
    return WeightedVocabularyInterpreter()


@pytest.fixture
def foundation_item():
    return WorkItemInput(
        issue_number=100,
        title="Project Foundation Setup",
        body="Setup core infrastructure and base configuration for the project.",
        labels=["setup", "infrastructure", "foundation"],
    )


@pytest.fixture
def high_complexity_item():
    tasks = "\n".join(f"- [ ] Step {i}" for i in range(7))
    return WorkItemInput(
        issue_number=300,
        title="Migrate legacy billing",
        body=(
            "Migrate the legacy distributed billing system. "
            "Resolve security dependencies before cutover.\n\n"
            f"## Tasks\n{tasks}\n"
        ),
        labels=["epic", "P0", "critical", "migration"],
    )


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


class TestClassification:

    def test_is_an_epic_classifier(self, interpreter):
        assert isinstance(interpreter, EpicClassifier)

    def test_foundation_scenario(self, interpreter, foundation_item):
        analysis = interpreter.analyze(foundation_item)
        assert analysis.epic_type == EpicType.FOUNDATION
        assert analysis.confidence == 1.0

    def test_keywords_in_match_order(self, interpreter, foundation_item):
        analysis = interpreter.analyze(foundation_item)
        assert analysis.keywords == (
            "foundation",
            "setup",
            "core",
            "infrastructure",
            "base",
            "configuration",
        )

    @pytest.mark.parametrize(
        "title, body, expected",
        [
            ("Build login feature", "Implement authentication and registration code.", EpicType.DEVELOPMENT),
            ("System architecture", "Design a modular framework with clear patterns.", EpicType.ARCHITECTURE),
            ("AI reasoning agent", "Add LLM intelligence to the orchestration agent.", EpicType.INTELLIGENCE),
            ("Responsive UI layout", "Rework the frontend components and typography.", EpicType.UI),
            ("Webhook integration", "Connect the external API via a connector service.", EpicType.INTEGRATION),
        ],
    )
    def test_epic_types(self, interpreter, title, body, expected):
        analysis = interpreter.analyze(WorkItemInput(title=title, body=body))
        assert analysis.epic_type == expected

    def test_matching_is_case_insensitive_and_whole_word(self):
        interpreter = WeightedVocabularyInterpreter(vocabulary={EpicType.UI: {"ui": 3.0}})
        assert interpreter.analyze(WorkItemInput(title="New UI")).epic_type == EpicType.UI
        # "build" contains "ui" but is not the word
        assert interpreter.analyze(WorkItemInput(title="build")).epic_type == EpicType.GENERAL

    def test_occurrences_capped_per_keyword(self):
        interpreter = WeightedVocabularyInterpreter(vocabulary={EpicType.UI: {"button": 1.0}})
        analysis = interpreter.analyze(WorkItemInput(body="button " * 10))
        assert analysis.confidence == pytest.approx(3.0 / 12.0)

    def test_ties_resolve_in_table_order(self):
        interpreter = WeightedVocabularyInterpreter(vocabulary={
            EpicType.FOUNDATION: {"alpha": 1.0},
            EpicType.DEVELOPMENT: {"beta": 1.0},
        })
        analysis = interpreter.analyze(WorkItemInput(title="alpha beta"))
        assert analysis.epic_type == EpicType.FOUNDATION

    def test_deterministic(self, interpreter, foundation_item):
        assert interpreter.analyze(foundation_item) == interpreter.analyze(foundation_item)


# ---------------------------------------------------------------------------
# Degraded input
# ---------------------------------------------------------------------------


class TestDegradedInput:

    def test_empty_input(self, interpreter):
        analysis = interpreter.analyze(WorkItemInput(issue_number=-1))
        assert analysis.epic_type == EpicType.GENERAL
        assert analysis.confidence == 0.1
        assert analysis.complexity_score == 25
        assert analysis.complexity_level == Level.LOW
        assert analysis.keywords == ()

    def test_no_vocabulary_match(self, interpreter):
        analysis = interpreter.analyze(WorkItemInput(title="Hello there", body="Nothing relevant here"))
        assert analysis.epic_type == EpicType.GENERAL
        assert analysis.confidence == 0.1
        assert analysis.confidence > 0

    def test_internal_failure_yields_degraded_analysis(self):
        interpreter = WeightedVocabularyInterpreter(vocabulary={EpicType.UI: {123: 1.0}})
        analysis = interpreter.analyze(WorkItemInput(title="anything"))
        assert analysis.epic_type == EpicType.GENERAL
        assert analysis.confidence == 0.1


# ---------------------------------------------------------------------------
# Body structure
# ---------------------------------------------------------------------------


class TestParseBodyStructure:

    def test_empty_body(self):
        structure = parse_body_structure("")
        assert structure.task_count == 0
        assert structure.acceptance_criteria_count == 0
        assert structure.word_count == 0

    def test_tasks_and_criteria_sections(self):
        body = (
            "## Tasks\n"
            "- [ ] Design schema\n"
            "- [x] Write migration\n"
            "* [ ] Add API\n"
            "\n"
            "## Acceptance Criteria\n"
            "- [ ] Users can log in\n"
            "- [ ] Errors are reported\n"
            "Given a user when they log in then they see the dashboard\n"
        )
        structure = parse_body_structure(body)
        assert structure.task_count == 3
        assert structure.acceptance_criteria_count == 3
        assert structure.checklist_items == 5

    def test_plain_bullets_estimate_tasks(self):
        structure = parse_body_structure("- one\n- two\n* three\n1. four")
        assert structure.task_count == 4
        assert structure.checklist_items == 0

    def test_bold_definition_of_done_heading(self):
        structure = parse_body_structure("**Definition of Done**\n- tests pass\n- docs updated")
        assert structure.acceptance_criteria_count == 2
        assert structure.task_count == 0

    def test_section_ends_at_next_heading(self):
        body = "### Success criteria\n- [ ] fast\n### Work\n- [ ] build it"
        structure = parse_body_structure(body)
        assert structure.acceptance_criteria_count == 1
        assert structure.task_count == 1


# ---------------------------------------------------------------------------
# Complexity and success
# ---------------------------------------------------------------------------


class TestScoring:

    def test_foundation_complexity_and_success(self, interpreter, foundation_item):
        analysis = interpreter.analyze(foundation_item)
        # body 9 words (5) + 3 labels (12)
        assert analysis.complexity_score == 17
        assert analysis.complexity_level == Level.LOW
        assert analysis.success_score == 91
        assert analysis.success_prediction == Level.HIGH

    def test_high_complexity_item(self, interpreter, high_complexity_item):
        analysis = interpreter.analyze(high_complexity_item)
        assert analysis.complexity_level == Level.HIGH
        assert analysis.task_count == 7

    def test_assignees_raise_success(self, interpreter, foundation_item):
        assigned = foundation_item.model_copy(update={"assignees": ("octocat",)})
        base = interpreter.analyze(foundation_item)
        boosted = interpreter.analyze(assigned)
        assert boosted.success_score - base.success_score == 5

    def test_higher_complexity_lowers_success(self, interpreter, foundation_item, high_complexity_item):
        simple = interpreter.analyze(foundation_item)
        complex_ = interpreter.analyze(high_complexity_item)
        assert complex_.success_score < simple.success_score

    @pytest.mark.parametrize(
        "words, points",
        [(0, 0), (10, 5), (60, 10), (200, 18), (500, 25), (5000, 30)],
    )
    def test_body_length_points(self, words, points):
        assert body_length_points(words) == points


class TestScoringConfig:

    @pytest.mark.parametrize(
        "score, level",
        [(0, Level.LOW), (33, Level.LOW), (34, Level.MEDIUM), (66, Level.MEDIUM), (67, Level.HIGH), (100, Level.HIGH)],
    )
    def test_buckets(self, score, level):
        assert ScoringConfig().bucket(score) == level

    def test_rejects_inverted_buckets(self):
        with pytest.raises(ValidationError):
            ScoringConfig(low_below=70, medium_below=50)

    def test_custom_saturation(self):
        interpreter = WeightedVocabularyInterpreter(
            vocabulary={EpicType.UI: {"ui": 3.0}},
            scoring=ScoringConfig(saturation_score=6.0),
        )
        assert interpreter.analyze(WorkItemInput(title="ui")).confidence == 0.5

    def test_keyword_pattern_cached(self):
        assert keyword_pattern("migration") is keyword_pattern("migration")
