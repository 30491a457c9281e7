"""
Tests for insight assembly (epic_router/orchestration/insights.py).

Covers:
  - Baseline insights per analysis mode
  - Complexity wording annotation
  - Parsing free-text provider replies
  - Prompt construction
"""

import pytest

from epic_router.models import EpicAnalysis, EpicType, Level, WorkItemInput
from epic_router.models.analysis import ExecutionStrategy, RoutingRecommendation
from epic_router.models.work_item import AnalysisMode
from epic_router.orchestration.insights import (
    InsightProvider,
    baseline_insights,
    build_insight_prompt,
    enhance_complexity_assessment,
    parse_ai_insights,
)
from epic_router.orchestration.reasoning import StrategicContext, StrategicReasoningEngine


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def analysis():
    return EpicAnalysis(
        epic_type=EpicType.INTEGRATION,
        confidence=0.75,
        keywords=("webhook", "api"),
        complexity_level=Level.MEDIUM,
        complexity_score=55,
        success_prediction=Level.MEDIUM,
        success_score=60,
    )


@pytest.fixture
def strategic(analysis):
    context = StrategicContext(
        title="Webhook ingestion",
        body="Consume the external API webhook",
        labels=(),
        epic_type=analysis.epic_type,
        complexity_level=analysis.complexity_level,
        complexity_score=analysis.complexity_score,
    )
    return StrategicReasoningEngine().perform_strategic_analysis(context)


@pytest.fixture
def routing():
    return RoutingRecommendation(
        primary="integration-agent",
        secondary=("development-agent", "quality-intelligence-agent"),
        reasoning="test",
        execution_strategy=ExecutionStrategy.PARALLEL,
        monitoring_required=True,
    )


@pytest.fixture
def baseline(analysis, strategic, routing):
    return baseline_insights(AnalysisMode.FULL_ORCHESTRATION, analysis, strategic, routing)


# ---------------------------------------------------------------------------
# Baseline
# ---------------------------------------------------------------------------


class TestBaselineInsights:

    def test_routing_mode(self, baseline, strategic):
        assert baseline.interpretation_accuracy == 0.75
        assert baseline.complexity_assessment == "medium"
        assert baseline.suggested_approach == (
            "Route to integration-agent with parallel execution, "
            "supported by development-agent, quality-intelligence-agent"
        )
        assert baseline.risk_factors == strategic.risk_assessment.factors[:3]
        first = strategic.strategic_recommendations[0]
        assert baseline.success_predictors[0] == f"{first.category}: {first.action}"

    def test_interpretation_mode(self, analysis, strategic, routing):
        insights = baseline_insights(AnalysisMode.EPIC_INTERPRETATION, analysis, strategic, routing)
        assert insights.suggested_approach == (
            "Classified as integration epic with medium complexity (matched: webhook, api)"
        )
        assert insights.success_predictors == (
            "Epic type alignment: integration",
            "Complexity score 55/100",
            "Predicted success: medium",
        )

    def test_no_risk_factors(self, routing):
        analysis = EpicAnalysis(
            epic_type=EpicType.GENERAL,
            confidence=0.1,
            complexity_level=Level.LOW,
            complexity_score=10,
            success_prediction=Level.LOW,
            success_score=20,
        )
        context = StrategicContext(
            title="", body="", labels=(), epic_type=EpicType.GENERAL,
            complexity_level=Level.LOW, complexity_score=10,
        )
        strategic = StrategicReasoningEngine().perform_strategic_analysis(context)
        insights = baseline_insights(AnalysisMode.AGENT_ROUTING, analysis, strategic, routing)
        assert insights.risk_factors == ("No significant risk factors identified",)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------


class TestEnhanceComplexityAssessment:

    def test_no_indicator(self):
        assert enhance_complexity_assessment(Level.MEDIUM, "Looks fine.") == "medium"

    def test_matching_indicator_for_same_level_ignored(self):
        assert enhance_complexity_assessment(Level.HIGH, "A complex change.") == "high"

    def test_suggests_other_level(self):
        assert enhance_complexity_assessment(Level.HIGH, "Mostly straightforward.") == "high (suggested: low)"
        assert enhance_complexity_assessment(Level.LOW, "A multi-faceted effort.") == "low (suggested: high)"

    def test_whole_words_only(self):
        assert enhance_complexity_assessment(Level.MEDIUM, "Complexity is fine.") == "medium"


class TestParseAIInsights:

    def test_full_reply(self, analysis, baseline):
        reply = (
            "Approach: Start with the schema. Risk: vendor lock-in. "
            "Success: green pipelines. Accuracy: 87%. This is a complex effort."
        )
        insights = parse_ai_insights(reply, analysis, baseline)
        assert insights.suggested_approach == "Start with the schema."
        assert insights.risk_factors == ("vendor lock-in.",)
        assert insights.success_predictors == ("green pipelines.",)
        assert insights.interpretation_accuracy == pytest.approx(0.87)
        assert insights.complexity_assessment == "medium (suggested: high)"

    def test_empty_reply_keeps_baseline(self, analysis, baseline):
        assert parse_ai_insights("", analysis, baseline) == baseline

    @pytest.mark.parametrize(
        "reply, expected",
        [
            ("accuracy 0.9", 0.9),
            ("Accuracy: 92", 0.92),
            ("accuracy: 150%", 1.0),
        ],
    )
    def test_accuracy_forms(self, analysis, baseline, reply, expected):
        assert parse_ai_insights(reply, analysis, baseline).interpretation_accuracy == pytest.approx(expected)

    def test_items_capped_at_three(self, analysis, baseline):
        reply = " ".join(f"Risk: item {i}." for i in range(5))
        assert len(parse_ai_insights(reply, analysis, baseline).risk_factors) == 3


class TestPrompt:

    def test_prompt_mentions_work_item_and_analysis(self, analysis):
        item = WorkItemInput(title="Webhook ingestion", body="Consume events", labels=["api"])
        prompt = build_insight_prompt(item, analysis)
        assert "Title: Webhook ingestion" in prompt
        assert "Labels: api" in prompt
        assert "Type=integration" in prompt
        assert "Complexity=medium" in prompt

    def test_protocol_is_runtime_checkable(self):
        class Echo:
            async def generate(self, prompt, profile):
                return prompt

        assert isinstance(Echo(), InsightProvider)
