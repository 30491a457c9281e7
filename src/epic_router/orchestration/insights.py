"""
AI insight assembly for orchestration results.

Baseline insights are derived from the epic classification and strategic
analysis alone. In full-orchestration mode an injected ``InsightProvider``
(the text-generation capability behind the resolved provider profile) may be
asked for a free-text assessment; the reply is parsed into the same
structure, keeping baseline values for anything it does not mention.
"""

import re
from typing import Optional, Protocol, runtime_checkable

from epic_router.models.analysis import (
    AIInsights,
    EpicAnalysis,
    Level,
    RoutingRecommendation,
    StrategicAnalysis,
)
from epic_router.models.provider import ProviderProfile
from epic_router.models.work_item import AnalysisMode, WorkItemInput

MAX_INSIGHT_ITEMS = 3

_ACCURACY_RE = re.compile(r"\baccuracy[:\s]*(\d+(?:\.\d+)?)(%?)", re.IGNORECASE)
_RISK_RE = re.compile(r"\brisks?[:\s]*([^.]+\.)", re.IGNORECASE)
_SUCCESS_RE = re.compile(r"\bsuccess[:\s]*([^.]+\.)", re.IGNORECASE)
_APPROACH_RE = re.compile(r"\bapproach[:\s]*([^.]+\.)", re.IGNORECASE)

COMPLEXITY_INDICATORS: dict[Level, tuple[str, ...]] = {
    Level.LOW: ("simple", "straightforward", "basic", "minimal"),
    Level.MEDIUM: ("moderate", "standard", "typical", "balanced"),
    Level.HIGH: ("complex", "challenging", "advanced", "sophisticated", "multi-faceted"),
}


@runtime_checkable
class InsightProvider(Protocol):
    """
    Async text-generation capability used for full orchestration.

    Implementations receive the prompt and the provider profile the router
    resolved for the work item, and return the model's text reply.
    """

    async def generate(self, prompt: str, profile: ProviderProfile) -> str:
        ...


def build_insight_prompt(work_item: WorkItemInput, analysis: EpicAnalysis) -> str:
    """Prompt asking for strategy, risk, success and accuracy assessment."""
    return (
        "Analyze this epic for implementation strategy and risk assessment:\n\n"
        f"Title: {work_item.title}\n"
        f"Body: {work_item.body}\n"
        f"Labels: {', '.join(work_item.labels)}\n"
        f"Current Analysis: Type={analysis.epic_type.value}, "
        f"Complexity={analysis.complexity_level.value}, "
        f"Confidence={analysis.confidence}\n\n"
        "Provide insights on:\n"
        "1. Implementation approach strategy\n"
        "2. Key risk factors to monitor\n"
        "3. Success predictors and metrics\n"
        "4. Accuracy assessment of the epic interpretation\n"
    )


def baseline_insights(
    mode: AnalysisMode,
    analysis: EpicAnalysis,
    strategic: StrategicAnalysis,
    routing: RoutingRecommendation,
) -> AIInsights:
    """
    Insights computed from the local analyses only.

    Epic-interpretation mode describes the classification; the routing modes
    describe the routing decision and draw success predictors from the
    strategic recommendations.
    """
    risk_factors = strategic.risk_assessment.factors[:MAX_INSIGHT_ITEMS] or (
        "No significant risk factors identified",
    )

    if mode == AnalysisMode.EPIC_INTERPRETATION:
        matched = ", ".join(analysis.keywords[:5]) or "no vocabulary matches"
        approach = (
            f"Classified as {analysis.epic_type.value} epic with "
            f"{analysis.complexity_level.value} complexity (matched: {matched})"
        )
        predictors: tuple[str, ...] = (
            f"Epic type alignment: {analysis.epic_type.value}",
            f"Complexity score {analysis.complexity_score}/100",
            f"Predicted success: {analysis.success_prediction.value}",
        )
    else:
        approach = f"Route to {routing.primary} with {routing.execution_strategy.value} execution"
        if routing.secondary:
            approach += f", supported by {', '.join(routing.secondary)}"
        predictors = tuple(
            f"{rec.category}: {rec.action}"
            for rec in strategic.strategic_recommendations[:MAX_INSIGHT_ITEMS]
        )

    return AIInsights(
        interpretation_accuracy=analysis.confidence,
        complexity_assessment=analysis.complexity_level.value,
        suggested_approach=approach,
        risk_factors=tuple(risk_factors),
        success_predictors=predictors,
    )


def enhance_complexity_assessment(base_level: Level, response: str) -> str:
    """
    Annotate the complexity level when the reply's wording suggests another.

    Returns ``"<base>"`` or ``"<base> (suggested: <level>)"``.
    """
    for level, indicators in COMPLEXITY_INDICATORS.items():
        if level == base_level:
            continue
        for indicator in indicators:
            if re.search(rf"\b{re.escape(indicator)}\b", response, re.IGNORECASE):
                return f"{base_level.value} (suggested: {level.value})"
    return base_level.value


def _parse_accuracy(response: str) -> Optional[float]:
    match = _ACCURACY_RE.search(response)
    if not match:
        return None
    value = float(match.group(1))
    if match.group(2) or value > 1.0:
        value /= 100.0
    return max(0.0, min(value, 1.0))


def parse_ai_insights(
    response: str,
    analysis: EpicAnalysis,
    baseline: AIInsights,
) -> AIInsights:
    """
    Parse a free-text reply into structured insights.

    Args:
        response: Text returned by the insight provider.
        analysis: Classification the reply was asked about.
        baseline: Values kept for anything the reply does not mention.

    Returns:
        AIInsights with at most three risk factors and success predictors.
    """
    accuracy = _parse_accuracy(response)
    risks = tuple(m.group(1).strip() for m in _RISK_RE.finditer(response))
    successes = tuple(m.group(1).strip() for m in _SUCCESS_RE.finditer(response))
    approach_match = _APPROACH_RE.search(response)

    return AIInsights(
        interpretation_accuracy=accuracy if accuracy is not None else baseline.interpretation_accuracy,
        complexity_assessment=enhance_complexity_assessment(analysis.complexity_level, response),
        suggested_approach=(
            approach_match.group(1).strip() if approach_match else baseline.suggested_approach
        ),
        risk_factors=risks[:MAX_INSIGHT_ITEMS] or baseline.risk_factors,
        success_predictors=successes[:MAX_INSIGHT_ITEMS] or baseline.success_predictors,
    )
