"""
Strategic reasoning for the epic router.

Derives risk, resource and recommendation output from an epic classification
plus the raw work-item text. The engine depends only on the shape of the
classification (epic type, complexity level and score), never on the
classifier that produced it.

Risk model:
1. The complexity level is the baseline risk level.
2. Any risk-escalation term in the labels or text raises it one step
   (ceiling: high). Escalation never lowers risk.
3. The risk score sits in a band per level and grows with the number of
   matched risk factors.

Every recommendation carries a reasoning string that cites the evidence that
triggered it, so routing decisions can be audited after the fact.
"""

import math
import re
from dataclasses import dataclass, field
from typing import Optional

from epic_router.models.analysis import (
    EpicType,
    FallbackStrategy,
    Level,
    MonitoringLevel,
    RecommendationPriority,
    ResourceOptimization,
    RiskAssessment,
    StrategicAnalysis,
    StrategicRecommendation,
    TimeEstimate,
)
from epic_router.utils.logging import get_logger

logger = get_logger(__name__)


# ==================
# Risk tables
# ==================

SCOPE_COMPLEXITY = "Scope Complexity"
TECHNICAL_DEPENDENCIES = "Technical Dependencies"
NEW_TECHNOLOGY = "New Technology"
TIME_CONSTRAINTS = "Time Constraints"
RESOURCE_CONSTRAINTS = "Resource Constraints"
RISK_ESCALATION = "Risk Escalation"

# category -> (pattern, description)
RISK_FACTOR_PATTERNS: dict[str, tuple[re.Pattern[str], str]] = {
    TECHNICAL_DEPENDENCIES: (
        re.compile(r"\b(integration|connection|api|dependency|dependencies|external|service)\b", re.IGNORECASE),
        "external dependencies or integrations detected",
    ),
    NEW_TECHNOLOGY: (
        re.compile(r"\b(ai|claude|copilot|innovative|experimental|v2|upgrade|prototype)\b", re.IGNORECASE),
        "implementation involves new or experimental technologies",
    ),
    TIME_CONSTRAINTS: (
        re.compile(r"\b(urgent|asap|deadline|critical|p0|p1)\b", re.IGNORECASE),
        "urgent or high-priority requirements detected",
    ),
    RESOURCE_CONSTRAINTS: (
        re.compile(r"\b(limited|constraint|constraints|budget|resource|resources|capacity)\b", re.IGNORECASE),
        "limited resources or capacity constraints identified",
    ),
}

RISK_ESCALATION_TERMS: tuple[str, ...] = (
    "critical",
    "migration",
    "production",
    "dependencies",
    "breaking",
    "security",
    "legacy",
    "data loss",
)

FACTOR_MITIGATIONS: dict[str, tuple[str, ...]] = {
    SCOPE_COMPLEXITY: (
        "Break down complex requirements into smaller, manageable tasks",
        "Implement phased delivery approach with clear milestones",
    ),
    TECHNICAL_DEPENDENCIES: (
        "Create mock services for dependency isolation during development",
        "Implement circuit breaker patterns for external service calls",
    ),
    NEW_TECHNOLOGY: (
        "Conduct proof-of-concept validation before full implementation",
        "Maintain fallback to proven technology alternatives",
    ),
    TIME_CONSTRAINTS: (
        "Prioritize core functionality and defer non-essential features",
        "Increase resource allocation and parallel development streams",
    ),
    RESOURCE_CONSTRAINTS: (
        "Optimize resource utilization through automation",
        "Consider scope reduction to match available resources",
    ),
}

ESCALATION_MITIGATIONS: dict[str, str] = {
    "critical": "Gate the rollout behind an explicit go/no-go review",
    "migration": "Rehearse the migration on a production-like snapshot with a tested rollback script",
    "production": "Release through a canary stage and watch error rates before full rollout",
    "dependencies": "Pin and audit upstream dependencies before merging",
    "breaking": "Publish a deprecation path and version the affected interfaces",
    "security": "Schedule a security review of the change before release",
    "legacy": "Characterize legacy behaviour with tests before modifying it",
    "data loss": "Take verified backups and validate restores before destructive steps",
}

HIGH_RISK_MITIGATIONS: tuple[str, ...] = (
    "Assign dedicated oversight with intervention authority",
    "Hold daily progress checkpoints and risk reviews",
    "Prepare contingency plans for critical failure scenarios",
)

DEFAULT_MITIGATION = "Follow the standard review and testing workflow"

RISK_SCORE_BANDS: dict[Level, tuple[int, int]] = {
    Level.LOW: (15, 44),
    Level.MEDIUM: (45, 74),
    Level.HIGH: (75, 100),
}
POINTS_PER_FACTOR = 4

_LEVEL_ORDER = (Level.LOW, Level.MEDIUM, Level.HIGH)

MONITORING_BY_RISK: dict[Level, MonitoringLevel] = {
    Level.LOW: MonitoringLevel.STANDARD,
    Level.MEDIUM: MonitoringLevel.ENHANCED,
    Level.HIGH: MonitoringLevel.INTENSIVE,
}

RISK_DURATION_MULTIPLIER: dict[Level, float] = {
    Level.LOW: 1.0,
    Level.MEDIUM: 1.2,
    Level.HIGH: 1.5,
}


def escalate(level: Level) -> Level:
    """One step up the scale, saturating at HIGH."""
    index = _LEVEL_ORDER.index(level)
    return _LEVEL_ORDER[min(index + 1, len(_LEVEL_ORDER) - 1)]


def format_duration(hours: float) -> str:
    """Hours below a working day stay in hours; longer spans become 8-hour days."""
    if hours < 8:
        return f"{max(math.ceil(hours), 1)} hours"
    days = math.ceil(hours / 8)
    if days == 1:
        return "1 day"
    return f"{days} days"


@dataclass(frozen=True)
class StrategicContext:
    """Raw work-item text plus the already-computed classification."""

    title: str
    body: str
    labels: tuple[str, ...]
    epic_type: EpicType
    complexity_level: Level
    complexity_score: int
    task_count: int = 0
    acceptance_criteria_count: int = 0

    @property
    def search_text(self) -> str:
        return " ".join((self.title, self.body, " ".join(self.labels)))


@dataclass
class _RiskEvidence:
    factors: list[str] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    matched_terms: dict[str, list[str]] = field(default_factory=dict)
    escalation_terms: list[str] = field(default_factory=list)


class StrategicReasoningEngine:
    """
    Rule-based strategic analysis of a classified work item.

    Usage:
        engine = StrategicReasoningEngine()
        analysis = engine.perform_strategic_analysis(StrategicContext(...))
        analysis.risk_assessment.level
    """

    def __init__(self, escalation_terms: Optional[tuple[str, ...]] = None) -> None:
        self._escalation_terms = escalation_terms or RISK_ESCALATION_TERMS
        self._escalation_patterns = {
            term: _term_pattern(term) for term in self._escalation_terms
        }

    def perform_strategic_analysis(self, context: StrategicContext) -> StrategicAnalysis:
        """
        Produce risk assessment, resource plan and ranked recommendations.

        Args:
            context: Work-item text and its classification.

        Returns:
            StrategicAnalysis for the work item.
        """
        evidence = self._collect_evidence(context)
        risk = self._assess_risk(context, evidence)
        resources = self._optimize_resources(context, risk)
        recommendations = self._generate_recommendations(context, risk, resources, evidence)

        logger.debug(
            "strategic_analysis_complete",
            epic_type=context.epic_type.value,
            risk_level=risk.level.value,
            risk_score=risk.score,
            factor_count=len(risk.factors),
            recommended_agents=resources.recommended_agents,
            recommendation_count=len(recommendations),
        )

        return StrategicAnalysis(
            risk_assessment=risk,
            resource_optimization=resources,
            strategic_recommendations=tuple(recommendations),
        )

    def baseline_analysis(self, context: StrategicContext) -> StrategicAnalysis:
        """
        Minimal analysis that relies only on the complexity level.

        Used when the full rule set cannot be evaluated for a work item.
        """
        risk = RiskAssessment(
            level=context.complexity_level,
            score=RISK_SCORE_BANDS[context.complexity_level][0],
            factors=(),
            mitigation_strategies=(DEFAULT_MITIGATION,),
        )
        resources = self._optimize_resources(context, risk)
        recommendations = (
            self._delivery_recommendation(context),
            self._quality_recommendation(context),
        )
        return StrategicAnalysis(
            risk_assessment=risk,
            resource_optimization=resources,
            strategic_recommendations=recommendations,
        )

    # ==================
    # Risk
    # ==================

    def _collect_evidence(self, context: StrategicContext) -> _RiskEvidence:
        evidence = _RiskEvidence()
        text = context.search_text

        if context.complexity_level != Level.LOW:
            evidence.categories.append(SCOPE_COMPLEXITY)
            evidence.factors.append(
                f"{SCOPE_COMPLEXITY}: {context.complexity_level.value} complexity level "
                f"(score {context.complexity_score}) indicates potential scope challenges"
            )

        for category, (pattern, description) in RISK_FACTOR_PATTERNS.items():
            terms = _unique_lower(pattern.findall(text))
            if not terms:
                continue
            evidence.categories.append(category)
            evidence.matched_terms[category] = terms
            evidence.factors.append(f"{category}: {description} ({', '.join(terms)})")

        description = f"{context.title} {context.body}"
        for term in self._escalation_terms:
            pattern = self._escalation_patterns[term]
            in_labels = any(pattern.search(label) for label in context.labels)
            in_text = bool(pattern.search(description))
            if not (in_labels or in_text):
                continue
            evidence.escalation_terms.append(term)
            source = "labels" if in_labels else "description"
            evidence.factors.append(f"{RISK_ESCALATION}: '{term}' found in {source}")

        return evidence

    def _assess_risk(self, context: StrategicContext, evidence: _RiskEvidence) -> RiskAssessment:
        level = context.complexity_level
        if evidence.escalation_terms:
            level = escalate(level)

        floor, ceiling = RISK_SCORE_BANDS[level]
        score = min(floor + POINTS_PER_FACTOR * len(evidence.factors), ceiling)

        return RiskAssessment(
            level=level,
            score=score,
            factors=tuple(evidence.factors),
            mitigation_strategies=tuple(self._mitigations(evidence, level)),
        )

    def _mitigations(self, evidence: _RiskEvidence, level: Level) -> list[str]:
        strategies: list[str] = []
        for category in evidence.categories:
            strategies.extend(FACTOR_MITIGATIONS.get(category, ()))
        for term in evidence.escalation_terms:
            strategies.append(ESCALATION_MITIGATIONS.get(term, DEFAULT_MITIGATION))
        if level == Level.HIGH:
            strategies.extend(HIGH_RISK_MITIGATIONS)
        if not strategies:
            strategies.append(DEFAULT_MITIGATION)
        # dict preserves first-seen order
        return list(dict.fromkeys(strategies))

    # ==================
    # Resources
    # ==================

    def _optimize_resources(self, context: StrategicContext, risk: RiskAssessment) -> ResourceOptimization:
        agents = self._recommended_agents(context)
        # High-risk work stays sequential so failures are attributable
        parallel = agents > 1 and risk.level != Level.HIGH
        fallback = FallbackStrategy.IMMEDIATE if risk.level == Level.HIGH else FallbackStrategy.DELAYED

        return ResourceOptimization(
            recommended_agents=agents,
            parallel_execution=parallel,
            monitoring_level=MONITORING_BY_RISK[risk.level],
            fallback_strategy=fallback,
            estimated_duration=self._estimate_duration(context, risk, agents),
        )

    @staticmethod
    def _recommended_agents(context: StrategicContext) -> int:
        if context.complexity_level == Level.HIGH:
            return 5 if context.complexity_score >= 85 else 4
        if context.complexity_level == Level.MEDIUM:
            return 3 if context.complexity_score >= 50 else 2
        return 1

    @staticmethod
    def _estimate_duration(context: StrategicContext, risk: RiskAssessment, agents: int) -> TimeEstimate:
        base_hours = 4 + 0.4 * context.complexity_score
        coordination = 1 + 0.15 * (agents - 1)
        hours = base_hours * coordination * RISK_DURATION_MULTIPLIER[risk.level]

        body_length = len(context.body)
        if body_length > 200:
            confidence = 0.8
        elif body_length > 100:
            confidence = 0.6
        else:
            confidence = 0.4

        return TimeEstimate(
            hours=round(hours, 1),
            optimistic=format_duration(hours * 0.7),
            realistic=format_duration(hours),
            pessimistic=format_duration(hours * 1.5),
            confidence=confidence,
        )

    # ==================
    # Recommendations
    # ==================

    def _generate_recommendations(
        self,
        context: StrategicContext,
        risk: RiskAssessment,
        resources: ResourceOptimization,
        evidence: _RiskEvidence,
    ) -> list[StrategicRecommendation]:
        """Evaluate the rule set in priority order."""
        recommendations: list[StrategicRecommendation] = []

        if risk.level == Level.HIGH:
            drivers = evidence.escalation_terms or evidence.categories or [context.complexity_level.value]
            recommendations.append(StrategicRecommendation(
                priority=RecommendationPriority.CRITICAL,
                category="Risk Mitigation",
                action="Activate intensive monitoring and intervention protocols",
                reasoning=(
                    f"Risk level is high (score {risk.score}) driven by "
                    f"{', '.join(drivers)}"
                ),
                expected_impact="Early issue detection and prevention",
            ))

        recommendations.append(self._delivery_recommendation(context))
        recommendations.append(self._quality_recommendation(context))

        if resources.recommended_agents > 1:
            mode = "in parallel" if resources.parallel_execution else "sequentially"
            recommendations.append(StrategicRecommendation(
                priority=RecommendationPriority.MEDIUM,
                category="Resource Allocation",
                action=f"Coordinate {resources.recommended_agents} workers {mode}",
                reasoning=(
                    f"{context.complexity_level.value.capitalize()} complexity "
                    f"(score {context.complexity_score}) with {risk.level.value} risk "
                    f"calls for {resources.recommended_agents} workers"
                ),
                expected_impact="Balanced workload and shorter delivery time",
            ))

        if NEW_TECHNOLOGY in evidence.matched_terms:
            terms = ", ".join(evidence.matched_terms[NEW_TECHNOLOGY])
            recommendations.append(StrategicRecommendation(
                priority=RecommendationPriority.MEDIUM,
                category="Technology Integration",
                action="Prepare fallback procedures for new technology components",
                reasoning=f"New or experimental technology mentioned: {terms}",
                expected_impact="Improved reliability if the new components misbehave",
            ))

        if resources.monitoring_level != MonitoringLevel.STANDARD:
            recommendations.append(StrategicRecommendation(
                priority=RecommendationPriority.MEDIUM,
                category="Monitoring",
                action=f"Enable {resources.monitoring_level.value} progress monitoring",
                reasoning=(
                    f"{risk.level.value.capitalize()} risk with {len(risk.factors)} "
                    f"identified risk factor(s)"
                ),
                expected_impact="Faster issue resolution and course correction",
            ))

        return recommendations

    @staticmethod
    def _delivery_recommendation(context: StrategicContext) -> StrategicRecommendation:
        if context.complexity_level == Level.HIGH:
            action = "Phase delivery into independently shippable milestones"
        elif context.complexity_level == Level.MEDIUM:
            action = "Implement incremental delivery milestones"
        else:
            action = "Deliver as a single focused change"

        scope = f"{context.task_count} declared task(s)" if context.task_count else "no declared tasks"
        return StrategicRecommendation(
            priority=RecommendationPriority.HIGH,
            category="Delivery Strategy",
            action=action,
            reasoning=(
                f"{context.epic_type.value} epic with {context.complexity_level.value} "
                f"complexity (score {context.complexity_score}) and {scope}"
            ),
            expected_impact="Reduced delivery risk and faster time to value",
        )

    @staticmethod
    def _quality_recommendation(context: StrategicContext) -> StrategicRecommendation:
        count = context.acceptance_criteria_count
        if count:
            action = "Track delivery against the declared acceptance criteria"
            reasoning = f"Body declares {count} acceptance criteria to verify against"
        else:
            action = "Establish clear success criteria and metrics"
            reasoning = "No acceptance criteria were found in the work item body"
        return StrategicRecommendation(
            priority=RecommendationPriority.HIGH,
            category="Quality Assurance",
            action=action,
            reasoning=reasoning,
            expected_impact="Higher success rate and predictable sign-off",
        )


def _unique_lower(values: list[str]) -> list[str]:
    return list(dict.fromkeys(v.lower() for v in values))


def _term_pattern(term: str) -> re.Pattern[str]:
    # Underscores and hyphens separate words, so "security_fix" and "data-loss" match
    words = r"[\s_-]+".join(re.escape(word) for word in term.split())
    return re.compile(rf"(?<![a-z0-9]){words}(?![a-z0-9])", re.IGNORECASE)
