"""
Epic orchestration service.

Runs the full decision pipeline for one work item:

1. Normalize the request (degraded input flows through, never aborts)
2. Classify it and store the result in the context store
3. Run strategic reasoning on the classification and raw text
4. Derive the routing recommendation from the routing tables
5. Assemble insights for the requested analysis mode
6. Resolve the provider profile, substituting its fallback when unavailable
7. Return the OrchestrationResult

No step raises to the caller; each has a safe default that is logged.
"""

import time
from collections.abc import Mapping
from typing import Any, Optional, Union, assert_never

from pydantic import ValidationError
from pydantic.alias_generators import to_camel, to_snake

from epic_router.config.settings import AppSettings, get_settings
from epic_router.integrations.provider_health import (
    AlwaysAvailable,
    ProviderHealthCheck,
    ProviderHealthTracker,
)
from epic_router.integrations.provider_routing import ProviderRoutingTable
from epic_router.interpretation.interpreter import EpicClassifier, WeightedVocabularyInterpreter
from epic_router.models.analysis import (
    AIInsights,
    EpicAnalysis,
    ExecutionStrategy,
    Level,
    MonitoringLevel,
    OrchestrationMetrics,
    OrchestrationResult,
    RoutingRecommendation,
    StrategicAnalysis,
)
from epic_router.models.provider import ProviderProfile
from epic_router.models.work_item import AnalysisMode, WorkItemInput
from epic_router.orchestration.context import ContextPreservationManager
from epic_router.orchestration.insights import (
    InsightProvider,
    baseline_insights,
    build_insight_prompt,
    parse_ai_insights,
)
from epic_router.orchestration.reasoning import StrategicContext, StrategicReasoningEngine
from epic_router.orchestration.routing_tables import RoutingTables, load_routing_tables
from epic_router.utils.logging import get_logger

logger = get_logger(__name__)

OrchestrationRequest = Union[WorkItemInput, Mapping[str, Any]]

_MODE_KEYS = ("analysisMode", "analysis_mode")
_MODE_VALUES = frozenset(mode.value for mode in AnalysisMode)


class EpicOrchestrationService:
    """
    Stateless-per-call orchestrator over injected collaborators.

    The only state shared between calls is the context store. Every
    collaborator has a default, so ``EpicOrchestrationService()`` is a
    complete, self-contained router.

    Usage:
        service = EpicOrchestrationService()
        result = await service.orchestrate_epic({
            "issueNumber": 100,
            "title": "Project Foundation Setup",
            "labels": ["setup", "foundation"],
        })
        print(service.generate_orchestration_summary(result))
    """

    def __init__(
        self,
        classifier: Optional[EpicClassifier] = None,
        context_manager: Optional[ContextPreservationManager] = None,
        reasoning_engine: Optional[StrategicReasoningEngine] = None,
        provider_table: Optional[ProviderRoutingTable] = None,
        health_check: Optional[ProviderHealthCheck] = None,
        routing_tables: Optional[RoutingTables] = None,
        insight_provider: Optional[InsightProvider] = None,
    ) -> None:
        self._routing_tables = routing_tables or RoutingTables()
        self._fallback_classifier = WeightedVocabularyInterpreter(scoring=self._routing_tables.scoring)
        self._classifier = classifier or self._fallback_classifier
        self._context = context_manager if context_manager is not None else ContextPreservationManager()
        self._reasoning = reasoning_engine or StrategicReasoningEngine()
        self._providers = provider_table or ProviderRoutingTable()
        self._health = health_check or AlwaysAvailable()
        self._insight_provider = insight_provider

    @classmethod
    def from_settings(
        cls,
        settings: Optional[AppSettings] = None,
        **overrides: Any,
    ) -> "EpicOrchestrationService":
        """
        Build a service from application settings.

        Loads routing tables from ``routing_tables_path``, bounds the context
        store by ``context_max_entries``, and tunes provider profiles for the
        configured environment. Keyword overrides replace any collaborator.

        Raises:
            RoutingTableError: If the configured routing-table file is invalid.
        """
        settings = settings or get_settings()
        components: dict[str, Any] = {
            "routing_tables": load_routing_tables(settings.routing_tables_path),
            "context_manager": ContextPreservationManager(max_entries=settings.context_max_entries),
            "provider_table": ProviderRoutingTable().for_environment(settings.environment),
        }
        components.update(overrides)
        return cls(**components)

    @property
    def classifier(self) -> EpicClassifier:
        return self._classifier

    @property
    def context_manager(self) -> ContextPreservationManager:
        return self._context

    @property
    def provider_table(self) -> ProviderRoutingTable:
        return self._providers

    @property
    def health_check(self) -> ProviderHealthCheck:
        return self._health

    @property
    def routing_tables(self) -> RoutingTables:
        return self._routing_tables

    # ==================
    # Orchestration
    # ==================

    async def orchestrate_epic(self, request: OrchestrationRequest) -> OrchestrationResult:
        """
        Produce a routing decision for one work item.

        Args:
            request: A WorkItemInput, or a mapping with camelCase or
                snake_case field names.

        Returns:
            OrchestrationResult; degraded but complete for unusable input.
        """
        started = time.perf_counter()

        work_item = self._normalize_request(request)
        log = logger.bind(
            issue_number=work_item.issue_number,
            analysis_mode=work_item.analysis_mode.value,
        )

        analysis = self._classify(work_item)
        self._context.store_context(work_item.issue_number, work_item, analysis)

        strategic = self._analyze_strategy(work_item, analysis)
        routing = self._derive_routing(analysis, strategic)
        profile, fallbacks_used = self._select_provider(analysis)
        insights = await self._assemble_insights(work_item, analysis, strategic, routing, profile)

        processing_time_ms = max(int((time.perf_counter() - started) * 1000), 0)
        result = OrchestrationResult(
            issue_number=work_item.issue_number,
            analysis_mode=work_item.analysis_mode,
            epic_analysis=analysis,
            routing_recommendation=routing,
            strategic_analysis=strategic,
            ai_insights=insights,
            orchestration_metrics=OrchestrationMetrics(
                processing_time_ms=processing_time_ms,
                confidence_score=analysis.confidence,
                fallbacks_used=fallbacks_used,
                provider_used=profile.provider,
            ),
        )

        log.info(
            "orchestration_complete",
            epic_type=analysis.epic_type.value,
            confidence=analysis.confidence,
            complexity_level=analysis.complexity_level.value,
            risk_level=strategic.risk_assessment.level.value,
            primary=routing.primary,
            execution_strategy=routing.execution_strategy.value,
            provider_used=profile.provider,
            fallbacks_used=list(fallbacks_used),
            processing_time_ms=processing_time_ms,
        )
        return result

    def _normalize_request(self, request: OrchestrationRequest) -> WorkItemInput:
        if isinstance(request, WorkItemInput):
            return request
        if not isinstance(request, Mapping):
            logger.warning(
                "orchestration_request_unusable",
                request_type=type(request).__name__,
            )
            return WorkItemInput()

        data = dict(request)
        for key in _MODE_KEYS:
            if key not in data:
                continue
            mode = data[key]
            value = mode.value if isinstance(mode, AnalysisMode) else mode
            if not isinstance(value, str) or value not in _MODE_VALUES:
                logger.warning(
                    "unknown_analysis_mode",
                    analysis_mode=str(value),
                    default=AnalysisMode.FULL_ORCHESTRATION.value,
                )
                data.pop(key)

        try:
            return WorkItemInput.model_validate(data)
        except ValidationError as e:
            logger.warning(
                "orchestration_request_invalid",
                error_count=e.error_count(),
                fields=sorted({str(err["loc"][0]) for err in e.errors() if err.get("loc")}),
            )
            return self._salvage_request(data, e)

    @staticmethod
    def _salvage_request(data: dict[str, Any], error: ValidationError) -> WorkItemInput:
        """Keep every field that validated; drop the rest."""
        bad: set[str] = set()
        for err in error.errors():
            if not err.get("loc"):
                continue
            field_name = str(err["loc"][0])
            bad.update({field_name, to_snake(field_name), to_camel(field_name)})

        kept = {k: v for k, v in data.items() if k not in bad}
        try:
            return WorkItemInput.model_validate(kept)
        except ValidationError:
            return WorkItemInput()

    def _classify(self, work_item: WorkItemInput) -> EpicAnalysis:
        try:
            return self._classifier.analyze(work_item)
        except Exception as e:
            logger.error(
                "classifier_failed",
                classifier=getattr(self._classifier, "name", type(self._classifier).__name__),
                issue_number=work_item.issue_number,
                error=str(e),
                exc_info=True,
            )
            return self._fallback_classifier.degraded_analysis(work_item)

    def _analyze_strategy(self, work_item: WorkItemInput, analysis: EpicAnalysis) -> StrategicAnalysis:
        context = StrategicContext(
            title=work_item.title,
            body=work_item.body,
            labels=work_item.labels,
            epic_type=analysis.epic_type,
            complexity_level=analysis.complexity_level,
            complexity_score=analysis.complexity_score,
            task_count=analysis.task_count,
            acceptance_criteria_count=analysis.acceptance_criteria_count,
        )
        try:
            return self._reasoning.perform_strategic_analysis(context)
        except Exception as e:
            logger.error(
                "strategic_analysis_failed",
                issue_number=work_item.issue_number,
                error=str(e),
                exc_info=True,
            )
            return self._reasoning.baseline_analysis(context)

    # ==================
    # Routing
    # ==================

    def _derive_routing(
        self,
        analysis: EpicAnalysis,
        strategic: StrategicAnalysis,
    ) -> RoutingRecommendation:
        resources = strategic.resource_optimization
        risk_level = strategic.risk_assessment.level
        agents = resources.recommended_agents

        primary = self._routing_tables.primary_worker(analysis.epic_type)
        secondary = self._routing_tables.secondary_workers(analysis.epic_type, agents - 1)

        if agents > 1 and risk_level == Level.HIGH:
            strategy = ExecutionStrategy.HYBRID
        elif resources.parallel_execution:
            strategy = ExecutionStrategy.PARALLEL
        else:
            strategy = ExecutionStrategy.SEQUENTIAL

        reasoning = (
            f"{analysis.epic_type.value} epic (confidence {analysis.confidence * 100:.1f}%) "
            f"routes to {primary}; {analysis.complexity_level.value} complexity and "
            f"{risk_level.value} risk call for {agents} worker(s) with {strategy.value} execution"
        )

        return RoutingRecommendation(
            primary=primary,
            secondary=secondary,
            reasoning=reasoning,
            execution_strategy=strategy,
            monitoring_required=resources.monitoring_level != MonitoringLevel.STANDARD,
        )

    def _select_provider(self, analysis: EpicAnalysis) -> tuple[ProviderProfile, tuple[str, ...]]:
        """Resolve the domain profile, substituting its fallback when unavailable."""
        domain = self._routing_tables.task_domain(analysis.epic_type)
        profile = self._providers.resolve(domain)

        if self._health.is_available(profile):
            return profile, ()

        if profile.fallback is None:
            logger.warning(
                "provider_unavailable_no_fallback",
                provider=profile.provider,
                domain=domain.value,
            )
            return profile, ()

        fallback = profile.fallback
        logger.warning(
            "provider_fallback",
            provider=profile.provider,
            fallback=fallback.provider,
            domain=domain.value,
        )
        if not self._health.is_available(fallback):
            logger.warning(
                "provider_fallback_unavailable",
                provider=profile.provider,
                fallback=fallback.provider,
            )
        return fallback, (profile.provider,)

    # ==================
    # Insights
    # ==================

    async def _assemble_insights(
        self,
        work_item: WorkItemInput,
        analysis: EpicAnalysis,
        strategic: StrategicAnalysis,
        routing: RoutingRecommendation,
        profile: ProviderProfile,
    ) -> AIInsights:
        mode = work_item.analysis_mode
        baseline = baseline_insights(mode, analysis, strategic, routing)

        match mode:
            case AnalysisMode.EPIC_INTERPRETATION:
                return baseline
            case AnalysisMode.AGENT_ROUTING:
                return baseline
            case AnalysisMode.FULL_ORCHESTRATION:
                return await self._provider_insights(work_item, analysis, baseline, profile)
            case _:
                assert_never(mode)

    async def _provider_insights(
        self,
        work_item: WorkItemInput,
        analysis: EpicAnalysis,
        baseline: AIInsights,
        profile: ProviderProfile,
    ) -> AIInsights:
        if self._insight_provider is None:
            return baseline

        tracker = self._health if isinstance(self._health, ProviderHealthTracker) else None
        if tracker is not None:
            tracker.record_request(profile.provider)

        try:
            response = await self._insight_provider.generate(
                build_insight_prompt(work_item, analysis),
                profile,
            )
            insights = parse_ai_insights(response, analysis, baseline)
        except Exception as e:
            if tracker is not None:
                tracker.record_failure(profile.provider)
            logger.warning(
                "insight_provider_failed",
                issue_number=work_item.issue_number,
                provider=profile.provider,
                error=str(e),
                error_type=type(e).__name__,
            )
            return baseline

        if tracker is not None:
            tracker.record_success(profile.provider)
        return insights

    # ==================
    # Summary
    # ==================

    def generate_orchestration_summary(self, result: OrchestrationResult) -> str:
        return generate_orchestration_summary(result)


def generate_orchestration_summary(result: OrchestrationResult) -> str:
    """
    Render the fixed-format, human-readable block for a result.

    Downstream tooling greps these lines, so the ``Type:``,
    ``Confidence:``, ``Primary Agent:`` and ``Processing Time:`` prefixes are
    stable.
    """
    analysis = result.epic_analysis
    insights = result.ai_insights
    routing = result.routing_recommendation
    metrics = result.orchestration_metrics

    secondary = ", ".join(routing.secondary) if routing.secondary else "None"
    fallbacks = ", ".join(metrics.fallbacks_used) if metrics.fallbacks_used else "None"

    lines = [
        "Epic Orchestration Complete",
        "",
        "Epic Analysis Results:",
        f"• Type: {analysis.epic_type.value}",
        f"• Complexity: {insights.complexity_assessment}",
        f"• Confidence: {analysis.confidence * 100:.1f}%",
        f"• Success Prediction: {analysis.success_prediction.value}",
        "",
        "Insights:",
        f"• Interpretation Accuracy: {insights.interpretation_accuracy * 100:.1f}%",
        f"• Suggested Approach: {insights.suggested_approach}",
        f"• Risk Factors: {', '.join(insights.risk_factors)}",
        f"• Success Predictors: {', '.join(insights.success_predictors)}",
        "",
        "Agent Routing Recommendation:",
        f"• Primary Agent: {routing.primary}",
        f"• Secondary Agents: {secondary}",
        f"• Execution Strategy: {routing.execution_strategy.value}",
        f"• Monitoring Required: {'Yes' if routing.monitoring_required else 'No'}",
        "",
        "Performance Metrics:",
        f"• Processing Time: {metrics.processing_time_ms}ms",
        f"• Provider Used: {metrics.provider_used}",
        f"• Fallbacks: {fallbacks}",
    ]
    return "\n".join(lines)
