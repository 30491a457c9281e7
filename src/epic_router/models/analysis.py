"""
Pydantic models for classification, reasoning and routing output.

Every record here is created once per orchestration call and never mutated;
re-analysis of a work item produces new instances.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import Field

from epic_router.models.work_item import AnalysisMode, ContractModel


class EpicType(str, Enum):
    """Closed set of epic domains; GENERAL is the low-confidence fallback."""

    FOUNDATION = "foundation"
    DEVELOPMENT = "development"
    ARCHITECTURE = "architecture"
    INTELLIGENCE = "intelligence"
    UI = "ui"
    INTEGRATION = "integration"
    GENERAL = "general"


class Level(str, Enum):
    """Three-step scale shared by complexity, success prediction and risk."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ExecutionStrategy(str, Enum):
    SEQUENTIAL = "sequential"
    PARALLEL = "parallel"
    HYBRID = "hybrid"


class MonitoringLevel(str, Enum):
    STANDARD = "standard"
    ENHANCED = "enhanced"
    INTENSIVE = "intensive"


class FallbackStrategy(str, Enum):
    IMMEDIATE = "immediate"
    DELAYED = "delayed"


class RecommendationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


# ==================
# Interpretation
# ==================


class EpicAnalysis(ContractModel):
    """Classification of a work item produced by an epic classifier."""

    epic_type: EpicType = Field(..., description="Detected epic domain")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Classification confidence")
    keywords: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Matched vocabulary terms in match order",
    )
    complexity_level: Level = Field(..., description="Bucketed complexity")
    complexity_score: int = Field(..., ge=0, le=100)
    success_prediction: Level = Field(..., description="Bucketed success likelihood")
    success_score: int = Field(..., ge=0, le=100)
    task_count: int = Field(0, ge=0, description="Estimated number of tasks")
    acceptance_criteria_count: int = Field(0, ge=0, description="Estimated acceptance criteria")


# ==================
# Strategic reasoning
# ==================


class RiskAssessment(ContractModel):
    level: Level
    score: int = Field(..., ge=0, le=100)
    factors: tuple[str, ...] = Field(default_factory=tuple)
    mitigation_strategies: tuple[str, ...] = Field(default_factory=tuple)


class TimeEstimate(ContractModel):
    """Duration estimate with a realistic hour figure and readable bounds."""

    hours: float = Field(..., ge=0.0, description="Realistic effort in hours")
    optimistic: str
    realistic: str
    pessimistic: str
    confidence: float = Field(..., ge=0.0, le=1.0)


class ResourceOptimization(ContractModel):
    recommended_agents: int = Field(..., ge=1)
    parallel_execution: bool
    monitoring_level: MonitoringLevel
    fallback_strategy: FallbackStrategy
    estimated_duration: TimeEstimate


class StrategicRecommendation(ContractModel):
    priority: RecommendationPriority
    category: str
    action: str
    reasoning: str
    expected_impact: str


class StrategicAnalysis(ContractModel):
    risk_assessment: RiskAssessment
    resource_optimization: ResourceOptimization
    strategic_recommendations: tuple[StrategicRecommendation, ...] = Field(default_factory=tuple)


# ==================
# Routing and result
# ==================


class RoutingRecommendation(ContractModel):
    """Which worker(s) should execute an epic, and how."""

    primary: str = Field(..., min_length=1, description="Primary worker identifier")
    secondary: tuple[str, ...] = Field(
        default_factory=tuple,
        description="Ordered complementary workers",
    )
    reasoning: str = ""
    execution_strategy: ExecutionStrategy
    monitoring_required: bool


class AIInsights(ContractModel):
    interpretation_accuracy: float = Field(..., ge=0.0, le=1.0)
    complexity_assessment: str
    suggested_approach: str
    risk_factors: tuple[str, ...] = Field(default_factory=tuple)
    success_predictors: tuple[str, ...] = Field(default_factory=tuple)


class OrchestrationMetrics(ContractModel):
    processing_time_ms: int = Field(..., ge=0, alias="processingTime")
    confidence_score: float = Field(..., ge=0.0, le=1.0)
    fallbacks_used: tuple[str, ...] = Field(default_factory=tuple)
    provider_used: str


class OrchestrationResult(ContractModel):
    """
    The single externally returned artifact of an orchestration call.

    ``orchestration_metrics.confidence_score`` is always built from
    ``epic_analysis.confidence`` by the orchestration service.
    """

    issue_number: int
    analysis_mode: AnalysisMode
    epic_analysis: EpicAnalysis
    routing_recommendation: RoutingRecommendation
    strategic_analysis: StrategicAnalysis
    ai_insights: AIInsights
    orchestration_metrics: OrchestrationMetrics
    completed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class LearningOutcome(str, Enum):
    """Observed result of executing a routed work item."""

    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


class OutcomeRecord(ContractModel):
    issue_number: int
    predicted: Level
    confidence: float = Field(..., ge=0.0, le=1.0)
    outcome: LearningOutcome
    recorded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    epic_type: Optional[EpicType] = None
