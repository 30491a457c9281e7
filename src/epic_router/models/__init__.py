"""
Pydantic models for the epic router.

Provides data models for:
- Incoming work items and analysis modes
- Epic classification, strategic analysis and routing output
- Provider execution profiles
"""

from epic_router.models.work_item import (
    AnalysisMode,
    ContractModel,
    WorkItemInput,
)
from epic_router.models.analysis import (
    AIInsights,
    EpicAnalysis,
    EpicType,
    ExecutionStrategy,
    FallbackStrategy,
    LearningOutcome,
    Level,
    MonitoringLevel,
    OrchestrationMetrics,
    OrchestrationResult,
    OutcomeRecord,
    RecommendationPriority,
    ResourceOptimization,
    RiskAssessment,
    RoutingRecommendation,
    StrategicAnalysis,
    StrategicRecommendation,
    TimeEstimate,
)
from epic_router.models.provider import (
    ProviderProfile,
    RateLimit,
    TaskDomain,
)

__all__ = [
    # Work item models
    "AnalysisMode",
    "ContractModel",
    "WorkItemInput",
    # Analysis models
    "AIInsights",
    "EpicAnalysis",
    "EpicType",
    "ExecutionStrategy",
    "FallbackStrategy",
    "LearningOutcome",
    "Level",
    "MonitoringLevel",
    "OrchestrationMetrics",
    "OrchestrationResult",
    "OutcomeRecord",
    "RecommendationPriority",
    "ResourceOptimization",
    "RiskAssessment",
    "RoutingRecommendation",
    "StrategicAnalysis",
    "StrategicRecommendation",
    "TimeEstimate",
    # Provider models
    "ProviderProfile",
    "RateLimit",
    "TaskDomain",
]
