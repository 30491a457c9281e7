"""
API endpoints for epic orchestration.

Provides endpoints to:
- Orchestrate a work item and render its summary
- Look up the preserved context for an issue
- Feed and check performance metrics
- Record execution outcomes and read learning insights
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from epic_router.models.analysis import LearningOutcome, OrchestrationResult, OutcomeRecord
from epic_router.models.work_item import ContractModel, WorkItemInput
from epic_router.monitoring.learning import LearningFramework
from epic_router.monitoring.performance import PerformanceMonitor, ThresholdReport, canonical_metric_name
from epic_router.orchestration.service import EpicOrchestrationService
from epic_router.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(tags=["Orchestration"])
metrics_router = APIRouter(prefix="/metrics", tags=["Metrics"])
learning_router = APIRouter(prefix="/learning", tags=["Learning"])


# ==================
# Dependencies
# ==================


def get_orchestration_service(request: Request) -> EpicOrchestrationService:
    return request.app.state.orchestration_service


def get_performance_monitor(request: Request) -> PerformanceMonitor:
    return request.app.state.performance_monitor


def get_learning_framework(request: Request) -> LearningFramework:
    return request.app.state.learning_framework


# ==================
# Request / response models
# ==================


class SummaryResponse(BaseModel):
    """Orchestration result together with its rendered summary."""

    summary: str
    result: OrchestrationResult


class MetricRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=128, description="Metric name")
    value: float = Field(..., description="Observed value")


class MetricRecordedResponse(BaseModel):
    name: str
    value: float
    timestamp: str


class OutcomeRequest(ContractModel):
    """Observed result of executing a previously orchestrated issue."""

    issue_number: int = Field(..., description="Issue that was orchestrated")
    outcome: LearningOutcome


# ==================
# Orchestration
# ==================


@router.post(
    "/orchestrate",
    response_model=OrchestrationResult,
    summary="Orchestrate a work item",
)
async def orchestrate(
    work_item: WorkItemInput,
    service: EpicOrchestrationService = Depends(get_orchestration_service),
) -> OrchestrationResult:
    """
    Classify a work item and return its routing decision.

    Degraded input (missing id, empty text) still yields a complete result.
    """
    return await service.orchestrate_epic(work_item)


@router.post(
    "/orchestrate/summary",
    response_model=SummaryResponse,
    summary="Orchestrate a work item and render the summary block",
)
async def orchestrate_with_summary(
    work_item: WorkItemInput,
    service: EpicOrchestrationService = Depends(get_orchestration_service),
) -> SummaryResponse:
    result = await service.orchestrate_epic(work_item)
    return SummaryResponse(
        summary=service.generate_orchestration_summary(result),
        result=result,
    )


@router.get("/context/{issue_number}", summary="Latest preserved context for an issue")
async def get_context(
    issue_number: int,
    service: EpicOrchestrationService = Depends(get_orchestration_service),
) -> dict[str, Any]:
    entry = service.context_manager.get_entry(issue_number)
    if entry is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No context stored for issue {issue_number}",
        )
    return entry.to_dict()


# ==================
# Metrics
# ==================


@metrics_router.post(
    "",
    response_model=MetricRecordedResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_metric(
    metric: MetricRequest,
    monitor: PerformanceMonitor = Depends(get_performance_monitor),
) -> MetricRecordedResponse:
    observation = monitor.record_metric(metric.name, metric.value)
    return MetricRecordedResponse(
        name=canonical_metric_name(metric.name),
        value=observation.value,
        timestamp=observation.timestamp.isoformat(),
    )


@metrics_router.get("")
async def performance_summary(
    monitor: PerformanceMonitor = Depends(get_performance_monitor),
) -> dict[str, Any]:
    return monitor.get_performance_summary()


@metrics_router.get("/thresholds", response_model=ThresholdReport)
async def performance_thresholds(
    monitor: PerformanceMonitor = Depends(get_performance_monitor),
) -> ThresholdReport:
    return monitor.check_performance_thresholds()


# ==================
# Learning
# ==================


@learning_router.post(
    "/outcomes",
    response_model=OutcomeRecord,
    status_code=status.HTTP_201_CREATED,
)
async def record_outcome(
    body: OutcomeRequest,
    service: EpicOrchestrationService = Depends(get_orchestration_service),
    learning: LearningFramework = Depends(get_learning_framework),
) -> OutcomeRecord:
    """
    Record how an orchestrated issue actually turned out.

    The prediction is taken from the analysis preserved for the issue, so
    the issue must have been orchestrated first.
    """
    analysis = service.context_manager.get_analysis(body.issue_number)
    if analysis is None:
        logger.info("learning_outcome_without_context", issue_number=body.issue_number)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No analysis stored for issue {body.issue_number}",
        )
    return learning.record_outcome(body.issue_number, analysis, body.outcome)


@learning_router.get("/insights")
async def learning_insights(
    learning: LearningFramework = Depends(get_learning_framework),
) -> dict[str, Any]:
    return learning.get_learning_insights()
