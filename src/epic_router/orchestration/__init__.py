"""
Orchestration for the epic router.

Context preservation, strategic reasoning, routing tables, insight assembly
and the orchestration service that ties them together.
"""

from epic_router.orchestration.context import ContextEntry, ContextPreservationManager
from epic_router.orchestration.insights import (
    InsightProvider,
    baseline_insights,
    parse_ai_insights,
)
from epic_router.orchestration.reasoning import StrategicContext, StrategicReasoningEngine
from epic_router.orchestration.routing_tables import (
    RoutingTableError,
    RoutingTables,
    load_routing_tables,
)
from epic_router.orchestration.service import (
    EpicOrchestrationService,
    generate_orchestration_summary,
)

__all__ = [
    "ContextEntry",
    "ContextPreservationManager",
    "EpicOrchestrationService",
    "InsightProvider",
    "RoutingTableError",
    "RoutingTables",
    "StrategicContext",
    "StrategicReasoningEngine",
    "baseline_insights",
    "generate_orchestration_summary",
    "load_routing_tables",
    "parse_ai_insights",
]
