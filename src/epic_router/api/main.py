"""
FastAPI application entry point for the epic router.

Sets up the application with request logging, health checks, error
handling and the orchestration, metrics and learning endpoints.
"""

import time
from datetime import datetime, timezone
from typing import Dict, Optional

from fastapi import FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from epic_router import __version__
from epic_router.api.middleware import RequestLoggingMiddleware
from epic_router.api.orchestration import learning_router, metrics_router, router
from epic_router.config.settings import AppSettings, get_settings
from epic_router.integrations.provider_health import ProviderHealthTracker, ProviderStatus
from epic_router.monitoring.learning import LearningFramework
from epic_router.monitoring.performance import PerformanceMonitor
from epic_router.orchestration.service import EpicOrchestrationService
from epic_router.utils.logging import SERVICE_NAME, get_logger, setup_logging

logger = get_logger(__name__)

APP_TITLE = "Epic Router"
DOCS_URL = "/docs"
APP_DESCRIPTION = (
    "Interprets work items (epics), estimates complexity and risk, and decides "
    "which downstream workers should execute them, how, and with which "
    "provider profile."
)


# Response models
class ComponentStatus(BaseModel):
    """Status of a single system component."""

    status: str  # "healthy", "unhealthy", "degraded"
    message: Optional[str] = None
    response_time_ms: Optional[float] = None


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str  # "healthy", "unhealthy", "degraded"
    version: str
    timestamp: str
    service: str
    components: Optional[Dict[str, ComponentStatus]] = None
    response_time_ms: Optional[float] = None


class InfoResponse(BaseModel):
    """API information response model."""

    name: str
    version: str
    description: str
    documentation: str


# ---------------------------------------------------------------------------
# Health helpers
# ---------------------------------------------------------------------------


def _timed(check, *args) -> ComponentStatus:
    start = time.perf_counter()
    try:
        component = check(*args)
    except Exception as exc:
        component = ComponentStatus(status="unhealthy", message=str(exc)[:200])
    elapsed = (time.perf_counter() - start) * 1000
    return component.model_copy(update={"response_time_ms": round(elapsed, 1)})


def _check_classifier(service: EpicOrchestrationService) -> ComponentStatus:
    name = getattr(service.classifier, "name", type(service.classifier).__name__)
    return ComponentStatus(status="healthy", message=name)


def _check_provider_table(service: EpicOrchestrationService) -> ComponentStatus:
    profiles = service.provider_table.profiles
    disabled = [family for family, profile in profiles.items() if not profile.enabled]
    if disabled:
        return ComponentStatus(
            status="degraded",
            message=f"Disabled profiles: {', '.join(sorted(disabled))}",
        )
    environment = service.provider_table.environment or "base"
    return ComponentStatus(
        status="healthy",
        message=f"{len(profiles)} profiles ({environment})",
    )


def _check_provider_health(service: EpicOrchestrationService) -> ComponentStatus:
    tracker = service.health_check
    if not isinstance(tracker, ProviderHealthTracker):
        return ComponentStatus(status="healthy", message="Availability not tracked")

    routed = set()
    for profile in service.provider_table.profiles.values():
        routed.add(profile.provider)
        if profile.fallback is not None:
            routed.add(profile.fallback.provider)

    health = tracker.get_provider_health()
    unhealthy = sorted(
        name for name, entry in health.items()
        if name in routed and entry["status"] == ProviderStatus.UNHEALTHY.value
    )
    if unhealthy:
        return ComponentStatus(
            status="degraded",
            message=f"Unhealthy providers: {', '.join(unhealthy)}",
        )
    return ComponentStatus(status="healthy", message=f"Providers tracked: {len(health)}")


def _check_context_store(service: EpicOrchestrationService) -> ComponentStatus:
    store = service.context_manager
    size = len(store)
    if store.max_entries is not None and size >= store.max_entries:
        return ComponentStatus(
            status="degraded",
            message=f"At capacity ({size}/{store.max_entries}), evicting oldest entries",
        )
    limit = store.max_entries if store.max_entries is not None else "unbounded"
    return ComponentStatus(status="healthy", message=f"{size} entries (limit {limit})")


def _overall_status(components: Dict[str, ComponentStatus]) -> str:
    """Determine overall status from component statuses."""
    statuses = {c.status for c in components.values()}
    if "unhealthy" in statuses:
        return "unhealthy"
    if "degraded" in statuses:
        return "degraded"
    return "healthy"


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(
    settings: Optional[AppSettings] = None,
    service: Optional[EpicOrchestrationService] = None,
    performance_monitor: Optional[PerformanceMonitor] = None,
    learning_framework: Optional[LearningFramework] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Application settings (defaults to get_settings()).
        service: Orchestration service (built from settings if None).
        performance_monitor: Metric ledger (built from settings if None).
        learning_framework: Outcome ledger (built from settings if None).
        configure_logging: Apply setup_logging from settings.

    Returns:
        Configured FastAPI application.

    Raises:
        RoutingTableError: If the configured routing-table file is invalid.
    """
    app_settings = settings or get_settings()
    if configure_logging:
        setup_logging(
            log_level=app_settings.log_level,
            environment=app_settings.environment,
        )

    # Interactive docs are not served in production
    docs_enabled = not app_settings.is_production
    app = FastAPI(
        title=APP_TITLE,
        description=APP_DESCRIPTION,
        version=__version__,
        docs_url=DOCS_URL if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
    )

    app.state.settings = app_settings
    app.state.orchestration_service = service or EpicOrchestrationService.from_settings(app_settings)
    app.state.performance_monitor = performance_monitor or PerformanceMonitor.from_settings(app_settings)
    app.state.learning_framework = learning_framework or LearningFramework(
        history_limit=app_settings.metric_history_limit
    )

    # Request logging middleware (must be added before CORS)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(router)
    app.include_router(metrics_router)
    app.include_router(learning_router)

    @app.get("/", response_model=InfoResponse, tags=["Info"])
    async def root() -> InfoResponse:
        """Get API information."""
        return InfoResponse(
            name=APP_TITLE,
            version=__version__,
            description=APP_DESCRIPTION,
            documentation=DOCS_URL if docs_enabled else "",
        )

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["Health"],
        responses={
            200: {"description": "Service is healthy"},
            503: {"description": "Service is unhealthy"},
        },
    )
    async def health_check(request: Request, response: Response) -> HealthResponse:
        """
        Liveness health check endpoint.

        Reports component-level status for the classifier, the provider
        routing table, provider health and the context store. Returns 503
        when any component is unhealthy.
        """
        start = time.perf_counter()
        orchestration_service: EpicOrchestrationService = request.app.state.orchestration_service

        components = {
            "classifier": _timed(_check_classifier, orchestration_service),
            "provider_table": _timed(_check_provider_table, orchestration_service),
            "provider_health": _timed(_check_provider_health, orchestration_service),
            "context_store": _timed(_check_context_store, orchestration_service),
        }

        overall = _overall_status(components)
        elapsed = (time.perf_counter() - start) * 1000

        if overall == "unhealthy":
            response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE

        return HealthResponse(
            status=overall,
            version=__version__,
            timestamp=datetime.now(timezone.utc).isoformat(),
            service=SERVICE_NAME,
            components=components,
            response_time_ms=round(elapsed, 1),
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Log uncaught exceptions and return a generic 500 response."""
        logger.error(
            "unhandled_exception",
            error=str(exc),
            error_type=type(exc).__name__,
            path=str(request.url.path),
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "Internal server error",
                "type": type(exc).__name__,
            },
        )

    app_settings.log_configuration_summary()
    logger.info("app_created", version=__version__, environment=app_settings.environment)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "epic_router.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
