"""
Performance monitoring for the epic router.

Callers (the worker-dispatch layer, evaluation jobs) feed observations in by
name; the monitor keeps a bounded, timestamped history per name and checks
the latest value of each known metric against a fixed threshold table.
Metrics with no observations are excluded from scoring, never counted as
failing. A breach is a reporting condition and is logged, not raised.
"""

import threading
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import Field

from epic_router.config.settings import AppSettings
from epic_router.models.work_item import ContractModel
from epic_router.utils.logging import get_logger

logger = get_logger(__name__)

NLP_ACCURACY = "nlp_accuracy"
ROUTING_SUCCESS = "routing_success"
REASONING_RESPONSE_TIME_MS = "reasoning_response_time_ms"

# Legacy metric names stored under their current name
METRIC_ALIASES: dict[str, str] = {
    "claude4_response_time": REASONING_RESPONSE_TIME_MS,
}

DEFAULT_HISTORY_LIMIT = 1000


class Comparison(str, Enum):
    AT_LEAST = "at_least"
    AT_MOST = "at_most"


@dataclass(frozen=True)
class MetricThreshold:
    """Target for one metric name."""

    name: str
    target: float
    comparison: Comparison = Comparison.AT_LEAST

    def passes(self, value: float) -> bool:
        if self.comparison == Comparison.AT_LEAST:
            return value >= self.target
        return value <= self.target


DEFAULT_THRESHOLDS: tuple[MetricThreshold, ...] = (
    MetricThreshold(NLP_ACCURACY, 0.95),
    MetricThreshold(ROUTING_SUCCESS, 0.90),
    MetricThreshold(REASONING_RESPONSE_TIME_MS, 10000.0, Comparison.AT_MOST),
)


def canonical_metric_name(name: str) -> str:
    return METRIC_ALIASES.get(name, name)


@dataclass(frozen=True)
class MetricObservation:
    value: float
    timestamp: datetime


class ThresholdReport(ContractModel):
    """Result of comparing the latest observations to the threshold table."""

    meets_thresholds: bool
    overall_score: float = Field(..., ge=0.0, le=1.0)
    failed_thresholds: tuple[str, ...] = Field(default_factory=tuple)
    checked_metrics: tuple[str, ...] = Field(default_factory=tuple)


class PerformanceMonitor:
    """
    Append-only metric ledger with threshold checks.

    Usage:
        monitor = PerformanceMonitor()
        monitor.record_metric("nlp_accuracy", 0.98)
        monitor.record_metric("routing_success", 0.95)
        report = monitor.check_performance_thresholds()
        report.meets_thresholds   # True
    """

    def __init__(
        self,
        thresholds: Optional[tuple[MetricThreshold, ...]] = None,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
    ) -> None:
        if history_limit < 1:
            raise ValueError(f"history_limit must be at least 1, got {history_limit}")
        self._thresholds = {t.name: t for t in (thresholds or DEFAULT_THRESHOLDS)}
        self._history_limit = history_limit
        self._metrics: dict[str, deque[MetricObservation]] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: AppSettings) -> "PerformanceMonitor":
        """Monitor with thresholds and history limit taken from settings."""
        thresholds = (
            MetricThreshold(NLP_ACCURACY, settings.nlp_accuracy_threshold),
            MetricThreshold(ROUTING_SUCCESS, settings.routing_success_threshold),
            MetricThreshold(
                REASONING_RESPONSE_TIME_MS,
                settings.response_time_threshold_ms,
                Comparison.AT_MOST,
            ),
        )
        return cls(thresholds=thresholds, history_limit=settings.metric_history_limit)

    @property
    def thresholds(self) -> dict[str, MetricThreshold]:
        return dict(self._thresholds)

    def record_metric(
        self,
        name: str,
        value: float,
        timestamp: Optional[datetime] = None,
    ) -> MetricObservation:
        """
        Append an observation for a metric name.

        Args:
            name: Metric name (any name is accepted; only known names are scored).
                Legacy aliases such as ``claude4_response_time`` are stored under
                their current name.
            value: Observed value.
            timestamp: Observation time (defaults to now, UTC).
        """
        observation = MetricObservation(
            value=float(value),
            timestamp=timestamp or datetime.now(timezone.utc),
        )
        name = canonical_metric_name(name)
        with self._lock:
            history = self._metrics.get(name)
            if history is None:
                history = deque(maxlen=self._history_limit)
                self._metrics[name] = history
            history.append(observation)

        logger.debug("metric_recorded", metric=name, value=observation.value)
        return observation

    def get_latest(self, name: str) -> Optional[MetricObservation]:
        with self._lock:
            history = self._metrics.get(canonical_metric_name(name))
            return history[-1] if history else None

    def get_history(self, name: str) -> list[MetricObservation]:
        with self._lock:
            return list(self._metrics.get(canonical_metric_name(name), ()))

    def get_performance_summary(self) -> dict[str, dict[str, Any]]:
        """Latest value and metadata per recorded metric name."""
        with self._lock:
            snapshot = {name: list(history) for name, history in self._metrics.items() if history}

        summary: dict[str, dict[str, Any]] = {}
        for name, history in sorted(snapshot.items()):
            latest = history[-1]
            threshold = self._thresholds.get(name)
            summary[name] = {
                "value": latest.value,
                "timestamp": latest.timestamp.isoformat(),
                "count": len(history),
                "threshold": threshold.target if threshold else None,
                "comparison": threshold.comparison.value if threshold else None,
                "passing": threshold.passes(latest.value) if threshold else None,
            }
        return summary

    def check_performance_thresholds(self) -> ThresholdReport:
        """
        Compare the latest value of each known metric with its threshold.

        Returns:
            ThresholdReport. ``overall_score`` is the fraction of checked
            metrics passing; with nothing checked it is 0.0 and
            ``meets_thresholds`` is False.
        """
        checked: list[str] = []
        failed: list[str] = []

        for name, threshold in self._thresholds.items():
            latest = self.get_latest(name)
            if latest is None:
                continue
            checked.append(name)
            if not threshold.passes(latest.value):
                failed.append(name)

        overall = (len(checked) - len(failed)) / len(checked) if checked else 0.0
        report = ThresholdReport(
            meets_thresholds=bool(checked) and not failed,
            overall_score=overall,
            failed_thresholds=tuple(failed),
            checked_metrics=tuple(checked),
        )

        if failed:
            logger.warning(
                "performance_threshold_breach",
                failed_thresholds=failed,
                overall_score=round(overall, 3),
            )
        return report
