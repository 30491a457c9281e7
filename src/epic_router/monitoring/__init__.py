"""
Monitoring for the epic router.

Performance thresholds over caller-fed metrics and the prediction/outcome
learning ledger.
"""

from epic_router.monitoring.learning import LearningFramework, prediction_was_accurate
from epic_router.monitoring.performance import (
    DEFAULT_THRESHOLDS,
    MetricThreshold,
    PerformanceMonitor,
    ThresholdReport,
)

__all__ = [
    "DEFAULT_THRESHOLDS",
    "LearningFramework",
    "MetricThreshold",
    "PerformanceMonitor",
    "ThresholdReport",
    "prediction_was_accurate",
]
