"""
Outcome ledger for calibrating success predictions.

After a routed work item is executed, the caller records what actually
happened. The ledger compares those outcomes with the success prediction
made at routing time.
"""

import threading
from collections import deque
from typing import Any, Optional

from epic_router.models.analysis import EpicAnalysis, LearningOutcome, Level, OutcomeRecord
from epic_router.utils.logging import get_logger

logger = get_logger(__name__)


def prediction_was_accurate(predicted: Level, outcome: LearningOutcome) -> bool:
    """
    high predicts success, medium predicts at least partial success, and
    low predicts anything short of success.
    """
    if predicted == Level.HIGH:
        return outcome == LearningOutcome.SUCCESS
    if predicted == Level.MEDIUM:
        return outcome in (LearningOutcome.SUCCESS, LearningOutcome.PARTIAL)
    return outcome != LearningOutcome.SUCCESS


class LearningFramework:
    """
    Bounded ledger of prediction/outcome pairs.

    Usage:
        learning = LearningFramework()
        learning.record_outcome(42, analysis, LearningOutcome.SUCCESS)
        learning.get_learning_insights()["accuracy"]
    """

    def __init__(self, history_limit: int = 1000) -> None:
        if history_limit < 1:
            raise ValueError(f"history_limit must be at least 1, got {history_limit}")
        self._records: deque[OutcomeRecord] = deque(maxlen=history_limit)
        self._lock = threading.Lock()

    def record_outcome(
        self,
        issue_number: int,
        analysis: EpicAnalysis,
        outcome: LearningOutcome,
    ) -> OutcomeRecord:
        record = OutcomeRecord(
            issue_number=issue_number,
            predicted=analysis.success_prediction,
            confidence=analysis.confidence,
            outcome=LearningOutcome(outcome),
            epic_type=analysis.epic_type,
        )
        with self._lock:
            self._records.append(record)

        logger.info(
            "learning_outcome_recorded",
            issue_number=issue_number,
            predicted=record.predicted.value,
            outcome=record.outcome.value,
        )
        return record

    def records(self, issue_number: Optional[int] = None) -> list[OutcomeRecord]:
        with self._lock:
            records = list(self._records)
        if issue_number is None:
            return records
        return [r for r in records if r.issue_number == issue_number]

    def get_learning_insights(self) -> dict[str, Any]:
        """
        Prediction accuracy and success rate over the retained outcomes.

        Returns:
            Dictionary with accuracy, total_analyses, success_rate and
            human-readable insight lines.
        """
        records = self.records()
        if not records:
            return {"accuracy": 0.0, "total_analyses": 0, "success_rate": 0.0, "insights": []}

        total = len(records)
        accurate = sum(1 for r in records if prediction_was_accurate(r.predicted, r.outcome))
        successes = sum(1 for r in records if r.outcome == LearningOutcome.SUCCESS)
        accuracy = accurate / total
        success_rate = successes / total

        return {
            "accuracy": accuracy,
            "total_analyses": total,
            "success_rate": success_rate,
            "insights": [
                f"Prediction accuracy: {accuracy * 100:.1f}%",
                f"Total analyses: {total}",
                f"Success rate: {success_rate * 100:.1f}%",
            ],
        }
