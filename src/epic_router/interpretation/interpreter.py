"""
Natural-language epic interpretation.

The interpreter turns a work item's free text and labels into an
``EpicAnalysis``: epic type and confidence, matched keyword evidence,
complexity, predicted success, and task / acceptance-criteria estimates.

``EpicClassifier`` is the single contract the orchestration service depends
on. ``WeightedVocabularyInterpreter`` is the heuristic implementation: it sums
keyword weights per epic type and normalizes the winner into a confidence. It
is not a trained model, and a trained classifier can replace it by
implementing ``analyze``.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from epic_router.interpretation.vocabulary import (
    EPIC_LABELS,
    EPIC_VOCABULARY,
    HIGH_COMPLEXITY_KEYWORDS,
    PRIORITY_LABEL_RE,
    ScoringConfig,
    body_length_points,
    keyword_pattern,
)
from epic_router.models.analysis import EpicAnalysis, EpicType
from epic_router.models.work_item import WorkItemInput
from epic_router.utils.logging import get_logger

logger = get_logger(__name__)


# ==================
# Body structure parsing
# ==================

_CHECKLIST_RE = re.compile(r"^\s*[-*+]\s+\[[ xX]\]\s+\S")
_BULLET_RE = re.compile(r"^\s*(?:[-*+]|\d+[.)])\s+(?!\[[ xX]\])\S")
_MARKDOWN_HEADING_RE = re.compile(r"^\s{0,3}#{1,6}\s+(.+?)\s*#*\s*$")
_BOLD_HEADING_RE = re.compile(r"^\s*\*\*(.+?)\*\*:?\s*$")
_COLON_HEADING_RE = re.compile(r"^\s*([A-Za-z][\w /&-]{2,60}):\s*$")
_CRITERIA_HEADING_RE = re.compile(
    r"acceptance\s+criteria|definition\s+of\s+done|success\s+criteria",
    re.IGNORECASE,
)
_GIVEN_WHEN_THEN_RE = re.compile(r"^\s*(?:[-*+]\s+)?given\b.*\bthen\b", re.IGNORECASE)


@dataclass(frozen=True)
class BodyStructure:
    """Counts parsed from the markdown structure of an issue body."""

    task_count: int = 0
    acceptance_criteria_count: int = 0
    checklist_items: int = 0
    word_count: int = 0


def _heading_text(line: str) -> Optional[str]:
    for pattern in (_MARKDOWN_HEADING_RE, _BOLD_HEADING_RE, _COLON_HEADING_RE):
        match = pattern.match(line)
        if match:
            return match.group(1)
    return None


def parse_body_structure(body: str) -> BodyStructure:
    """
    Count tasks and acceptance criteria declared in an issue body.

    Checklist items (``- [ ]`` / ``- [x]``) under a heading that mentions
    acceptance criteria, definition of done or success criteria are counted
    as acceptance criteria; all other checklist items are tasks.
    ``Given ... then`` lines always count as acceptance criteria. When the
    body has no checklist tasks, plain bullet items outside the criteria
    section serve as the task estimate.

    Args:
        body: Issue body text (markdown).

    Returns:
        BodyStructure with the parsed counts.
    """
    if not body:
        return BodyStructure()

    in_criteria = False
    checklist_tasks = 0
    plain_tasks = 0
    criteria = 0
    checklist_items = 0

    for line in body.splitlines():
        heading = _heading_text(line)
        if heading is not None:
            in_criteria = bool(_CRITERIA_HEADING_RE.search(heading))
            continue

        if _CHECKLIST_RE.match(line):
            checklist_items += 1
            if in_criteria:
                criteria += 1
            else:
                checklist_tasks += 1
            continue

        if _GIVEN_WHEN_THEN_RE.match(line):
            criteria += 1
            continue

        if _BULLET_RE.match(line):
            if in_criteria:
                criteria += 1
            else:
                plain_tasks += 1

    return BodyStructure(
        task_count=checklist_tasks if checklist_tasks else plain_tasks,
        acceptance_criteria_count=criteria,
        checklist_items=checklist_items,
        word_count=len(body.split()),
    )


# ==================
# Classifier contract
# ==================


class EpicClassifier(ABC):
    """
    Contract for anything that can classify a work item.

    Implementations must never raise for a well-formed ``WorkItemInput``;
    degraded input yields a low-confidence ``EpicType.GENERAL`` analysis.
    """

    name: str = "classifier"

    @abstractmethod
    def analyze(self, work_item: WorkItemInput) -> EpicAnalysis:
        """Classify a work item."""


class WeightedVocabularyInterpreter(EpicClassifier):
    """
    Keyword-weighted epic classifier.

    Usage:
        interpreter = WeightedVocabularyInterpreter()
        analysis = interpreter.analyze(work_item)
        analysis.epic_type, analysis.confidence
    """

    name = "weighted-vocabulary"

    def __init__(
        self,
        vocabulary: Optional[dict[EpicType, dict[str, float]]] = None,
        complexity_keywords: Optional[tuple[str, ...]] = None,
        scoring: Optional[ScoringConfig] = None,
    ) -> None:
        self._vocabulary = vocabulary or EPIC_VOCABULARY
        self._complexity_keywords = complexity_keywords or HIGH_COMPLEXITY_KEYWORDS
        self._scoring = scoring or ScoringConfig()

    @property
    def scoring(self) -> ScoringConfig:
        return self._scoring

    def analyze(self, work_item: WorkItemInput) -> EpicAnalysis:
        """
        Classify a work item.

        Args:
            work_item: Normalized work item.

        Returns:
            EpicAnalysis; a degraded GENERAL analysis if classification fails.
        """
        try:
            return self._analyze(work_item)
        except Exception as e:
            logger.error(
                "epic_interpretation_failed",
                issue_number=work_item.issue_number,
                error=str(e),
                error_type=type(e).__name__,
                exc_info=True,
            )
            return self.degraded_analysis(work_item)

    # ==================
    # Scoring steps
    # ==================

    def _analyze(self, work_item: WorkItemInput) -> EpicAnalysis:
        if work_item.is_empty:
            logger.info("epic_input_empty", issue_number=work_item.issue_number)
            return self.degraded_analysis(work_item)

        text = work_item.combined_text
        epic_type, score, keywords = self._classify(text)
        confidence = self._confidence(score)

        structure = parse_body_structure(work_item.body)
        complexity_score = self._complexity_score(work_item, text, structure)
        success_score = self._success_score(
            complexity_score,
            confidence,
            structure.acceptance_criteria_count,
            len(work_item.assignees),
        )

        analysis = EpicAnalysis(
            epic_type=epic_type,
            confidence=confidence,
            keywords=keywords,
            complexity_level=self._scoring.bucket(complexity_score),
            complexity_score=complexity_score,
            success_prediction=self._scoring.bucket(success_score),
            success_score=success_score,
            task_count=structure.task_count,
            acceptance_criteria_count=structure.acceptance_criteria_count,
        )

        logger.debug(
            "epic_classified",
            issue_number=work_item.issue_number,
            epic_type=analysis.epic_type.value,
            vocabulary_score=round(score, 2),
            confidence=round(confidence, 3),
            complexity_score=complexity_score,
            success_score=success_score,
        )
        return analysis

    def _classify(self, text: str) -> tuple[EpicType, float, tuple[str, ...]]:
        """Pick the highest-scoring epic type and its keywords in match order."""
        best_type = EpicType.GENERAL
        best_score = 0.0
        best_matches: list[tuple[int, str]] = []
        cap = self._scoring.max_occurrences_per_keyword

        for epic_type, weights in self._vocabulary.items():
            score = 0.0
            matches: list[tuple[int, str]] = []
            for keyword, weight in weights.items():
                found = list(keyword_pattern(keyword).finditer(text))
                if not found:
                    continue
                score += weight * min(len(found), cap)
                matches.append((found[0].start(), keyword))
            # Strictly greater keeps the earlier table entry on ties
            if score > best_score:
                best_type, best_score, best_matches = epic_type, score, matches

        keywords = tuple(keyword for _, keyword in sorted(best_matches))
        return best_type, best_score, keywords

    def _confidence(self, score: float) -> float:
        confidence = min(score / self._scoring.saturation_score, 1.0)
        return round(max(confidence, self._scoring.fallback_confidence), 4)

    def _complexity_score(
        self,
        work_item: WorkItemInput,
        text: str,
        structure: BodyStructure,
    ) -> int:
        """Additive complexity from length, labels, keywords and declared work."""
        s = self._scoring
        labels = work_item.normalized_labels

        keyword_hits = sum(
            1 for keyword in self._complexity_keywords
            if keyword_pattern(keyword).search(text)
        )

        total = body_length_points(structure.word_count)
        total += min(len(labels) * s.label_points, s.label_cap)
        total += min(keyword_hits * s.keyword_points, s.keyword_cap)
        total += min(structure.task_count * s.task_points, s.task_cap)
        total += min(structure.acceptance_criteria_count * s.criteria_points, s.criteria_cap)
        if EPIC_LABELS.intersection(labels):
            total += s.epic_label_points
        if any(PRIORITY_LABEL_RE.match(label) for label in labels):
            total += s.priority_label_points

        return int(round(min(total, 100.0)))

    def _success_score(
        self,
        complexity_score: int,
        confidence: float,
        acceptance_criteria_count: int,
        assignee_count: int,
    ) -> int:
        """Higher confidence and lower complexity predict higher success."""
        s = self._scoring
        score = (
            s.success_complexity_weight * (100 - complexity_score)
            + s.success_confidence_weight * confidence * 100
        )
        if acceptance_criteria_count > 0:
            score += s.acceptance_criteria_bonus
        if assignee_count > 0:
            score += s.assignee_bonus
        return int(round(max(0.0, min(score, 100.0))))

    def degraded_analysis(self, work_item: WorkItemInput) -> EpicAnalysis:
        """Low-confidence GENERAL analysis for input that cannot be classified."""
        s = self._scoring
        complexity_score = s.empty_input_complexity
        success_score = self._success_score(
            complexity_score,
            s.fallback_confidence,
            0,
            len(work_item.assignees),
        )
        return EpicAnalysis(
            epic_type=EpicType.GENERAL,
            confidence=s.fallback_confidence,
            keywords=(),
            complexity_level=s.bucket(complexity_score),
            complexity_score=complexity_score,
            success_prediction=s.bucket(success_score),
            success_score=success_score,
            task_count=0,
            acceptance_criteria_count=0,
        )
