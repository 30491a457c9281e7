"""
Context preservation across repeated analyses of the same work item.

The store keeps, per issue number, the most recent work item and the
analysis derived from it, so later handoffs can see what a worker was routed
on. It has exactly one entry per id (last write wins) and keeps no history.
Retention is bounded by ``max_entries``; when the bound is reached the entry
written least recently is evicted.
"""

import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from epic_router.models.analysis import EpicAnalysis
from epic_router.models.work_item import WorkItemInput
from epic_router.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ContextEntry:
    """The latest input and analysis recorded for one work item."""

    issue_number: int
    work_item: WorkItemInput
    analysis: Optional[EpicAnalysis] = None
    stored_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> dict:
        return {
            "issueNumber": self.issue_number,
            "workItem": self.work_item.model_dump(mode="json", by_alias=True),
            "analysis": (
                self.analysis.model_dump(mode="json", by_alias=True)
                if self.analysis is not None
                else None
            ),
            "storedAt": self.stored_at.isoformat(),
        }


class ContextPreservationManager:
    """
    In-memory, thread-safe store from issue number to its latest context.

    Lookups of an id that was never stored return ``None``, never an empty
    placeholder, so callers can tell "never analyzed" from "analyzed with
    empty fields".

    Usage:
        manager = ContextPreservationManager(max_entries=1000)
        manager.store_context(42, work_item, analysis)
        manager.get_context(42)   # -> WorkItemInput
        manager.get_context(7)    # -> None
    """

    def __init__(self, max_entries: Optional[int] = None) -> None:
        """
        Args:
            max_entries: Maximum ids retained (None keeps every id for the
                process lifetime).
        """
        if max_entries is not None and max_entries < 1:
            raise ValueError(f"max_entries must be at least 1, got {max_entries}")
        self._max_entries = max_entries
        self._entries: OrderedDict[int, ContextEntry] = OrderedDict()
        self._lock = threading.Lock()

    @property
    def max_entries(self) -> Optional[int]:
        return self._max_entries

    def store_context(
        self,
        issue_number: int,
        work_item: WorkItemInput,
        analysis: Optional[EpicAnalysis] = None,
    ) -> ContextEntry:
        """
        Record the latest input (and optionally analysis) for an issue.

        Overwrites any previous entry for the same id.

        Returns:
            The stored entry.
        """
        entry = ContextEntry(
            issue_number=issue_number,
            work_item=work_item,
            analysis=analysis,
        )
        evicted: Optional[int] = None

        with self._lock:
            overwritten = issue_number in self._entries
            self._entries[issue_number] = entry
            self._entries.move_to_end(issue_number)
            if self._max_entries is not None and len(self._entries) > self._max_entries:
                evicted, _ = self._entries.popitem(last=False)

        logger.debug(
            "context_stored",
            issue_number=issue_number,
            overwritten=overwritten,
            has_analysis=analysis is not None,
        )
        if evicted is not None:
            logger.info(
                "context_evicted",
                issue_number=evicted,
                max_entries=self._max_entries,
            )
        return entry

    def get_context(self, issue_number: int) -> Optional[WorkItemInput]:
        """Latest work item for an issue, or None if it was never stored."""
        entry = self.get_entry(issue_number)
        return entry.work_item if entry is not None else None

    def get_analysis(self, issue_number: int) -> Optional[EpicAnalysis]:
        entry = self.get_entry(issue_number)
        return entry.analysis if entry is not None else None

    def get_entry(self, issue_number: int) -> Optional[ContextEntry]:
        with self._lock:
            return self._entries.get(issue_number)

    def has_context(self, issue_number: int) -> bool:
        with self._lock:
            return issue_number in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
