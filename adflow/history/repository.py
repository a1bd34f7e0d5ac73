"""History abstraction for terminal workflow records."""

from __future__ import annotations

from typing import Optional, Protocol

from ..contracts import WorkflowRecord, WorkflowSummary


class WorkflowHistory(Protocol):
    """Protocol for workflow history backends."""

    def record_completion(self, record: WorkflowRecord) -> None:
        """Append a terminal workflow record."""

    def list_workflows(self) -> list[WorkflowRecord]:
        """Return all recorded workflows in completion order."""

    def latest(self) -> Optional[WorkflowRecord]:
        """Return the most recently recorded workflow, if any."""

    def summarize(self) -> WorkflowSummary:
        """Aggregate counts and average duration."""

    def __len__(self) -> int:
        ...
