"""In-memory implementation of the workflow history."""

from __future__ import annotations

import logging
from typing import List, Optional

from ..contracts import WorkflowRecord, WorkflowStatus, WorkflowSummary
from ..utils import average_duration
from .repository import WorkflowHistory

logger = logging.getLogger(__name__)


class InMemoryWorkflowHistory(WorkflowHistory):
    """Keep workflow records in a process-local list.

    Records are append-only and never evicted. Nothing survives a restart.
    The store keeps its own copy of each record and hands out copies, so
    callers cannot rewrite recorded history.
    """

    def __init__(self) -> None:
        self._records: List[WorkflowRecord] = []

    # ------------------------------------------------------------------
    def record_completion(self, record: WorkflowRecord) -> None:
        if not record.is_terminal():
            raise ValueError(f"Workflow {record.id} has not finished yet")
        self._records.append(record.model_copy(deep=True))
        logger.debug(f"Recorded workflow {record.id} ({record.status.value})")

    def list_workflows(self) -> list[WorkflowRecord]:
        return [r.model_copy(deep=True) for r in self._records]

    def latest(self) -> Optional[WorkflowRecord]:
        return self._records[-1].model_copy(deep=True) if self._records else None

    def summarize(self) -> WorkflowSummary:
        completed = [r for r in self._records if r.status == WorkflowStatus.COMPLETED]
        failed = [r for r in self._records if r.status == WorkflowStatus.FAILED]
        return WorkflowSummary(
            total_workflows=len(self._records),
            successful_workflows=len(completed),
            failed_workflows=len(failed),
            average_duration=average_duration(r.duration for r in completed),
            last_workflow=self.latest(),
        )

    def __len__(self) -> int:
        return len(self._records)
