"""Workflow history storage and export."""

from __future__ import annotations

from .export import CSV_HEADER, export_history
from .inmemory import InMemoryWorkflowHistory
from .repository import WorkflowHistory

_history_instance: WorkflowHistory | None = None


def get_history() -> WorkflowHistory:
    """Return the process-wide history, creating an in-memory one on first use."""

    global _history_instance
    if _history_instance is None:
        _history_instance = InMemoryWorkflowHistory()
    return _history_instance


__all__ = [
    "CSV_HEADER",
    "InMemoryWorkflowHistory",
    "WorkflowHistory",
    "export_history",
    "get_history",
]
