"""Serialise workflow history to JSON or CSV."""

from __future__ import annotations

import csv
import io
from typing import Union

from ..contracts import OrchestratorInfo, WorkflowExport
from ..utils import NO_DATA
from .repository import WorkflowHistory

CSV_HEADER = [
    "Workflow ID",
    "Type",
    "Status",
    "Start Time",
    "End Time",
    "Duration",
    "Stages Completed",
]


def build_export(history: WorkflowHistory, orchestrator: OrchestratorInfo) -> WorkflowExport:
    return WorkflowExport(
        orchestrator=orchestrator,
        workflows=history.list_workflows(),
        summary=history.summarize(),
    )


def to_csv(history: WorkflowHistory) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for record in history.list_workflows():
        writer.writerow(
            [
                record.id,
                record.type,
                record.status.value,
                record.start_time.isoformat(),
                record.end_time.isoformat() if record.end_time else NO_DATA,
                record.duration or NO_DATA,
                record.stage_count,
            ]
        )
    return buffer.getvalue().rstrip("\n")


def export_history(
    history: WorkflowHistory, fmt: str, orchestrator: OrchestratorInfo
) -> Union[str, WorkflowExport]:
    """Export ``history`` as ``json`` or ``csv`` text.

    Any other format returns the :class:`WorkflowExport` model as-is.
    """
    if fmt == "csv":
        return to_csv(history)
    document = build_export(history, orchestrator)
    if fmt == "json":
        return document.model_dump_json(indent=2)
    return document
