"""Workflow records and projections exchanged by the adflow engine."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .agents.models import (
    AdCopyResult,
    AgentStatus,
    BidResult,
    CampaignResult,
    DashboardSnapshot,
    KeywordResult,
    PerformanceResult,
    ReportResult,
    utcnow,
)
from .utils import NO_DATA


class WorkflowStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"


class StageStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class OrchestratorStatus(str, Enum):
    IDLE = "idle"
    WORKING = "working"
    COMPLETED = "completed"
    ERROR = "error"


class StageOutcome(BaseModel):
    """Outcome of one stage, built when the stage exits."""

    model_config = ConfigDict(frozen=True)

    stage: int
    name: str
    status: StageStatus
    duration: int = Field(description="Milliseconds spent in agent calls")
    result: Optional[Dict[str, Any]] = None
    results: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


class WorkflowResults(BaseModel):
    """Raw agent outputs, filled in as each stage completes."""

    campaign_setup: Optional[CampaignResult] = None
    keyword_optimization: Optional[KeywordResult] = None
    ad_copy_generation: Optional[AdCopyResult] = None
    performance_monitoring: Optional[PerformanceResult] = None
    bid_optimization: Optional[BidResult] = None
    reporting: Optional[ReportResult] = None


def new_workflow_id() -> str:
    return f"workflow_{uuid.uuid4().hex}"


class WorkflowRecord(BaseModel):
    """One end-to-end run of the four stages."""

    id: str = Field(default_factory=new_workflow_id)
    type: str = "full_automation"
    start_time: datetime = Field(default_factory=utcnow)
    end_time: Optional[datetime] = None
    duration: Optional[str] = None
    stages: List[StageOutcome] = Field(default_factory=list)
    results: WorkflowResults = Field(default_factory=WorkflowResults)
    status: WorkflowStatus = WorkflowStatus.IN_PROGRESS
    error: Optional[str] = None

    @property
    def stage_count(self) -> int:
        return len(self.stages)

    @property
    def campaign_id(self) -> Optional[str]:
        campaign = self.results.campaign_setup
        return campaign.id if campaign else None

    def is_terminal(self) -> bool:
        return self.status != WorkflowStatus.IN_PROGRESS


class WorkflowSummary(BaseModel):
    total_workflows: int = 0
    successful_workflows: int = 0
    failed_workflows: int = 0
    average_duration: str = NO_DATA
    last_workflow: Optional[WorkflowRecord] = None


class OrchestratorInfo(BaseModel):
    name: str
    status: OrchestratorStatus
    agents: List[str] = Field(default_factory=list)


class WorkflowExport(BaseModel):
    """Structured document produced by a JSON export of the history."""

    orchestrator: OrchestratorInfo
    workflows: List[WorkflowRecord] = Field(default_factory=list)
    summary: WorkflowSummary
    exported_at: datetime = Field(default_factory=utcnow)


class OrchestratorSnapshot(BaseModel):
    status: OrchestratorStatus
    current_workflow: Optional[str] = None
    total_workflows: int = 0
    last_workflow: Optional[datetime] = Field(
        default=None, description="Start time of the most recent recorded workflow"
    )


class DashboardStatus(BaseModel):
    """Read-only view used by dashboards polling the engine."""

    orchestrator: OrchestratorSnapshot
    agents: Dict[str, AgentStatus] = Field(default_factory=dict)
    dashboard: DashboardSnapshot
    timestamp: datetime = Field(default_factory=utcnow)
