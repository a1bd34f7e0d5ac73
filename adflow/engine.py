"""Four-stage campaign automation workflow."""

from __future__ import annotations

import logging
import time
from typing import Dict, Optional, Union

from .agents import AgentSet, build_agents
from .agents.models import AgentStatus, CampaignRequest, Targeting, utcnow
from .config import AdflowConfig, load_config, validate_config
from .contracts import (
    DashboardStatus,
    OrchestratorInfo,
    OrchestratorSnapshot,
    OrchestratorStatus,
    StageOutcome,
    StageStatus,
    WorkflowExport,
    WorkflowRecord,
    WorkflowStatus,
    WorkflowSummary,
)
from .errors import WorkflowBusyError
from .history import InMemoryWorkflowHistory, WorkflowHistory, export_history
from .monitoring import ContinuousMonitor, MonitoringHandle
from .utils import duration_between

logger = logging.getLogger(__name__)

FALLBACK_CAMPAIGN_ID = "demo_campaign"
AD_COPY_KEYWORD_LIMIT = 10
BID_KEYWORD_LIMIT = 5


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class WorkflowEngine:
    """Runs the campaign stages in order and keeps the workflow history.

    Only one workflow may be in progress per engine. A second call to
    :meth:`execute_workflow` while one is running raises
    :class:`~adflow.errors.WorkflowBusyError`.
    """

    name = "Campaign Automation Orchestrator"

    def __init__(
        self,
        agents: Optional[AgentSet] = None,
        config: Optional[AdflowConfig] = None,
        history: Optional[WorkflowHistory] = None,
    ) -> None:
        self.config = config or load_config()
        self.agents = agents or build_agents(self.config)
        self.history = history if history is not None else InMemoryWorkflowHistory()
        self.status = OrchestratorStatus.IDLE
        self.current_workflow: Optional[WorkflowRecord] = None
        logger.info(f"[{self.name}] Initialized with {len(dict(self.agents.items()))} agents")

    async def execute_workflow(self, workflow_type: str = "full_automation") -> WorkflowRecord:
        if self.status == OrchestratorStatus.WORKING and self.current_workflow:
            raise WorkflowBusyError(self.current_workflow.id)

        self.status = OrchestratorStatus.WORKING
        workflow = WorkflowRecord(type=workflow_type)
        self.current_workflow = workflow
        logger.info(f"[{self.name}] Starting {workflow_type} workflow (ID: {workflow.id})")
        # Incomplete credentials only warn; the simulated agents use fallbacks.
        validate_config(self.config)

        try:
            await self.stage_setup(workflow)
            await self.stage_optimization(workflow)
            await self.stage_monitoring(workflow)
            await self.stage_reporting(workflow)
        except Exception as e:
            workflow.end_time = utcnow()
            workflow.duration = duration_between(workflow.start_time, workflow.end_time)
            workflow.status = WorkflowStatus.FAILED
            workflow.error = str(e) or type(e).__name__
            self.status = OrchestratorStatus.ERROR
            logger.error(f"[{self.name}] Workflow {workflow.id} failed: {e}")
            raise

        workflow.end_time = utcnow()
        workflow.duration = duration_between(workflow.start_time, workflow.end_time)
        workflow.status = WorkflowStatus.COMPLETED
        self.history.record_completion(workflow)
        self.status = OrchestratorStatus.COMPLETED
        logger.info(
            f"[{self.name}] Workflow {workflow.id} completed in {workflow.duration}"
        )
        return workflow

    # ------------------------------------------------------------------
    # Stages

    def _stage_failed(
        self, workflow: WorkflowRecord, stage: int, name: str, started: float, error: Exception
    ) -> None:
        workflow.stages.append(
            StageOutcome(
                stage=stage,
                name=name,
                status=StageStatus.FAILED,
                duration=_elapsed_ms(started),
                error=str(error) or type(error).__name__,
            )
        )
        logger.error(f"Stage {stage} ({name}) failed: {error}")

    async def stage_setup(self, workflow: WorkflowRecord) -> None:
        """Stage 1: create the campaign."""
        name = "Campaign Setup"
        logger.info(f"Stage 1: {name}")
        settings = self.config.workflow
        request = CampaignRequest(
            budget=self.config.campaign.budget_daily,
            campaign_type=settings.campaign_type,
            targeting=Targeting(
                location=self.config.campaign.region,
                radius=settings.targeting_radius,
                keywords=list(settings.setup_keywords),
            ),
        )

        started = time.monotonic()
        try:
            campaign = await self.agents.campaign_setup.setup(request)
        except Exception as e:
            self._stage_failed(workflow, 1, name, started, e)
            raise
        elapsed = _elapsed_ms(started)

        workflow.results.campaign_setup = campaign
        workflow.stages.append(
            StageOutcome(
                stage=1,
                name=name,
                status=StageStatus.COMPLETED,
                duration=elapsed,
                result={
                    "campaign_id": campaign.id,
                    "name": campaign.name,
                    "status": campaign.status,
                    "budget": campaign.budget,
                },
            )
        )

    async def stage_optimization(self, workflow: WorkflowRecord) -> None:
        """Stage 2: keyword optimization, then ad copy for the top exact matches."""
        name = "Optimization"
        logger.info(f"Stage 2: {name}")
        campaign = workflow.results.campaign_setup
        campaign_data = campaign.model_dump(mode="json") if campaign else {}

        started = time.monotonic()
        try:
            keywords = await self.agents.keyword_manager.optimize(
                list(self.config.workflow.seed_keywords)
            )
            top_keywords = keywords.keywords.exact[:AD_COPY_KEYWORD_LIMIT]
            ad_copy = await self.agents.ad_copy.generate(campaign_data, top_keywords)
        except Exception as e:
            self._stage_failed(workflow, 2, name, started, e)
            raise
        elapsed = _elapsed_ms(started)

        workflow.results.keyword_optimization = keywords
        workflow.results.ad_copy_generation = ad_copy
        workflow.stages.append(
            StageOutcome(
                stage=2,
                name=name,
                status=StageStatus.COMPLETED,
                duration=elapsed,
                results={
                    "keywords": keywords.summary.model_dump(mode="json"),
                    "ad_copy": ad_copy.summary.model_dump(mode="json"),
                },
            )
        )

    async def stage_monitoring(self, workflow: WorkflowRecord) -> None:
        """Stage 3: performance check followed by bid optimization."""
        name = "Monitoring & Optimization"
        logger.info(f"Stage 3: {name}")
        campaign_id = workflow.campaign_id or FALLBACK_CAMPAIGN_ID
        keyword_result = workflow.results.keyword_optimization
        exact = keyword_result.keywords.exact if keyword_result else []

        started = time.monotonic()
        try:
            performance = await self.agents.performance_monitor.monitor(campaign_id)
            bids = await self.agents.bid_optimizer.adjust_bids(
                campaign_id, performance.metrics, exact[:BID_KEYWORD_LIMIT]
            )
        except Exception as e:
            self._stage_failed(workflow, 3, name, started, e)
            raise
        elapsed = _elapsed_ms(started)

        workflow.results.performance_monitoring = performance
        workflow.results.bid_optimization = bids
        workflow.stages.append(
            StageOutcome(
                stage=3,
                name=name,
                status=StageStatus.COMPLETED,
                duration=elapsed,
                results={
                    "performance": {
                        "status": performance.status,
                        "overall_score": performance.analysis.overall_score,
                        "alerts": len(performance.alerts),
                    },
                    "bid_optimization": bids.summary.model_dump(mode="json"),
                },
            )
        )

    async def stage_reporting(self, workflow: WorkflowRecord) -> None:
        """Stage 4: comprehensive report and dashboard refresh."""
        name = "Reporting"
        logger.info(f"Stage 4: {name}")
        campaign = workflow.results.campaign_setup
        campaign_data = campaign.model_dump(mode="json") if campaign else {}
        performance = workflow.results.performance_monitoring
        statuses = self.get_all_agent_statuses()

        started = time.monotonic()
        try:
            report = await self.agents.reporting.generate_report(
                campaign_data, performance, statuses
            )
        except Exception as e:
            self._stage_failed(workflow, 4, name, started, e)
            raise
        elapsed = _elapsed_ms(started)

        workflow.results.reporting = report
        workflow.stages.append(
            StageOutcome(
                stage=4,
                name=name,
                status=StageStatus.COMPLETED,
                duration=elapsed,
                result={
                    "report_id": report.id,
                    "overall_score": report.executive_summary.campaign_health.status,
                    "insights": report.insights.total_insights,
                    "recommendations": report.recommendations.total_recommendations,
                },
            )
        )

    # ------------------------------------------------------------------
    # Queries

    def get_all_agent_statuses(self) -> Dict[str, AgentStatus]:
        return {key: agent.get_status() for key, agent in self.agents.items()}

    def start_continuous_monitoring(self, interval_minutes: float = 15) -> MonitoringHandle:
        """Schedule recurring monitoring cycles on the running event loop."""
        return ContinuousMonitor(self).start(interval_minutes)

    def get_dashboard_status(self) -> DashboardStatus:
        latest = self.history.latest()
        return DashboardStatus(
            orchestrator=OrchestratorSnapshot(
                status=self.status,
                current_workflow=self.current_workflow.id if self.current_workflow else None,
                total_workflows=len(self.history),
                last_workflow=latest.start_time if latest else None,
            ),
            agents=self.get_all_agent_statuses(),
            dashboard=self.agents.reporting.get_dashboard_data(),
        )

    def get_workflow_summary(self) -> WorkflowSummary:
        return self.history.summarize()

    def export_workflow_data(self, fmt: str = "json") -> Union[str, WorkflowExport]:
        info = OrchestratorInfo(
            name=self.name,
            status=self.status,
            agents=[key for key, _ in self.agents.items()],
        )
        return export_history(self.history, fmt, info)
