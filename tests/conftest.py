from __future__ import annotations

import random

import pytest

from adflow.agents import (
    AdCopyAgent,
    AgentSet,
    BidOptimizerAgent,
    FixedMetricsSource,
    PerformanceMonitorAgent,
    ReportingAgent,
)
from adflow.agents.base import BaseAgent
from adflow.agents.models import (
    CampaignResult,
    KeywordBuckets,
    KeywordEntry,
    KeywordResult,
    KeywordSummary,
    PerformanceMetrics,
)
from adflow.config import AdflowConfig
from adflow.engine import WorkflowEngine
from adflow.history import InMemoryWorkflowHistory

# Every KPI comfortably inside the default thresholds, so no alerts fire.
GOOD_METRICS = PerformanceMetrics(
    impressions=5000,
    clicks=200,
    cost=200.0,
    conversions=6,
    ctr=4.0,
    cpc=1.0,
    cpa=30.0,
    roas=4.0,
    quality_score=8,
    search_impression_share=60,
    avg_position=2.0,
    conversion_rate=3.0,
)

# CPA and ROAS far outside their thresholds.
POOR_METRICS = GOOD_METRICS.model_copy(update={"cpa": 150.0, "roas": 0.5})


def make_keywords(count: int) -> list[KeywordEntry]:
    return [
        KeywordEntry(
            keyword=f"security keyword {i}",
            estimated_cpc=1.2,
            competition="HIGH",
            suggested_bid=1.44,
        )
        for i in range(count)
    ]


class StubCampaignSetup(BaseAgent):
    name = "Campaign Setup Agent"

    def __init__(self, config: AdflowConfig, campaign_id: str = "c1") -> None:
        super().__init__(config)
        self.campaign_id = campaign_id
        self.calls = []

    async def setup(self, request):
        self.calls.append(request)
        self._begin("stub setup")
        self._succeed(f"Campaign created: {self.campaign_id}")
        return CampaignResult(
            id=self.campaign_id,
            name="Test Campaign",
            status="ENABLED",
            budget=request.budget,
            campaign_type=request.campaign_type,
            targeting=request.targeting,
        )


class StubKeywordManager(BaseAgent):
    name = "Keyword Manager Agent"

    def __init__(self, config: AdflowConfig, exact_count: int = 12) -> None:
        super().__init__(config)
        self.exact = make_keywords(exact_count)
        self.calls = []

    async def optimize(self, seed_keywords):
        self.calls.append(list(seed_keywords))
        self._begin("stub optimize")
        self._succeed(f"Optimized {len(self.exact)} keywords")
        return KeywordResult(
            keywords=KeywordBuckets(exact=list(self.exact)),
            summary=KeywordSummary(total_keywords=len(self.exact), negative_keywords=0),
        )


class RecordingAdCopy(AdCopyAgent):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.calls = []

    async def generate(self, campaign, keywords):
        self.calls.append((campaign, list(keywords)))
        return await super().generate(campaign, keywords)


class RecordingBidOptimizer(BidOptimizerAgent):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.calls = []

    async def adjust_bids(self, campaign_id, metrics, keywords=None):
        self.calls.append((campaign_id, metrics, list(keywords or [])))
        return await super().adjust_bids(campaign_id, metrics, keywords)


class RecordingPerformanceMonitor(PerformanceMonitorAgent):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.calls = []

    async def monitor(self, campaign_id):
        self.calls.append(campaign_id)
        return await super().monitor(campaign_id)


class RecordingReporting(ReportingAgent):
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.calls = []

    async def generate_report(self, campaign, performance, agent_statuses):
        self.calls.append((campaign, performance, agent_statuses))
        return await super().generate_report(campaign, performance, agent_statuses)


def build_stub_agents(
    config: AdflowConfig,
    metrics: PerformanceMetrics = GOOD_METRICS,
    exact_count: int = 12,
) -> AgentSet:
    rng = random.Random(7)
    return AgentSet(
        campaign_setup=StubCampaignSetup(config),
        keyword_manager=StubKeywordManager(config, exact_count=exact_count),
        ad_copy=RecordingAdCopy(config, rng),
        bid_optimizer=RecordingBidOptimizer(config, rng),
        performance_monitor=RecordingPerformanceMonitor(
            config, rng, metrics_source=FixedMetricsSource(metrics)
        ),
        reporting=RecordingReporting(config, rng),
    )


@pytest.fixture
def config() -> AdflowConfig:
    return AdflowConfig()


@pytest.fixture
def stub_agents(config) -> AgentSet:
    return build_stub_agents(config)


@pytest.fixture
def engine(config, stub_agents) -> WorkflowEngine:
    return WorkflowEngine(
        agents=stub_agents, config=config, history=InMemoryWorkflowHistory()
    )


@pytest.fixture
def make_engine(config):
    """Factory for engines with custom metrics or keyword bucket sizes."""

    def _make(metrics: PerformanceMetrics = GOOD_METRICS, exact_count: int = 12):
        agents = build_stub_agents(config, metrics=metrics, exact_count=exact_count)
        return WorkflowEngine(
            agents=agents, config=config, history=InMemoryWorkflowHistory()
        )

    return _make


@pytest.fixture
def poor_metrics() -> PerformanceMetrics:
    return POOR_METRICS
