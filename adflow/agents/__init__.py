"""Simulated campaign agents and their shared assembly."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from ..config import AdflowConfig, load_config
from .ad_copy import AdCopyAgent
from .base import BaseAgent
from .bid_optimizer import BidOptimizerAgent
from .campaign_setup import CampaignSetupAgent
from .keyword_manager import KeywordManagerAgent
from .metrics import FixedMetricsSource, MetricsSource, SimulatedMetricsSource
from .performance_monitor import PerformanceMonitorAgent
from .reporting import ReportingAgent


@dataclass
class AgentSet:
    """The six collaborators driven by the workflow engine."""

    campaign_setup: CampaignSetupAgent
    keyword_manager: KeywordManagerAgent
    ad_copy: AdCopyAgent
    bid_optimizer: BidOptimizerAgent
    performance_monitor: PerformanceMonitorAgent
    reporting: ReportingAgent

    def items(self) -> Iterator[Tuple[str, BaseAgent]]:
        yield "campaign_setup", self.campaign_setup
        yield "keyword_manager", self.keyword_manager
        yield "ad_copy", self.ad_copy
        yield "bid_optimizer", self.bid_optimizer
        yield "performance_monitor", self.performance_monitor
        yield "reporting", self.reporting


def build_agents(
    config: Optional[AdflowConfig] = None,
    seed: Optional[int] = None,
    metrics_source: Optional[MetricsSource] = None,
) -> AgentSet:
    """Create all agents sharing one random generator.

    Passing ``seed`` makes keyword jitter and simulated metrics reproducible.
    """
    config = config or load_config()
    rng = random.Random(seed)
    return AgentSet(
        campaign_setup=CampaignSetupAgent(config, rng),
        keyword_manager=KeywordManagerAgent(config, rng),
        ad_copy=AdCopyAgent(config, rng),
        bid_optimizer=BidOptimizerAgent(config, rng),
        performance_monitor=PerformanceMonitorAgent(
            config, rng, metrics_source=metrics_source
        ),
        reporting=ReportingAgent(config, rng),
    )


__all__ = [
    "AgentSet",
    "BaseAgent",
    "build_agents",
    "AdCopyAgent",
    "BidOptimizerAgent",
    "CampaignSetupAgent",
    "KeywordManagerAgent",
    "PerformanceMonitorAgent",
    "ReportingAgent",
    "MetricsSource",
    "FixedMetricsSource",
    "SimulatedMetricsSource",
]
