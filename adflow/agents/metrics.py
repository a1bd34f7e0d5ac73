"""Sources of simulated campaign performance metrics."""

from __future__ import annotations

import random
from datetime import datetime
from typing import Callable, Optional, Protocol

from .models import PerformanceMetrics

AVERAGE_ORDER_VALUE = 500.0


class MetricsSource(Protocol):
    """Produces the raw metrics the performance monitor analyses."""

    def fetch(self, campaign_id: str) -> PerformanceMetrics:
        """Return current metrics for ``campaign_id``."""


class FixedMetricsSource:
    """Always returns the same metrics. Handy for reproducible runs."""

    def __init__(self, metrics: PerformanceMetrics) -> None:
        self.metrics = metrics
        self.calls: list[str] = []

    def fetch(self, campaign_id: str) -> PerformanceMetrics:
        self.calls.append(campaign_id)
        return self.metrics.model_copy()


class SimulatedMetricsSource:
    """Random but realistic metrics for a local-services search campaign.

    Business hours and weekdays get a traffic and conversion boost. Both the
    random generator and the clock are injectable.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.rng = rng or random.Random()
        self.clock = clock

    def fetch(self, campaign_id: str) -> PerformanceMetrics:
        rng = self.rng
        impressions = rng.randrange(1000, 6000)
        ctr = round((rng.random() * 0.04 + 0.015) * 100, 2)
        cpc = round(rng.random() * 1.5 + 0.8, 2)
        conversion_rate = round((rng.random() * 0.03 + 0.01) * 100, 2)

        now = self.clock()
        if 9 <= now.hour <= 18:
            impressions *= 1.3
            ctr *= 1.1
            conversion_rate *= 1.2
        if now.isoweekday() <= 5:
            impressions *= 1.2
            conversion_rate *= 1.15

        clicks = int(impressions * ctr / 100)
        cost = clicks * cpc
        conversions = int(clicks * conversion_rate / 100)
        cpa = cost / conversions if conversions else 0.0
        roas = conversions * AVERAGE_ORDER_VALUE / cost if conversions and cost else 0.0

        return PerformanceMetrics(
            impressions=round(impressions),
            clicks=clicks,
            cost=round(cost, 2),
            conversions=conversions,
            ctr=round(ctr, 2),
            cpc=cpc,
            cpa=round(cpa, 2),
            roas=round(roas, 2),
            quality_score=rng.randint(6, 9),
            search_impression_share=round((rng.random() * 0.4 + 0.3) * 100),
            avg_position=round(rng.random() * 2 + 1.5, 1),
            conversion_rate=round(conversion_rate, 2),
        )
