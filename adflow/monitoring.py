"""Recurring performance checks outside the main workflow."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Optional

from .agents.models import PerformanceResult

if TYPE_CHECKING:
    from .engine import WorkflowEngine

logger = logging.getLogger(__name__)


class MonitoringHandle:
    """Handle to a running monitoring task.

    :meth:`cancel` stops the loop before its next firing. A cycle that is
    already running is allowed to finish.
    """

    def __init__(self, stop: asyncio.Event) -> None:
        self._stop = stop
        self._task: Optional[asyncio.Task] = None
        self.cycles = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def cancel(self) -> None:
        self._stop.set()

    async def wait(self) -> None:
        if self._task is not None:
            await self._task


class ContinuousMonitor:
    def __init__(self, engine: "WorkflowEngine") -> None:
        self.engine = engine

    def start(self, interval_minutes: float = 15) -> MonitoringHandle:
        """Start the loop on the running event loop and return its handle."""
        stop = asyncio.Event()
        handle = MonitoringHandle(stop)
        handle._task = asyncio.create_task(self._loop(interval_minutes * 60, handle))
        logger.info(f"Starting continuous monitoring (every {interval_minutes} minutes)")
        return handle

    async def _loop(self, interval: float, handle: MonitoringHandle) -> None:
        while True:
            try:
                await asyncio.wait_for(handle._stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
            if handle._stop.is_set():
                break
            await self.run_cycle()
            handle.cycles += 1
        logger.info("Continuous monitoring stopped")

    async def run_cycle(self) -> Optional[PerformanceResult]:
        """Run one monitoring cycle.

        Returns the fresh performance result, or ``None`` when there is no
        campaign to monitor or the cycle failed. Errors are logged, never raised.
        """
        engine = self.engine
        agents = engine.agents
        try:
            latest = engine.history.latest()
            if latest is None:
                logger.info("No previous workflow found, skipping monitoring cycle")
                return None
            campaign_id = latest.campaign_id
            if not campaign_id:
                logger.info("No campaign ID found, skipping monitoring cycle")
                return None

            performance = await agents.performance_monitor.monitor(campaign_id)
            if performance.alerts:
                logger.warning(
                    f"{len(performance.alerts)} alerts detected, running optimization"
                )
                await agents.bid_optimizer.adjust_bids(campaign_id, performance.metrics)
                campaign = latest.results.campaign_setup
                await agents.reporting.generate_report(
                    campaign.model_dump(mode="json"),
                    performance,
                    engine.get_all_agent_statuses(),
                )
            return performance
        except Exception as e:
            logger.error(f"Error in continuous monitoring: {e}")
            return None
