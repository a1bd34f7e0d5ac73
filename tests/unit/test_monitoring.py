import asyncio
import logging
from unittest.mock import AsyncMock

import pytest

from adflow.contracts import WorkflowRecord, WorkflowStatus
from adflow.monitoring import ContinuousMonitor

# 60 ms between firings
FAST_INTERVAL = 0.001


def _agent_calls(agents):
    return (
        agents.performance_monitor.calls,
        agents.bid_optimizer.calls,
        agents.reporting.calls,
    )


@pytest.mark.asyncio
async def test_cycle_with_empty_history_is_noop(engine, stub_agents):
    result = await ContinuousMonitor(engine).run_cycle()

    assert result is None
    assert _agent_calls(stub_agents) == ([], [], [])


@pytest.mark.asyncio
async def test_cycle_without_campaign_id_is_noop(engine, stub_agents):
    engine.history.record_completion(WorkflowRecord(status=WorkflowStatus.COMPLETED))

    assert await ContinuousMonitor(engine).run_cycle() is None
    assert _agent_calls(stub_agents) == ([], [], [])


@pytest.mark.asyncio
async def test_cycle_without_alerts_only_monitors(engine, stub_agents):
    await engine.execute_workflow()
    bid_calls = len(stub_agents.bid_optimizer.calls)
    report_calls = len(stub_agents.reporting.calls)

    result = await ContinuousMonitor(engine).run_cycle()

    assert result is not None and result.alerts == []
    assert stub_agents.performance_monitor.calls[-1] == "c1"
    assert len(stub_agents.bid_optimizer.calls) == bid_calls
    assert len(stub_agents.reporting.calls) == report_calls


@pytest.mark.asyncio
async def test_cycle_with_alerts_optimizes_and_reports(make_engine, poor_metrics):
    engine = make_engine(metrics=poor_metrics)
    agents = engine.agents
    await engine.execute_workflow()

    result = await ContinuousMonitor(engine).run_cycle()

    assert result.alerts
    campaign_id, metrics, keywords = agents.bid_optimizer.calls[-1]
    assert campaign_id == "c1"
    assert metrics == result.metrics
    assert keywords == []
    campaign, performance, statuses = agents.reporting.calls[-1]
    assert campaign["id"] == "c1"
    assert performance is result
    assert "performance_monitor" in statuses
    assert len(agents.reporting.reports) == 2


@pytest.mark.asyncio
async def test_cycle_errors_are_logged_not_raised(engine, stub_agents, caplog):
    await engine.execute_workflow()
    stub_agents.performance_monitor.monitor = AsyncMock(side_effect=RuntimeError("api down"))

    with caplog.at_level(logging.ERROR, logger="adflow.monitoring"):
        result = await ContinuousMonitor(engine).run_cycle()

    assert result is None
    assert "api down" in caplog.text


@pytest.mark.asyncio
async def test_monitoring_fires_until_cancelled(engine, stub_agents):
    handle = engine.start_continuous_monitoring(FAST_INTERVAL)
    assert handle.running

    await asyncio.sleep(0.2)
    handle.cancel()
    await asyncio.wait_for(handle.wait(), timeout=1)

    assert not handle.running
    assert handle.cycles >= 1
    # empty history, so no cycle reached an agent
    assert stub_agents.performance_monitor.calls == []


@pytest.mark.asyncio
async def test_cancel_before_first_firing(engine):
    handle = engine.start_continuous_monitoring(15)
    handle.cancel()
    await asyncio.wait_for(handle.wait(), timeout=1)

    assert handle.cycles == 0


@pytest.mark.asyncio
async def test_monitoring_survives_failing_cycles(engine, stub_agents):
    await engine.execute_workflow()
    stub_agents.performance_monitor.monitor = AsyncMock(side_effect=RuntimeError("boom"))

    handle = engine.start_continuous_monitoring(FAST_INTERVAL)
    await asyncio.sleep(0.2)
    assert handle.running
    handle.cancel()
    await asyncio.wait_for(handle.wait(), timeout=1)

    assert stub_agents.performance_monitor.monitor.await_count >= 2
