import asyncio
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from adflow.contracts import (
    OrchestratorStatus,
    StageStatus,
    WorkflowRecord,
    WorkflowStatus,
)
from adflow.errors import WorkflowBusyError


@pytest.mark.asyncio
async def test_successful_workflow_runs_four_stages_in_order(engine):
    workflow = await engine.execute_workflow()

    assert workflow.status == WorkflowStatus.COMPLETED
    assert [s.stage for s in workflow.stages] == [1, 2, 3, 4]
    assert [s.name for s in workflow.stages] == [
        "Campaign Setup",
        "Optimization",
        "Monitoring & Optimization",
        "Reporting",
    ]
    assert all(s.status == StageStatus.COMPLETED for s in workflow.stages)
    assert all(s.duration >= 0 for s in workflow.stages)
    assert workflow.end_time is not None
    assert workflow.duration == "0s"
    assert engine.status == OrchestratorStatus.COMPLETED
    assert engine.history.latest() == workflow


@pytest.mark.asyncio
async def test_all_result_keys_populated(engine):
    workflow = await engine.execute_workflow()
    results = workflow.results

    assert results.campaign_setup.id == "c1"
    assert results.keyword_optimization is not None
    assert results.ad_copy_generation is not None
    assert results.performance_monitoring.campaign_id == "c1"
    assert results.bid_optimization is not None
    assert results.reporting.campaign_id == "c1"


@pytest.mark.asyncio
async def test_stage_summaries_are_condensed(engine):
    workflow = await engine.execute_workflow()
    setup, optimization, monitoring, reporting = workflow.stages

    assert setup.result == {
        "campaign_id": "c1",
        "name": "Test Campaign",
        "status": "ENABLED",
        "budget": 20.0,
    }
    assert set(optimization.results) == {"keywords", "ad_copy"}
    assert optimization.results["keywords"]["total_keywords"] == 12
    assert monitoring.results["performance"] == {
        "status": "excellent",
        "overall_score": 98,
        "alerts": 0,
    }
    assert "total_adjustments" in monitoring.results["bid_optimization"]
    assert reporting.result["report_id"] == workflow.results.reporting.id
    assert reporting.result["overall_score"] == "excellent"


@pytest.mark.asyncio
async def test_stage_one_request_uses_configuration(engine, stub_agents, config):
    await engine.execute_workflow()

    (request,) = stub_agents.campaign_setup.calls
    assert request.budget == config.campaign.budget_daily
    assert request.campaign_type == "Search"
    assert request.targeting.location == "London"
    assert request.targeting.radius == 25
    assert request.targeting.keywords == config.workflow.setup_keywords
    assert stub_agents.keyword_manager.calls == [config.workflow.seed_keywords]


@pytest.mark.asyncio
async def test_keyword_slices_are_prefixes(engine, stub_agents):
    await engine.execute_workflow()
    exact = stub_agents.keyword_manager.exact

    (campaign, ad_keywords), = stub_agents.ad_copy.calls
    assert campaign["id"] == "c1"
    assert ad_keywords == exact[:10]

    (campaign_id, _, bid_keywords), = stub_agents.bid_optimizer.calls
    assert campaign_id == "c1"
    assert bid_keywords == exact[:5]


@pytest.mark.asyncio
@pytest.mark.parametrize("count", [0, 3, 7, 10, 15])
async def test_keyword_slices_for_any_bucket_size(make_engine, count):
    engine = make_engine(exact_count=count)
    await engine.execute_workflow()
    exact = engine.agents.keyword_manager.exact

    (_, ad_keywords), = engine.agents.ad_copy.calls
    (_, _, bid_keywords), = engine.agents.bid_optimizer.calls
    assert ad_keywords == exact[: min(count, 10)]
    assert bid_keywords == exact[: min(count, 5)]


@pytest.mark.asyncio
async def test_optimization_without_campaign_passes_empty_object(engine, stub_agents):
    workflow = WorkflowRecord()

    await engine.stage_optimization(workflow)

    (campaign, _), = stub_agents.ad_copy.calls
    assert campaign == {}
    assert workflow.stages[0].status == StageStatus.COMPLETED


@pytest.mark.asyncio
async def test_monitoring_without_prior_stages_uses_fallbacks(engine, stub_agents):
    workflow = WorkflowRecord()

    await engine.stage_monitoring(workflow)

    assert stub_agents.performance_monitor.calls == ["demo_campaign"]
    (campaign_id, _, keywords), = stub_agents.bid_optimizer.calls
    assert campaign_id == "demo_campaign"
    assert keywords == []


@pytest.mark.asyncio
async def test_stage_failure_marks_workflow_failed(engine, stub_agents):
    stub_agents.performance_monitor.monitor = AsyncMock(
        side_effect=RuntimeError("metrics unavailable")
    )

    with pytest.raises(RuntimeError, match="metrics unavailable"):
        await engine.execute_workflow()

    workflow = engine.current_workflow
    assert workflow.status == WorkflowStatus.FAILED
    assert workflow.error == "metrics unavailable"
    assert workflow.end_time is not None
    assert workflow.duration is not None
    assert [s.stage for s in workflow.stages] == [1, 2, 3]
    failed = workflow.stages[-1]
    assert failed.status == StageStatus.FAILED
    assert failed.error == "metrics unavailable"
    assert failed.result is None and failed.results is None
    assert engine.status == OrchestratorStatus.ERROR


@pytest.mark.asyncio
async def test_ad_copy_failure_fails_optimization_stage(engine, stub_agents):
    stub_agents.ad_copy.generate = AsyncMock(side_effect=RuntimeError("template error"))

    with pytest.raises(RuntimeError, match="template error"):
        await engine.execute_workflow()

    workflow = engine.current_workflow
    assert [s.stage for s in workflow.stages] == [1, 2]
    assert workflow.stages[0].status == StageStatus.COMPLETED
    assert workflow.stages[1].status == StageStatus.FAILED
    assert workflow.stages[1].error == "template error"
    assert len(stub_agents.keyword_manager.calls) == 1
    assert workflow.results.campaign_setup is not None
    assert workflow.results.keyword_optimization is None
    assert workflow.results.ad_copy_generation is None
    assert stub_agents.performance_monitor.calls == []


@pytest.mark.asyncio
async def test_error_without_message_uses_exception_name(engine, stub_agents):
    stub_agents.reporting.generate_report = AsyncMock(side_effect=KeyError())

    with pytest.raises(KeyError):
        await engine.execute_workflow()

    workflow = engine.current_workflow
    assert workflow.error == "KeyError"
    assert workflow.stages[-1].error == "KeyError"


@pytest.mark.asyncio
async def test_returned_workflow_cannot_rewrite_history(engine):
    workflow = await engine.execute_workflow()

    workflow.status = WorkflowStatus.FAILED
    workflow.stages.clear()

    latest = engine.history.latest()
    assert latest.status == WorkflowStatus.COMPLETED
    assert latest.stage_count == 4
    summary = engine.get_workflow_summary()
    assert summary.successful_workflows == 1
    assert summary.failed_workflows == 0


@pytest.mark.asyncio
async def test_stage_outcomes_are_frozen(engine):
    workflow = await engine.execute_workflow()

    with pytest.raises(ValidationError):
        workflow.stages[0].status = StageStatus.FAILED
    assert workflow.stages[0].status == StageStatus.COMPLETED


@pytest.mark.asyncio
async def test_failed_workflow_is_not_recorded(engine, stub_agents):
    stub_agents.reporting.generate_report = AsyncMock(side_effect=ValueError("no report"))

    with pytest.raises(ValueError):
        await engine.execute_workflow()

    assert len(engine.history) == 0
    summary = engine.get_workflow_summary()
    assert summary.total_workflows == 0
    assert summary.failed_workflows == 0
    assert summary.average_duration == "N/A"


@pytest.mark.asyncio
async def test_engine_recovers_after_failure(engine, stub_agents):
    original = stub_agents.campaign_setup.setup
    stub_agents.campaign_setup.setup = AsyncMock(side_effect=RuntimeError("down"))
    with pytest.raises(RuntimeError):
        await engine.execute_workflow()

    stub_agents.campaign_setup.setup = original
    workflow = await engine.execute_workflow()
    assert workflow.status == WorkflowStatus.COMPLETED
    assert len(engine.history) == 1


@pytest.mark.asyncio
async def test_overlapping_workflow_is_rejected(engine, stub_agents):
    release = asyncio.Event()
    original = stub_agents.campaign_setup.setup

    async def slow_setup(request):
        await release.wait()
        return await original(request)

    stub_agents.campaign_setup.setup = slow_setup
    first = asyncio.create_task(engine.execute_workflow())
    await asyncio.sleep(0)

    with pytest.raises(WorkflowBusyError) as excinfo:
        await engine.execute_workflow()
    assert excinfo.value.workflow_id == engine.current_workflow.id

    release.set()
    workflow = await first
    assert workflow.status == WorkflowStatus.COMPLETED
    assert len(engine.history) == 1


def test_summary_with_no_workflows(engine):
    summary = engine.get_workflow_summary()
    assert summary.average_duration == "N/A"
    assert summary.last_workflow is None


def test_dashboard_status_before_any_workflow(engine):
    status = engine.get_dashboard_status()

    assert status.orchestrator.status == OrchestratorStatus.IDLE
    assert status.orchestrator.current_workflow is None
    assert status.orchestrator.total_workflows == 0
    assert status.orchestrator.last_workflow is None
    assert status.dashboard.campaign_status == "unknown"
    assert status.dashboard.kpis["CTR"] == "N/A"
    assert set(status.agents) == {
        "campaign_setup",
        "keyword_manager",
        "ad_copy",
        "bid_optimizer",
        "performance_monitor",
        "reporting",
    }
    assert all(a.status == "idle" for a in status.agents.values())


@pytest.mark.asyncio
async def test_dashboard_status_after_workflow(engine):
    workflow = await engine.execute_workflow()
    status = engine.get_dashboard_status()

    assert status.orchestrator.status == OrchestratorStatus.COMPLETED
    assert status.orchestrator.current_workflow == workflow.id
    assert status.orchestrator.total_workflows == 1
    assert status.orchestrator.last_workflow == workflow.start_time
    assert status.dashboard.campaign_status == "excellent"
    assert status.dashboard.kpis["CPA"] == "£30.00"
    assert status.agents["performance_monitor"].status == "monitoring"


@pytest.mark.asyncio
async def test_reporting_receives_agent_statuses(engine, stub_agents):
    await engine.execute_workflow()

    (campaign, performance, statuses), = stub_agents.reporting.calls
    assert campaign["id"] == "c1"
    assert performance.campaign_id == "c1"
    assert statuses["bid_optimizer"].status == "completed"
    assert statuses["reporting"].status == "idle"
