import json

import pytest
from typer.testing import CliRunner

import adflow.history as history
from adflow.cli import app
from adflow.history import InMemoryWorkflowHistory

RUNNER = CliRunner()


@pytest.fixture(autouse=True)
def fresh_history(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("ADFLOW_CONFIG", raising=False)
    repo = InMemoryWorkflowHistory()
    monkeypatch.setattr(history, "_history_instance", repo)
    return repo


def test_run_prints_summary(fresh_history):
    result = RUNNER.invoke(app, ["run", "--seed", "42"])
    assert result.exit_code == 0, result.stdout
    output = result.stdout
    assert "completed" in output
    assert "Stages completed: 4/4" in output
    assert "1. Campaign Setup: completed" in output
    assert "performance_monitor: monitoring" in output
    assert len(fresh_history) == 1


def test_run_exports_csv_to_file(tmp_path, fresh_history):
    target = tmp_path / "history.csv"
    result = RUNNER.invoke(app, ["run", "--export", "csv", "--output", str(target)])
    assert result.exit_code == 0, result.stdout

    lines = target.read_text().split("\n")
    assert lines[0] == "Workflow ID,Type,Status,Start Time,End Time,Duration,Stages Completed"
    assert len(lines) == 2
    assert lines[1].endswith(",4")


def test_run_rejects_unknown_export_format():
    result = RUNNER.invoke(app, ["run", "--export", "xml"])
    assert result.exit_code == 1
    assert "json or csv" in result.stdout


def test_run_shows_dashboard_status():
    result = RUNNER.invoke(app, ["run", "--seed", "1", "--show-status"])
    assert result.exit_code == 0, result.stdout
    start = result.stdout.index("{")
    status = json.loads(result.stdout[start:])
    assert status["orchestrator"]["status"] == "completed"
    assert status["orchestrator"]["total_workflows"] == 1
    assert len(status["agents"]) == 6


def test_run_shows_history_summary():
    result = RUNNER.invoke(app, ["run", "--seed", "3", "--show-summary"])
    assert result.exit_code == 0, result.stdout
    assert "Total workflows: 1" in result.stdout
    assert "Successful: 1" in result.stdout
    assert "Failed: 0" in result.stdout
    assert "Average duration: " in result.stdout


def test_workflow_subcommands_are_not_exposed():
    result = RUNNER.invoke(app, ["workflow", "list"])
    assert result.exit_code != 0


def test_run_failure_exits_with_error(tmp_path, fresh_history):
    config_path = tmp_path / "broken.yaml"
    config_path.write_text("campaign:\n  budget_daily: 0\n")

    result = RUNNER.invoke(app, ["run", "--config", str(config_path)])
    assert result.exit_code == 1
    assert "Workflow failed: Budget must be greater than 0" in result.stdout
    assert len(fresh_history) == 0


def test_config_check_lists_missing_credentials():
    result = RUNNER.invoke(app, ["config", "check"])
    assert result.exit_code == 0
    assert "ads_platform.developer_token" in result.stdout
    assert "ai_provider.api_key" in result.stdout
