"""Command line interface for running adflow workflows."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

import typer

from adflow import WorkflowEngine, build_agents, get_history
from adflow.config import load_config, validate_config
from adflow.contracts import WorkflowRecord

app = typer.Typer(help="CLI for adflow campaign automation")

# Command groups
config_app = typer.Typer(help="Commands for inspecting configuration")

app.add_typer(config_app, name="config")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", help="Logging level for adflow output"),
) -> None:
    """adflow CLI entry point."""
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _echo_workflow(workflow: WorkflowRecord, engine: WorkflowEngine) -> None:
    typer.echo(f"Workflow {workflow.id}: {workflow.status.value}")
    typer.echo(f"Duration: {workflow.duration}")
    typer.echo(f"Stages completed: {workflow.stage_count}/4")
    for stage in workflow.stages:
        typer.echo(f"  {stage.stage}. {stage.name}: {stage.status.value} ({stage.duration} ms)")

    performance = workflow.results.performance_monitoring
    if performance:
        m = performance.metrics
        typer.echo(
            f"Performance: {performance.status} "
            f"(score {performance.analysis.overall_score}, "
            f"grade {performance.analysis.performance_grade})"
        )
        typer.echo(
            f"  CTR {m.ctr:.2f}% | CPC £{m.cpc:.2f} | CPA £{m.cpa:.2f} | ROAS {m.roas:.2f}x"
        )
        typer.echo(f"  Alerts: {len(performance.alerts)}")

    typer.echo("Agents:")
    for key, status in engine.get_all_agent_statuses().items():
        typer.echo(f"  {key}: {status.status}")


async def _monitor_forever(engine: WorkflowEngine, interval: float) -> None:
    handle = engine.start_continuous_monitoring(interval)
    try:
        await handle.wait()
    finally:
        handle.cancel()


@app.command("run")
def run(
    workflow_type: str = typer.Option("full_automation", help="Workflow variant label"),
    config: Optional[Path] = typer.Option(None, help="Path to a YAML config file"),
    seed: Optional[int] = typer.Option(None, help="Seed for reproducible simulated data"),
    export: Optional[str] = typer.Option(None, help="Export history as json or csv"),
    output: Optional[Path] = typer.Option(None, help="Write the export to this file"),
    show_status: bool = typer.Option(False, help="Print the dashboard status as JSON"),
    show_summary: bool = typer.Option(False, help="Print history statistics for this process"),
    monitor_interval: Optional[float] = typer.Option(
        None, help="Keep monitoring every N minutes after the workflow"
    ),
) -> None:
    """
    Run one campaign automation workflow.

    Executes the four stages (setup, optimization, monitoring, reporting)
    against simulated agents and prints a results summary.

    Example:
        adflow run --seed 42
        adflow run --export csv --output history.csv
        adflow run --monitor-interval 15
        adflow run --show-summary
    """
    if export is not None and export not in ("json", "csv"):
        typer.secho("Export format must be json or csv", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    cfg = load_config(str(config) if config else None)
    engine = WorkflowEngine(
        agents=build_agents(cfg, seed=seed), config=cfg, history=get_history()
    )
    try:
        workflow = asyncio.run(engine.execute_workflow(workflow_type))
    except Exception as e:
        typer.secho(f"Workflow failed: {e}", fg=typer.colors.RED)
        raise typer.Exit(code=1)

    _echo_workflow(workflow, engine)

    if export:
        data = engine.export_workflow_data(export)
        if output:
            output.write_text(data)
            typer.echo(f"Exported workflow history to {output}")
        else:
            typer.echo(data)

    if show_summary:
        summary = engine.get_workflow_summary()
        typer.echo(f"Total workflows: {summary.total_workflows}")
        typer.echo(f"Successful: {summary.successful_workflows}")
        typer.echo(f"Failed: {summary.failed_workflows}")
        typer.echo(f"Average duration: {summary.average_duration}")

    if show_status:
        typer.echo(engine.get_dashboard_status().model_dump_json(indent=2))

    if monitor_interval:
        typer.echo(f"Monitoring every {monitor_interval} minutes. Press Ctrl+C to stop.")
        try:
            asyncio.run(_monitor_forever(engine, monitor_interval))
        except KeyboardInterrupt:
            typer.echo("Monitoring stopped")


@config_app.command("check")
def config_check(
    config: Optional[Path] = typer.Option(None, help="Path to a YAML config file"),
) -> None:
    """List credentials that are missing or still placeholders."""
    cfg = load_config(str(config) if config else None)
    missing = validate_config(cfg)
    if not missing:
        typer.echo("Configuration complete")
        return
    typer.echo("Missing configuration:")
    for name in missing:
        typer.echo(f"  - {name}")
    typer.echo("Simulated agents will run with fallback values.")


if __name__ == "__main__":  # pragma: no cover
    app()
