"""structbench run -- benchmark models across scenarios and display results.

Loads project config, filters the requested models and scenarios,
executes every run with a live progress grid on stderr, persists the
TestRunFile, and prints per-scenario summary tables.
"""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.live import Live

from structbench.cli.output import output_json, render_progress, render_summary
from structbench.errors import StructbenchError
from structbench.live.launcher import execute_run, prepare_run
from structbench.live.registry import ActiveRunRegistry
from structbench.logging_config import configure_logging
from structbench.models.catalog import resolve_model
from structbench.models.config import TestConfig, find_project_root, load_project_config
from structbench.storage.json_store import RunStore

console = Console(stderr=True)


def run(
    models: Optional[list[str]] = typer.Option(
        None, "-m", "--model", help="Model id to test (repeatable). Defaults to config."
    ),
    scenarios: Optional[list[int]] = typer.Option(
        None, "-s", "--scenario", help="Scenario number 1-4 (repeatable). Defaults to config."
    ),
    runs: Optional[int] = typer.Option(None, "-n", "--runs", help="Runs per scenario"),
    temperature: Optional[float] = typer.Option(None, "--temperature", help="Sampling temperature"),
    max_retries: Optional[int] = typer.Option(
        None, "--max-retries", help="Retries after the first attempt"
    ),
    format_json: bool = typer.Option(False, "--json", help="Output pure JSON to stdout"),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="console or json"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Minimum log level"),
) -> None:
    """Run the structured-output benchmark and display results."""
    project_root = find_project_root()
    try:
        project = load_project_config(project_root)
    except Exception as exc:
        console.print(f"[bold red]Config error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    try:
        configure_logging(log_format or project.log_format, log_level or project.log_level)
    except ValueError as exc:
        console.print(f"[bold red]Logging error:[/bold red] {exc}")
        raise typer.Exit(code=1)

    config = TestConfig(
        temperature=project.temperature if temperature is None else temperature,
        max_retries=project.max_retries if max_retries is None else max_retries,
        runs_per_scenario=project.runs_per_scenario if runs is None else runs,
    )

    ok = asyncio.run(
        _run_async(
            config,
            models or project.default_models,
            scenarios or project.default_scenarios,
            store=RunStore(project_root, project.storage_dir),
            format_json=format_json,
        )
    )
    if not ok:
        raise typer.Exit(code=1)


async def _run_async(
    config: TestConfig,
    model_ids: list[str],
    scenarios: list[int],
    *,
    store: RunStore,
    format_json: bool,
) -> bool:
    registry = ActiveRunRegistry()
    try:
        entry = prepare_run(registry, model_ids, scenarios, config)
    except StructbenchError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        return False

    if not format_json and console.is_terminal:
        with Live(render_progress(entry.progress), console=console, transient=True) as live:
            entry.channel.subscribe(lambda _event: live.update(render_progress(entry.progress)))
            run_file = await execute_run(
                registry, store, entry.run_id, config, resolver=resolve_model
            )
    else:
        run_file = await execute_run(
            registry, store, entry.run_id, config, resolver=resolve_model
        )

    if run_file is None:
        console.print(f"[bold red]Run failed:[/bold red] {entry.error}")
        return False

    if format_json:
        output_json(run_file)
    else:
        output_console = Console()
        render_summary(run_file, output_console)
        output_console.print(f"[dim]Run saved: {run_file.id}[/dim]")
    return True
