"""structbench report / list / delete -- inspect stored runs.

Shows a stored run's summary tables (latest by default), lists recent
runs from the index, and removes runs from storage.
"""

from __future__ import annotations

from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from structbench.cli.output import output_json, render_summary
from structbench.models.config import find_project_root, load_project_config
from structbench.storage.json_store import RunStore

console = Console(stderr=True)


def _open_store() -> RunStore:
    project_root = find_project_root()
    project = load_project_config(project_root)
    return RunStore(project_root, project.storage_dir)


def report(
    run_id: Optional[str] = typer.Argument(None, help="Run id (defaults to the latest run)"),
    format_json: bool = typer.Option(False, "--json", help="Output pure JSON to stdout"),
) -> None:
    """Display a stored benchmark run."""
    store = _open_store()
    if run_id is None:
        run_id = store.latest_run_id()
        if run_id is None:
            console.print("No runs found. Run [bold]structbench run[/bold] first.")
            raise typer.Exit(code=1)

    run_file = store.load_run(run_id)
    if run_file is None:
        console.print(f"[bold red]Run not found:[/bold red] {run_id}")
        raise typer.Exit(code=1)

    if format_json:
        output_json(run_file)
        return
    render_summary(run_file, Console())


def list_runs(
    limit: int = typer.Option(10, "--limit", help="Number of recent runs to show"),
) -> None:
    """List recent stored runs, newest first."""
    entries = _open_store().list_runs(limit=limit)
    if not entries:
        console.print("No runs found.")
        return

    table = Table(box=box.SIMPLE)
    table.add_column("Run")
    table.add_column("Timestamp")
    table.add_column("Models")
    table.add_column("Tests", justify="right")
    table.add_column("Success", justify="right")
    for entry in entries:
        table.add_row(
            entry.id,
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            ", ".join(entry.summary.models),
            str(entry.summary.total_tests),
            f"{entry.summary.success_rate:.1f}%",
        )
    Console().print(table)


def delete(
    run_id: str = typer.Argument(..., help="Run id to delete"),
) -> None:
    """Delete a stored run."""
    if not _open_store().delete_run(run_id):
        console.print(f"[bold red]Run not found:[/bold red] {run_id}")
        raise typer.Exit(code=1)
    console.print(f"Deleted run {run_id}")
