"""Rich terminal output for benchmark runs.

Provides the live progress grid, per-scenario summary tables, and JSON
output for TestRunFile display in terminal and CI.
"""

from __future__ import annotations

import sys

from rich import box
from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from structbench.execution.cost import scenario_cost
from structbench.execution.scenarios import SCENARIOS
from structbench.live.progress import DetailedProgress, RunProgress
from structbench.models.catalog import get_model_definition
from structbench.models.result import TestRunFile

# Cell styling: attempt status -> (glyph, Rich style)
_CELL_STYLES: dict[str, tuple[str, str]] = {
    "pending": ("·", "dim"),
    "running": ("●", "bold blue"),
    "failed": ("✗", "red"),
    "success": ("✓", "green"),
    "skipped": ("-", "dim"),
}


def _model_name(model_id: str) -> str:
    definition = get_model_definition(model_id)
    return definition.name if definition else model_id


def _rate_style(rate: float) -> str:
    if rate >= 90:
        return "green"
    if rate >= 50:
        return "yellow"
    return "red"


def _run_cells(run: RunProgress) -> Text:
    text = Text()
    for i, cells in enumerate(run.cells()):
        if i:
            text.append("|", style="dim")
        for cell in cells:
            glyph, style = _CELL_STYLES[cell]
            text.append(glyph, style=style)
    return text


def render_progress(progress: DetailedProgress) -> Group:
    """Build the renderable shown inside rich.live.Live while a run executes."""
    table = Table(box=box.SIMPLE, padding=(0, 1))
    table.add_column("Model", style="bold")
    table.add_column("Scenario")
    table.add_column("Runs", justify="right")
    table.add_column("Attempts")

    for scenario in progress.scenarios:
        name = SCENARIOS[scenario.scenario].name
        if scenario.is_skipped:
            table.add_row(
                scenario.model_name, name, "-", Text("skipped (no strict mode)", style="dim")
            )
            continue
        cells = Text(" ").join(_run_cells(run) for run in scenario.runs)
        table.add_row(
            scenario.model_name,
            name,
            f"{scenario.completed_runs}/{scenario.total_runs}",
            cells,
        )

    header = Text(
        f"{progress.completed_scenarios}/{progress.total_scenarios} scenarios  "
        f"{progress.status_message}"
    )
    return Group(header, table)


def render_summary(run_file: TestRunFile, console: Console) -> None:
    """Render one table per model with a row per scenario."""
    console.print()
    console.print(f"[bold]Run:[/bold] {run_file.id}")
    summary = run_file.summary
    style = _rate_style(summary.success_rate)
    console.print(
        f"[bold]Result:[/bold] {summary.passed}/{summary.total_tests} passed "
        f"([{style}]{summary.success_rate:.1f}%[/{style}]) "
        f"in {run_file.duration_ms / 1000:.1f}s"
    )

    for model_id, by_scenario in run_file.results.items():
        table = Table(title=_model_name(model_id), box=box.SIMPLE, title_justify="left")
        table.add_column("Scenario")
        table.add_column("Success", justify="right")
        table.add_column("1st try", justify="right")
        table.add_column("≤1 retry", justify="right")
        table.add_column("≤2 retries", justify="right")
        table.add_column("≤3 retries", justify="right")
        table.add_column("Avg attempts", justify="right")
        table.add_column("Avg ms", justify="right")
        table.add_column("Tokens", justify="right")
        table.add_column("Cost", justify="right")

        for key in sorted(by_scenario, key=int):
            result = by_scenario[key]
            s = result.summary
            style = _rate_style(s.success_rate)
            table.add_row(
                SCENARIOS[int(key)].name,
                f"[{style}]{s.success_rate:.1f}%[/{style}]",
                f"{s.first_attempt_success_rate:.1f}%",
                f"{s.after_retry1_success_rate:.1f}%",
                f"{s.after_retry2_success_rate:.1f}%",
                f"{s.after_retry3_success_rate:.1f}%",
                f"{s.average_attempts:.2f}",
                f"{s.average_duration_ms:.0f}",
                str(s.total_tokens_used),
                f"${scenario_cost(model_id, result):.4f}",
            )

        console.print()
        console.print(table)


def output_json(run_file: TestRunFile) -> None:
    """Write the run as pure JSON to stdout.

    No Rich markup, no color, no extra text. Suitable for
    CI pipeline consumption and machine parsing.
    """
    sys.stdout.write(run_file.model_dump_json(indent=2))
    sys.stdout.write("\n")
