"""Live progress grid: per-scenario, per-run, per-attempt status cells.

The grid is built up front from the run's configuration and then
painted incrementally from the runners' progress events. Every function
here mutates the grid it is given and nothing else.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field

from structbench.execution.scenarios import SCENARIOS
from structbench.models.catalog import ModelDefinition
from structbench.models.progress import TestProgress
from structbench.models.result import STEP_NAMES

AttemptStatus = Literal["pending", "running", "failed", "success", "skipped"]
RunFinal = Literal["pending", "success", "failed", "skipped"]


class StepProgress(BaseModel):
    step_number: int
    step_name: str
    attempts: list[AttemptStatus]


class RunProgress(BaseModel):
    """Status cells of one run: attempts for one-shot, steps for sequential."""

    run: int
    attempts: list[AttemptStatus] | None = None
    steps: list[StepProgress] | None = None
    final: RunFinal = "pending"

    def cells(self) -> list[list[AttemptStatus]]:
        if self.steps is not None:
            return [step.attempts for step in self.steps]
        return [self.attempts or []]


class ScenarioProgress(BaseModel):
    model_id: str
    model_name: str
    scenario: int
    is_sequential: bool
    is_skipped: bool = False
    runs: list[RunProgress] = Field(default_factory=list)
    completed_runs: int = 0
    total_runs: int = 0


class DetailedProgress(BaseModel):
    """Everything an observer needs to render the live view of a run."""

    current_model: str
    current_model_name: str
    current_scenario: int
    current_run: int = 1
    current_step: int | None = None
    current_step_name: str | None = None
    current_attempt: int = 1
    current_status: Literal["running", "success", "failed", "retrying"] = "running"
    status_message: str = "Starting tests..."
    scenarios: list[ScenarioProgress] = Field(default_factory=list)
    total_scenarios: int = 0
    completed_scenarios: int = 0
    max_attempts: int = 1
    log_entries: list[dict[str, Any]] = Field(default_factory=list)

    def find(self, model_id: str, scenario: int) -> ScenarioProgress | None:
        for entry in self.scenarios:
            if entry.model_id == model_id and entry.scenario == scenario:
                return entry
        return None

    def refresh_completed(self) -> None:
        self.completed_scenarios = sum(
            1 for s in self.scenarios if s.completed_runs == s.total_runs
        )


def build_progress_grid(
    models: list[ModelDefinition],
    scenarios: list[int],
    runs_per_scenario: int,
    max_attempts: int,
) -> DetailedProgress:
    """Pre-build the grid with every cell pending.

    Strict scenarios on models without strict support start skipped and
    count as fully completed.
    """
    entries: list[ScenarioProgress] = []
    for model in models:
        for number in scenarios:
            definition = SCENARIOS[number]
            skipped = definition.strict and not model.supports_strict_mode
            initial: AttemptStatus = "skipped" if skipped else "pending"

            runs: list[RunProgress] = []
            for run_number in range(1, runs_per_scenario + 1):
                if definition.sequential:
                    runs.append(
                        RunProgress(
                            run=run_number,
                            steps=[
                                StepProgress(
                                    step_number=step,
                                    step_name=STEP_NAMES[step],
                                    attempts=[initial] * max_attempts,
                                )
                                for step in (1, 2, 3)
                            ],
                            final=initial,
                        )
                    )
                else:
                    runs.append(
                        RunProgress(
                            run=run_number, attempts=[initial] * max_attempts, final=initial
                        )
                    )

            entries.append(
                ScenarioProgress(
                    model_id=model.id,
                    model_name=model.name,
                    scenario=number,
                    is_sequential=definition.sequential,
                    is_skipped=skipped,
                    runs=runs,
                    completed_runs=runs_per_scenario if skipped else 0,
                    total_runs=runs_per_scenario,
                )
            )

    first = models[0] if models else None
    progress = DetailedProgress(
        current_model=first.id if first else "",
        current_model_name=first.name if first else "",
        current_scenario=scenarios[0] if scenarios else 0,
        scenarios=entries,
        total_scenarios=len(models) * len(scenarios),
        max_attempts=max_attempts,
    )
    progress.refresh_completed()
    return progress


def describe_progress(event: TestProgress, max_attempts: int) -> str:
    """Human-readable status line for a progress event."""
    scenario_name = SCENARIOS[event.scenario].name
    model_name = event.model_name
    step = event.step_number
    step_label = f"Step {step} ({STEP_NAMES[step]})" if step else None

    if event.status == "running":
        if step:
            return (
                f"Testing step {step} ({STEP_NAMES[step]}) in {scenario_name} "
                f"with {model_name}"
            )
        return f"Testing {scenario_name} with {model_name}"

    if event.status == "retrying":
        where = f"{step_label} in {scenario_name}" if step_label else scenario_name
        return (
            f"{where} with {model_name} failed - retrying "
            f"({event.attempt_number}/{max_attempts})"
        )

    if event.status == "success":
        if step and step < 3:
            return f"Step {step} succeeded, moving to step {step + 1}..."
        return f"Run {event.run_number} succeeded!"

    # failed
    if event.attempt_number < max_attempts:
        subject = step_label or f"Run {event.run_number}"
        detail = f": {event.message}" if event.message else ""
        return f"{subject} attempt {event.attempt_number}/{max_attempts} failed{detail}"
    if step_label:
        return f"{step_label} failed after {max_attempts} attempts"
    return f"Run failed after {max_attempts} attempts"


def _finish(scenario: ScenarioProgress, run: RunProgress, final: RunFinal) -> None:
    """Set a run's final state; completed_runs counts pending -> terminal only."""
    if run.final == "pending":
        scenario.completed_runs += 1
    run.final = final


def paint_progress(progress: DetailedProgress, event: TestProgress) -> None:
    """Update exactly the cells at the event's coordinate."""
    scenario = progress.find(event.model_id, event.scenario)
    if scenario is None:
        return

    run_index = event.run_number - 1
    if not 0 <= run_index < len(scenario.runs):
        return
    run = scenario.runs[run_index]

    max_attempts = progress.max_attempts
    index = event.attempt_number - 1

    if scenario.is_sequential:
        if run.steps is None or not event.step_number:
            return
        step_index = event.step_number - 1
        if not 0 <= step_index < len(run.steps):
            return
        cells = run.steps[step_index].attempts
    else:
        step_index = None
        if run.attempts is None:
            return
        cells = run.attempts

    if not 0 <= index < len(cells):
        return

    if event.status == "running":
        cells[index] = "running"
    elif event.status == "retrying":
        if index > 0:
            cells[index - 1] = "failed"
        cells[index] = "running"
    elif event.status == "success":
        cells[index] = "success"
        for later in range(index + 1, max_attempts):
            cells[later] = "skipped"
        if step_index is None or step_index == 2:
            _finish(scenario, run, "success")
    elif event.status == "failed":
        cells[index] = "failed"
        if index == max_attempts - 1:
            if step_index is not None and run.steps is not None:
                for later_step in run.steps[step_index + 1 :]:
                    later_step.attempts = ["skipped"] * len(later_step.attempts)
            _finish(scenario, run, "failed")


def reconcile_run(
    progress: DetailedProgress,
    model_id: str,
    scenario_number: int,
    run_number: int,
    success: bool,
) -> None:
    """Align a run's final cell with its actual outcome.

    Covers runs whose outcome the attempt events cannot express: a merge
    failure after the last step succeeded, or a run ended early by an
    exhausted rate-limit backoff.
    """
    scenario = progress.find(model_id, scenario_number)
    if scenario is None or not 0 < run_number <= len(scenario.runs):
        return
    run = scenario.runs[run_number - 1]

    if not success:
        for cells in run.cells():
            for i, cell in enumerate(cells):
                if cell == "pending":
                    cells[i] = "skipped"

    _finish(scenario, run, "success" if success else "failed")
