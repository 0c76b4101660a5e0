"""Registry of in-flight benchmark runs and their live progress.

One registry instance is created per process and passed by reference to
whoever starts runs and whoever observes them. At most one entry is
running at a time; terminal entries are purged after a retention delay.
The single active run is the only writer, so no locking is needed.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Literal

import structlog

from structbench.errors import RunAlreadyActiveError
from structbench.evaluation.aggregation import summarize, update_run_summary
from structbench.execution.channel import ProgressChannel
from structbench.live.progress import (
    DetailedProgress,
    build_progress_grid,
    describe_progress,
    paint_progress,
    reconcile_run,
)
from structbench.models.catalog import ModelDefinition
from structbench.models.progress import RunCompleteEvent, TestProgress
from structbench.models.result import ScenarioResult, TestRunFile

logger = structlog.get_logger(__name__)

RunStatus = Literal["running", "complete", "cancelled", "error"]

DEFAULT_RETENTION_SECONDS = 60.0
DEFAULT_LOG_LIMIT = 100


@dataclass
class ActiveRun:
    """Registry entry for one run."""

    run_id: str
    status: RunStatus
    progress: DetailedProgress
    run: TestRunFile
    channel: ProgressChannel
    error: str | None = None
    finished_at: float | None = field(default=None, repr=False)


class ActiveRunRegistry:
    """Run-keyed table of live progress.

    Args:
        retention_seconds: How long a terminal entry stays readable.
        clock: Monotonic clock in seconds, replaceable in tests.
        log_limit: Maximum log entries kept per run (oldest dropped first).
    """

    def __init__(
        self,
        retention_seconds: float = DEFAULT_RETENTION_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        log_limit: int = DEFAULT_LOG_LIMIT,
    ) -> None:
        self._retention_seconds = retention_seconds
        self._clock = clock
        self._log_limit = log_limit
        self._runs: dict[str, ActiveRun] = {}

    # -- lifecycle -------------------------------------------------------

    def start(
        self,
        run: TestRunFile,
        models: list[ModelDefinition],
        scenarios: list[int],
    ) -> ActiveRun:
        """Register a new running entry with a freshly built grid.

        Raises:
            RunAlreadyActiveError: If another entry is still running.
        """
        self.purge_expired()
        active = self.running()
        if active is not None:
            raise RunAlreadyActiveError(active.run_id)

        progress = build_progress_grid(
            models,
            scenarios,
            run.config.runs_per_scenario,
            run.config.max_retries + 1,
        )
        channel = ProgressChannel()
        channel.subscribe(lambda event: self.apply_progress(run.id, event), TestProgress)
        channel.subscribe(
            lambda event: self.apply_run_complete(run.id, event), RunCompleteEvent
        )

        entry = ActiveRun(
            run_id=run.id, status="running", progress=progress, run=run, channel=channel
        )
        self._runs[run.id] = entry
        logger.info(
            "registry.run_started",
            run_id=run.id,
            models=[m.id for m in models],
            scenarios=scenarios,
        )
        return entry

    def complete(self, run_id: str) -> None:
        entry = self._require(run_id)
        entry.progress.completed_scenarios = entry.progress.total_scenarios
        self._finish(entry, "complete")

    def fail(self, run_id: str, error: str) -> None:
        entry = self._require(run_id)
        entry.error = error
        self._finish(entry, "error")

    def cancel(self, run_id: str) -> None:
        self._finish(self._require(run_id), "cancelled")

    def _finish(self, entry: ActiveRun, status: RunStatus) -> None:
        entry.status = status
        entry.finished_at = self._clock()
        logger.info("registry.run_finished", run_id=entry.run_id, status=status)

    def purge_expired(self) -> list[str]:
        """Drop terminal entries older than the retention delay."""
        now = self._clock()
        expired = [
            run_id
            for run_id, entry in self._runs.items()
            if entry.finished_at is not None
            and now - entry.finished_at >= self._retention_seconds
        ]
        for run_id in expired:
            del self._runs[run_id]
        return expired

    # -- queries ---------------------------------------------------------

    def get(self, run_id: str) -> ActiveRun | None:
        self.purge_expired()
        return self._runs.get(run_id)

    def entries(self) -> list[ActiveRun]:
        self.purge_expired()
        return list(self._runs.values())

    def running(self) -> ActiveRun | None:
        for entry in self._runs.values():
            if entry.status == "running":
                return entry
        return None

    def has_running(self) -> bool:
        return self.running() is not None

    def channel_for(self, run_id: str) -> ProgressChannel:
        return self._require(run_id).channel

    def snapshot(self, run_id: str) -> dict[str, Any] | None:
        """JSON-ready view of an entry, or None if unknown or purged."""
        entry = self.get(run_id)
        if entry is None:
            return None
        return {
            "id": entry.run_id,
            "status": entry.status,
            "error": entry.error,
            "progress": entry.progress.model_dump(mode="json"),
            "summary": entry.run.summary.model_dump(mode="json"),
        }

    # -- event handlers --------------------------------------------------

    def apply_progress(self, run_id: str, event: TestProgress) -> None:
        """Paint the event's cells, update the cursor and append its log entry."""
        entry = self._runs.get(run_id)
        if entry is None:
            return
        progress = entry.progress

        progress.current_model = event.model_id
        progress.current_model_name = event.model_name
        progress.current_scenario = event.scenario
        progress.current_run = event.run_number
        progress.current_step = event.step_number
        progress.current_step_name = event.step_name
        progress.current_attempt = event.attempt_number
        progress.current_status = event.status
        progress.status_message = describe_progress(event, progress.max_attempts)

        if event.log_entry is not None:
            progress.log_entries.append(event.log_entry.to_dict())
            overflow = len(progress.log_entries) - self._log_limit
            if overflow > 0:
                del progress.log_entries[:overflow]

        paint_progress(progress, event)
        progress.refresh_completed()

    def apply_run_complete(self, run_id: str, event: RunCompleteEvent) -> None:
        """Fold a finished run into the TestRunFile and reconcile its grid row."""
        entry = self._runs.get(run_id)
        if entry is None:
            return

        by_scenario = entry.run.results.setdefault(event.model_id, {})
        key = str(event.scenario)
        result = by_scenario.setdefault(key, ScenarioResult())
        result.runs.append(event.run_result)
        result.summary = summarize(result.runs, event.is_sequential)
        update_run_summary(entry.run)

        reconcile_run(
            entry.progress,
            event.model_id,
            event.scenario,
            event.run_number,
            event.run_result.success,
        )
        entry.progress.refresh_completed()

    def _require(self, run_id: str) -> ActiveRun:
        entry = self._runs.get(run_id)
        if entry is None:
            raise KeyError(f"No active run '{run_id}'")
        return entry
