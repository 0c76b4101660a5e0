"""Progress events emitted by the scenario runners.

Plain dataclasses: they are created on every attempt and only ever live
in memory (the progress channel history and the live registry log).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from structbench.models.result import FlatRunResult, SequentialRunResult

ProgressStatus = Literal["running", "retrying", "success", "failed"]
LogEntryType = Literal["request", "response", "validation"]


@dataclass
class LogEntry:
    """A request prompt or a response with its validation outcome."""

    timestamp: str
    model_id: str
    model_name: str
    scenario: int
    run_number: int
    attempt_number: int
    type: LogEntryType
    step_number: int | None = None
    step_name: str | None = None
    prompt: str | None = None
    response: str | None = None
    validation_success: bool | None = None
    validation_errors: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class TestProgress:
    """One progress event at a (model, scenario, run, [step], attempt) coordinate."""

    __test__ = False  # not a pytest test class

    model_id: str
    model_name: str
    scenario: int
    run_number: int
    attempt_number: int
    status: ProgressStatus
    step_number: int | None = None
    step_name: str | None = None
    message: str | None = None
    log_entry: LogEntry | None = None


@dataclass
class RunCompleteEvent:
    """Published once per run after the run loop exits."""

    model_id: str
    scenario: int
    run_number: int
    run_result: FlatRunResult | SequentialRunResult
    is_sequential: bool
