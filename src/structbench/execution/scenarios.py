"""Scenario runners: the attempt/retry loop for each benchmark scenario.

The four scenarios are the combinations of two axes, one-shot vs.
sequential and non-strict vs. strict, so a single ScenarioRunner covers
all of them. A sequential run chains three steps, feeding each step's
validated output into the next step's messages, and stops at the first
step that exhausts its retries.
"""

from __future__ import annotations

import json
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

import structlog
from pydantic import BaseModel

from structbench.adapters.base import Message
from structbench.benchmark.conversation import get_conversation_messages
from structbench.benchmark.prompts import (
    SYSTEM_PROMPT,
    build_retry_prompt,
    get_one_shot_prompt,
    get_sequential_prompt,
)
from structbench.benchmark.schemas import (
    STEP_SCHEMAS,
    RecommendationResponse,
    merge_sequential_parts,
    validate_merged,
)
from structbench.errors import MergeValidationError
from structbench.execution.attempt import AttemptExecutor, AttemptMode
from structbench.models.catalog import ResolvedModel
from structbench.models.config import TestConfig
from structbench.models.progress import LogEntry, RunCompleteEvent, TestProgress
from structbench.models.result import (
    STEP_NAMES,
    AttemptResult,
    FlatRunResult,
    SequentialRunResult,
    StepResult,
)

logger = structlog.get_logger(__name__)

ProgressCallback = Callable[[TestProgress], None]
RunCompleteCallback = Callable[[RunCompleteEvent], None]


@dataclass(frozen=True)
class ScenarioDefinition:
    """One point on the (shape x strictness) grid."""

    number: int
    name: str
    sequential: bool
    strict: bool

    @property
    def mode(self) -> AttemptMode:
        return AttemptMode.STRICT if self.strict else AttemptMode.NON_STRICT


SCENARIOS: dict[int, ScenarioDefinition] = {
    1: ScenarioDefinition(1, "one-shot non-strict mode", sequential=False, strict=False),
    2: ScenarioDefinition(2, "one-shot strict mode", sequential=False, strict=True),
    3: ScenarioDefinition(3, "sequential non-strict mode", sequential=True, strict=False),
    4: ScenarioDefinition(4, "sequential strict mode", sequential=True, strict=True),
}


def render_prompt(messages: list[Message]) -> str:
    """Flatten messages into the audit text stored on each attempt."""
    return "\n\n".join(f"[{m.role}] {m.content}" for m in messages)


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class _LoopResult:
    attempts: list[AttemptResult] = field(default_factory=list)
    data: dict[str, Any] | None = None


class ScenarioRunner:
    """Executes runs_per_scenario runs of one scenario against one model.

    Progress and run-complete callbacks are invoked synchronously in the
    runner's control flow; an exception raised by a callback aborts the
    run.
    """

    def __init__(
        self,
        model: ResolvedModel,
        scenario: ScenarioDefinition,
        config: TestConfig,
        executor: AttemptExecutor | None = None,
        on_progress: ProgressCallback | None = None,
        on_run_complete: RunCompleteCallback | None = None,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._model = model
        self._scenario = scenario
        self._config = config
        self._executor = executor or AttemptExecutor()
        self._on_progress = on_progress
        self._on_run_complete = on_run_complete
        self._clock = clock

    async def run_all(self) -> list[FlatRunResult | SequentialRunResult]:
        """Execute every run in order and return the run results."""
        runs: list[FlatRunResult | SequentialRunResult] = []

        for run_number in range(1, self._config.runs_per_scenario + 1):
            if self._scenario.sequential:
                run = await self._run_sequential(run_number)
            else:
                run = await self._run_flat(run_number)
            runs.append(run)

            logger.info(
                "run.completed",
                model_id=self._model.id,
                scenario=self._scenario.number,
                run_number=run_number,
                success=run.success,
            )
            if self._on_run_complete is not None:
                self._on_run_complete(
                    RunCompleteEvent(
                        model_id=self._model.id,
                        scenario=self._scenario.number,
                        run_number=run_number,
                        run_result=run,
                        is_sequential=self._scenario.sequential,
                    )
                )

        return runs

    def _base_messages(self) -> list[Message]:
        return [Message(role="system", content=SYSTEM_PROMPT), *get_conversation_messages()]

    async def _run_flat(self, run_number: int) -> FlatRunResult:
        started = self._clock()
        messages = [
            *self._base_messages(),
            Message(role="user", content=get_one_shot_prompt(self._scenario.strict)),
        ]

        loop = await self._attempt_loop(run_number, messages, RecommendationResponse)

        return FlatRunResult(
            run_number=run_number,
            success=loop.data is not None,
            attempts=loop.attempts,
            total_duration_ms=self._elapsed_ms(started),
            final_response=loop.data,
        )

    async def _run_sequential(self, run_number: int) -> SequentialRunResult:
        started = self._clock()
        steps: list[StepResult] = []
        outputs: list[dict[str, Any]] = []

        for step_number in (1, 2, 3):
            messages = [
                *self._base_messages(),
                *(Message(role="assistant", content=json.dumps(o)) for o in outputs),
                Message(
                    role="user",
                    content=get_sequential_prompt(step_number, self._scenario.strict),
                ),
            ]

            loop = await self._attempt_loop(
                run_number, messages, STEP_SCHEMAS[step_number], step_number=step_number
            )
            steps.append(
                StepResult(
                    step_number=step_number,
                    step_name=STEP_NAMES[step_number],
                    success=loop.data is not None,
                    attempts=loop.attempts,
                )
            )
            if loop.data is None:
                break
            outputs.append(loop.data)

        final_response: dict[str, Any] | None = None
        if len(outputs) == 3:
            try:
                final_response = validate_merged(merge_sequential_parts(*outputs))
            except MergeValidationError as exc:
                logger.warning(
                    "merge.validation_failed",
                    model_id=self._model.id,
                    scenario=self._scenario.number,
                    run_number=run_number,
                    issues=exc.issues,
                )

        return SequentialRunResult(
            run_number=run_number,
            success=final_response is not None,
            steps=steps,
            total_duration_ms=self._elapsed_ms(started),
            final_response=final_response,
        )

    async def _attempt_loop(
        self,
        run_number: int,
        messages: list[Message],
        schema: type[BaseModel],
        step_number: int | None = None,
    ) -> _LoopResult:
        """Attempt up to max_retries + 1 times; history only ever grows."""
        history = list(messages)
        loop = _LoopResult()

        for attempt_number in range(1, self._config.max_attempts + 1):
            prompt_text = render_prompt(history)
            self._emit(
                run_number,
                attempt_number,
                step_number,
                status="running" if attempt_number == 1 else "retrying",
                log_entry=self._log_entry(
                    run_number, attempt_number, step_number, "request", prompt=prompt_text
                ),
            )

            started = self._clock()
            outcome = await self._executor.attempt(
                self._model, history, schema, self._scenario.mode, self._config
            )
            first_error = outcome.errors[0].message if outcome.errors else None

            loop.attempts.append(
                AttemptResult(
                    attempt_number=attempt_number,
                    timestamp=_now(),
                    success=outcome.success,
                    duration_ms=self._elapsed_ms(started),
                    input_tokens=outcome.input_tokens,
                    output_tokens=outcome.output_tokens,
                    prompt=prompt_text,
                    raw_response=outcome.raw,
                    parsed_response=outcome.data if outcome.success else None,
                    validation_errors=outcome.errors,
                    error_message=None if outcome.success else first_error,
                )
            )

            log_entry = self._log_entry(
                run_number, attempt_number, step_number, "response", response=outcome.raw
            )
            log_entry.validation_success = outcome.success
            log_entry.validation_errors = [issue.model_dump() for issue in outcome.errors]
            self._emit(
                run_number,
                attempt_number,
                step_number,
                status="success" if outcome.success else "failed",
                message=first_error,
                log_entry=log_entry,
            )

            if outcome.success:
                loop.data = outcome.data
                return loop
            if outcome.fatal:
                return loop

            history.append(Message(role="assistant", content=outcome.raw))
            history.append(
                Message(role="user", content=build_retry_prompt(outcome.raw, outcome.errors))
            )

        return loop

    def _elapsed_ms(self, started: float) -> int:
        return int((self._clock() - started) * 1000)

    def _log_entry(
        self,
        run_number: int,
        attempt_number: int,
        step_number: int | None,
        entry_type: str,
        prompt: str | None = None,
        response: str | None = None,
    ) -> LogEntry:
        return LogEntry(
            timestamp=_now().isoformat(),
            model_id=self._model.id,
            model_name=self._model.definition.name,
            scenario=self._scenario.number,
            run_number=run_number,
            attempt_number=attempt_number,
            type=entry_type,  # type: ignore[arg-type]
            step_number=step_number,
            step_name=STEP_NAMES.get(step_number) if step_number else None,
            prompt=prompt,
            response=response,
        )

    def _emit(
        self,
        run_number: int,
        attempt_number: int,
        step_number: int | None,
        status: str,
        log_entry: LogEntry,
        message: str | None = None,
    ) -> None:
        if self._on_progress is None:
            return
        self._on_progress(
            TestProgress(
                model_id=self._model.id,
                model_name=self._model.definition.name,
                scenario=self._scenario.number,
                run_number=run_number,
                attempt_number=attempt_number,
                status=status,  # type: ignore[arg-type]
                step_number=step_number,
                step_name=STEP_NAMES.get(step_number) if step_number else None,
                message=message,
                log_entry=log_entry,
            )
        )
