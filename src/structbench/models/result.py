"""Result data models for structbench run outputs.

These models encode the persisted results contract: individual attempts,
sequential steps, runs (flat or sequential), per-scenario summaries and
the top-level TestRunFile. Designed for JSON serialization and lossless
round-trip deserialization.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

STEP_NAMES: dict[int, str] = {
    1: "Recommendation",
    2: "Details",
    3: "AI Config",
}


class ValidationIssue(BaseModel):
    """One validation problem: field path, human message, machine code."""

    model_config = {"frozen": True}

    path: list[str] = Field(default_factory=list)
    message: str
    code: str


class AttemptResult(BaseModel):
    """One model call within a run's (or step's) retry budget.

    validation_errors is non-empty exactly when success is False.
    Token counts are None when the call failed before usage was known.
    """

    model_config = {"frozen": True}

    attempt_number: int = Field(ge=1)
    timestamp: datetime
    success: bool
    duration_ms: int
    input_tokens: int | None = None
    output_tokens: int | None = None
    prompt: str
    raw_response: str
    parsed_response: dict[str, Any] | None = None
    validation_errors: list[ValidationIssue] = Field(default_factory=list)
    error_message: str | None = None

    @property
    def total_tokens(self) -> int:
        return (self.input_tokens or 0) + (self.output_tokens or 0)


def _success_index(attempts: list[AttemptResult]) -> int | None:
    for index, attempt in enumerate(attempts):
        if attempt.success:
            return index
    return None


class StepResult(BaseModel):
    """One stage of the three-step sequential pipeline."""

    step_number: int = Field(ge=1, le=3)
    step_name: str
    success: bool
    attempts: list[AttemptResult] = Field(default_factory=list)

    def success_index(self) -> int | None:
        """0-based index of the successful attempt, or None."""
        return _success_index(self.attempts)


class FlatRunResult(BaseModel):
    """A one-shot run: a single attempt list."""

    kind: Literal["flat"] = "flat"
    run_number: int = Field(ge=1)
    success: bool
    attempts: list[AttemptResult] = Field(default_factory=list)
    total_duration_ms: int = 0
    final_response: dict[str, Any] | None = None

    def all_attempts(self) -> list[AttemptResult]:
        return list(self.attempts)

    def attempt_count(self) -> int:
        return len(self.attempts)

    def retry_depth(self) -> int | None:
        """Retries consumed before success, or None for a failed run."""
        if not self.success:
            return None
        return _success_index(self.attempts)


class SequentialRunResult(BaseModel):
    """A sequential run: one to three steps."""

    kind: Literal["sequential"] = "sequential"
    run_number: int = Field(ge=1)
    success: bool
    steps: list[StepResult] = Field(default_factory=list)
    total_duration_ms: int = 0
    final_response: dict[str, Any] | None = None

    def all_attempts(self) -> list[AttemptResult]:
        return [attempt for step in self.steps for attempt in step.attempts]

    def attempt_count(self) -> int:
        return sum(len(step.attempts) for step in self.steps)

    def retry_depth(self) -> int | None:
        """Retries consumed across the whole pipeline, or None for a failed run."""
        if not self.success:
            return None
        depth = 0
        for step in self.steps:
            index = step.success_index()
            if index is None:
                return None
            depth += index
        return depth


RunResult = Annotated[
    Union[FlatRunResult, SequentialRunResult], Field(discriminator="kind")
]


class ScenarioSummary(BaseModel):
    """Statistics derived from a scenario's runs. Percentages are 0..100."""

    success_rate: float = 0.0
    first_attempt_success_rate: float = 0.0
    after_retry1_success_rate: float = 0.0
    after_retry2_success_rate: float = 0.0
    after_retry3_success_rate: float = 0.0
    average_duration_ms: float = 0.0
    average_attempts: float = 0.0
    average_attempts_per_success: float = 0.0
    average_tokens_per_success: float = 0.0
    total_tokens_used: int = 0


class ScenarioResult(BaseModel):
    """Runs of one model/scenario pair plus their cached summary."""

    runs: list[RunResult] = Field(default_factory=list)
    summary: ScenarioSummary = Field(default_factory=ScenarioSummary)


class TestRunConfig(BaseModel):
    """The configuration a test run was started with. Never holds credentials."""

    __test__ = False  # not a pytest test class

    models: list[str]
    scenarios: list[int]
    runs_per_scenario: int
    temperature: float
    max_retries: int


class TestRunSummary(BaseModel):
    """Pass/fail counts across every run of every model/scenario pair."""

    __test__ = False  # not a pytest test class

    total_tests: int = 0
    passed: int = 0
    failed: int = 0
    success_rate: float = 0.0


class TestRunFile(BaseModel):
    """Top-level persisted record of one benchmark invocation.

    results maps model id -> scenario key ("1".."4") -> ScenarioResult.
    """

    __test__ = False  # not a pytest test class

    id: str
    timestamp: datetime
    duration_ms: int = 0
    config: TestRunConfig
    summary: TestRunSummary = Field(default_factory=TestRunSummary)
    results: dict[str, dict[str, ScenarioResult]] = Field(default_factory=dict)
