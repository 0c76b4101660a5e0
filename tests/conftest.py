"""Shared fixtures: a scripted fake adapter and sample response payloads."""

from __future__ import annotations

import copy
import json
from datetime import datetime, timezone
from typing import Any

import pytest
import structlog
from pydantic import BaseModel

from structbench.adapters.base import (
    AdapterConfig,
    BaseAdapter,
    GenerationResult,
    Message,
    TokenUsage,
)
from structbench.execution.attempt import AttemptExecutor
from structbench.models.catalog import ResolvedModel, get_model_definition
from structbench.models.result import (
    AttemptResult,
    FlatRunResult,
    SequentialRunResult,
    StepResult,
    ValidationIssue,
)

PART1: dict[str, Any] = {
    "recommendation": {
        "title": "Ship a scoped thread summarizer",
        "summary": "Start with read-only summaries of long task threads.",
        "priority": "high",
        "confidence": 0.8,
        "rationale": ["Most requested feature", "Low integration risk"],
    }
}

PART2: dict[str, Any] = {
    "actors": [
        {
            "name": "Sarah",
            "role": "Tech Lead",
            "responsibilities": ["Own the architecture"],
            "stance": "supportive",
        },
        {
            "name": "Elena",
            "role": "DevOps Engineer",
            "responsibilities": ["Track inference cost"],
            "stance": "skeptical",
        },
    ]
}

PART3: dict[str, Any] = {
    "ai_config": {
        "provider": "openai",
        "model": "gpt-4o",
        "temperature": 0.2,
        "max_tokens": 1024,
        "features": ["thread summaries"],
        "guardrails": ["no writes to tasks"],
    },
    "next_steps": [{"owner": "Sarah", "action": "Draft the service design"}],
}

VALID_RESPONSE: dict[str, Any] = {**PART1, **PART2, **PART3}


class FakeAdapter(BaseAdapter):
    """Replays a script of responses; an Exception entry is raised instead.

    Every call is recorded as (kind, messages, config, schema).
    """

    def __init__(self, script: list[str | BaseException], usage: TokenUsage | None = None):
        self.script = list(script)
        self.usage = usage or TokenUsage(input_tokens=10, output_tokens=5)
        self.calls: list[tuple[str, list[Message], AdapterConfig, type[BaseModel] | None]] = []

    def _next(self) -> GenerationResult:
        if not self.script:
            raise AssertionError("FakeAdapter script exhausted")
        item = self.script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return GenerationResult(text=item, usage=self.usage, finish_reason="stop")

    async def generate_text(self, messages, config):
        self.calls.append(("text", copy.deepcopy(messages), config, None))
        return self._next()

    async def generate_object(self, messages, schema, config):
        self.calls.append(("object", copy.deepcopy(messages), config, schema))
        return self._next()


class RateLimitError(Exception):
    """Mimics an SDK exception carrying an HTTP status code."""

    def __init__(self, message: str = "Too Many Requests") -> None:
        super().__init__(message)
        self.status_code = 429


def make_model(model_id: str, script: list[str | BaseException]) -> ResolvedModel:
    definition = get_model_definition(model_id)
    assert definition is not None
    return ResolvedModel(definition=definition, adapter=FakeAdapter(script))


def as_json(payload: dict[str, Any]) -> str:
    return json.dumps(payload)


def make_attempt(
    number: int,
    success: bool,
    input_tokens: int | None = 10,
    output_tokens: int | None = 5,
) -> AttemptResult:
    return AttemptResult(
        attempt_number=number,
        timestamp=datetime.now(timezone.utc),
        success=success,
        duration_ms=100,
        input_tokens=input_tokens,
        output_tokens=output_tokens,
        prompt="prompt",
        raw_response="{}" if success else "not json",
        parsed_response={} if success else None,
        validation_errors=[]
        if success
        else [ValidationIssue(message="Invalid JSON: Expecting value", code="invalid_json")],
        error_message=None if success else "Invalid JSON: Expecting value",
    )


def make_flat_run(run_number: int, succeeded_on: int | None, attempts: int = 4) -> FlatRunResult:
    """A flat run that succeeded on attempt succeeded_on (1-based), or failed."""
    count = succeeded_on if succeeded_on is not None else attempts
    return FlatRunResult(
        run_number=run_number,
        success=succeeded_on is not None,
        attempts=[
            make_attempt(n, success=(n == succeeded_on)) for n in range(1, count + 1)
        ],
        total_duration_ms=100 * count,
        final_response={} if succeeded_on is not None else None,
    )


def make_sequential_run(
    run_number: int,
    step_attempts: list[int],
    success: bool | None = None,
    failed_step: int | None = None,
):
    """A sequential run whose step i used step_attempts[i] attempts.

    Every step succeeds on its last attempt except failed_step (1-based),
    whose attempts all fail. success defaults to whether no step failed.
    """
    steps = []
    for i, count in enumerate(step_attempts):
        step_ok = failed_step != i + 1
        steps.append(
            StepResult(
                step_number=i + 1,
                step_name=("Recommendation", "Details", "AI Config")[i],
                success=step_ok,
                attempts=[
                    make_attempt(n, success=step_ok and n == count) for n in range(1, count + 1)
                ],
            )
        )
    if success is None:
        success = failed_step is None
    return SequentialRunResult(
        run_number=run_number,
        success=success,
        steps=steps,
        total_duration_ms=300,
        final_response={} if success else None,
    )


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any configure_logging() a test (or CLI invocation) performed."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def executor(sleeps: list[float]) -> AttemptExecutor:
    """AttemptExecutor whose sleeps are recorded instead of awaited."""

    async def fake_sleep(delay: float) -> None:
        sleeps.append(delay)

    return AttemptExecutor(sleep=fake_sleep)
