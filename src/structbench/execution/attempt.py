"""Attempt executor: one model call, normalized into an AttemptOutcome.

Both modes end in the same parse-and-validate step, so a strict-mode
response that the provider failed to constrain is judged exactly like a
freeform one. Transport errors never escape: rate limits are retried
with backoff, everything else becomes a failed attempt.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog
from pydantic import BaseModel, ValidationError

from structbench.adapters.base import AdapterConfig, GenerationResult, Message
from structbench.benchmark.prompts import extract_json
from structbench.benchmark.schemas import validation_issues
from structbench.execution.retry import (
    BACKOFF_BASE_DELAY,
    BACKOFF_MAX_RETRIES,
    Sleep,
    is_rate_limit_error,
    retry_with_backoff,
)
from structbench.models.catalog import ResolvedModel
from structbench.models.config import TestConfig
from structbench.models.result import ValidationIssue

logger = structlog.get_logger(__name__)

# Providers with low published rate limits get a pause after every call.
THROTTLED_PROVIDERS: frozenset[str] = frozenset({"groq", "openrouter"})
THROTTLE_DELAY = 5.0

REASONING_EFFORT = "low"


class AttemptMode(str, Enum):
    NON_STRICT = "non_strict"
    STRICT = "strict"


@dataclass
class AttemptOutcome:
    """Normalized result of one attempt.

    fatal is True when the run cannot continue (rate-limit backoff
    exhausted); the runner records the attempt and ends the run.
    """

    success: bool
    raw: str
    data: dict[str, Any] | None = None
    errors: list[ValidationIssue] = field(default_factory=list)
    input_tokens: int | None = None
    output_tokens: int | None = None
    fatal: bool = False


class AttemptExecutor:
    """Invokes a resolved model once in strict or non-strict mode."""

    def __init__(
        self,
        throttled_providers: frozenset[str] = THROTTLED_PROVIDERS,
        throttle_delay: float = THROTTLE_DELAY,
        backoff_base_delay: float = BACKOFF_BASE_DELAY,
        backoff_max_retries: int = BACKOFF_MAX_RETRIES,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.throttled_providers = throttled_providers
        self.throttle_delay = throttle_delay
        self.backoff_base_delay = backoff_base_delay
        self.backoff_max_retries = backoff_max_retries
        self._sleep = sleep

    def adapter_config(self, model: ResolvedModel, config: TestConfig) -> AdapterConfig:
        """Reasoning models reject temperature and get a low effort hint instead."""
        if model.is_reasoning_model:
            return AdapterConfig(
                model=model.definition.model_name,
                reasoning_effort=REASONING_EFFORT,
            )
        return AdapterConfig(
            model=model.definition.model_name,
            temperature=config.temperature,
        )

    async def attempt(
        self,
        model: ResolvedModel,
        messages: list[Message],
        schema: type[BaseModel],
        mode: AttemptMode,
        config: TestConfig,
    ) -> AttemptOutcome:
        """Run one attempt and classify its outcome.

        Args:
            model: The resolved model to call.
            messages: Full message history for this attempt.
            schema: Pydantic model the response must satisfy.
            mode: STRICT uses constrained generation, NON_STRICT freeform text.
            config: Test parameters (temperature).

        Returns:
            AttemptOutcome; errors is non-empty exactly when success is False.
        """
        adapter_config = self.adapter_config(model, config)
        adapter = model.adapter

        if mode is AttemptMode.STRICT:
            def call() -> Any:
                return adapter.generate_object(messages, schema, adapter_config)
        else:
            def call() -> Any:
                return adapter.generate_text(messages, adapter_config)

        outcome = await retry_with_backoff(
            call,
            is_retryable=is_rate_limit_error,
            max_retries=self.backoff_max_retries,
            base_delay=self.backoff_base_delay,
            sleep=self._sleep,
        )

        if not outcome.ok:
            return self._transport_failure(model, outcome.error, outcome.exhausted)

        result: GenerationResult = outcome.value
        if model.provider in self.throttled_providers:
            await self._sleep(self.throttle_delay)

        text = result.text if mode is AttemptMode.STRICT else extract_json(result.text)
        return self._validate(
            text,
            raw=result.text,
            schema=schema,
            input_tokens=result.usage.input_tokens,
            output_tokens=result.usage.output_tokens,
        )

    def _transport_failure(
        self, model: ResolvedModel, error: BaseException | None, exhausted: bool
    ) -> AttemptOutcome:
        message = str(error) or type(error).__name__
        if exhausted:
            logger.warning(
                "attempt.rate_limited",
                model_id=model.id,
                retries=self.backoff_max_retries,
                error=message,
            )
            code = "rate_limited"
            message = f"Rate limit retries exhausted: {message}"
        else:
            logger.warning("attempt.api_error", model_id=model.id, error=message)
            code = "api_error"

        return AttemptOutcome(
            success=False,
            raw=f"Error: {message}",
            errors=[ValidationIssue(path=[], message=message, code=code)],
            fatal=exhausted,
        )

    @staticmethod
    def _validate(
        text: str,
        raw: str,
        schema: type[BaseModel],
        input_tokens: int,
        output_tokens: int,
    ) -> AttemptOutcome:
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as exc:
            return AttemptOutcome(
                success=False,
                raw=raw,
                errors=[
                    ValidationIssue(
                        path=[], message=f"Invalid JSON: {exc.msg}", code="invalid_json"
                    )
                ],
                input_tokens=input_tokens,
                output_tokens=output_tokens,
            )

        try:
            validated = schema.model_validate(parsed)
        except ValidationError as exc:
            return AttemptOutcome(
                success=False,
                raw=raw,
                errors=validation_issues(exc),
                input_tokens=input_tokens,
                output_tokens=output_tokens,
            )

        return AttemptOutcome(
            success=True,
            raw=raw,
            data=validated.model_dump(),
            input_tokens=input_tokens,
            output_tokens=output_tokens,
        )
