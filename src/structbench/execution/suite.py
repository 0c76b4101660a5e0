"""Suite orchestration: scenarios x models, strictly sequential.

Models run one after another, scenarios within a model one after
another. There is no fan-out, which bounds API cost and rate-limit
exposure and keeps the progress stream linear.
"""

from __future__ import annotations

from collections.abc import Callable

import structlog

from structbench.errors import InvalidScenarioError
from structbench.evaluation.aggregation import summarize
from structbench.execution.attempt import AttemptExecutor
from structbench.execution.channel import ProgressChannel
from structbench.execution.scenarios import (
    SCENARIOS,
    ProgressCallback,
    RunCompleteCallback,
    ScenarioRunner,
)
from structbench.models.catalog import ApiKeys, ResolvedModel, resolve_model
from structbench.models.config import TestConfig
from structbench.models.progress import RunCompleteEvent, TestProgress
from structbench.models.result import ScenarioResult

logger = structlog.get_logger(__name__)

Resolver = Callable[[str, ApiKeys], ResolvedModel]


def _validate_scenarios(scenarios: list[int]) -> None:
    for scenario in scenarios:
        if scenario not in SCENARIOS:
            raise InvalidScenarioError(scenario)


def _fan_in(
    channel: ProgressChannel | None,
    on_progress: ProgressCallback | None,
    on_run_complete: RunCompleteCallback | None,
) -> tuple[ProgressCallback, RunCompleteCallback]:
    """Route runner callbacks to the channel first, then the plain callbacks."""

    def progress(event: TestProgress) -> None:
        if channel is not None:
            channel.publish(event)
        if on_progress is not None:
            on_progress(event)

    def run_complete(event: RunCompleteEvent) -> None:
        if channel is not None:
            channel.publish(event)
        if on_run_complete is not None:
            on_run_complete(event)

    return progress, run_complete


async def run_model_tests(
    model_id: str,
    scenarios: list[int],
    config: TestConfig | None = None,
    on_progress: ProgressCallback | None = None,
    on_run_complete: RunCompleteCallback | None = None,
    *,
    channel: ProgressChannel | None = None,
    resolver: Resolver = resolve_model,
    executor: AttemptExecutor | None = None,
) -> dict[str, ScenarioResult]:
    """Run the requested scenarios against one model.

    Strict scenarios are skipped for models without strict-mode support;
    a skipped scenario has no key in the returned map.

    Args:
        model_id: Catalog id of the model.
        scenarios: Scenario numbers (1..4) in execution order.
        config: Test parameters. Defaults to TestConfig().
        on_progress: Called synchronously with every TestProgress event.
        on_run_complete: Called synchronously after every run.
        channel: Optional ProgressChannel that receives every event.
        resolver: Maps (model_id, api_keys) to a ResolvedModel.
        executor: AttemptExecutor to use; a default one is built if None.

    Returns:
        Mapping of scenario key ("1".."4") to ScenarioResult.

    Raises:
        InvalidScenarioError: If a scenario number is outside 1..4.
        ModelNotFoundError: If model_id is not in the catalog.
        MissingCredentialsError: If the model's provider has no API key.
    """
    config = config or TestConfig()
    _validate_scenarios(scenarios)
    model = resolver(model_id, config.api_keys)
    executor = executor or AttemptExecutor()
    progress, run_complete = _fan_in(channel, on_progress, on_run_complete)

    results: dict[str, ScenarioResult] = {}
    for number in scenarios:
        scenario = SCENARIOS[number]
        if scenario.strict and not model.supports_strict_mode:
            logger.info("scenario.skipped", model_id=model_id, scenario=number)
            continue

        runner = ScenarioRunner(
            model,
            scenario,
            config,
            executor=executor,
            on_progress=progress,
            on_run_complete=run_complete,
        )
        runs = await runner.run_all()
        results[str(number)] = ScenarioResult(
            runs=runs, summary=summarize(runs, scenario.sequential)
        )

    return results


async def run_full_test_suite(
    model_ids: list[str],
    scenarios: list[int],
    config: TestConfig | None = None,
    on_progress: ProgressCallback | None = None,
    on_run_complete: RunCompleteCallback | None = None,
    *,
    channel: ProgressChannel | None = None,
    resolver: Resolver = resolve_model,
    executor: AttemptExecutor | None = None,
) -> dict[str, dict[str, ScenarioResult]]:
    """Run run_model_tests for each model in order (never concurrently)."""
    results: dict[str, dict[str, ScenarioResult]] = {}
    for model_id in model_ids:
        results[model_id] = await run_model_tests(
            model_id,
            scenarios,
            config,
            on_progress,
            on_run_complete,
            channel=channel,
            resolver=resolver,
            executor=executor,
        )
    return results
