"""Run launcher: validate a request, register it, execute it, persist it.

prepare_run() does the synchronous part (filtering and registration) so
callers learn about configuration problems immediately; execute_run()
is the background part and never raises.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence

import structlog

from structbench.errors import (
    InvalidScenarioError,
    NoRunnableModelsError,
    RunAlreadyActiveError,
)
from structbench.evaluation.aggregation import update_run_summary
from structbench.execution.attempt import AttemptExecutor
from structbench.execution.scenarios import SCENARIOS
from structbench.execution.suite import Resolver, run_full_test_suite
from structbench.live.registry import ActiveRun, ActiveRunRegistry
from structbench.models.catalog import (
    MODEL_DEFINITIONS,
    ModelDefinition,
    has_credentials,
    resolve_model,
)
from structbench.models.config import TestConfig
from structbench.models.result import TestRunConfig, TestRunFile
from structbench.storage.json_store import RunStore, create_test_run

logger = structlog.get_logger(__name__)


def prepare_run(
    registry: ActiveRunRegistry,
    model_ids: list[str],
    scenarios: list[int],
    config: TestConfig,
    catalog: Sequence[ModelDefinition] = MODEL_DEFINITIONS,
) -> ActiveRun:
    """Filter the request down to what can run and register it.

    Unknown and uncredentialed models and out-of-range scenarios are
    dropped silently; only an empty remainder is an error.

    Raises:
        RunAlreadyActiveError: If another run is in progress.
        NoRunnableModelsError: If no requested model is known and credentialed.
        InvalidScenarioError: If no requested scenario is in 1..4.
    """
    active = registry.running()
    if active is not None:
        raise RunAlreadyActiveError(active.run_id)

    known = {definition.id: definition for definition in catalog}
    models = [
        known[model_id]
        for model_id in model_ids
        if model_id in known and has_credentials(model_id, config.api_keys)
    ]
    if not models:
        raise NoRunnableModelsError(model_ids)

    valid_scenarios = [s for s in scenarios if s in SCENARIOS]
    if not valid_scenarios:
        raise InvalidScenarioError()

    run = create_test_run(
        TestRunConfig(
            models=[m.id for m in models],
            scenarios=valid_scenarios,
            runs_per_scenario=config.runs_per_scenario,
            temperature=config.temperature,
            max_retries=config.max_retries,
        )
    )
    return registry.start(run, models, valid_scenarios)


async def execute_run(
    registry: ActiveRunRegistry,
    store: RunStore,
    run_id: str,
    config: TestConfig,
    *,
    resolver: Resolver = resolve_model,
    executor: AttemptExecutor | None = None,
    clock: Callable[[], float] = time.perf_counter,
) -> TestRunFile | None:
    """Execute a prepared run through the registry's channel and persist it.

    Any exception marks the registry entry as errored and is logged; it
    is not re-raised.

    Returns:
        The finished TestRunFile, or None if the run errored.
    """
    entry = registry.get(run_id)
    if entry is None:
        logger.warning("run.unknown", run_id=run_id)
        return None

    run = entry.run
    started = clock()
    try:
        results = await run_full_test_suite(
            run.config.models,
            run.config.scenarios,
            config,
            channel=entry.channel,
            resolver=resolver,
            executor=executor,
        )
        run.results = results
        run.duration_ms = int((clock() - started) * 1000)
        update_run_summary(run)
        store.save_run(run)
    except Exception as exc:
        logger.error(
            "run.failed", run_id=run_id, error=str(exc), error_type=type(exc).__name__
        )
        registry.fail(run_id, str(exc))
        return None

    registry.complete(run_id)
    logger.info(
        "run.finished",
        run_id=run_id,
        duration_ms=run.duration_ms,
        passed=run.summary.passed,
        total=run.summary.total_tests,
    )
    return run
