"""Scenario summary statistics and top-level run summaries.

summarize() is a pure function of its inputs: it can be re-run at any
time over stored runs and yields identical output. Retry depth for a
sequential run is the number of retries consumed across the whole
pipeline (sum over steps), not per step.
"""

from __future__ import annotations

from collections.abc import Sequence

from structbench.models.result import (
    FlatRunResult,
    ScenarioSummary,
    SequentialRunResult,
    TestRunFile,
    TestRunSummary,
)

AnyRun = FlatRunResult | SequentialRunResult

SUMMARY_RETRY_DEPTHS = (0, 1, 2, 3)


def _check_shape(run: AnyRun, is_sequential: bool) -> None:
    expected = "sequential" if is_sequential else "flat"
    if run.kind != expected:
        raise ValueError(
            f"Run {run.run_number} is {run.kind!r} but the scenario is {expected!r}"
        )


def _percent(count: int, total: int) -> float:
    return 100 * count / total if total else 0.0


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _run_tokens(run: AnyRun) -> int:
    return sum(attempt.total_tokens for attempt in run.all_attempts())


def success_rate_within(
    runs: Sequence[AnyRun], is_sequential: bool, depth: int
) -> float:
    """Percentage of runs that succeeded having consumed at most depth retries.

    Failed runs never count toward the numerator.
    """
    for run in runs:
        _check_shape(run, is_sequential)
    within = 0
    for run in runs:
        retry_depth = run.retry_depth()
        if retry_depth is not None and retry_depth <= depth:
            within += 1
    return _percent(within, len(runs))


def summarize(runs: Sequence[AnyRun], is_sequential: bool) -> ScenarioSummary:
    """Compute the ScenarioSummary for a scenario's runs.

    Args:
        runs: Completed runs; all flat or all sequential.
        is_sequential: True for scenarios 3 and 4.

    Returns:
        ScenarioSummary with percentages in 0..100. An empty run list
        yields an all-zero summary.

    Raises:
        ValueError: If a run's shape does not match is_sequential.
    """
    if not runs:
        return ScenarioSummary()

    for run in runs:
        _check_shape(run, is_sequential)

    total = len(runs)
    successful = [run for run in runs if run.success]
    first, retry1, retry2, retry3 = (
        success_rate_within(runs, is_sequential, depth) for depth in SUMMARY_RETRY_DEPTHS
    )

    return ScenarioSummary(
        success_rate=_percent(len(successful), total),
        first_attempt_success_rate=first,
        after_retry1_success_rate=retry1,
        after_retry2_success_rate=retry2,
        after_retry3_success_rate=retry3,
        average_duration_ms=_mean([run.total_duration_ms for run in runs]),
        average_attempts=_mean([run.attempt_count() for run in runs]),
        average_attempts_per_success=_mean([run.attempt_count() for run in successful]),
        average_tokens_per_success=_mean([_run_tokens(run) for run in successful]),
        total_tokens_used=sum(_run_tokens(run) for run in runs),
    )


def update_run_summary(run_file: TestRunFile) -> TestRunSummary:
    """Recompute run_file.summary from every run it holds and return it."""
    total = 0
    passed = 0
    for scenarios in run_file.results.values():
        for result in scenarios.values():
            for run in result.runs:
                total += 1
                if run.success:
                    passed += 1

    summary = TestRunSummary(
        total_tests=total,
        passed=passed,
        failed=total - passed,
        success_rate=_percent(passed, total),
    )
    run_file.summary = summary
    return summary
