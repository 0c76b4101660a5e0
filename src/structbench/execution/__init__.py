"""structbench execution - attempt executor, scenario runners and suite orchestration."""

from structbench.execution.attempt import AttemptExecutor, AttemptMode, AttemptOutcome
from structbench.execution.channel import ProgressChannel
from structbench.execution.cost import MODEL_PRICING, calculate_cost
from structbench.execution.retry import RetryOutcome, is_rate_limit_error, retry_with_backoff
from structbench.execution.scenarios import SCENARIOS, ScenarioDefinition, ScenarioRunner
from structbench.execution.suite import run_full_test_suite, run_model_tests

__all__ = [
    "MODEL_PRICING",
    "SCENARIOS",
    "AttemptExecutor",
    "AttemptMode",
    "AttemptOutcome",
    "ProgressChannel",
    "RetryOutcome",
    "ScenarioDefinition",
    "ScenarioRunner",
    "calculate_cost",
    "is_rate_limit_error",
    "retry_with_backoff",
    "run_full_test_suite",
    "run_model_tests",
]
