"""structbench data models - re-exports all public model classes."""

from structbench.models.catalog import (
    MODEL_DEFINITIONS,
    ApiKeys,
    ModelDefinition,
    ResolvedModel,
    resolve_model,
)
from structbench.models.config import ProjectConfig, TestConfig
from structbench.models.progress import LogEntry, RunCompleteEvent, TestProgress
from structbench.models.result import (
    AttemptResult,
    FlatRunResult,
    RunResult,
    ScenarioResult,
    ScenarioSummary,
    SequentialRunResult,
    StepResult,
    TestRunConfig,
    TestRunFile,
    TestRunSummary,
    ValidationIssue,
)

__all__ = [
    "MODEL_DEFINITIONS",
    "ApiKeys",
    "AttemptResult",
    "FlatRunResult",
    "LogEntry",
    "ModelDefinition",
    "ProjectConfig",
    "ResolvedModel",
    "RunCompleteEvent",
    "RunResult",
    "ScenarioResult",
    "ScenarioSummary",
    "SequentialRunResult",
    "StepResult",
    "TestConfig",
    "TestProgress",
    "TestRunConfig",
    "TestRunFile",
    "TestRunSummary",
    "ValidationIssue",
    "resolve_model",
]
