"""Exception hierarchy for structbench.

Configuration problems (unknown model, missing credentials, bad scenario
numbers, a second concurrent run) are raised immediately and abort the
calling operation. Per-attempt failures never surface here; they are
recorded on AttemptResult instead.
"""

from __future__ import annotations


class StructbenchError(Exception):
    """Base class for all structbench errors."""


class ModelNotFoundError(StructbenchError):
    """Raised when a model id is not in the catalog."""

    def __init__(self, model_id: str) -> None:
        self.model_id = model_id
        super().__init__(f"Unknown model '{model_id}'")


class MissingCredentialsError(StructbenchError):
    """Raised when no API key is available for a model's provider."""

    def __init__(self, model_id: str, provider: str, env_var: str) -> None:
        self.model_id = model_id
        self.provider = provider
        self.env_var = env_var
        super().__init__(
            f"Missing API key for model '{model_id}' (provider '{provider}'). "
            f"Set {env_var} or pass the key explicitly."
        )


class InvalidScenarioError(StructbenchError):
    """Raised when a scenario number outside 1..4 is requested.

    scenario is None when a request filtered down to no scenarios at all.
    """

    def __init__(self, scenario: int | None = None) -> None:
        self.scenario = scenario
        if scenario is None:
            message = "No valid scenarios specified. Valid scenarios are 1, 2, 3, 4."
        else:
            message = f"Invalid scenario: {scenario}. Valid scenarios are 1, 2, 3, 4."
        super().__init__(message)


class NoRunnableModelsError(StructbenchError):
    """Raised when none of the requested models is known and credentialed."""

    def __init__(self, requested: list[str]) -> None:
        self.requested = requested
        super().__init__(
            "No valid models specified or missing API keys "
            f"(requested: {', '.join(requested) or 'none'})."
        )


class RunAlreadyActiveError(StructbenchError):
    """Raised when a run is started while another one is still running."""

    def __init__(self, active_run_id: str) -> None:
        self.active_run_id = active_run_id
        super().__init__(
            f"A test is already running ({active_run_id}). "
            "Wait for it to complete or cancel it."
        )


class MergeValidationError(StructbenchError):
    """Raised when merged sequential step outputs fail the full response schema."""

    def __init__(self, issues: list[dict]) -> None:
        self.issues = issues
        first = issues[0]["message"] if issues else "unknown error"
        super().__init__(f"Merged response failed validation: {first}")
