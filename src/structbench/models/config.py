"""Configuration models for structbench.

ProjectConfig captures structbench.yaml fields with defaults for the
CLI. TestConfig carries the parameters of a single benchmark run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from structbench.models.catalog import ApiKeys

CONFIG_FILENAME = "structbench.yaml"


class TestConfig(BaseModel):
    """Parameters for executing scenarios against models.

    max_retries counts retries after the first attempt, so each run or
    step gets max_retries + 1 attempts.
    """

    __test__ = False  # not a pytest test class

    model_config = {"extra": "forbid"}

    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    max_retries: int = Field(default=3, ge=0)
    runs_per_scenario: int = Field(default=10, ge=1)
    api_keys: ApiKeys = Field(default_factory=ApiKeys)

    @property
    def max_attempts(self) -> int:
        return self.max_retries + 1


class ProjectConfig(BaseModel):
    """Project-level configuration loaded from structbench.yaml."""

    model_config = {"extra": "forbid"}

    default_models: list[str] = Field(default_factory=lambda: ["openai-gpt4o"])
    default_scenarios: list[int] = Field(default_factory=lambda: [1, 2, 3, 4])
    runs_per_scenario: int = Field(default=10, ge=1)
    temperature: float = Field(default=0.1, ge=0.0, le=2.0)
    max_retries: int = Field(default=3, ge=0)
    storage_dir: str = ".structbench"
    log_format: Literal["console", "json"] = "console"
    log_level: str = "warning"


def find_project_root(start: Path | None = None) -> Path:
    """Walk up from start (default: cwd) looking for structbench.yaml or .structbench/.

    Args:
        start: Starting path (file or directory). Defaults to cwd.

    Returns:
        Path to the directory containing structbench.yaml or .structbench/,
        or cwd if neither is found.
    """
    current = (start or Path.cwd()).resolve()
    if current.is_file():
        current = current.parent
    while current != current.parent:
        if (current / CONFIG_FILENAME).exists() or (current / ".structbench").exists():
            return current
        current = current.parent
    return Path.cwd()


def load_project_config(project_root: Path | None = None) -> ProjectConfig:
    """Load ProjectConfig from structbench.yaml. Returns defaults if not found."""
    if project_root is None:
        project_root = find_project_root()
    config_path = project_root / CONFIG_FILENAME
    if not config_path.exists():
        return ProjectConfig()
    import yaml

    raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    if raw is None:
        return ProjectConfig()
    return ProjectConfig.model_validate(raw)
