"""Live progress projection: progress grid, active run registry and run launcher."""

from structbench.live.launcher import execute_run, prepare_run
from structbench.live.progress import DetailedProgress, build_progress_grid, describe_progress
from structbench.live.registry import ActiveRun, ActiveRunRegistry

__all__ = [
    "ActiveRun",
    "ActiveRunRegistry",
    "DetailedProgress",
    "build_progress_grid",
    "describe_progress",
    "execute_run",
    "prepare_run",
]
