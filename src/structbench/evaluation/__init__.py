"""Evaluation package: scenario statistics and run summaries."""

from __future__ import annotations

from structbench.evaluation.aggregation import (
    success_rate_within,
    summarize,
    update_run_summary,
)

__all__ = [
    "success_rate_within",
    "summarize",
    "update_run_summary",
]
