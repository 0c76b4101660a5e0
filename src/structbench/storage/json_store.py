"""JSON file storage layer for structbench run persistence.

Stores TestRunFile objects as JSON files under .structbench/runs/ with an
index file listing every stored run and its headline numbers. Uses
atomic writes to prevent corruption.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from uuid import uuid4

import structlog
from pydantic import BaseModel, Field, ValidationError

from structbench.models.result import TestRunConfig, TestRunFile, TestRunSummary

logger = structlog.get_logger(__name__)


class IndexSummary(BaseModel):
    models: list[str] = Field(default_factory=list)
    total_tests: int = 0
    success_rate: float = 0.0


class IndexEntry(BaseModel):
    """One stored run as listed in index.json."""

    id: str
    timestamp: datetime
    filename: str
    summary: IndexSummary = Field(default_factory=IndexSummary)


class RunIndex(BaseModel):
    runs: list[IndexEntry] = Field(default_factory=list)


def create_test_run(config: TestRunConfig) -> TestRunFile:
    """Create a new TestRunFile with a fresh id and empty results."""
    return TestRunFile(
        id=str(uuid4()),
        timestamp=datetime.now(timezone.utc),
        duration_ms=0,
        config=config,
        summary=TestRunSummary(),
        results={},
    )


class RunStore:
    """Persist and query TestRunFile objects as JSON files in .structbench/.

    File layout:
        .structbench/
            runs/
                {run-id}.json    # One TestRunFile per benchmark invocation
            index.json           # {"runs": [IndexEntry, ...]}, newest first

    Writes are atomic (write to .tmp, then rename) to prevent partial files.
    """

    def __init__(self, project_root: Path, storage_dir: str | None = None) -> None:
        effective_dir = storage_dir or ".structbench"
        self.storage_dir = project_root / effective_dir
        self.runs_dir = self.storage_dir / "runs"
        self.index_path = self.storage_dir / "index.json"

    def ensure_dirs(self) -> None:
        """Create .structbench/runs/."""
        self.runs_dir.mkdir(parents=True, exist_ok=True)

    def save_run(self, run_file: TestRunFile) -> str:
        """Save a TestRunFile as a JSON file and update the index.

        Saving a run that already exists replaces it.

        Returns:
            The run ID.
        """
        self.ensure_dirs()

        filename = f"{run_file.id}.json"
        content = run_file.model_dump_json(indent=2)

        # Atomic write: write to .tmp then rename
        tmp_file = self.runs_dir / f"{filename}.tmp"
        tmp_file.write_text(content, encoding="utf-8")
        tmp_file.replace(self.runs_dir / filename)

        self._update_index(run_file, filename)
        logger.info("storage.run_saved", run_id=run_file.id)
        return run_file.id

    def load_run(self, run_id: str) -> TestRunFile | None:
        """Load a TestRunFile by id. Returns None if no such run exists."""
        run_file = self.runs_dir / f"{run_id}.json"
        if not run_file.exists():
            return None
        return TestRunFile.model_validate_json(run_file.read_text(encoding="utf-8"))

    def load_index(self) -> RunIndex:
        """Load the index. A missing or unreadable index is treated as empty."""
        if not self.index_path.exists():
            return RunIndex()
        try:
            return RunIndex.model_validate_json(
                self.index_path.read_text(encoding="utf-8")
            )
        except (ValidationError, ValueError) as exc:
            logger.warning("storage.index_unreadable", path=str(self.index_path), error=str(exc))
            return RunIndex()

    def list_runs(self, limit: int | None = None) -> list[IndexEntry]:
        """List stored runs, newest first, optionally capped at limit."""
        runs = sorted(self.load_index().runs, key=lambda e: e.timestamp, reverse=True)
        if limit is not None:
            runs = runs[:limit]
        return runs

    def latest_run_id(self) -> str | None:
        runs = self.list_runs(limit=1)
        return runs[0].id if runs else None

    def delete_run(self, run_id: str) -> bool:
        """Delete a run file and remove it from the index.

        Returns:
            True if the run existed and was deleted, False otherwise.
        """
        run_file = self.runs_dir / f"{run_id}.json"
        existed = run_file.exists()
        if existed:
            run_file.unlink()
        self._remove_from_index(run_id)
        return existed

    def _write_index(self, index: RunIndex) -> None:
        self.storage_dir.mkdir(parents=True, exist_ok=True)
        content = json.dumps(index.model_dump(mode="json"), indent=2, ensure_ascii=False)
        tmp_path = self.index_path.with_suffix(".json.tmp")
        tmp_path.write_text(content, encoding="utf-8")
        tmp_path.replace(self.index_path)

    def _update_index(self, run_file: TestRunFile, filename: str) -> None:
        index = self.load_index()
        entries = [e for e in index.runs if e.id != run_file.id]
        entries.insert(
            0,
            IndexEntry(
                id=run_file.id,
                timestamp=run_file.timestamp,
                filename=filename,
                summary=IndexSummary(
                    models=list(run_file.config.models),
                    total_tests=run_file.summary.total_tests,
                    success_rate=run_file.summary.success_rate,
                ),
            ),
        )
        self._write_index(RunIndex(runs=entries))

    def _remove_from_index(self, run_id: str) -> None:
        index = self.load_index()
        remaining = [e for e in index.runs if e.id != run_id]
        if len(remaining) != len(index.runs):
            self._write_index(RunIndex(runs=remaining))
