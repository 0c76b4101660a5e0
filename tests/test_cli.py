"""Tests for the structbench CLI: run, report, list, delete, models."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from conftest import VALID_RESPONSE, RateLimitError, as_json, make_flat_run, make_model
from structbench import __version__
from structbench.cli.main import app
from structbench.evaluation.aggregation import summarize, update_run_summary
from structbench.execution.retry import retry_with_backoff
from structbench.models.result import ScenarioResult, TestRunConfig
from structbench.storage.json_store import RunStore, create_test_run

runner = CliRunner()


@pytest.fixture
def project(tmp_path: Path, monkeypatch) -> Path:
    """An empty project directory that the CLI resolves as its root."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _saved_run(root: Path, run_id: str = "run-aaa") -> None:
    run = create_test_run(
        TestRunConfig(
            models=["openai-gpt4o"],
            scenarios=[1],
            runs_per_scenario=2,
            temperature=0.1,
            max_retries=3,
        )
    )
    run.id = run_id
    runs = [make_flat_run(1, 1), make_flat_run(2, None)]
    run.results = {"openai-gpt4o": {"1": ScenarioResult(runs=runs, summary=summarize(runs, False))}}
    update_run_summary(run)
    RunStore(root).save_run(run)


class TestVersionAndModels:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"structbench {__version__}" in result.output

    def test_models_lists_catalog(self):
        result = runner.invoke(app, ["models"])
        assert result.exit_code == 0
        assert "openai-gpt4o" in result.output
        assert "groq-kimi-k2" in result.output


class TestReport:
    def test_report_latest(self, project: Path):
        _saved_run(project)

        with patch("structbench.cli.report_cmd.find_project_root", return_value=project):
            result = runner.invoke(app, ["report"])

        assert result.exit_code == 0
        assert "run-aaa" in result.output
        assert "GPT-4o" in result.output

    def test_report_json(self, project: Path):
        _saved_run(project)

        with patch("structbench.cli.report_cmd.find_project_root", return_value=project):
            result = runner.invoke(app, ["report", "run-aaa", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["id"] == "run-aaa"
        assert data["summary"]["success_rate"] == 50.0

    def test_report_no_runs(self, project: Path):
        with patch("structbench.cli.report_cmd.find_project_root", return_value=project):
            result = runner.invoke(app, ["report"])
        assert result.exit_code == 1

    def test_report_unknown_run(self, project: Path):
        _saved_run(project)
        with patch("structbench.cli.report_cmd.find_project_root", return_value=project):
            result = runner.invoke(app, ["report", "nonexistent"])
        assert result.exit_code == 1


class TestListAndDelete:
    def test_list(self, project: Path):
        _saved_run(project, "run-aaa")
        _saved_run(project, "run-bbb")

        with patch("structbench.cli.report_cmd.find_project_root", return_value=project):
            result = runner.invoke(app, ["list"])

        assert result.exit_code == 0
        assert "run-aaa" in result.output
        assert "run-bbb" in result.output

    def test_delete(self, project: Path):
        _saved_run(project)

        with patch("structbench.cli.report_cmd.find_project_root", return_value=project):
            result = runner.invoke(app, ["delete", "run-aaa"])
            missing = runner.invoke(app, ["delete", "run-aaa"])

        assert result.exit_code == 0
        assert missing.exit_code == 1
        assert RunStore(project).load_run("run-aaa") is None


class TestRun:
    def test_run_json_end_to_end(self, project: Path, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        model = make_model("openai-gpt4o", [as_json(VALID_RESPONSE)] * 2)

        with (
            patch("structbench.cli.run_cmd.find_project_root", return_value=project),
            patch("structbench.cli.run_cmd.resolve_model", return_value=model),
        ):
            result = runner.invoke(
                app, ["run", "-m", "openai-gpt4o", "-s", "1", "--runs", "2", "--json"]
            )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["summary"]["total_tests"] == 2
        assert data["summary"]["passed"] == 2
        assert RunStore(project).load_run(data["id"]) is not None

    def test_run_without_credentials_fails(self, project: Path, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)

        with patch("structbench.cli.run_cmd.find_project_root", return_value=project):
            result = runner.invoke(app, ["run", "-m", "openai-gpt4o", "-s", "1"])

        assert result.exit_code == 1
        assert "No valid models" in result.output

    def test_logging_still_works_after_run(self, project: Path, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        model = make_model("openai-gpt4o", [as_json(VALID_RESPONSE)])

        with (
            patch("structbench.cli.run_cmd.find_project_root", return_value=project),
            patch("structbench.cli.run_cmd.resolve_model", return_value=model),
        ):
            result = runner.invoke(app, ["run", "-m", "openai-gpt4o", "-s", "1", "-n", "1", "--json"])
        assert result.exit_code == 0, result.output

        calls = []

        async def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise RateLimitError()
            return "ok"

        async def no_sleep(_delay: float) -> None:
            return None

        outcome = asyncio.run(retry_with_backoff(flaky, sleep=no_sleep))

        assert outcome.ok
        assert outcome.value == "ok"
        assert outcome.retries_used == 1
