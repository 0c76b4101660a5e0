"""Tests for structbench.execution.scenarios - the per-run attempt loops."""

from __future__ import annotations

import json

import pytest

from conftest import PART1, PART2, PART3, VALID_RESPONSE, RateLimitError, as_json, make_model
from structbench.execution.attempt import AttemptExecutor
from structbench.execution.scenarios import SCENARIOS, ScenarioRunner, render_prompt
from structbench.models.config import TestConfig


def _config(runs: int = 1, max_retries: int = 3) -> TestConfig:
    return TestConfig(runs_per_scenario=runs, max_retries=max_retries)


class TestOneShot:
    @pytest.mark.asyncio
    async def test_first_attempt_success(self, executor):
        model = make_model("openai-gpt4o", [as_json(VALID_RESPONSE)] * 2)
        runner = ScenarioRunner(model, SCENARIOS[1], _config(runs=2), executor=executor)

        runs = await runner.run_all()

        assert [r.run_number for r in runs] == [1, 2]
        assert all(r.success for r in runs)
        assert runs[0].attempt_count() == 1
        assert runs[0].final_response == VALID_RESPONSE
        assert runs[0].attempts[0].parsed_response == VALID_RESPONSE

    @pytest.mark.asyncio
    async def test_retry_history_grows(self, executor):
        model = make_model("openai-gpt4o", ["not json", as_json(VALID_RESPONSE)])
        runner = ScenarioRunner(model, SCENARIOS[1], _config(), executor=executor)

        [run] = await runner.run_all()

        assert run.success is True
        assert run.attempt_count() == 2
        first_messages = model.adapter.calls[0][1]
        second_messages = model.adapter.calls[1][1]
        assert len(second_messages) == len(first_messages) + 2
        assert second_messages[: len(first_messages)] == first_messages
        assert second_messages[-2].role == "assistant"
        assert second_messages[-2].content == "not json"
        assert second_messages[-1].role == "user"
        assert "(invalid_json)" in second_messages[-1].content

    @pytest.mark.asyncio
    async def test_messages_open_with_system_and_conversation(self, executor):
        model = make_model("openai-gpt4o", [as_json(VALID_RESPONSE)])
        runner = ScenarioRunner(model, SCENARIOS[1], _config(), executor=executor)

        await runner.run_all()

        messages = model.adapter.calls[0][1]
        assert messages[0].role == "system"
        assert messages[1].content.startswith("Here is a conversation between team members:")
        assert messages[-1].role == "user"

    @pytest.mark.asyncio
    async def test_all_attempts_fail(self, executor):
        model = make_model("openai-gpt4o", ["nope", "still nope"])
        runner = ScenarioRunner(model, SCENARIOS[1], _config(max_retries=1), executor=executor)

        [run] = await runner.run_all()

        assert run.success is False
        assert run.final_response is None
        assert run.attempt_count() == 2
        assert all(a.validation_errors for a in run.attempts)
        assert run.attempts[-1].error_message.startswith("Invalid JSON")

    @pytest.mark.asyncio
    async def test_strict_scenario_uses_constrained_generation(self, executor):
        model = make_model("openai-gpt4o", [as_json(VALID_RESPONSE)])
        runner = ScenarioRunner(model, SCENARIOS[2], _config(), executor=executor)

        await runner.run_all()

        assert model.adapter.calls[0][0] == "object"

    @pytest.mark.asyncio
    async def test_exhausted_rate_limit_ends_run(self, sleeps):
        async def fake_sleep(delay):
            sleeps.append(delay)

        executor = AttemptExecutor(backoff_max_retries=0, sleep=fake_sleep)
        model = make_model("openai-gpt4o", [RateLimitError()])
        runner = ScenarioRunner(model, SCENARIOS[1], _config(max_retries=3), executor=executor)

        [run] = await runner.run_all()

        assert run.success is False
        assert run.attempt_count() == 1
        assert run.attempts[0].validation_errors[0].code == "rate_limited"

    @pytest.mark.asyncio
    async def test_prompt_recorded_on_attempt(self, executor):
        model = make_model("openai-gpt4o", [as_json(VALID_RESPONSE)])
        runner = ScenarioRunner(model, SCENARIOS[1], _config(), executor=executor)

        [run] = await runner.run_all()

        assert run.attempts[0].prompt == render_prompt(model.adapter.calls[0][1])
        assert run.attempts[0].prompt.startswith("[system] ")


class TestSequential:
    @pytest.mark.asyncio
    async def test_three_steps_merge(self, executor):
        model = make_model("openai-gpt4o", [as_json(PART1), as_json(PART2), as_json(PART3)])
        runner = ScenarioRunner(model, SCENARIOS[3], _config(), executor=executor)

        [run] = await runner.run_all()

        assert run.success is True
        assert [s.step_name for s in run.steps] == ["Recommendation", "Details", "AI Config"]
        assert run.final_response == VALID_RESPONSE
        assert run.attempt_count() == 3

    @pytest.mark.asyncio
    async def test_prior_outputs_fed_forward(self, executor):
        model = make_model("openai-gpt4o", [as_json(PART1), as_json(PART2), as_json(PART3)])
        runner = ScenarioRunner(model, SCENARIOS[3], _config(), executor=executor)

        await runner.run_all()

        step3_messages = model.adapter.calls[2][1]
        assistant = [m for m in step3_messages if m.role == "assistant"]
        assert [json.loads(m.content) for m in assistant] == [PART1, PART2]

    @pytest.mark.asyncio
    async def test_step_failure_stops_pipeline(self, executor):
        model = make_model("openai-gpt4o", [as_json(PART1), "garbage"])
        runner = ScenarioRunner(model, SCENARIOS[3], _config(max_retries=0), executor=executor)

        [run] = await runner.run_all()

        assert run.success is False
        assert len(run.steps) == 2
        assert run.steps[0].success is True
        assert run.steps[1].success is False
        assert len(model.adapter.calls) == 2
        assert run.final_response is None

    @pytest.mark.asyncio
    async def test_merge_failure_fails_run(self, executor):
        part3 = {**PART3, "next_steps": [{"owner": "Nobody", "action": "x"}]}
        model = make_model("openai-gpt4o", [as_json(PART1), as_json(PART2), as_json(part3)])
        runner = ScenarioRunner(model, SCENARIOS[4], _config(), executor=executor)

        [run] = await runner.run_all()

        assert all(step.success for step in run.steps)
        assert run.success is False
        assert run.final_response is None


class TestCallbacks:
    @pytest.mark.asyncio
    async def test_progress_status_sequence(self, executor):
        events = []
        model = make_model("openai-gpt4o", ["bad", as_json(VALID_RESPONSE)])
        runner = ScenarioRunner(
            model, SCENARIOS[1], _config(), executor=executor, on_progress=events.append
        )

        await runner.run_all()

        assert [e.status for e in events] == ["running", "failed", "retrying", "success"]
        assert [e.attempt_number for e in events] == [1, 1, 2, 2]
        assert events[0].log_entry.type == "request"
        assert events[1].log_entry.type == "response"
        assert events[1].log_entry.validation_success is False
        assert events[1].message.startswith("Invalid JSON")

    @pytest.mark.asyncio
    async def test_sequential_events_carry_step(self, executor):
        events = []
        model = make_model("openai-gpt4o", [as_json(PART1), as_json(PART2), as_json(PART3)])
        runner = ScenarioRunner(
            model, SCENARIOS[3], _config(), executor=executor, on_progress=events.append
        )

        await runner.run_all()

        assert [e.step_number for e in events] == [1, 1, 2, 2, 3, 3]
        assert events[2].step_name == "Details"

    @pytest.mark.asyncio
    async def test_run_complete_once_per_run(self, executor):
        completed = []
        model = make_model("openai-gpt4o", [as_json(VALID_RESPONSE)] * 3)
        runner = ScenarioRunner(
            model, SCENARIOS[1], _config(runs=3), executor=executor,
            on_run_complete=completed.append,
        )

        await runner.run_all()

        assert [e.run_number for e in completed] == [1, 2, 3]
        assert all(e.is_sequential is False for e in completed)

    @pytest.mark.asyncio
    async def test_callback_error_aborts(self, executor):
        def explode(event):
            raise RuntimeError("observer failed")

        model = make_model("openai-gpt4o", [as_json(VALID_RESPONSE)])
        runner = ScenarioRunner(
            model, SCENARIOS[1], _config(), executor=executor, on_progress=explode
        )

        with pytest.raises(RuntimeError, match="observer failed"):
            await runner.run_all()
