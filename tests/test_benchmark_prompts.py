"""Tests for structbench.benchmark.prompts and the fixed conversation."""

from __future__ import annotations

import pytest

from structbench.benchmark.conversation import (
    CONVERSATION,
    PARTICIPANTS,
    format_conversation,
    get_conversation_messages,
)
from structbench.benchmark.prompts import (
    ONE_SHOT_PROMPT,
    ONE_SHOT_STRICT_PROMPT,
    build_retry_prompt,
    extract_json,
    get_one_shot_prompt,
    get_sequential_prompt,
)
from structbench.models.result import ValidationIssue


class TestExtractJson:
    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"a": 1}\n```\nThanks'
        assert extract_json(text) == '{"a": 1}'

    def test_unlabelled_fence(self):
        assert extract_json('```\n{"a": 1}\n```') == '{"a": 1}'

    def test_brace_span(self):
        assert extract_json('Result: {"a": {"b": 2}} done') == '{"a": {"b": 2}}'

    def test_fallback_strips(self):
        assert extract_json("  no json here  ") == "no json here"


class TestBuildRetryPrompt:
    def test_lists_each_issue(self):
        prompt = build_retry_prompt(
            '{"actors": []}',
            [
                ValidationIssue(path=["actors"], message="List too short", code="too_short"),
                ValidationIssue(
                    path=["recommendation", "priority"], message="Bad value", code="literal_error"
                ),
            ],
        )
        assert "- actors: List too short (too_short)" in prompt
        assert "- recommendation.priority: Bad value (literal_error)" in prompt
        assert prompt.startswith("Your previous response failed validation.")

    def test_root_path(self):
        prompt = build_retry_prompt(
            "oops", [ValidationIssue(path=[], message="Invalid JSON: x", code="invalid_json")]
        )
        assert "- (root): Invalid JSON: x (invalid_json)" in prompt

    def test_empty_response_preamble(self):
        prompt = build_retry_prompt(
            "", [ValidationIssue(message="Invalid JSON: x", code="invalid_json")]
        )
        assert prompt.startswith("Your previous response was empty")


class TestPromptSelection:
    def test_one_shot(self):
        assert get_one_shot_prompt(False) == ONE_SHOT_PROMPT
        assert get_one_shot_prompt(True) == ONE_SHOT_STRICT_PROMPT

    def test_non_strict_prompts_spell_out_shape(self):
        assert '"recommendation"' in get_one_shot_prompt(False)
        assert '"actors"' in get_sequential_prompt(2, strict=False)
        assert '"next_steps"' in get_sequential_prompt(3, strict=False)

    @pytest.mark.parametrize("step", [1, 2, 3])
    def test_strict_differs(self, step):
        assert get_sequential_prompt(step, True) != get_sequential_prompt(step, False)
        assert get_sequential_prompt(step, True).startswith(f"Step {step} of 3.")


class TestConversation:
    def test_participants(self):
        assert [p.name for p in PARTICIPANTS] == ["Sarah", "Marcus", "Priya", "David", "Elena"]

    def test_every_speaker_is_a_participant(self):
        names = {p.name for p in PARTICIPANTS}
        assert len(CONVERSATION) == 12
        assert all(msg.participant in names for msg in CONVERSATION)

    def test_format(self):
        text = format_conversation()
        assert text.startswith(f"{CONVERSATION[0].participant}: ")
        assert text.count("\n\n") == len(CONVERSATION) - 1

    def test_wrapped_in_one_user_message(self):
        [message] = get_conversation_messages()
        assert message.role == "user"
        assert message.content.endswith(format_conversation())
