"""Benchmark fixture: conversation, response schemas and prompt templates."""

from structbench.benchmark.conversation import (
    CONVERSATION,
    PARTICIPANTS,
    format_conversation,
    get_conversation_messages,
)
from structbench.benchmark.prompts import (
    SYSTEM_PROMPT,
    build_retry_prompt,
    extract_json,
    get_one_shot_prompt,
    get_sequential_prompt,
)
from structbench.benchmark.schemas import (
    STEP_SCHEMAS,
    RecommendationResponse,
    merge_sequential_parts,
    validate_merged,
    validation_issues,
)

__all__ = [
    "CONVERSATION",
    "PARTICIPANTS",
    "STEP_SCHEMAS",
    "SYSTEM_PROMPT",
    "RecommendationResponse",
    "build_retry_prompt",
    "extract_json",
    "format_conversation",
    "get_conversation_messages",
    "get_one_shot_prompt",
    "get_sequential_prompt",
    "merge_sequential_parts",
    "validate_merged",
    "validation_issues",
]
