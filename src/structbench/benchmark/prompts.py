"""Prompt templates for the four benchmark scenarios.

Non-strict prompts spell out the JSON shape in prose because nothing
else constrains the output; strict prompts only describe the task since
the provider enforces the schema.
"""

from __future__ import annotations

import re

from structbench.models.result import ValidationIssue

SYSTEM_PROMPT = (
    "You are a senior technical advisor. You read internal team discussions and "
    "turn them into precise, structured recommendations. Base every statement on "
    "the conversation you are given and do not invent participants."
)

_RECOMMENDATION_SHAPE = """  "recommendation": {
    "title": string,
    "summary": string,
    "priority": "low" | "medium" | "high" | "critical",
    "confidence": number between 0 and 1,
    "rationale": [string, ...] (at least one)
  }"""

_ACTORS_SHAPE = """  "actors": [
    {
      "name": string (a participant from the conversation),
      "role": string,
      "responsibilities": [string, ...] (at least one),
      "stance": "supportive" | "neutral" | "skeptical"
    },
    ... (at least two)
  ]"""

_AI_CONFIG_SHAPE = """  "ai_config": {
    "provider": string,
    "model": string,
    "temperature": number between 0 and 2,
    "max_tokens": positive integer,
    "features": [string, ...] (at least one),
    "guardrails": [string, ...]
  },
  "next_steps": [
    {"owner": string (must be one of the actors' names), "action": string},
    ... (at least one)
  ]"""

_JSON_ONLY = (
    "Respond with a single JSON object and nothing else. Do not wrap it in "
    "markdown and do not add commentary."
)

ONE_SHOT_PROMPT = f"""Analyze the conversation above and produce a complete recommendation.

Return JSON with exactly this structure:
{{
{_RECOMMENDATION_SHAPE},
{_ACTORS_SHAPE},
{_AI_CONFIG_SHAPE}
}}

{_JSON_ONLY}"""

ONE_SHOT_STRICT_PROMPT = (
    "Analyze the conversation above and produce a complete recommendation: the "
    "overall recommendation with its rationale, the actors involved with their "
    "responsibilities and stance, the AI configuration the team agreed on, and the "
    "next steps. Every next step owner must be one of the actors you list."
)

SEQUENTIAL_PROMPTS: dict[int, dict[str, str]] = {
    1: {
        "non_strict": f"""Step 1 of 3. Based on the conversation, state the team's overall recommendation.

Return JSON with exactly this structure:
{{
{_RECOMMENDATION_SHAPE}
}}

{_JSON_ONLY}""",
        "strict": (
            "Step 1 of 3. Based on the conversation, state the team's overall "
            "recommendation with a title, summary, priority, confidence and rationale."
        ),
    },
    2: {
        "non_strict": f"""Step 2 of 3. Using the recommendation you gave, identify the people involved.

Return JSON with exactly this structure:
{{
{_ACTORS_SHAPE}
}}

{_JSON_ONLY}""",
        "strict": (
            "Step 2 of 3. Using the recommendation you gave, list the people involved "
            "with their role, responsibilities and stance toward the plan."
        ),
    },
    3: {
        "non_strict": f"""Step 3 of 3. Using the recommendation and actors you gave, describe the AI configuration and next steps.

Return JSON with exactly this structure:
{{
{_AI_CONFIG_SHAPE}
}}

{_JSON_ONLY}""",
        "strict": (
            "Step 3 of 3. Using the recommendation and actors you gave, describe the AI "
            "configuration the team agreed on and the next steps. Every next step owner "
            "must be one of the actors from step 2."
        ),
    },
}


def get_one_shot_prompt(strict: bool = False) -> str:
    return ONE_SHOT_STRICT_PROMPT if strict else ONE_SHOT_PROMPT


def get_sequential_prompt(step: int, strict: bool = False) -> str:
    return SEQUENTIAL_PROMPTS[step]["strict" if strict else "non_strict"]


def build_retry_prompt(raw_response: str, errors: list[ValidationIssue]) -> str:
    """Build the follow-up prompt that asks the model to fix its last answer.

    Args:
        raw_response: The previous attempt's raw text.
        errors: Validation issues found in that text.

    Returns:
        Prompt listing each issue as "- path: message (code)".
    """
    lines = []
    for issue in errors:
        path = ".".join(issue.path) if issue.path else "(root)"
        lines.append(f"- {path}: {issue.message} ({issue.code})")
    error_list = "\n".join(lines)

    if raw_response.strip():
        preamble = "Your previous response failed validation."
    else:
        preamble = "Your previous response was empty or could not be read."

    return (
        f"{preamble} These problems were found:\n\n"
        f"{error_list}\n\n"
        "Fix every problem and return the corrected JSON object. "
        "Respond with the JSON only."
    )


_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)


def extract_json(text: str) -> str:
    """Recover the JSON payload from a freeform model reply.

    Tries a markdown code fence first, then the span from the first '{'
    to the last '}'. Falls back to the stripped text so that parsing
    reports the real problem.
    """
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()

    first_brace = text.find("{")
    last_brace = text.rfind("}")
    if first_brace != -1 and last_brace > first_brace:
        return text[first_brace : last_brace + 1]

    return text.strip()
