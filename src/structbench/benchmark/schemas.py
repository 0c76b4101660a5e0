"""Response schemas the models are asked to produce.

The full RecommendationResponse is split into three parts for the
sequential pipeline; merge_sequential_parts recombines them and the
result must validate against the full schema again. The cross-field
check on next-step owners only exists on the full schema, so merged
output can fail even when every step passed on its own.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError, model_validator

from structbench.errors import MergeValidationError
from structbench.models.result import ValidationIssue


class Recommendation(BaseModel):
    title: str
    summary: str
    priority: Literal["low", "medium", "high", "critical"]
    confidence: float = Field(ge=0.0, le=1.0)
    rationale: list[str] = Field(min_length=1)


class Actor(BaseModel):
    name: str
    role: str
    responsibilities: list[str] = Field(min_length=1)
    stance: Literal["supportive", "neutral", "skeptical"]


class AIConfig(BaseModel):
    provider: str
    model: str
    temperature: float = Field(ge=0.0, le=2.0)
    max_tokens: int = Field(gt=0)
    features: list[str] = Field(min_length=1)
    guardrails: list[str]


class NextStep(BaseModel):
    owner: str
    action: str


class RecommendationPart(BaseModel):
    """Step 1 output."""

    recommendation: Recommendation


class DetailsPart(BaseModel):
    """Step 2 output."""

    actors: list[Actor] = Field(min_length=2)


class AIConfigPart(BaseModel):
    """Step 3 output."""

    ai_config: AIConfig
    next_steps: list[NextStep] = Field(min_length=1)


class RecommendationResponse(BaseModel):
    """The complete structured answer about the team conversation."""

    recommendation: Recommendation
    actors: list[Actor] = Field(min_length=2)
    ai_config: AIConfig
    next_steps: list[NextStep] = Field(min_length=1)

    @model_validator(mode="after")
    def _owners_are_actors(self) -> RecommendationResponse:
        names = {actor.name for actor in self.actors}
        for step in self.next_steps:
            if step.owner not in names:
                raise ValueError(
                    f"Next step owner '{step.owner}' is not one of the listed actors"
                )
        return self


STEP_SCHEMAS: dict[int, type[BaseModel]] = {
    1: RecommendationPart,
    2: DetailsPart,
    3: AIConfigPart,
}


def validation_issues(exc: ValidationError) -> list[ValidationIssue]:
    """Convert a Pydantic ValidationError into ValidationIssues."""
    return [
        ValidationIssue(
            path=[str(part) for part in error["loc"]],
            message=error["msg"],
            code=error["type"],
        )
        for error in exc.errors()
    ]


def merge_sequential_parts(
    part1: dict[str, Any], part2: dict[str, Any], part3: dict[str, Any]
) -> dict[str, Any]:
    """Combine the three step outputs into one candidate response."""
    return {**part1, **part2, **part3}


def validate_merged(merged: dict[str, Any]) -> dict[str, Any]:
    """Validate a merged response against the full schema.

    Returns:
        The validated response as a plain dict.

    Raises:
        MergeValidationError: If the merged object does not satisfy
            RecommendationResponse.
    """
    try:
        response = RecommendationResponse.model_validate(merged)
    except ValidationError as exc:
        raise MergeValidationError(
            [issue.model_dump() for issue in validation_issues(exc)]
        ) from exc
    return response.model_dump()
