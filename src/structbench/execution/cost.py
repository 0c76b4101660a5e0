"""Cost estimation from token usage and model pricing.

Provides a static pricing table keyed by catalog model id and helpers
to estimate the USD cost of attempts and whole scenarios. Used only for
display; nothing in the execution path depends on it.
"""

from __future__ import annotations

from dataclasses import dataclass

from structbench.models.result import ScenarioResult


@dataclass(frozen=True)
class ModelPricing:
    """Pricing per million tokens for a single model."""

    input_per_million: float
    output_per_million: float

    @property
    def input_per_token(self) -> float:
        return self.input_per_million / 1_000_000

    @property
    def output_per_token(self) -> float:
        return self.output_per_million / 1_000_000


# Prices are in USD per million tokens.
MODEL_PRICING: dict[str, ModelPricing] = {
    # OpenAI models
    "openai-gpt5": ModelPricing(input_per_million=3.00, output_per_million=15.00),
    "openai-gpt4o": ModelPricing(input_per_million=2.50, output_per_million=10.00),
    # Anthropic models
    "anthropic-sonnet": ModelPricing(input_per_million=3.00, output_per_million=15.00),
    "anthropic-opus": ModelPricing(input_per_million=15.00, output_per_million=75.00),
    # Google models
    "google-flash": ModelPricing(input_per_million=0.15, output_per_million=0.60),
    "google-pro": ModelPricing(input_per_million=1.25, output_per_million=10.00),
    # Groq models
    "groq-gpt-oss-120b": ModelPricing(input_per_million=0.15, output_per_million=0.60),
    "groq-kimi-k2": ModelPricing(input_per_million=1.00, output_per_million=3.00),
    "groq-llama-3.3-70b": ModelPricing(input_per_million=0.59, output_per_million=0.79),
    # OpenRouter models
    "openrouter-qwen3-235b": ModelPricing(input_per_million=0.20, output_per_million=0.60),
}


def calculate_cost(model_id: str, input_tokens: int, output_tokens: int) -> float:
    """Estimate the USD cost of the given token counts.

    Returns 0.0 for a model that is not in the pricing table.
    """
    pricing = MODEL_PRICING.get(model_id)
    if pricing is None:
        return 0.0
    return (
        input_tokens * pricing.input_per_token
        + output_tokens * pricing.output_per_token
    )


def scenario_cost(model_id: str, result: ScenarioResult) -> float:
    """Sum the estimated cost of every attempt in a scenario's runs."""
    input_tokens = 0
    output_tokens = 0
    for run in result.runs:
        for attempt in run.all_attempts():
            input_tokens += attempt.input_tokens or 0
            output_tokens += attempt.output_tokens or 0
    return calculate_cost(model_id, input_tokens, output_tokens)
