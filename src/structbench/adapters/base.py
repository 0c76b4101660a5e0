"""BaseAdapter ABC and unified message/result dataclasses.

Every provider adapter exposes exactly two capabilities: freeform text
generation and schema-constrained generation. Both return the raw text
the provider produced plus token usage; parsing and validation happen
in the attempt executor so both modes are judged the same way.

These are plain dataclasses (not Pydantic) to avoid overhead in the
hot path of adapter calls.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel

Role = Literal["system", "user", "assistant"]


@dataclass
class Message:
    """A single message in the conversation sent to a provider."""

    role: Role
    content: str


@dataclass
class TokenUsage:
    """Token usage counts from a single provider call."""

    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class GenerationResult:
    """Result of one generate_text() or generate_object() call.

    For constrained generation, text is the JSON document the provider
    emitted for the schema.
    """

    text: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    finish_reason: str | None = None


@dataclass
class AdapterConfig:
    """Generation parameters for a single provider call.

    temperature is None for reasoning models, which reject it; those
    receive reasoning_effort instead.
    """

    model: str
    temperature: float | None = None
    max_tokens: int | None = None
    reasoning_effort: str | None = None
    extras: dict[str, Any] = field(default_factory=dict)


class BaseAdapter(ABC):
    """Abstract base class for all provider adapters."""

    @abstractmethod
    async def generate_text(
        self,
        messages: list[Message],
        config: AdapterConfig,
    ) -> GenerationResult:
        """Generate freeform text for the conversation."""
        ...

    @abstractmethod
    async def generate_object(
        self,
        messages: list[Message],
        schema: type[BaseModel],
        config: AdapterConfig,
    ) -> GenerationResult:
        """Generate output constrained by the provider to the schema's shape.

        Args:
            messages: Conversation history.
            schema: Pydantic model whose JSON schema constrains the output.
            config: Generation parameters.

        Returns:
            GenerationResult whose text is the emitted JSON document.
        """
        ...

    def provider_name(self) -> str:
        """Return the provider name for this adapter.

        Default implementation returns the class name.
        Subclasses may override for custom naming.
        """
        return type(self).__name__


def strict_json_schema(schema: type[BaseModel]) -> dict[str, Any]:
    """Build a JSON schema suitable for provider strict mode.

    Strict structured output requires every object to list all of its
    properties as required and to forbid additional properties.
    """
    raw = schema.model_json_schema()

    def _tighten(node: Any) -> None:
        if isinstance(node, dict):
            if node.get("type") == "object" and "properties" in node:
                node["additionalProperties"] = False
                node["required"] = list(node["properties"].keys())
            node.pop("default", None)
            for value in node.values():
                _tighten(value)
        elif isinstance(node, list):
            for item in node:
                _tighten(item)

    _tighten(raw)
    return raw
