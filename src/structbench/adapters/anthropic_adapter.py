"""Anthropic adapter for the structbench execution pipeline.

Anthropic has no response_format switch, so schema-constrained output is
obtained by forcing a single tool call whose input_schema is the target
schema. The tool input is then re-serialized as the attempt's raw text.
"""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel

from structbench.adapters.base import (
    AdapterConfig,
    BaseAdapter,
    GenerationResult,
    Message,
    TokenUsage,
    strict_json_schema,
)

STRUCTURED_TOOL_NAME = "emit_structured_output"

DEFAULT_MAX_TOKENS = 4096


class AnthropicAdapter(BaseAdapter):
    """Adapter for Anthropic messages API.

    Uses lazy-initialized AsyncAnthropic client. When api_key is None the
    SDK reads ANTHROPIC_API_KEY from the environment.
    """

    def __init__(self, api_key: str | None = None) -> None:
        self._api_key = api_key
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazily initialize and return the AsyncAnthropic client."""
        if self._client is None:
            from anthropic import AsyncAnthropic

            self._client = AsyncAnthropic(api_key=self._api_key)
        return self._client

    def _extract_system(
        self, messages: list[Message]
    ) -> tuple[str | None, list[Message]]:
        """Split the system message off the message list.

        Anthropic uses a separate 'system' parameter instead of a system
        message in the messages array.
        """
        system_prompt: str | None = None
        remaining: list[Message] = []
        for msg in messages:
            if msg.role == "system":
                system_prompt = msg.content
            else:
                remaining.append(msg)
        return system_prompt, remaining

    def _build_kwargs(
        self, messages: list[Message], config: AdapterConfig
    ) -> dict[str, Any]:
        system_prompt, remaining = self._extract_system(messages)

        kwargs: dict[str, Any] = {
            "model": config.model,
            "messages": [{"role": m.role, "content": m.content} for m in remaining],
            "max_tokens": (
                config.max_tokens if config.max_tokens is not None else DEFAULT_MAX_TOKENS
            ),
        }

        if system_prompt is not None:
            kwargs["system"] = system_prompt

        if config.temperature is not None:
            kwargs["temperature"] = config.temperature

        kwargs.update(config.extras)
        return kwargs

    @staticmethod
    def _usage(response: Any) -> TokenUsage:
        return TokenUsage(
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )

    async def generate_text(
        self,
        messages: list[Message],
        config: AdapterConfig,
    ) -> GenerationResult:
        """Send the conversation and join the reply's text blocks."""
        client = self._get_client()
        response = await client.messages.create(**self._build_kwargs(messages, config))

        parts = [block.text for block in response.content if block.type == "text"]
        return GenerationResult(
            text="\n".join(parts),
            usage=self._usage(response),
            finish_reason=response.stop_reason,
        )

    async def generate_object(
        self,
        messages: list[Message],
        schema: type[BaseModel],
        config: AdapterConfig,
    ) -> GenerationResult:
        """Force a single tool call shaped by the schema.

        Returns an empty text when the model declines to call the tool;
        the executor reports that as invalid JSON.
        """
        client = self._get_client()
        kwargs = self._build_kwargs(messages, config)
        kwargs["tools"] = [
            {
                "name": STRUCTURED_TOOL_NAME,
                "description": f"Emit the {schema.__name__} object.",
                "input_schema": strict_json_schema(schema),
            }
        ]
        kwargs["tool_choice"] = {"type": "tool", "name": STRUCTURED_TOOL_NAME}

        response = await client.messages.create(**kwargs)

        text = ""
        for block in response.content:
            if block.type == "tool_use" and block.name == STRUCTURED_TOOL_NAME:
                # block.input is already a dict
                text = json.dumps(block.input, indent=2)
                break

        return GenerationResult(
            text=text,
            usage=self._usage(response),
            finish_reason=response.stop_reason,
        )

    def provider_name(self) -> str:
        """Return the provider name."""
        return "anthropic"
