"""OpenAI-compatible adapter for the structbench execution pipeline.

Serves OpenAI itself and every provider that exposes an OpenAI-compatible
chat completions endpoint (Google Gemini, Groq, OpenRouter) by pointing
the client at a different base URL.
"""

from __future__ import annotations

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


class OpenAIAdapter(BaseAdapter):
    """Adapter for OpenAI-compatible chat completion APIs.

    Uses a lazy-initialized AsyncOpenAI client. When api_key is None the
    SDK reads OPENAI_API_KEY from the environment.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        provider: str = "openai",
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url
        self._provider = provider
        self._client: Any = None

    def _get_client(self) -> Any:
        """Lazily initialize and return the AsyncOpenAI client."""
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._client

    def _convert_messages(self, messages: list[Message]) -> list[dict[str, Any]]:
        """Convert unified Messages to OpenAI chat format."""
        return [{"role": msg.role, "content": msg.content} for msg in messages]

    def _build_kwargs(
        self, messages: list[Message], config: AdapterConfig
    ) -> dict[str, Any]:
        kwargs: dict[str, Any] = {
            "model": config.model,
            "messages": self._convert_messages(messages),
        }

        if config.temperature is not None:
            kwargs["temperature"] = config.temperature

        if config.max_tokens is not None:
            kwargs["max_tokens"] = config.max_tokens

        if config.reasoning_effort is not None:
            kwargs["reasoning_effort"] = config.reasoning_effort

        # Pass through provider-specific extras
        kwargs.update(config.extras)
        return kwargs

    async def _complete(self, kwargs: dict[str, Any]) -> GenerationResult:
        client = self._get_client()
        response = await client.chat.completions.create(**kwargs)

        choice = response.choices[0]
        usage = TokenUsage()
        if response.usage is not None:
            usage = TokenUsage(
                input_tokens=response.usage.prompt_tokens or 0,
                output_tokens=response.usage.completion_tokens or 0,
            )

        return GenerationResult(
            text=choice.message.content or "",
            usage=usage,
            finish_reason=choice.finish_reason,
        )

    async def generate_text(
        self,
        messages: list[Message],
        config: AdapterConfig,
    ) -> GenerationResult:
        """Send the conversation and return the model's freeform reply."""
        return await self._complete(self._build_kwargs(messages, config))

    async def generate_object(
        self,
        messages: list[Message],
        schema: type[BaseModel],
        config: AdapterConfig,
    ) -> GenerationResult:
        """Send the conversation with a strict json_schema response format."""
        kwargs = self._build_kwargs(messages, config)
        kwargs["response_format"] = {
            "type": "json_schema",
            "json_schema": {
                "name": schema.__name__,
                "schema": strict_json_schema(schema),
                "strict": True,
            },
        }
        return await self._complete(kwargs)

    def provider_name(self) -> str:
        """Return the provider name."""
        return self._provider
