"""Model catalog and resolution of model ids to invocable adapters.

The catalog is a fixed table. Resolving a model pairs its definition
with a provider adapter built from an explicit API key or the provider's
environment variable.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel

from structbench.adapters.base import BaseAdapter
from structbench.adapters.registry import get_adapter
from structbench.errors import MissingCredentialsError, ModelNotFoundError

Provider = Literal["openai", "anthropic", "google", "groq", "openrouter"]

PROVIDER_ENV_VARS: dict[str, str] = {
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_GENERATIVE_AI_API_KEY",
    "groq": "GROQ_API_KEY",
    "openrouter": "OPENROUTER_API_KEY",
}

PROVIDER_DISPLAY_NAMES: dict[str, str] = {
    "openai": "OpenAI",
    "anthropic": "Anthropic",
    "google": "Google",
    "groq": "Groq",
    "openrouter": "OpenRouter",
}


@dataclass(frozen=True)
class ModelDefinition:
    """One entry of the model catalog."""

    id: str
    name: str
    provider: Provider
    model_name: str
    supports_strict_mode: bool
    is_reasoning_model: bool = False


MODEL_DEFINITIONS: tuple[ModelDefinition, ...] = (
    ModelDefinition("openai-gpt5", "GPT-5", "openai", "gpt-5", True, True),
    ModelDefinition("openai-gpt4o", "GPT-4o", "openai", "gpt-4o", True),
    ModelDefinition(
        "anthropic-sonnet", "Claude Sonnet 4.5", "anthropic",
        "claude-sonnet-4-5-20250929", True,
    ),
    ModelDefinition(
        "anthropic-opus", "Claude Opus 4.5", "anthropic",
        "claude-opus-4-5-20251101", True,
    ),
    ModelDefinition("google-flash", "Gemini 2.5 Flash", "google", "gemini-2.5-flash", True),
    ModelDefinition("google-pro", "Gemini 3 Pro", "google", "gemini-3-pro-preview", True),
    ModelDefinition("groq-gpt-oss-120b", "GPT-OSS 120B", "groq", "openai/gpt-oss-120b", False),
    ModelDefinition(
        "groq-kimi-k2", "Kimi K2", "groq", "moonshotai/kimi-k2-instruct-0905", False,
    ),
    ModelDefinition(
        "groq-llama-3.3-70b", "Llama 3.3 70B", "groq", "llama-3.3-70b-versatile", False,
    ),
    ModelDefinition(
        "openrouter-qwen3-235b", "Qwen3 235B", "openrouter", "qwen/qwen3-235b-a22b", False,
    ),
)


class ApiKeys(BaseModel):
    """Per-provider credentials. Unset fields fall back to env vars."""

    model_config = {"extra": "forbid"}

    openai: str | None = None
    anthropic: str | None = None
    google: str | None = None
    groq: str | None = None
    openrouter: str | None = None

    def for_provider(self, provider: str) -> str | None:
        """Return the explicit key for provider, else its env var, else None."""
        explicit = getattr(self, provider, None)
        if explicit:
            return explicit
        env_var = PROVIDER_ENV_VARS.get(provider)
        if env_var is None:
            return None
        return os.environ.get(env_var) or None


@dataclass
class ResolvedModel:
    """A catalog entry bound to a ready-to-call adapter."""

    definition: ModelDefinition
    adapter: BaseAdapter

    @property
    def id(self) -> str:
        return self.definition.id

    @property
    def provider(self) -> str:
        return self.definition.provider

    @property
    def supports_strict_mode(self) -> bool:
        return self.definition.supports_strict_mode

    @property
    def is_reasoning_model(self) -> bool:
        return self.definition.is_reasoning_model


def get_model_definition(model_id: str) -> ModelDefinition | None:
    """Look up a catalog entry by id."""
    for definition in MODEL_DEFINITIONS:
        if definition.id == model_id:
            return definition
    return None


def has_credentials(model_id: str, api_keys: ApiKeys | None = None) -> bool:
    """Return True if model_id is known and its provider has a key."""
    definition = get_model_definition(model_id)
    if definition is None:
        return False
    return (api_keys or ApiKeys()).for_provider(definition.provider) is not None


def resolve_model(
    model_id: str,
    api_keys: ApiKeys | None = None,
    adapter_factory: Callable[[str, str | None], BaseAdapter] = get_adapter,
) -> ResolvedModel:
    """Resolve a model id to its definition and a provider adapter.

    Raises:
        ModelNotFoundError: If model_id is not in the catalog.
        MissingCredentialsError: If no key is available for its provider.
    """
    definition = get_model_definition(model_id)
    if definition is None:
        raise ModelNotFoundError(model_id)

    key = (api_keys or ApiKeys()).for_provider(definition.provider)
    if key is None:
        raise MissingCredentialsError(
            model_id, definition.provider, PROVIDER_ENV_VARS[definition.provider]
        )

    return ResolvedModel(
        definition=definition,
        adapter=adapter_factory(definition.provider, key),
    )
