"""Provider registry for resolving provider names to adapter instances.

Maps the builtin providers (e.g., "openai", "groq") to their adapter
classes. OpenAI-compatible providers share OpenAIAdapter with their own
base URL.
"""

from __future__ import annotations

import importlib
from typing import Any

from structbench.adapters.base import BaseAdapter

_OPENAI_COMPATIBLE = "structbench.adapters.openai_adapter.OpenAIAdapter"

# Mapping of builtin provider names to their fully-qualified class paths.
# These adapters are lazily imported so the SDK loads only when used.
BUILTIN_ADAPTERS: dict[str, str] = {
    "openai": _OPENAI_COMPATIBLE,
    "google": _OPENAI_COMPATIBLE,
    "groq": _OPENAI_COMPATIBLE,
    "openrouter": _OPENAI_COMPATIBLE,
    "anthropic": "structbench.adapters.anthropic_adapter.AnthropicAdapter",
}

# OpenAI-compatible endpoints for providers that are not OpenAI itself.
PROVIDER_BASE_URLS: dict[str, str] = {
    "google": "https://generativelanguage.googleapis.com/v1beta/openai/",
    "groq": "https://api.groq.com/openai/v1",
    "openrouter": "https://openrouter.ai/api/v1",
}


def _adapter_kwargs(name: str, api_key: str | None) -> dict[str, Any]:
    if BUILTIN_ADAPTERS.get(name) == _OPENAI_COMPATIBLE:
        return {
            "api_key": api_key,
            "base_url": PROVIDER_BASE_URLS.get(name),
            "provider": name,
        }
    return {"api_key": api_key}


def get_adapter(name: str, api_key: str | None = None) -> BaseAdapter:
    """Resolve a builtin provider name and return an adapter.

    Args:
        name: A builtin provider name (see BUILTIN_ADAPTERS).
        api_key: Credential passed to the adapter.

    Returns:
        An instance of the provider's adapter class.

    Raises:
        ValueError: If the provider is not a builtin.
    """
    if name not in BUILTIN_ADAPTERS:
        available = ", ".join(sorted(BUILTIN_ADAPTERS.keys()))
        raise ValueError(
            f"Unknown provider '{name}'. Available builtin providers: {available}."
        )

    module_path, _, class_name = BUILTIN_ADAPTERS[name].rpartition(".")
    cls = getattr(importlib.import_module(module_path), class_name)
    return cls(**_adapter_kwargs(name, api_key))
