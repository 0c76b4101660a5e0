"""structbench adapters - provider adapter abstraction layer.

Re-exports the BaseAdapter ABC, the message/result dataclasses, the
provider registry function, and the concrete adapter implementations.
"""

from structbench.adapters.anthropic_adapter import AnthropicAdapter
from structbench.adapters.base import (
    AdapterConfig,
    BaseAdapter,
    GenerationResult,
    Message,
    TokenUsage,
    strict_json_schema,
)
from structbench.adapters.openai_adapter import OpenAIAdapter
from structbench.adapters.registry import get_adapter

__all__ = [
    "AdapterConfig",
    "AnthropicAdapter",
    "BaseAdapter",
    "GenerationResult",
    "Message",
    "OpenAIAdapter",
    "TokenUsage",
    "get_adapter",
    "strict_json_schema",
]
