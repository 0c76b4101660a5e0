"""structbench - structured-output reliability benchmark for LLM providers."""

__version__ = "0.1.0"
