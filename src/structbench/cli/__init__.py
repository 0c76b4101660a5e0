"""Command-line interface for structbench."""
