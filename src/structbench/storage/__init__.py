"""JSON file persistence for completed benchmark runs."""
