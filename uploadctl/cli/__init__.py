"""Command-line interface for uploadctl."""
