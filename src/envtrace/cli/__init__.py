"""Command-line interface for envtrace."""
