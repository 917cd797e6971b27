"""Command-line entry point for perfbot."""
