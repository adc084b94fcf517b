"""Command-line interface for DSO."""
