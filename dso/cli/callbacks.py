"""CLI callback functions."""

from pathlib import Path

import typer


def validate_input_file(value: Path) -> Path:
    """Validate dataset file exists and is a file."""
    if not value.exists():
        raise typer.BadParameter(f"File not found: {value}")

    if not value.is_file():
        raise typer.BadParameter(f"Path is not a file: {value}")

    return value


def validate_output_file(value: Path | None) -> Path | None:
    """Reject output paths that point at a directory."""
    if value is not None and value.is_dir():
        raise typer.BadParameter(f"Output path is a directory: {value}")

    return value


def validate_llm_provider(value: str | None) -> str | None:
    """Validate LLM provider option."""
    from dso.config.constants import LLM_PROVIDERS

    if value is not None and value not in LLM_PROVIDERS:
        raise typer.BadParameter(
            f"Invalid LLM provider '{value}'. Options: {', '.join(LLM_PROVIDERS)}"
        )

    return value
