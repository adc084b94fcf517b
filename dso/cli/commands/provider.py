"""Provider command: check credentials against a model."""

import asyncio
from typing import Annotated

import typer

from dso.cli.callbacks import validate_llm_provider
from dso.cli.options import ProviderOptions
from dso.config import get_settings
from dso.llm import create_provider
from dso.utils.logging import get_console, setup_logging

console = get_console()


def validate(
    provider: Annotated[
        str | None,
        typer.Option(
            "--provider",
            "-p",
            help="Inference provider: gemini, openai, anthropic, mock.",
            callback=validate_llm_provider,
        ),
    ] = None,
    model: Annotated[
        str | None,
        typer.Option("--model", "-m", help="Model name to validate."),
    ] = None,
) -> None:
    """Validate the API key and model with a minimal request."""
    settings = get_settings()
    setup_logging(level=settings.log_level)

    provider_config = ProviderOptions(provider=provider, model=model).resolve_provider(settings)
    instance = create_provider(provider_config)
    label = f"{provider_config.provider} / {provider_config.effective_model}"

    if not instance.is_initialized:
        console.print(f"[red]✗[/red] {label}: no API key configured")
        raise typer.Exit(1)

    with console.status(f"Validating {label}..."):
        valid = asyncio.run(instance.validate(provider_config.effective_model))

    if not valid:
        console.print(f"[red]✗[/red] {label}: validation failed (see log for the cause)")
        raise typer.Exit(1)

    console.print(f"[green]✓[/green] {label}: connection valid")
