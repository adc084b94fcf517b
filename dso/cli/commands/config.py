"""Config command for configuration inspection."""

import typer
from rich.table import Table

from dso.config import get_settings
from dso.utils.logging import get_console

config_app = typer.Typer(help="Configuration management.")
console = get_console()


def _mask(secret: str | None) -> str:
    if not secret:
        return "[dim]not set[/dim]"
    if len(secret) <= 8:
        return "****"
    return f"{secret[:4]}...{secret[-4:]}"


@config_app.command("show")
def show() -> None:
    """Show current configuration."""
    settings = get_settings()
    provider = settings.provider
    pipeline = settings.pipeline

    console.print("\n[bold blue]Current Configuration[/bold blue]\n")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting", style="cyan")
    table.add_column("Value")

    table.add_row("Log Level", settings.log_level)
    table.add_row("Log Directory", settings.log_dir)
    table.add_row("Output File", settings.output_file)

    table.add_row("Provider", provider.provider)
    table.add_row("Model", provider.effective_model)
    table.add_row("API Key", _mask(provider.resolve_api_key()))
    table.add_row("Endpoint", provider.base_url or "[dim]default[/dim]")
    table.add_row("Request Timeout", f"{provider.timeout}s")

    table.add_row("Concurrency", str(pipeline.concurrency))
    table.add_row("Delay", f"{pipeline.delay_ms} ms")
    table.add_row("Max Retries", str(pipeline.max_retries))
    table.add_row("Temperature", str(pipeline.temperature))
    table.add_row("Native Thinking", str(pipeline.use_native_thinking))
    table.add_row("Thinking Budget", str(pipeline.thinking_budget))

    console.print(table)
    console.print()
