"""Run command: rewrite every item of a dataset file."""

import asyncio
import signal
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

from dso.cli.callbacks import validate_input_file, validate_llm_provider, validate_output_file
from dso.cli.options import RunOptions
from dso.config import get_settings
from dso.core.dataset import build_items, load_file, write_export
from dso.core.engine import PipelineEngine
from dso.core.state import ItemStatus
from dso.core.stats import RunStatistics
from dso.exceptions import ConfigurationError, DatasetError, NotInitializedError, PipelineStateError
from dso.llm import create_provider
from dso.utils.logging import get_console, get_logger, setup_task_logging

console = get_console()
log = get_logger(__name__)

# Failed items listed in the summary
_MAX_FAILED_SHOWN = 10


def run(
    input_file: Annotated[
        Path,
        typer.Argument(
            help="Dataset JSON file (array of strings or objects with a text field).",
            callback=validate_input_file,
            resolve_path=True,
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Export file for the results.",
            callback=validate_output_file,
            resolve_path=True,
        ),
    ] = None,
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
        typer.Option("--model", "-m", help="Model name for the provider."),
    ] = None,
    concurrency: Annotated[
        int | None,
        typer.Option("--concurrency", "-c", min=1, help="Items dispatched per batch."),
    ] = None,
    delay_ms: Annotated[
        int | None,
        typer.Option("--delay-ms", min=0, help="Throttle delay before every request."),
    ] = None,
    max_retries: Annotated[
        int | None,
        typer.Option("--max-retries", min=0, help="Failures after which an item is not requeued."),
    ] = None,
    temperature: Annotated[
        float | None,
        typer.Option("--temperature", "-t", min=0.0, max=2.0, help="Sampling temperature."),
    ] = None,
    native_thinking: Annotated[
        bool | None,
        typer.Option(
            "--native-thinking/--no-native-thinking",
            help="Use the vendor's native reasoning instead of the text protocol.",
        ),
    ] = None,
    thinking_budget: Annotated[
        int | None,
        typer.Option("--thinking-budget", min=0, help="Token budget for native reasoning."),
    ] = None,
    retry_failed: Annotated[
        bool,
        typer.Option(
            "--retry-failed",
            help="Requeue failed items and run again until none can be retried.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show debug logs on the console."),
    ] = False,
) -> None:
    """Rewrite every item of a dataset through the configured provider."""
    options = RunOptions(
        provider=provider,
        model=model,
        output=output,
        concurrency=concurrency,
        delay_ms=delay_ms,
        max_retries=max_retries,
        temperature=temperature,
        native_thinking=native_thinking,
        thinking_budget=thinking_budget,
        retry_failed=retry_failed,
        verbose=verbose,
    )
    settings = get_settings()
    task_id, log_path = setup_task_logging(settings.log_dir, prefix="run", verbose=verbose)
    log.info("Run options", task_id=task_id, input=str(input_file), **options.as_log_context())

    try:
        pipeline_config = options.resolve_pipeline(settings)
        provider_config = options.resolve_provider(settings)
        items = build_items(load_file(input_file))
        engine = PipelineEngine(create_provider(provider_config), pipeline_config, items)
    except (ConfigurationError, DatasetError, PipelineStateError) as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1) from e

    output_path = options.resolve_output(settings)

    console.print(
        f"[bold]Processing[/bold] {len(items)} items with "
        f"[cyan]{provider_config.provider}[/cyan] / [cyan]{provider_config.effective_model}[/cyan]"
    )

    try:
        stats = asyncio.run(_run_with_progress(engine, options.retry_failed))
    except (ConfigurationError, NotInitializedError) as e:
        console.print(f"[red]Configuration error:[/red] {escape(str(e))}")
        console.print(f"[dim]Log file: {log_path}[/dim]")
        raise typer.Exit(1) from e

    write_export(engine.snapshot(), output_path)
    _display_summary(engine, stats)
    console.print(f"\n[green]Export written to[/green] {output_path}")
    console.print(f"[dim]Log file: {log_path}[/dim]")

    if stats.failed:
        raise typer.Exit(2)


async def _run_with_progress(engine: PipelineEngine, retry_failed: bool) -> RunStatistics:
    """Drive the engine with a live progress bar; Ctrl+C stops and drains."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, _request_stop, engine)
    except (NotImplementedError, RuntimeError):
        # Windows event loops have no signal handlers; KeyboardInterrupt applies
        pass

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TextColumn("({task.completed}/{task.total})"),
        TimeElapsedColumn(),
        console=console,
        transient=False,
    ) as progress:
        initial = engine.statistics()
        task = progress.add_task(
            "[cyan]Rewriting...", total=initial.total, completed=initial.processed
        )

        def on_update(stats: RunStatistics) -> None:
            progress.update(
                task,
                completed=stats.processed,
                description=(
                    f"[cyan]Rewriting[/cyan] [green]{stats.successful} ok[/green] "
                    f"[red]{stats.failed} failed[/red]"
                ),
            )

        engine.on_update = on_update
        try:
            stats = await engine.start()
            while (
                retry_failed
                and stats.failed
                and not engine.last_run_cancelled
                and engine.requeue_failed()
            ):
                stats = await engine.start()
        finally:
            engine.on_update = None
            try:
                loop.remove_signal_handler(signal.SIGINT)
            except (NotImplementedError, RuntimeError):
                pass

    return stats


def _request_stop(engine: PipelineEngine) -> None:
    console.print("\n[yellow]Stopping: waiting for in-flight requests to settle...[/yellow]")
    engine.stop()


def _display_summary(engine: PipelineEngine, stats: RunStatistics) -> None:
    """Display run summary and the first failed items."""
    console.print()

    table = Table(title="Run Summary", show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value")

    table.add_row("Total Items", str(stats.total))
    table.add_row("Completed", f"[green]{stats.successful}[/green]")
    table.add_row("Failed", f"[red]{stats.failed}[/red]")
    if stats.idle:
        table.add_row("Not Processed", f"[yellow]{stats.idle}[/yellow]")
    if stats.processed:
        table.add_row("Success Rate", f"{stats.success_rate:.1f}%")

    console.print(table)

    failed = [item for item in engine.snapshot() if item.status is ItemStatus.FAILED]
    if failed:
        console.print()
        console.print("[bold red]Failed Items:[/bold red]")
        for item in failed[:_MAX_FAILED_SHOWN]:
            console.print(
                f"  [red]✗[/red] {escape(item.id)}: {escape(item.error_message or '')} "
                f"[dim](attempts: {item.retry_count})[/dim]"
            )
        if len(failed) > _MAX_FAILED_SHOWN:
            console.print(f"  [dim]... and {len(failed) - _MAX_FAILED_SHOWN} more[/dim]")
