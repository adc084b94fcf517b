"""Main CLI application using Typer."""

from typing import Annotated

import typer
from dotenv import load_dotenv
from rich.console import Console

from dso import __version__
from dso.cli.commands.config import config_app
from dso.cli.commands.dataset import inspect, sample
from dso.cli.commands.provider import validate
from dso.cli.commands.run import run

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="dso",
    help="Batch rewriting of conversational datasets through an LLM.",
    add_completion=False,
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)

console = Console()

app.command(name="run", help="Rewrite every item of a dataset file.")(run)
app.command(name="validate", help="Validate provider credentials and model.")(validate)
app.command(name="sample", help="Write the sample dataset.")(sample)
app.command(name="inspect", help="Show one exported item in detail.")(inspect)
app.add_typer(config_app, name="config")


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]DSO[/bold blue] version [green]{__version__}[/green]")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """DSO - Dataset Optimizer.

    Rewrites each record of a dataset with a two-phase (reasoning + rewrite)
    prompt, a bounded number of requests at a time.
    """
    pass


if __name__ == "__main__":
    app()
