"""Dataset commands: write the sample dataset and inspect exported items."""

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from dso.cli.callbacks import validate_input_file
from dso.config.constants import SAMPLE_DATASET
from dso.llm.parser import split_reasoning_steps
from dso.utils.logging import get_console

console = get_console()


def sample(
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Where to write the sample dataset."),
    ] = Path("sample.json"),
) -> None:
    """Write a small sample dataset to get started."""
    output.write_text(json.dumps(SAMPLE_DATASET, indent=2), encoding="utf-8")
    console.print(f"[green]Sample dataset written to[/green] {output}")


def inspect(
    export_file: Annotated[
        Path,
        typer.Argument(help="Export file produced by `dso run`.", callback=validate_input_file),
    ],
    item_id: Annotated[str, typer.Argument(help="Id of the item to show.")],
) -> None:
    """Show one exported item with its reasoning broken into steps."""
    try:
        rows = json.loads(export_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] {export_file} is not valid JSON: {e}")
        raise typer.Exit(1) from e

    row = next((r for r in rows if isinstance(r, dict) and str(r.get("id")) == item_id), None)
    if row is None:
        console.print(f"[red]Error:[/red] no item with id {escape(item_id)}")
        raise typer.Exit(1)

    console.print(f"[bold]{escape(str(row['id']))}[/bold]  status: [cyan]{row.get('status')}[/cyan]")
    console.print(Panel(Text(row.get("original") or ""), title="Original"))

    reasoning = row.get("reasoning") or ""
    steps = split_reasoning_steps(reasoning)
    if steps:
        console.print("[bold]Reasoning[/bold]")
        for number, step in enumerate(steps, start=1):
            console.print(f"  [magenta]{number}.[/magenta] {escape(step.content)}")
    elif reasoning:
        console.print(Panel(Text(reasoning), title="Reasoning"))

    if row.get("rewritten"):
        console.print(Panel(Text(row["rewritten"]), title="Rewritten", border_style="green"))
    if row.get("error"):
        console.print(Panel(Text(row["error"]), title="Error", border_style="red"))
