"""Graph export command for statewright CLI."""

import json
from enum import StrEnum
from pathlib import Path
from typing import Annotated

import typer
import yaml
from rich.console import Console

from statewright.cli.utils import load_or_exit

console = Console()


class GraphFormat(StrEnum):
    JSON = "json"
    YAML = "yaml"


def graph(
    workflow_file: Annotated[
        Path,
        typer.Argument(
            help="Path to a YAML or JSON workflow file",
            exists=True,
            file_okay=True,
            dir_okay=False,
            readable=True,
        ),
    ],
    output_format: Annotated[
        GraphFormat, typer.Option("--format", "-f", help="Output format")
    ] = GraphFormat.JSON,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write to this file instead of stdout", dir_okay=False),
    ] = None,
) -> None:
    """Build a workflow and print its serialized machine graph.

    The output can be loaded back with ``StateMachine.from_graph``.

    Examples
    --------
    statewright graph issue_tracker.yaml
    statewright graph issue_tracker.yaml --format yaml --output issue_tracker.graph.yaml
    """
    _, machine = load_or_exit(workflow_file)
    data = machine.as_graph()

    if output_format is GraphFormat.YAML:
        text = yaml.safe_dump(data, sort_keys=False)
    else:
        text = json.dumps(data, indent=2) + "\n"

    if output is None:
        typer.echo(text, nl=False)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    console.print(f"[green]✓ Graph written to[/green] {output}")
