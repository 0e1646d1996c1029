"""Default path walk command for statewright CLI."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from statewright.cli.utils import load_or_exit
from statewright.kernel.domain.stateful import StatefulObject
from statewright.kernel.exceptions import StateTransitionError

console = Console()


def walk(
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
    name: Annotated[
        str, typer.Option("--name", "-n", help="Name of the object being walked")
    ] = "walk",
) -> None:
    """Drive a fresh object along default transitions until it is done.

    Triggers configured in the workflow run on every step, so a pre-trigger
    veto stops the walk.

    Examples
    --------
    statewright walk issue_tracker.yaml
    """
    _, machine = load_or_exit(workflow_file)
    obj = StatefulObject(name)

    table = Table(show_header=True, border_style="cyan", title=f"Default path of {machine.name}")
    table.add_column("#", style="white", justify="right")
    table.add_column("Transition", style="green")
    table.add_column("From", style="blue")
    table.add_column("To", style="blue")

    transition = machine.initial_transition
    # the default path visits each state at most once
    for step in range(1, len(machine.state_names) + 1):
        previous = obj.current_state
        try:
            result = machine.invoke_transition(transition, obj)
        except StateTransitionError as e:
            console.print(table)
            console.print(f"[red]✗ Transition '{transition}' failed:[/red] {e}")
            raise typer.Exit(1) from e

        if obj.current_state == previous:
            console.print(table)
            console.print(f"[yellow]⚠ Transition '{transition}' vetoed:[/yellow] {result}")
            raise typer.Exit(1)

        table.add_row(str(step), transition, previous or "(none)", obj.current_state or "")
        if machine.is_done(obj):
            break
        transition = machine.default_transitions[obj.current_state]

    console.print(table)
    console.print(f"[green]✓ Reached end state:[/green] {obj.current_state}")
