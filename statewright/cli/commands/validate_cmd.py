"""Workflow validation command for statewright CLI."""

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from statewright.cli.utils import load_or_exit

if TYPE_CHECKING:
    from statewright.kernel.machine.machine import StateMachine

console = Console()


def validate(
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
    explain: Annotated[
        bool,
        typer.Option("--explain", "-e", help="Show the states and transitions of the machine"),
    ] = False,
) -> None:
    """Validate a workflow file by building its state machine.

    This command checks:
    - Document structure (transition records)
    - Every referenced state and transition exists
    - All states are reachable and all transitions used
    - No two transitions from one state share a target
    - The default path ends in an end state
    - Triggers and the selector can be resolved

    Examples
    --------
    statewright validate issue_tracker.yaml
    statewright validate issue_tracker.yaml --explain
    """
    _, machine = load_or_exit(workflow_file)

    console.print(f"[green]✓ Validation successful:[/green] {workflow_file}")
    if explain:
        console.print()
        _explain(machine)


def _explain(machine: "StateMachine") -> None:
    """Print state and transition tables for a machine."""
    title = f"[bold]{machine.name}[/bold]"
    if machine.description:
        title += f"\n{machine.description}"
    console.print(Panel(title, border_style="blue"))

    end_states = set(machine.end_states)
    initial_state = machine.target_states[machine.initial_transition]
    state_table = Table(show_header=True, border_style="cyan", title="States")
    state_table.add_column("Key", style="green")
    state_table.add_column("Name", style="white")
    state_table.add_column("Default", style="blue")
    state_table.add_column("Kind", style="yellow")
    state_table.add_column("Description", style="white")

    for key, name in machine.state_names.items():
        if key in end_states:
            kind = "end"
        elif key == initial_state:
            kind = "initial"
        else:
            kind = "-"
        state_table.add_row(
            key,
            name,
            machine.default_transitions.get(key, "-"),
            kind,
            machine.state_descriptions.get(key, ""),
        )
    console.print(state_table)

    sources: dict[str, list[str]] = {}
    for state, transitions in machine.valid_transitions.items():
        for transition in transitions:
            sources.setdefault(transition, []).append(state)
    for transition in machine.initial_transitions:
        sources.setdefault(transition, []).insert(0, "(entry)")

    transition_table = Table(show_header=True, border_style="cyan", title="Transitions")
    transition_table.add_column("Key", style="green")
    transition_table.add_column("Name", style="white")
    transition_table.add_column("From", style="blue")
    transition_table.add_column("To", style="blue")
    transition_table.add_column("Conditions", style="yellow")

    for key, name in machine.transition_names.items():
        conditions = machine.get_transition_properties(key)
        transition_table.add_row(
            key,
            name,
            ", ".join(sources.get(key, [])),
            machine.target_states[key],
            ", ".join(f"{k}={v}" for k, v in conditions.items()) or "-",
        )
    console.print(transition_table)
