"""CLI helper utilities for statewright commands."""

from __future__ import annotations

from typing import TYPE_CHECKING

import typer
from rich.console import Console

from statewright.kernel.config import build_machine, load_workflow
from statewright.kernel.exceptions import ConfigurationError, MalformedStateMachineError

if TYPE_CHECKING:
    from pathlib import Path

    from statewright.kernel.domain.workflow import WorkflowConfig
    from statewright.kernel.machine.machine import StateMachine

console = Console()


def load_or_exit(path: Path) -> tuple[WorkflowConfig, StateMachine]:
    """Load a workflow file and build its machine, exiting with code 1 on failure."""
    try:
        workflow = load_workflow(path)
    except ConfigurationError as e:
        console.print(f"[red]✗ Workflow error:[/red] {e}")
        raise typer.Exit(1) from e

    try:
        machine = build_machine(workflow)
    except MalformedStateMachineError as e:
        console.print(f"[red]✗ Validation failed:[/red] {path}")
        console.print(f"  [red]✗[/red] {e}")
        raise typer.Exit(1) from e

    return workflow, machine
