"""statewright CLI - Main entrypoint."""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from statewright.cli.commands import graph_cmd, validate_cmd, walk_cmd
from statewright.kernel.config import apply_config, load_config
from statewright.kernel.exceptions import ConfigurationError
from statewright.kernel.logging import configure_logging

app = typer.Typer(
    name="statewright",
    help="statewright - declarative workflow state machines.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    pretty_exceptions_enable=False,
)

console = Console()

app.command("validate", help="Validate a workflow document")(validate_cmd.validate)
app.command("graph", help="Export the serialized graph of a workflow")(graph_cmd.graph)
app.command("walk", help="Follow the default path of a workflow")(walk_cmd.walk)

_LOG_LEVELS = {"trace", "debug", "info", "warning", "error", "critical"}


def _version() -> str:
    # lazy: the package __init__ imports the whole library
    from statewright import __version__

    return __version__


@app.callback(invoke_without_command=True)
def callback(
    ctx: typer.Context,
    *,
    quiet: Annotated[
        bool, typer.Option("-q", "--quiet", help="Suppress non-error log output")
    ] = False,
    verbose: Annotated[bool, typer.Option("-V", "--verbose", help="Enable debug logging")] = False,
    log_level: Annotated[
        str, typer.Option("--log-level", help="Log level: debug|info|warning|error")
    ] = "warning",
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="TOML file with a [tool.statewright] table (triggers, selectors, logging)",
            dir_okay=False,
        ),
    ] = None,
    version: Annotated[
        bool, typer.Option("--version", "-v", help="Show version and exit")
    ] = False,
) -> None:
    """statewright CLI.

    Global flags are parsed here and stored on ``ctx.obj`` for subcommands.
    """
    if version:
        console.print(f"[bold blue]statewright[/bold blue] version [green]{_version()}[/green]")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    if ctx.obj is None:
        ctx.obj = {}

    if config is not None:
        try:
            apply_config(load_config(config))
        except (ConfigurationError, FileNotFoundError) as e:
            console.print(f"[red]✗ Configuration error:[/red] {e}")
            raise typer.Exit(1) from e

    effective_level = log_level.lower()
    if quiet:
        effective_level = "error"
    elif verbose:
        effective_level = "debug"
    if effective_level == "warn":
        effective_level = "warning"
    if effective_level not in _LOG_LEVELS:
        console.print(f"[red]✗ Unknown log level:[/red] {log_level}")
        raise typer.Exit(2)

    # logs go to stderr, command output to stdout
    configure_logging(
        level=effective_level.upper(),  # type: ignore[arg-type]
        format="console",
        include_timestamp=False,
        force_reconfigure=True,
    )

    ctx.obj.update({
        "quiet": quiet,
        "verbose": verbose,
        "log_level": effective_level,
        "config": config,
    })


def main() -> None:
    """Main CLI entrypoint."""
    app()


if __name__ == "__main__":
    main()
