"""Entry point for ``python -m statewright``."""

from __future__ import annotations


def main() -> None:
    """Run the statewright CLI."""
    from statewright.cli.main import main as cli_main

    cli_main()


if __name__ == "__main__":
    main()
