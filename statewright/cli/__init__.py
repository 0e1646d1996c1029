"""statewright command line interface."""

from statewright.cli.main import app, main

__all__ = ["app", "main"]
