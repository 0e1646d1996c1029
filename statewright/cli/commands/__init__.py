"""CLI command modules."""

from . import graph_cmd, validate_cmd, walk_cmd

__all__ = [
    "graph_cmd",
    "validate_cmd",
    "walk_cmd",
]
