"""Canonical keys and name lookup for states and transitions.

States and transitions are identified by a canonical key derived from their
display name: only identifier-start characters are kept, lower-cased.

>>> to_key("Open Ticket")
'openticket'
>>> to_key("open-ticket")
'openticket'
>>> find_key({"openticket": "Open Ticket"}, "  OPEN ticket ")
'openticket'
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


def _is_identifier_start(char: str) -> bool:
    return char == "$" or char.isidentifier()


def to_key(name: str) -> str:
    """Derive the canonical key for a display name."""
    return "".join(char.lower() for char in name if _is_identifier_start(char))


def clean_text(value: str | None) -> str | None:
    """Trim a name or description; blank values become ``None``."""
    if value is None:
        return None
    value = value.strip()
    return value or None


def find_key(names: Mapping[str, str], value: str | None) -> str | None:
    """Find the key whose key or display name matches ``value`` case-insensitively.

    Parameters
    ----------
    names : Mapping[str, str]
        Key -> display name table
    value : str | None
        Key or display name to look up

    Returns
    -------
    str | None
        The matching key, or None for blank or unknown values
    """
    value = clean_text(value)
    if value is None:
        return None
    wanted = value.casefold()
    for key, display in names.items():
        if key.casefold() == wanted or display.casefold() == wanted:
            return key
    return None
