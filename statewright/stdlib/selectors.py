"""Built-in transition selectors."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from statewright.kernel.ports.selector import WILDCARD


class DefaultTransitionSelector:
    """Always takes the default transition."""

    def select_transition(
        self,
        default_transition: str | None,
        enabled_transitions: Mapping[str, str | Mapping[str, Any]],
        obj: Any,
        *data: Any,
    ) -> str | None:
        return default_transition


class PropertyMatchSelector:
    """Takes the first enabled transition whose condition properties all match.

    The first call-data item is read as a mapping of facts. A transition is
    chosen when every one of its condition properties equals the fact of the
    same name. Wildcard transitions never match on their own, so when nothing
    matches the default transition is taken.

    Example::

        # on: {severity: high} declared on "escalate"
        machine.advance(ticket, {"severity": "high"})  # takes "escalate"
        machine.advance(ticket)                        # takes the default
    """

    def select_transition(
        self,
        default_transition: str | None,
        enabled_transitions: Mapping[str, str | Mapping[str, Any]],
        obj: Any,
        *data: Any,
    ) -> str | None:
        facts = data[0] if data and isinstance(data[0], Mapping) else None
        if not facts:
            return default_transition

        for key, conditions in enabled_transitions.items():
            if conditions == WILDCARD or not isinstance(conditions, Mapping):
                continue
            if all(name in facts and facts[name] == value for name, value in conditions.items()):
                return key
        return default_transition
