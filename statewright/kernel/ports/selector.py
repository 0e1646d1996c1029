"""Transition selector port.

A selector decides which transition :meth:`StateMachine.advance` takes. It
receives the default transition of the object's current state and every
enabled transition mapped either to :data:`WILDCARD` (no condition
properties) or to a copy of its condition-property mapping.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

WILDCARD = "*"


@runtime_checkable
class TransitionSelector(Protocol):
    """Strategy choosing which enabled transition to take."""

    def select_transition(
        self,
        default_transition: str | None,
        enabled_transitions: Mapping[str, str | Mapping[str, Any]],
        obj: Any,
        *data: Any,
    ) -> str | None:
        """Return the key or name of the transition to take, or None if none applies."""
        ...
