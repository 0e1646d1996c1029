"""Trigger port.

Triggers are hooks run around a transition.

- A **pre-trigger** runs before the state is written. Returning anything
  other than None vetoes the transition: the object keeps its state and the
  returned value is handed back to the caller.
- A **post-trigger** runs after the state is written and its return value
  becomes the result of the call. It cannot undo the transition; raising
  from a post-trigger leaves the object in the new state.

To signal failure rather than veto, raise
:class:`~statewright.kernel.exceptions.StateTransitionError`, optionally
with several ``causes``.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Trigger(Protocol):
    """Hook invoked around a transition."""

    def on_transition(self, transition: str, obj: Any, *data: Any) -> Any:
        """Run the hook for ``transition`` (a transition key) on ``obj``."""
        ...
