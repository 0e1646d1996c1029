"""Exception hierarchy for statewright.

Every error raised by the library inherits from :class:`StatewrightError` so
callers can catch the whole family at once. Two groups matter at runtime:

- build-time errors (:class:`MalformedStateMachineError`) are raised by the
  builder and always abort the whole build;
- call-time errors (:class:`StateTransitionError`) are scoped to a single
  ``invoke_transition`` / ``advance`` call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

# ============================================================================
# Base Exception
# ============================================================================


class StatewrightError(Exception):
    """Base exception for all statewright errors.

    Catch this to handle every error raised by the library.
    """

    pass


# ============================================================================
# Configuration Errors
# ============================================================================


class ConfigurationError(StatewrightError):
    """Raised when settings or a workflow document are invalid or missing.

    Examples
    --------
    Example usage::

        raise ConfigurationError("workflow", "YAML file not found")
    """

    def __init__(self, component: str, reason: str) -> None:
        """Initialize configuration error.

        Args
        ----
            component: Name of the component with invalid configuration
            reason: Explanation of what's wrong
        """
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


class MalformedStateMachineError(StatewrightError):
    """Raised when a state machine definition fails structural validation.

    No partially built machine is ever returned when this is raised.

    Examples
    --------
    Example usage::

        raise MalformedStateMachineError("all states in state machine should be reachable")
    """

    pass


class DuplicateTransitionError(MalformedStateMachineError):
    """Raised when two transition names collapse onto the same canonical key."""

    def __init__(self, name: str, existing: str) -> None:
        super().__init__(
            f"duplicate transitions. trying to add '{name}', but '{existing}' already exists."
        )
        self.name = name
        self.existing = existing


# ============================================================================
# Transition Errors
# ============================================================================


class StateTransitionError(StatewrightError):
    """Raised when a transition cannot be performed on an object.

    Also used by triggers to signal failure (as opposed to a veto by value).
    Several underlying causes can be attached so that one hook can report a
    batch of validation failures together.

    Examples
    --------
    Example usage::

        raise StateTransitionError(
            "change request is incomplete",
            causes=[ValueError("missing title"), ValueError("missing owner")],
        )
    """

    def __init__(self, message: str = "", causes: Iterable[BaseException] | None = None) -> None:
        """Initialize state transition error.

        Args
        ----
            message: Explanation of why the transition failed
            causes: Underlying exceptions; the first is chained as ``__cause__``
        """
        super().__init__(message)
        self.causes: tuple[BaseException, ...] = tuple(causes or ())
        if self.causes:
            self.__cause__ = self.causes[0]


class TriggerError(StateTransitionError):
    """Raised when a trigger cannot be loaded for a transition at call time."""

    pass


# ============================================================================
# Resolution Errors
# ============================================================================


class ResolveError(StatewrightError):
    """Raised when a component identifier cannot be resolved."""

    def __init__(self, kind: str, reason: str) -> None:
        self.kind = kind
        self.reason = reason
        super().__init__(f"Cannot resolve '{kind}': {reason}")


__all__ = [
    # Base
    "StatewrightError",
    # Configuration
    "ConfigurationError",
    "MalformedStateMachineError",
    "DuplicateTransitionError",
    # Transitions
    "StateTransitionError",
    "TriggerError",
    # Resolution
    "ResolveError",
]
