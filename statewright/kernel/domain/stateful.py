"""Stateful objects managed by a state machine.

Application code reads the current state of an object freely, but only the
engine writes it. Writes go through :class:`StateHandle`, which is used by
:mod:`statewright.kernel.machine.machine` and nowhere else.

Example::

    class ChangeRequest(StatefulObject):
        pass

    request = ChangeRequest("bug-1")
    machine.initialize(request)
    request.current_state  # "submitted"
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from typing import Protocol, runtime_checkable

from statewright.kernel.keys import clean_text, to_key


@runtime_checkable
class SupportsState(Protocol):
    """Anything exposing a readable ``current_state`` and an engine-only setter."""

    @property
    def current_state(self) -> str | None: ...

    def _set_current_state(self, state: str | None) -> None: ...


class StatefulObject:
    """Base class for externally owned objects whose lifecycle a machine governs.

    A fresh object has no state (``current_state is None``); the first
    transition applied to it must be an entry transition.
    """

    __slots__ = ("_name", "_identifier", "_state", "_updated_on")

    def __init__(self, name: str, current_state: str | None = None) -> None:
        cleaned = clean_text(name)
        if cleaned is None:
            raise ValueError("name cannot be null or empty")
        self._name = cleaned
        self._identifier = to_key(cleaned)
        self._state = current_state
        self._updated_on = time.time()

    @property
    def name(self) -> str:
        return self._name

    @property
    def identifier(self) -> str:
        return self._identifier

    @property
    def current_state(self) -> str | None:
        """The current state key, or None if the object is not initialized."""
        return self._state

    @property
    def updated_on(self) -> datetime:
        """When the state was last written."""
        return datetime.fromtimestamp(self._updated_on, tz=UTC)

    def _set_current_state(self, state: str | None) -> None:
        self._state = state
        self._updated_on = time.time()

    def __eq__(self, other: object) -> bool:
        if other is self:
            return True
        if not isinstance(other, StatefulObject):
            return NotImplemented
        return type(other) is type(self) and self._identifier == other._identifier

    def __hash__(self) -> int:
        return hash(self._identifier)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, state={self._state!r})"


class StateHandle:
    """Write access to an object's state, reserved for the engine."""

    __slots__ = ("_obj",)

    def __init__(self, obj: SupportsState) -> None:
        self._obj = obj

    def get(self) -> str | None:
        return self._obj.current_state

    def set(self, state: str | None) -> None:
        self._obj._set_current_state(state)
