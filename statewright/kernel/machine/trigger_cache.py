"""Per-machine memo of trigger instances.

Each machine owns one cache for its pre-triggers and one for its
post-triggers. Instances are created from registry identifiers on first use
(or eagerly with :meth:`TriggerCache.load_all`) and shared by every call on
that machine.
"""

from __future__ import annotations

import threading
from types import MappingProxyType
from typing import TYPE_CHECKING

from statewright.kernel.exceptions import ResolveError, TriggerError
from statewright.kernel.logging import get_logger
from statewright.kernel.resolver import ComponentKind

if TYPE_CHECKING:
    from collections.abc import Mapping

    from statewright.kernel.ports.trigger import Trigger
    from statewright.kernel.resolver import ComponentRegistry

logger = get_logger(__name__)


class TriggerCache:
    """Lock-protected get-or-create cache of triggers keyed by transition key."""

    __slots__ = ("_identifiers", "_instances", "_lock", "_registry")

    def __init__(self, registry: ComponentRegistry, identifiers: Mapping[str, str]) -> None:
        self._registry = registry
        self._identifiers: Mapping[str, str] = MappingProxyType(dict(identifiers))
        self._instances: dict[str, Trigger] = {}
        self._lock = threading.Lock()

    @property
    def identifiers(self) -> Mapping[str, str]:
        """Transition key -> trigger identifier."""
        return self._identifiers

    def load_all(self) -> None:
        """Create every registered trigger now.

        Raises
        ------
        TriggerError
            For the first trigger that cannot be resolved or constructed
        """
        for transition in self._identifiers:
            self.get(transition)

    def get(self, transition: str) -> Trigger | None:
        """Return the trigger for a transition key, or None if none is registered.

        Raises
        ------
        TriggerError
            If the trigger cannot be resolved or constructed
        """
        if transition not in self._identifiers:
            return None
        try:
            return self._get_or_create(transition)
        except TriggerError:
            raise
        except Exception as e:
            raise TriggerError(
                f"unable to get trigger for transition '{transition}'.", causes=[e]
            ) from e

    def clear(self) -> None:
        """Drop every cached instance; they are rebuilt on next use."""
        with self._lock:
            self._instances.clear()

    def _get_or_create(self, transition: str) -> Trigger:
        try:
            return self._instances[transition]
        except KeyError:
            pass
        with self._lock:
            if transition not in self._instances:
                identifier = self._identifiers[transition]
                trigger = self._registry.create(ComponentKind.TRIGGER, identifier)
                if not callable(getattr(trigger, "on_transition", None)):
                    raise ResolveError(identifier, "trigger does not implement on_transition()")
                self._instances[transition] = trigger
                logger.debug(
                    "Loaded trigger {identifier} for transition {transition}",
                    identifier=identifier,
                    transition=transition,
                )
            return self._instances[transition]

    def __len__(self) -> int:
        return len(self._instances)

    def __contains__(self, transition: str) -> bool:
        return transition in self._instances
