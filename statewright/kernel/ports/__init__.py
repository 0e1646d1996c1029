"""Port interfaces implemented by application code."""

from statewright.kernel.ports.selector import WILDCARD, TransitionSelector
from statewright.kernel.ports.trigger import Trigger

__all__ = [
    "WILDCARD",
    "TransitionSelector",
    "Trigger",
]
