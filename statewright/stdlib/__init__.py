"""Built-in selector and trigger implementations."""

from statewright.stdlib.selectors import DefaultTransitionSelector, PropertyMatchSelector
from statewright.stdlib.triggers import LogTransitionTrigger

__all__ = [
    "DefaultTransitionSelector",
    "LogTransitionTrigger",
    "PropertyMatchSelector",
]
