"""State machine engine and builder."""

from statewright.kernel.machine.builder import StateMachineBuilder
from statewright.kernel.machine.machine import StateMachine
from statewright.kernel.machine.trigger_cache import TriggerCache

__all__ = [
    "StateMachine",
    "StateMachineBuilder",
    "TriggerCache",
]
