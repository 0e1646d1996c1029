"""Domain types: stateful objects, the indexed transition graph and workflow documents."""

from statewright.kernel.domain.graph import Reachability, TransitionGraph
from statewright.kernel.domain.stateful import StatefulObject, StateHandle, SupportsState
from statewright.kernel.domain.workflow import (
    MachineGraph,
    TransitionConfig,
    TransitionTargetConfig,
    WorkflowConfig,
)

__all__ = [
    "MachineGraph",
    "Reachability",
    "StateHandle",
    "StatefulObject",
    "SupportsState",
    "TransitionConfig",
    "TransitionGraph",
    "TransitionTargetConfig",
    "WorkflowConfig",
]
