"""statewright kernel.

User code should import from ``statewright`` or ``statewright.kernel``;
the submodules are free to import from each other.

The exports are grouped by category:
- Engine (builder and machine)
- Domain types
- Port protocols
- Component resolution
- Exceptions
- Logging
"""

# ============================================================================
# 1. Engine
# ============================================================================

from statewright.kernel.machine import StateMachine, StateMachineBuilder

# ============================================================================
# 2. Domain Types
# ============================================================================

from statewright.kernel.domain import (
    MachineGraph,
    StatefulObject,
    StateHandle,
    SupportsState,
    TransitionConfig,
    WorkflowConfig,
)

# ============================================================================
# 3. Port Protocols
# ============================================================================

from statewright.kernel.ports import WILDCARD, TransitionSelector, Trigger

# ============================================================================
# 4. Component Resolution
# ============================================================================

from statewright.kernel.resolver import (
    ComponentKind,
    ComponentRegistry,
    default_registry,
    register_selector,
    register_trigger,
    resolve,
)

# ============================================================================
# 5. Exceptions
# ============================================================================

from statewright.kernel.exceptions import (
    ConfigurationError,
    DuplicateTransitionError,
    MalformedStateMachineError,
    ResolveError,
    StatewrightError,
    StateTransitionError,
    TriggerError,
)

# ============================================================================
# 6. Logging
# ============================================================================

from statewright.kernel.logging import configure_logging, get_logger

__all__ = [
    # Engine
    "StateMachine",
    "StateMachineBuilder",
    # Domain
    "MachineGraph",
    "StateHandle",
    "StatefulObject",
    "SupportsState",
    "TransitionConfig",
    "WorkflowConfig",
    # Ports
    "WILDCARD",
    "TransitionSelector",
    "Trigger",
    # Resolution
    "ComponentKind",
    "ComponentRegistry",
    "default_registry",
    "register_selector",
    "register_trigger",
    "resolve",
    # Exceptions
    "ConfigurationError",
    "DuplicateTransitionError",
    "MalformedStateMachineError",
    "ResolveError",
    "StateTransitionError",
    "StatewrightError",
    "TriggerError",
    # Logging
    "configure_logging",
    "get_logger",
]
