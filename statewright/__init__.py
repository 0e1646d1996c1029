"""statewright: declarative workflow state machines.

Define a workflow as named transitions between named states, let the builder
prove it is sound, then drive your own objects through it with pre/post
triggers and pluggable transition selection.
"""

try:
    from importlib.metadata import version

    __version__ = version("statewright")
except Exception:
    __version__ = "0.0.0.dev0"  # Fallback for development installs

from statewright.kernel import (
    WILDCARD,
    ComponentRegistry,
    ConfigurationError,
    DuplicateTransitionError,
    MalformedStateMachineError,
    ResolveError,
    StatefulObject,
    StateMachine,
    StateMachineBuilder,
    StatewrightError,
    StateTransitionError,
    SupportsState,
    TransitionSelector,
    Trigger,
    TriggerError,
    configure_logging,
    default_registry,
    get_logger,
    register_selector,
    register_trigger,
)
from statewright.kernel.config import build_machine, load_config, load_workflow
from statewright.stdlib import (
    DefaultTransitionSelector,
    LogTransitionTrigger,
    PropertyMatchSelector,
)

__all__ = [
    "WILDCARD",
    "ComponentRegistry",
    "ConfigurationError",
    "DefaultTransitionSelector",
    "DuplicateTransitionError",
    "LogTransitionTrigger",
    "MalformedStateMachineError",
    "PropertyMatchSelector",
    "ResolveError",
    "StateMachine",
    "StateMachineBuilder",
    "StateTransitionError",
    "StatefulObject",
    "StatewrightError",
    "SupportsState",
    "TransitionSelector",
    "Trigger",
    "TriggerError",
    "__version__",
    "build_machine",
    "configure_logging",
    "default_registry",
    "get_logger",
    "load_config",
    "load_workflow",
    "register_selector",
    "register_trigger",
]
