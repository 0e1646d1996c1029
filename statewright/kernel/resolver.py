"""Component registry for triggers and selectors.

Workflow graphs refer to triggers and selectors by identifier only. The
host application registers a factory for each identifier at startup; a
machine turns identifiers into instances when it is built.

Identifiers that are not registered but look like a module path
(``"myapp.hooks.NotifyOwner"``) are imported and instantiated with no
arguments.

Examples
--------
>>> from statewright.kernel.resolver import ComponentRegistry
>>> from statewright.stdlib import DefaultTransitionSelector
>>> registry = ComponentRegistry()
>>> registry.register_selector("always-default", DefaultTransitionSelector)
>>> type(registry.create_selector("always-default")).__name__
'DefaultTransitionSelector'
"""

from __future__ import annotations

import importlib
import threading
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from statewright.kernel.exceptions import ResolveError

if TYPE_CHECKING:
    from collections.abc import Callable

    from statewright.kernel.ports.selector import TransitionSelector
    from statewright.kernel.ports.trigger import Trigger

DEFAULT_SELECTOR = "default"


class ComponentKind(StrEnum):
    """Kinds of pluggable components a workflow can reference."""

    TRIGGER = "trigger"
    SELECTOR = "selector"


def resolve(path: str) -> type[Any]:
    """Resolve a ``module.path.ClassName`` string to a class.

    Raises
    ------
    ResolveError
        If the module or class cannot be found
    """
    if "." not in path:
        raise ResolveError(path, "Must be a full module path (e.g., 'myapp.hooks.NotifyOwner')")

    module_path, class_name = path.rsplit(".", 1)

    try:
        module = importlib.import_module(module_path)
    except ModuleNotFoundError as e:
        raise ResolveError(path, f"Module '{module_path}' not found: {e}") from e
    except ImportError as e:
        raise ResolveError(path, f"Failed to import '{module_path}': {e}") from e

    try:
        cls = getattr(module, class_name)
    except AttributeError as e:
        available = [name for name in dir(module) if not name.startswith("_")]
        raise ResolveError(
            path,
            f"Class '{class_name}' not found in '{module_path}'. "
            f"Available: {', '.join(available[:10])}",
        ) from e

    if not isinstance(cls, type):
        raise ResolveError(path, f"'{class_name}' is not a class (got {type(cls).__name__})")

    return cls


def class_path(cls: type[Any]) -> str:
    """Return the importable ``module.ClassName`` path of a class.

    Raises
    ------
    ResolveError
        If the class is nested in another class or defined inside a function;
        :func:`resolve` cannot import such paths
    """
    path = f"{cls.__module__}.{cls.__qualname__}"
    if cls.__qualname__ != cls.__name__:
        raise ResolveError(
            path,
            "only module-level classes can be referenced by path; "
            "register the class under an identifier instead",
        )
    return path


class ComponentRegistry:
    """Maps identifiers to zero-argument factories for triggers and selectors."""

    def __init__(self, *, include_builtins: bool = True) -> None:
        self._factories: dict[tuple[ComponentKind, str], Callable[[], Any]] = {}
        self._lock = threading.Lock()
        if include_builtins:
            self.register_builtins()

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register_builtins(self) -> None:
        """Register the built-in selectors and triggers."""
        # lazy: stdlib depends on kernel modules
        from statewright.stdlib.selectors import DefaultTransitionSelector, PropertyMatchSelector
        from statewright.stdlib.triggers import LogTransitionTrigger

        self.register_selector(DEFAULT_SELECTOR, DefaultTransitionSelector)
        self.register_selector("property-match", PropertyMatchSelector)
        self.register_trigger("log", LogTransitionTrigger)

    def register(self, kind: ComponentKind, identifier: str, factory: Callable[[], Any]) -> None:
        """Register ``factory`` under ``identifier`` for components of ``kind``.

        Raises
        ------
        ValueError
            If the identifier is empty or the factory is not callable
        """
        if not identifier or not identifier.strip():
            raise ValueError("Identifier cannot be empty")
        if not callable(factory):
            raise ValueError(f"Factory for '{identifier}' must be callable")
        with self._lock:
            self._factories[(kind, identifier.strip())] = factory

    def register_trigger(self, identifier: str, factory: Callable[[], Trigger]) -> None:
        self.register(ComponentKind.TRIGGER, identifier, factory)

    def register_selector(self, identifier: str, factory: Callable[[], TransitionSelector]) -> None:
        self.register(ComponentKind.SELECTOR, identifier, factory)

    def unregister(self, kind: ComponentKind, identifier: str) -> bool:
        """Remove a registration.

        Returns
        -------
        bool
            True if something was removed, False if it didn't exist
        """
        with self._lock:
            return self._factories.pop((kind, identifier), None) is not None

    def clear(self) -> None:
        """Remove every registration, built-ins included."""
        with self._lock:
            self._factories.clear()

    def identifiers(self, kind: ComponentKind) -> list[str]:
        """Registered identifiers of one kind, sorted."""
        return sorted(ident for k, ident in self._factories if k == kind)

    def __contains__(self, item: tuple[ComponentKind, str]) -> bool:
        return item in self._factories

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def factory_for(self, kind: ComponentKind, identifier: str) -> Callable[[], Any]:
        """Find the factory for an identifier, importing module paths as a fallback.

        Raises
        ------
        ResolveError
            If nothing is registered and the identifier is not importable
        """
        identifier = identifier.strip()
        factory = self._factories.get((kind, identifier))
        if factory is not None:
            return factory
        if "." in identifier:
            return resolve(identifier)
        available = self.identifiers(kind)
        reason = f"no {kind} registered under this identifier"
        if available:
            reason += f". Available: {', '.join(available[:5])}"
        raise ResolveError(identifier, reason)

    def create(self, kind: ComponentKind, identifier: str) -> Any:
        """Build a new component instance for an identifier.

        Errors raised by the factory itself propagate unchanged.
        """
        return self.factory_for(kind, identifier)()

    def create_trigger(self, identifier: str) -> Trigger:
        return self.create(ComponentKind.TRIGGER, identifier)

    def create_selector(self, identifier: str) -> TransitionSelector:
        return self.create(ComponentKind.SELECTOR, identifier)

    def identifier_for(self, kind: ComponentKind, component: Any) -> str:
        """Find the identifier to persist for a component class or instance.

        A registered identifier whose factory is the component's class wins;
        otherwise the class's module path is used.
        Unregistered nested or function-local classes raise ``ResolveError``.
        """
        cls = component if isinstance(component, type) else type(component)
        for (k, identifier), factory in self._factories.items():
            if k == kind and factory is cls:
                return identifier
        return class_path(cls)


default_registry = ComponentRegistry()


def register_trigger(identifier: str, factory: Callable[[], Trigger]) -> None:
    """Register a trigger factory in the default registry."""
    default_registry.register_trigger(identifier, factory)


def register_selector(identifier: str, factory: Callable[[], TransitionSelector]) -> None:
    """Register a selector factory in the default registry."""
    default_registry.register_selector(identifier, factory)
