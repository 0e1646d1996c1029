"""The state machine engine.

A :class:`StateMachine` is an immutable, validated workflow definition. It
is only ever produced by :class:`~statewright.kernel.machine.builder.StateMachineBuilder`
and can be shared across threads for calls on distinct objects. Calls on
the same object are not serialized; callers that may touch one object from
several threads must lock around each call.

Transition protocol for :meth:`StateMachine.invoke_transition`:

1. resolve the transition name and the object's current state;
2. if the transition is not enabled from that state, walk default
   transitions until a state enabling it is reached, applying each step
   (the first step returning a non-None result ends the call with that
   result);
3. run the pre-trigger; a non-None result vetoes the transition;
4. write the target state;
5. run the post-trigger and return its result.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from statewright.kernel.domain.graph import TransitionGraph
from statewright.kernel.domain.stateful import StateHandle
from statewright.kernel.exceptions import StateTransitionError
from statewright.kernel.keys import clean_text, find_key, to_key
from statewright.kernel.logging import get_logger
from statewright.kernel.machine.trigger_cache import TriggerCache
from statewright.kernel.ports.selector import WILDCARD

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from statewright.kernel.domain.stateful import SupportsState
    from statewright.kernel.ports.selector import TransitionSelector
    from statewright.kernel.resolver import ComponentRegistry

logger = get_logger(__name__)


def _frozen(mapping: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(mapping))


class StateMachine:
    """Validated, immutable workflow definition that drives stateful objects.

    Use :class:`~statewright.kernel.machine.builder.StateMachineBuilder` (or
    :meth:`from_graph`) to create one; the constructor performs no structural
    validation of its own.
    """

    def __init__(
        self,
        *,
        name: str,
        description: str | None,
        state_names: Mapping[str, str],
        state_descriptions: Mapping[str, str],
        transition_names: Mapping[str, str],
        transition_descriptions: Mapping[str, str],
        transition_properties: Mapping[str, Mapping[str, Any]],
        initial_transition: str,
        initial_transitions: Iterable[str],
        valid_transitions: Mapping[str, Iterable[str]],
        default_transitions: Mapping[str, str],
        target_states: Mapping[str, str],
        selector: TransitionSelector,
        selector_id: str,
        pre_triggers: Mapping[str, str],
        post_triggers: Mapping[str, str],
        registry: ComponentRegistry,
    ) -> None:
        self._name = name
        self._description = description

        self._state_names = _frozen(state_names)
        self._state_descriptions = _frozen(state_descriptions)
        self._transition_names = _frozen(transition_names)
        self._transition_descriptions = _frozen(transition_descriptions)
        self._transition_properties = MappingProxyType({
            key: _frozen(props) for key, props in transition_properties.items() if props
        })
        self._target_states = _frozen(target_states)

        self._initial_transition = initial_transition
        self._initial_transitions = tuple(initial_transitions)
        self._valid_transitions = MappingProxyType({
            state: tuple(transitions)
            for state, transitions in valid_transitions.items()
            if transitions
        })
        self._default_transitions = _frozen(default_transitions)

        self._graph = TransitionGraph.from_maps(
            self._state_names,
            self._transition_names,
            self._target_states,
            self._initial_transition,
            self._initial_transitions,
            self._valid_transitions,
            self._default_transitions,
        )

        self._selector = selector
        self._selector_id = selector_id
        self._registry = registry

        # Instances are created now so that a broken trigger fails the build
        self._pre_triggers = TriggerCache(registry, pre_triggers)
        self._post_triggers = TriggerCache(registry, post_triggers)
        self._pre_triggers.load_all()
        self._post_triggers.load_all()

    # ------------------------------------------------------------------
    # Construction from / export to graphs
    # ------------------------------------------------------------------

    @classmethod
    def from_graph(
        cls, graph: Mapping[str, Any], registry: ComponentRegistry | None = None
    ) -> StateMachine:
        """Rebuild and revalidate a machine from :meth:`as_graph` output.

        Trigger instances are created afresh from their identifiers.
        """
        from statewright.kernel.machine.builder import (
            StateMachineBuilder,  # lazy: builder imports this module
        )

        builder = StateMachineBuilder().from_graph(graph)
        if registry is not None:
            builder.with_registry(registry)
        return builder.create()

    def as_graph(self) -> dict[str, Any]:
        """Export the machine as a JSON/YAML-serializable mapping.

        The result can be fed back through :meth:`from_graph`. Trigger maps
        are only present when at least one trigger is registered.
        """
        graph: dict[str, Any] = {
            "name": self._name,
            "description": self._description,
            "stateNames": dict(self._state_names),
            "stateDescriptions": dict(self._state_descriptions),
            "transitionNames": dict(self._transition_names),
            "transitionDescriptions": dict(self._transition_descriptions),
            "transitionProperties": {
                key: dict(props) for key, props in self._transition_properties.items()
            },
            "initialTransition": self._initial_transition,
            "initialTransitions": list(self._initial_transitions),
            "validTransitions": {
                state: list(transitions) for state, transitions in self._valid_transitions.items()
            },
            "defaultTransitions": dict(self._default_transitions),
            "targetStates": dict(self._target_states),
            "transitionSelector": self._selector_id,
        }
        if self._pre_triggers.identifiers:
            graph["preTriggers"] = dict(self._pre_triggers.identifiers)
        if self._post_triggers.identifiers:
            graph["postTriggers"] = dict(self._post_triggers.identifiers)
        return graph

    def __reduce__(self) -> tuple[Any, ...]:
        # Pickle as a graph; triggers are rebuilt from the default registry
        return (StateMachine.from_graph, (self.as_graph(),))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def initialize(self, obj: SupportsState, *data: Any) -> Any:
        """Apply the default entry transition to an uninitialized object."""
        return self.invoke_transition(self._initial_transition, obj, *data)

    def invoke_transition(self, transition: str, obj: SupportsState, *data: Any) -> Any:
        """Take a transition on ``obj``.

        If ``transition`` is not enabled from the object's state, the object
        is first walked along default transitions to a state where it is.
        When one of those intermediate steps returns a non-None result (a
        pre-trigger veto or a post-trigger result) the call stops there and
        returns that result; the requested transition is then not taken and
        the object stays in the intermediate state.

        Parameters
        ----------
        transition : str
            Transition key or display name (case-insensitive)
        obj : SupportsState
            Object to transition
        *data : Any
            Passed through to triggers

        Returns
        -------
        Any
            A pre-trigger veto value, the post-trigger result, or None

        Raises
        ------
        StateTransitionError
            If the transition is unknown or cannot be reached from the
            object's state; the object is left unchanged in that case
        """
        if clean_text(transition) is None:
            raise StateTransitionError("must specify a transition")
        if obj is None:
            raise StateTransitionError("must specify an object to transition")

        transition_key = find_key(self._transition_names, transition)
        if transition_key is None:
            raise StateTransitionError(f"no such transition: {transition}")

        current = self._state_index(obj)
        wanted = self._graph.transition_index[transition_key]

        if wanted not in self._graph.enabled(current):
            path = self._graph.find_default_path(current, wanted)
            if path is None:
                if current is None:
                    allowed = "a valid initial transition"
                else:
                    state_name = self._state_names[self._graph.states[current]]
                    allowed = f"allowed from state '{state_name}'"
                raise StateTransitionError(
                    f"transition '{self._transition_names[transition_key]}' is not {allowed}"
                )

            logger.debug(
                "Auto-advancing {obj} through {path} to reach {transition}",
                obj=obj,
                path=[self._graph.transitions[step] for step in path],
                transition=transition_key,
            )
            for step in path:
                result = self._apply(step, obj, data)
                if result is not None:
                    return result

        return self._apply(wanted, obj, data)

    def advance(self, obj: SupportsState, *data: Any) -> Any:
        """Take the transition chosen by the selector from the object's state.

        The selector receives the default transition plus every enabled
        transition mapped to ``"*"`` or to its condition properties.

        Raises
        ------
        StateTransitionError
            If the selector picks nothing (for example in an end state)
        """
        if obj is None:
            raise StateTransitionError("must specify an object to advance")

        current = self._state_index(obj)
        default = self._graph.default_from(current)
        default_key = self._graph.transitions[default] if default is not None else None

        enabled: dict[str, Any] = {}
        for index in self._graph.enabled(current):
            key = self._graph.transitions[index]
            props = self._transition_properties.get(key)
            enabled[key] = dict(props) if props else WILDCARD

        transition = self._selector.select_transition(default_key, enabled, obj, *data)
        if transition is None:
            raise StateTransitionError("no transition available for this state")
        return self.invoke_transition(transition, obj, *data)

    def _apply(self, transition: int, obj: SupportsState, data: tuple[Any, ...]) -> Any:
        """Run one enabled transition: pre-trigger, state write, post-trigger."""
        key = self._graph.transitions[transition]

        pre_trigger = self._pre_triggers.get(key)
        if pre_trigger is not None:
            result = pre_trigger.on_transition(key, obj, *data)
            if result is not None:
                logger.info(
                    "Transition {transition} vetoed for {obj}: {result}",
                    transition=key,
                    obj=obj,
                    result=result,
                )
                return result

        handle = StateHandle(obj)
        previous = handle.get()
        target = self._graph.states[self._graph.targets[transition]]
        handle.set(target)
        logger.debug(
            "Transition {transition} moved {obj} from {previous} to {target}",
            transition=key,
            obj=obj,
            previous=previous,
            target=target,
        )

        post_trigger = self._post_triggers.get(key)
        if post_trigger is None:
            return None
        return post_trigger.on_transition(key, obj, *data)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def is_in_end_state(self, obj: SupportsState) -> bool:
        """True if ``obj`` is in a state with no outgoing transitions.

        Raises
        ------
        StateTransitionError
            If ``obj`` is None, uninitialized, or in an unknown state
        """
        if obj is None:
            raise StateTransitionError("must specify an object")
        return self.is_end_state(obj.current_state)

    def is_done(self, obj: SupportsState) -> bool:
        """Alias of :meth:`is_in_end_state`."""
        return self.is_in_end_state(obj)

    def is_end_state(self, state: str | None) -> bool:
        """True if the named state has no outgoing transitions."""
        if clean_text(state) is None:
            raise StateTransitionError("must specify a state")
        key = find_key(self._state_names, state)
        if key is None:
            raise StateTransitionError(f"no such state: {state}")
        return self._graph.is_end(self._graph.state_index[key])

    def get_enabled_transitions(self, obj: SupportsState) -> list[str]:
        """Keys of the transitions enabled from the object's current state."""
        if obj is None:
            raise StateTransitionError("must specify an object")
        return [self._graph.transitions[t] for t in self._graph.enabled(self._state_index(obj))]

    def get_transition_properties(self, transition: str) -> dict[str, Any]:
        """Copy of a transition's condition properties (empty when it has none)."""
        key = find_key(self._transition_names, transition)
        if key is None:
            raise StateTransitionError(f"no such transition: {transition}")
        return dict(self._transition_properties.get(key, {}))

    def _state_index(self, obj: SupportsState) -> int | None:
        state = obj.current_state
        if clean_text(state) is None:
            return None
        key = find_key(self._state_names, state)
        if key is None:
            raise StateTransitionError(f"no such state: {state}")
        return self._graph.state_index[key]

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str | None:
        return self._description

    @property
    def identifier(self) -> str:
        return to_key(self._name)

    @property
    def initial_transition(self) -> str:
        return self._initial_transition

    @property
    def initial_transitions(self) -> list[str]:
        return list(self._initial_transitions)

    @property
    def initial_state(self) -> str:
        """Display name of the state reached by the default entry transition."""
        return self._state_names[self._target_states[self._initial_transition]]

    @property
    def state_names(self) -> dict[str, str]:
        return dict(self._state_names)

    @property
    def state_descriptions(self) -> dict[str, str]:
        return dict(self._state_descriptions)

    @property
    def transition_names(self) -> dict[str, str]:
        return dict(self._transition_names)

    @property
    def transition_descriptions(self) -> dict[str, str]:
        return dict(self._transition_descriptions)

    @property
    def target_states(self) -> dict[str, str]:
        return dict(self._target_states)

    @property
    def valid_transitions(self) -> dict[str, list[str]]:
        return {state: list(transitions) for state, transitions in self._valid_transitions.items()}

    @property
    def default_transitions(self) -> dict[str, str]:
        return dict(self._default_transitions)

    @property
    def end_states(self) -> list[str]:
        """Keys of every state without outgoing transitions."""
        return [key for i, key in enumerate(self._graph.states) if self._graph.is_end(i)]

    @property
    def selector(self) -> TransitionSelector:
        return self._selector

    @property
    def selector_id(self) -> str:
        return self._selector_id

    @property
    def registry(self) -> ComponentRegistry:
        return self._registry

    def __repr__(self) -> str:
        return (
            f"StateMachine(name={self._name!r}, states={len(self._state_names)}, "
            f"transitions={len(self._transition_names)})"
        )
