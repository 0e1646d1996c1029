"""Builder for state machines.

Machines are defined by their transitions. Each transition names its source
states and its target state; states are derived from those names. A
transition without source states is an entry transition, usable on objects
that have no state yet.

The first entry transition declared is the default entry transition, and
the first transition declared from a state is that state's default
transition. Following default transitions from the default entry must end
in a state without outgoing transitions.

Example::

    machine = (
        StateMachineBuilder()
        .with_name("issue-tracker")
        .with_transition("submit", to_state="submitted")
        .with_transition("open", from_states="submitted", to_state="opened")
        .with_transition("resolve", from_states="opened", to_state="resolved")
        .create()
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from statewright.kernel.domain.graph import TransitionGraph
from statewright.kernel.domain.workflow import MachineGraph, TransitionConfig
from statewright.kernel.exceptions import (
    DuplicateTransitionError,
    MalformedStateMachineError,
    ResolveError,
    TriggerError,
)
from statewright.kernel.keys import clean_text, find_key, to_key
from statewright.kernel.logging import get_logger
from statewright.kernel.machine.machine import StateMachine
from statewright.kernel.resolver import (
    DEFAULT_SELECTOR,
    ComponentKind,
    ComponentRegistry,
    default_registry,
)

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping, Sequence

    from statewright.kernel.ports.selector import TransitionSelector

logger = get_logger(__name__)

TriggerRef = str | type | None


class StateMachineBuilder:
    """Accumulates transition declarations and validates them into a machine."""

    def __init__(self) -> None:
        self._name: str | None = None
        self._description: str | None = None

        # printable labels and descriptions, keyed by canonical key
        self._state_names: dict[str, str] = {}
        self._state_descriptions: dict[str, str] = {}
        self._transition_names: dict[str, str] = {}
        self._transition_descriptions: dict[str, str] = {}
        self._transition_properties: dict[str, dict[str, Any]] = {}

        # machine structure
        self._initial_transition: str | None = None
        self._initial_transitions: list[str] = []
        self._target_states: dict[str, str] = {}
        self._valid_transitions: dict[str, list[str]] = {}
        self._default_transitions: dict[str, str] = {}

        # pluggable components, kept as given until create()
        self._pre_triggers: dict[str, TriggerRef] = {}
        self._post_triggers: dict[str, TriggerRef] = {}
        self._selector: TransitionSelector | str | None = None
        self._registry: ComponentRegistry = default_registry

    # ------------------------------------------------------------------
    # Naming and components
    # ------------------------------------------------------------------

    def with_name(self, name: str) -> StateMachineBuilder:
        cleaned = clean_text(name)
        if cleaned is None:
            raise MalformedStateMachineError("name cannot be empty")
        self._name = cleaned
        return self

    def with_description(self, description: str | None) -> StateMachineBuilder:
        self._description = clean_text(description)
        return self

    def with_transition_selector(
        self, selector: TransitionSelector | str | None
    ) -> StateMachineBuilder:
        """Override the selector, given as an instance or a registry identifier."""
        self._selector = selector
        return self

    def with_registry(self, registry: ComponentRegistry) -> StateMachineBuilder:
        """Use ``registry`` to resolve trigger and selector identifiers."""
        self._registry = registry
        return self

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def with_transition(
        self,
        name: str,
        description: str | None = None,
        from_states: str | Sequence[str] | None = None,
        to_state: str | None = None,
        to_state_description: str | None = None,
        conditions: Mapping[str, Any] | None = None,
        pre_trigger: TriggerRef = None,
        post_trigger: TriggerRef = None,
    ) -> StateMachineBuilder:
        """Declare a transition.

        Parameters
        ----------
        name : str
            Display name; its canonical key must be unique
        description : str | None
            Transition description
        from_states : str | Sequence[str] | None
            Source state name(s); empty or None declares an entry transition
        to_state : str
            Target state name
        to_state_description : str | None
            Target state description, kept if the state has none yet
        conditions : Mapping[str, Any] | None
            Condition properties consumed by selectors
        pre_trigger, post_trigger : str | type | None
            Trigger identifiers (or classes) run around the transition

        Raises
        ------
        MalformedStateMachineError
            If the name or target state is empty
        DuplicateTransitionError
            If another transition already has the same canonical key
        """
        transition_name = clean_text(name)
        if transition_name is None:
            raise MalformedStateMachineError("transition name cannot be empty")
        to_state_name = clean_text(to_state)
        if to_state_name is None:
            raise MalformedStateMachineError("target state cannot be empty")

        transition_key = to_key(transition_name)
        if transition_key in self._transition_names:
            raise DuplicateTransitionError(transition_name, self._transition_names[transition_key])

        self._transition_names[transition_key] = transition_name
        if text := clean_text(description):
            self._transition_descriptions[transition_key] = text

        state_key = to_key(to_state_name)
        self._state_names.setdefault(state_key, to_state_name)
        if (text := clean_text(to_state_description)) and state_key not in self._state_descriptions:
            self._state_descriptions[state_key] = text

        self._target_states[transition_key] = state_key

        if pre_trigger:
            self._pre_triggers[transition_key] = pre_trigger
        if post_trigger:
            self._post_triggers[transition_key] = post_trigger

        if isinstance(from_states, str):
            from_states = [from_states]
        sources = list(from_states or [])

        if not sources:
            self._add_entry(transition_key)
        for source in sources:
            source_name = clean_text(source)
            if source_name is None:
                self._add_entry(transition_key)
                continue

            source_key = to_key(source_name)
            self._state_names.setdefault(source_key, source_name)
            transitions = self._valid_transitions.setdefault(source_key, [])
            if not transitions:
                self._default_transitions[source_key] = transition_key
            if transition_key not in transitions:
                transitions.append(transition_key)

        if conditions:
            self._transition_properties.setdefault(transition_key, {}).update(conditions)

        return self

    def _add_entry(self, transition_key: str) -> None:
        if self._initial_transition is None:
            self._initial_transition = transition_key
        if transition_key not in self._initial_transitions:
            self._initial_transitions.append(transition_key)

    def with_transitions(
        self, transitions: Iterable[Mapping[str, Any] | TransitionConfig]
    ) -> StateMachineBuilder:
        """Declare transitions from declarative records.

        Each record carries ``name``, ``description``, ``from``, ``to``
        (``name``/``description``), ``on``, ``pre-trigger`` and
        ``post-trigger``.

        Raises
        ------
        MalformedStateMachineError
            If a record does not have that shape
        """
        for index, record in enumerate(transitions):
            if isinstance(record, TransitionConfig):
                config = record
            else:
                try:
                    config = TransitionConfig.model_validate(record)
                except PydanticValidationError as e:
                    raise MalformedStateMachineError(
                        f"invalid transition record #{index}: {e}"
                    ) from e

            self.with_transition(
                config.name,
                config.description,
                config.from_states,
                config.to.name,
                config.to.description,
                config.on,
                config.pre_trigger,
                config.post_trigger,
            )
        return self

    def without_transition(self, name: str) -> StateMachineBuilder:
        """Remove one transition and every reference to it.

        Where the removed transition was a default, the first remaining
        transition of the same set takes over. A state left without
        transitions becomes an end state.

        Raises
        ------
        MalformedStateMachineError
            If the name is empty or unknown
        """
        if clean_text(name) is None:
            raise MalformedStateMachineError("must provide transition name")
        transition_key = find_key(self._transition_names, name)
        if transition_key is None:
            raise MalformedStateMachineError(f"invalid transition: {name.strip()}")

        del self._transition_names[transition_key]
        self._transition_descriptions.pop(transition_key, None)
        self._transition_properties.pop(transition_key, None)
        self._target_states.pop(transition_key, None)
        self._pre_triggers.pop(transition_key, None)
        self._post_triggers.pop(transition_key, None)

        if transition_key in self._initial_transitions:
            self._initial_transitions.remove(transition_key)
        if self._initial_transition == transition_key:
            self._initial_transition = (
                self._initial_transitions[0] if self._initial_transitions else None
            )

        for state in list(self._valid_transitions):
            transitions = self._valid_transitions[state]
            if transition_key not in transitions:
                continue
            transitions.remove(transition_key)
            if not transitions:
                del self._valid_transitions[state]
                self._default_transitions.pop(state, None)
            elif self._default_transitions.get(state) == transition_key:
                self._default_transitions[state] = transitions[0]

        return self

    def without_transitions(self) -> StateMachineBuilder:
        """Remove every transition and state."""
        self._transition_names.clear()
        self._transition_descriptions.clear()
        self._transition_properties.clear()
        self._target_states.clear()

        self._default_transitions.clear()
        self._initial_transition = None
        self._initial_transitions.clear()
        self._valid_transitions.clear()
        self._pre_triggers.clear()
        self._post_triggers.clear()

        self._state_names.clear()
        self._state_descriptions.clear()
        return self

    def from_graph(self, graph: Mapping[str, Any] | MachineGraph) -> StateMachineBuilder:
        """Replace the builder's content with a serialized machine graph.

        Keys are taken as they are; ``create()`` checks that they are
        consistent.

        Raises
        ------
        MalformedStateMachineError
            If the mapping does not have the shape of a machine graph
        """
        if isinstance(graph, MachineGraph):
            parsed = graph
        else:
            try:
                parsed = MachineGraph.model_validate(graph)
            except PydanticValidationError as e:
                raise MalformedStateMachineError(f"invalid state machine graph: {e}") from e

        self.without_transitions()
        self._name = clean_text(parsed.name)
        self._description = clean_text(parsed.description)

        self._state_names.update(parsed.state_names)
        self._state_descriptions.update(parsed.state_descriptions)
        self._transition_names.update(parsed.transition_names)
        self._transition_descriptions.update(parsed.transition_descriptions)
        self._transition_properties.update(
            {key: dict(props) for key, props in parsed.transition_properties.items()}
        )

        self._initial_transition = parsed.initial_transition
        self._initial_transitions.extend(dict.fromkeys(parsed.initial_transitions))
        self._target_states.update(parsed.target_states)
        self._valid_transitions.update(
            {
                state: list(dict.fromkeys(transitions))
                for state, transitions in parsed.valid_transitions.items()
                if transitions
            }
        )
        self._default_transitions.update(parsed.default_transitions)

        self._pre_triggers.update(parsed.pre_triggers)
        self._post_triggers.update(parsed.post_triggers)
        self._selector = parsed.transition_selector
        return self

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(self) -> StateMachine:
        """Validate the declarations and build the machine.

        Raises
        ------
        MalformedStateMachineError
            If any structural check fails, or if the selector or a trigger
            cannot be resolved or constructed
        """
        try:
            self._validate()
            selector, selector_id = self._resolve_selector()
            pre_triggers = self._trigger_identifiers(self._pre_triggers)
            post_triggers = self._trigger_identifiers(self._post_triggers)
            machine = self._construct(selector, selector_id, pre_triggers, post_triggers)
        except MalformedStateMachineError as e:
            logger.debug("State machine {name} rejected: {error}", name=self._name, error=e)
            raise

        logger.info(
            "Built state machine {name} with {states} states and {transitions} transitions",
            name=machine.name,
            states=len(self._state_names),
            transitions=len(self._transition_names),
        )
        return machine

    def _construct(
        self,
        selector: TransitionSelector,
        selector_id: str,
        pre_triggers: dict[str, str],
        post_triggers: dict[str, str],
    ) -> StateMachine:
        assert self._name is not None
        assert self._initial_transition is not None
        try:
            return StateMachine(
                name=self._name,
                description=self._description,
                state_names=self._state_names,
                state_descriptions=self._state_descriptions,
                transition_names=self._transition_names,
                transition_descriptions=self._transition_descriptions,
                transition_properties=self._transition_properties,
                initial_transition=self._initial_transition,
                initial_transitions=self._initial_transitions,
                valid_transitions=self._valid_transitions,
                default_transitions=self._default_transitions,
                target_states=self._target_states,
                selector=selector,
                selector_id=selector_id,
                pre_triggers=pre_triggers,
                post_triggers=post_triggers,
                registry=self._registry,
            )
        except TriggerError as e:
            raise MalformedStateMachineError(str(e)) from e

    def _resolve_selector(self) -> tuple[TransitionSelector, str]:
        selector = self._selector
        if selector is None:
            selector = DEFAULT_SELECTOR

        if isinstance(selector, str):
            try:
                instance = self._registry.create_selector(selector)
            except ResolveError as e:
                raise MalformedStateMachineError(f"invalid transition selector: {e}") from e
            except Exception as e:
                raise MalformedStateMachineError(
                    f"unable to create transition selector '{selector}': {e}"
                ) from e
            identifier = selector.strip()
        else:
            instance = selector
            try:
                identifier = self._registry.identifier_for(ComponentKind.SELECTOR, selector)
            except ResolveError as e:
                raise MalformedStateMachineError(f"invalid transition selector: {e}") from e

        if not callable(getattr(instance, "select_transition", None)):
            raise MalformedStateMachineError(
                f"transition selector '{identifier}' does not implement select_transition()"
            )
        return instance, identifier

    def _trigger_identifiers(self, triggers: Mapping[str, TriggerRef]) -> dict[str, str]:
        identifiers: dict[str, str] = {}
        for transition, trigger in triggers.items():
            if isinstance(trigger, str):
                identifiers[transition] = trigger.strip()
            elif isinstance(trigger, type):
                try:
                    identifiers[transition] = self._registry.identifier_for(
                        ComponentKind.TRIGGER, trigger
                    )
                except ResolveError as e:
                    raise MalformedStateMachineError(
                        f"invalid trigger for transition '{transition}': {e}"
                    ) from e
            else:
                raise MalformedStateMachineError(
                    f"invalid trigger for transition '{transition}': {trigger!r}"
                )
        return identifiers

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate(self) -> None:
        """Run every structural check; the first failing check raises."""
        if self._name is None:
            raise MalformedStateMachineError("named object must have a name")

        self._validate_initial_transition()
        self._validate_keys()

        graph = TransitionGraph.from_maps(
            self._state_names,
            self._transition_names,
            self._target_states,
            self._initial_transition,
            self._initial_transitions,
            self._valid_transitions,
            self._default_transitions,
        )

        reachability = graph.reachability()
        if reachability.unreachable_states:
            raise MalformedStateMachineError(
                "all states in state machine should be reachable. unreachable: "
                f"{sorted(reachability.unreachable_states)}"
            )
        if reachability.unused_transitions:
            raise MalformedStateMachineError(
                "all transitions in state machine should be used at least once. unused: "
                f"{sorted(reachability.unused_transitions)}"
            )
        if not reachability.end_states:
            raise MalformedStateMachineError(
                "there should be at least one end state in the state machine"
            )

        if duplicates := graph.duplicate_destinations():
            problems = [
                f"valid transitions from '{source or 'state machine entry points'}' cannot "
                f"have the same target '{target}' state as other transitions."
                for source, target in duplicates
            ]
            raise MalformedStateMachineError(" ".join(problems))

        if misplaced := graph.misplaced_defaults():
            problems = [
                f"default transition '{transition}' must be included in set of valid "
                f"transitions for state '{state}'"
                for state, transition in misplaced
            ]
            raise MalformedStateMachineError(" ".join(problems))

        if problem := graph.check_default_path():
            raise MalformedStateMachineError(problem)

    def _validate_initial_transition(self) -> None:
        initial = self._initial_transition
        if initial is None:
            raise MalformedStateMachineError("state machine must have an initial transition")
        if initial not in self._transition_names:
            raise MalformedStateMachineError("initial transition must be defined")
        if initial not in self._initial_transitions:
            raise MalformedStateMachineError(
                "the default initial transition must be defined in the initial transitions "
                "collection"
            )
        initial_state = self._target_states.get(initial)
        if initial_state is None:
            raise MalformedStateMachineError("initial transition must define a target state")
        if initial_state not in self._state_names:
            raise MalformedStateMachineError("initial state must be defined")

    def _validate_keys(self) -> None:
        """Check every referenced key against the name tables, reporting all offenders."""
        states = self._state_names
        transitions = self._transition_names
        defaults = self._default_transitions
        used_transitions = {t for ts in self._valid_transitions.values() for t in ts}
        checks: list[tuple[str, Collection[str], Mapping[str, str]]] = [
            ("invalid initial transitions", self._initial_transitions, transitions),
            ("invalid default transitions", defaults.keys(), states),
            ("invalid default transitions", defaults.values(), transitions),
            ("invalid pre-triggers", self._pre_triggers.keys(), transitions),
            ("invalid post-triggers", self._post_triggers.keys(), transitions),
            ("invalid transition", self._target_states.keys(), transitions),
            ("invalid transition", self._target_states.values(), states),
            ("invalid transitions", self._valid_transitions.keys(), states),
            ("invalid transition", used_transitions, transitions),
            ("invalid transition properties", self._transition_properties.keys(), transitions),
            ("invalid transition description", self._transition_descriptions.keys(), transitions),
            ("invalid state description", self._state_descriptions.keys(), states),
        ]

        problems = []
        for label, keys, defined in checks:
            if missing := sorted({key for key in keys if key not in defined}):
                kind = "states" if defined is states else "transitions"
                problems.append(f"{label}. no such {kind}: {missing}")

        missing_targets = sorted(set(transitions) - set(self._target_states))
        if missing_targets:
            problems.append(f"transitions without target state: {missing_targets}")

        if problems:
            raise MalformedStateMachineError("; ".join(problems))
