"""Integer-indexed transition graph.

States and transitions are stored as dense integer indices with explicit
adjacency lists so that validation and path search run iteratively with
visited sets instead of recursing over string-keyed maps.

The graph assumes its inputs are cross-reference clean (every key it is
given exists in the name tables); the builder checks that before building
one.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection, Iterable, Mapping


@dataclass(frozen=True, slots=True)
class Reachability:
    """Result of a reachability traversal, expressed as keys."""

    unreachable_states: frozenset[str]
    unused_transitions: frozenset[str]
    end_states: frozenset[str]


@dataclass(frozen=True, slots=True)
class TransitionGraph:
    """Immutable adjacency structure over states and transitions.

    Attributes
    ----------
    states : tuple[str, ...]
        State keys by index
    transitions : tuple[str, ...]
        Transition keys by index
    targets : tuple[int, ...]
        Target state index for each transition index
    outgoing : tuple[tuple[int, ...], ...]
        Enabled transition indices for each state index; empty for end states
    defaults : tuple[int | None, ...]
        Default transition index for each state index
    entries : tuple[int, ...]
        Entry transition indices
    initial : int | None
        Default entry transition index
    """

    states: tuple[str, ...]
    transitions: tuple[str, ...]
    state_index: Mapping[str, int]
    transition_index: Mapping[str, int]
    targets: tuple[int, ...]
    outgoing: tuple[tuple[int, ...], ...]
    defaults: tuple[int | None, ...]
    entries: tuple[int, ...]
    initial: int | None

    @classmethod
    def from_maps(
        cls,
        state_keys: Iterable[str],
        transition_keys: Iterable[str],
        target_states: Mapping[str, str],
        initial_transition: str | None,
        initial_transitions: Iterable[str],
        valid_transitions: Mapping[str, Collection[str]],
        default_transitions: Mapping[str, str | None],
    ) -> TransitionGraph:
        """Index string-keyed maps into a graph."""
        states = tuple(state_keys)
        transitions = tuple(transition_keys)
        state_index = {key: i for i, key in enumerate(states)}
        transition_index = {key: i for i, key in enumerate(transitions)}

        targets = tuple(state_index[target_states[key]] for key in transitions)
        outgoing = tuple(
            tuple(transition_index[t] for t in valid_transitions.get(key, ())) for key in states
        )
        defaults = tuple(
            transition_index.get(default) if (default := default_transitions.get(key)) else None
            for key in states
        )
        entries = tuple(transition_index[t] for t in initial_transitions)
        initial = transition_index.get(initial_transition) if initial_transition else None

        return cls(
            states=states,
            transitions=transitions,
            state_index=MappingProxyType(state_index),
            transition_index=MappingProxyType(transition_index),
            targets=targets,
            outgoing=outgoing,
            defaults=defaults,
            entries=entries,
            initial=initial,
        )

    def __len__(self) -> int:
        return len(self.states)

    def is_end(self, state: int) -> bool:
        """True if no transition is enabled from ``state``."""
        return not self.outgoing[state]

    def enabled(self, state: int | None) -> tuple[int, ...]:
        """Transitions enabled from ``state``; the entry set when ``state`` is None."""
        return self.entries if state is None else self.outgoing[state]

    def default_from(self, state: int | None) -> int | None:
        """Default transition from ``state``; the default entry when ``state`` is None."""
        return self.initial if state is None else self.defaults[state]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def reachability(self) -> Reachability:
        """Walk the graph depth-first from every entry transition.

        End states are recorded but not expanded. Every entry transition
        counts as used.
        """
        visited_states: set[int] = set()
        used: set[int] = set(self.entries)
        end_states: set[int] = set()

        stack = [self.targets[t] for t in reversed(self.entries)]
        while stack:
            state = stack.pop()
            if state in visited_states:
                continue
            visited_states.add(state)

            if self.is_end(state):
                end_states.add(state)
                continue

            for transition in reversed(self.outgoing[state]):
                used.add(transition)
                target = self.targets[transition]
                if target not in visited_states:
                    stack.append(target)

        return Reachability(
            unreachable_states=frozenset(
                key for i, key in enumerate(self.states) if i not in visited_states
            ),
            unused_transitions=frozenset(
                key for i, key in enumerate(self.transitions) if i not in used
            ),
            end_states=frozenset(self.states[i] for i in end_states),
        )

    def duplicate_destinations(self) -> list[tuple[str | None, str]]:
        """Find transition sets in which two members share a target state.

        Returns
        -------
        list[tuple[str | None, str]]
            ``(source state key, duplicated target key)`` pairs; the source is
            None for the entry set
        """
        duplicates: list[tuple[str | None, str]] = []
        sources: list[tuple[str | None, tuple[int, ...]]] = [(None, self.entries)]
        sources.extend(zip(self.states, self.outgoing, strict=True))

        for source, transitions in sources:
            seen: set[int] = set()
            for transition in transitions:
                target = self.targets[transition]
                if target in seen:
                    duplicates.append((source, self.states[target]))
                    break
                seen.add(target)

        return duplicates

    def misplaced_defaults(self) -> list[tuple[str, str]]:
        """Find states whose default transition is not one of their valid transitions.

        End states are skipped; their default is never taken.

        Returns
        -------
        list[tuple[str, str]]
            ``(state key, default transition key)`` pairs
        """
        return [
            (self.states[state], self.transitions[default])
            for state, default in enumerate(self.defaults)
            if default is not None
            and self.outgoing[state]
            and default not in self.outgoing[state]
        ]

    def check_default_path(self) -> str | None:
        """Follow default transitions from the default entry target.

        Returns
        -------
        str | None
            Problem description, or None if the default path reaches an end
            state within as many steps as there are states
        """
        if self.initial is None:
            return "state machine must have an initial transition"

        state = self.targets[self.initial]
        steps = 0
        while not self.is_end(state) and steps < len(self.states):
            default = self.defaults[state]
            if default is None or default not in self.outgoing[state]:
                name = self.transitions[default] if default is not None else None
                return (
                    f"default transition '{name}' must be included in set of valid "
                    f"transitions for state '{self.states[state]}'"
                )
            state = self.targets[default]
            steps += 1

        if not self.is_end(state):
            return "default transitions should lead to end state."
        return None

    # ------------------------------------------------------------------
    # Runtime path search
    # ------------------------------------------------------------------

    def find_default_path(self, start: int | None, wanted: int) -> list[int] | None:
        """Find the default transitions leading to a state where ``wanted`` is enabled.

        Starting at ``start`` (None for an uninitialized object) the default
        transition of each state is taken until a state enabling ``wanted``
        is reached.

        Returns
        -------
        list[int] | None
            Transition indices to take in order, or None if a dead end, a
            revisited state or a default that is not enabled is hit first
        """
        path: list[int] = []
        visited: set[int] = set()
        state = start
        if state is not None:
            visited.add(state)

        while True:
            transition = self.default_from(state)
            if transition is None or transition not in self.enabled(state):
                return None
            path.append(transition)
            state = self.targets[transition]

            enabled = self.outgoing[state]
            if not enabled:
                return None
            if wanted in enabled:
                return path
            if state in visited:
                return None
            visited.add(state)
