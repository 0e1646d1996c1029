"""Tests for StateMachineBuilder declarations and validation."""

from __future__ import annotations

import pytest

from statewright.kernel.exceptions import DuplicateTransitionError, MalformedStateMachineError
from statewright.kernel.machine.builder import StateMachineBuilder
from statewright.kernel.resolver import ComponentRegistry
from statewright.stdlib.selectors import DefaultTransitionSelector, PropertyMatchSelector


def _builder(registry: ComponentRegistry | None = None) -> StateMachineBuilder:
    builder = StateMachineBuilder().with_name("machine")
    if registry is not None:
        builder.with_registry(registry)
    return builder


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------


class TestWithTransition:
    def test_issue_tracker_structure(self, issue_tracker) -> None:
        assert issue_tracker.name == "issue-tracker"
        assert issue_tracker.description == "Tracks tickets"
        assert issue_tracker.initial_transition == "submit"
        assert issue_tracker.initial_transitions == ["submit"]
        assert issue_tracker.initial_state == "submitted"
        assert issue_tracker.valid_transitions == {
            "submitted": ["open"],
            "opened": ["resolve", "resubmit"],
            "resolved": ["close", "reject"],
        }
        assert issue_tracker.default_transitions == {
            "submitted": "open",
            "opened": "resolve",
            "resolved": "close",
        }
        assert issue_tracker.end_states == ["closed"]

    def test_names_are_canonicalized(self) -> None:
        machine = (
            _builder()
            .with_transition("File Ticket", to_state="New Ticket", to_state_description="Fresh")
            .with_transition("Start Work", from_states=["new ticket"], to_state="In Progress")
            .create()
        )
        assert machine.transition_names == {"fileticket": "File Ticket", "startwork": "Start Work"}
        assert machine.state_names == {"newticket": "New Ticket", "inprogress": "In Progress"}
        assert machine.state_descriptions == {"newticket": "Fresh"}
        assert machine.valid_transitions == {"newticket": ["startwork"]}

    def test_first_state_description_wins(self) -> None:
        machine = (
            _builder()
            .with_transition("a", to_state="x", to_state_description="first")
            .with_transition("b", to_state="y")
            .with_transition("c", from_states="y", to_state="x", to_state_description="second")
            .create()
        )
        assert machine.state_descriptions == {"x": "first"}

    def test_first_entry_transition_is_default(self) -> None:
        machine = (
            _builder()
            .with_transition("create", to_state="draft")
            .with_transition("import", to_state="imported")
            .create()
        )
        assert machine.initial_transition == "create"
        assert machine.initial_transitions == ["create", "import"]

    def test_blank_source_marks_entry(self) -> None:
        machine = _builder().with_transition("create", from_states=[" "], to_state="x").create()
        assert machine.initial_transitions == ["create"]

    def test_conditions_are_kept(self) -> None:
        machine = (
            _builder()
            .with_transition("submit", to_state="new")
            .with_transition("close", from_states="new", to_state="closed")
            .with_transition("escalate", from_states="new", to_state="urgent", conditions={"p": 1})
            .with_transition("finish", from_states="urgent", to_state="closed")
            .create()
        )
        assert machine.get_transition_properties("escalate") == {"p": 1}
        assert machine.get_transition_properties("close") == {}

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(MalformedStateMachineError, match="transition name cannot be empty"):
            _builder().with_transition("  ", to_state="x")

    def test_empty_target_rejected(self) -> None:
        with pytest.raises(MalformedStateMachineError, match="target state cannot be empty"):
            _builder().with_transition("go", to_state="")

    def test_duplicate_after_canonicalization(self) -> None:
        builder = _builder().with_transition("Open Ticket", to_state="opened")
        with pytest.raises(DuplicateTransitionError, match="'open-ticket'.*'Open Ticket'"):
            builder.with_transition("open-ticket", from_states="opened", to_state="closed")

    def test_empty_machine_name_rejected(self) -> None:
        with pytest.raises(MalformedStateMachineError, match="name cannot be empty"):
            StateMachineBuilder().with_name("   ")


class TestWithTransitions:
    def test_records(self, issue_tracker) -> None:
        assert sorted(issue_tracker.state_names) == ["closed", "opened", "resolved", "submitted"]

    def test_record_triggers(self, registry: ComponentRegistry, make_recorder) -> None:
        registry.register_trigger("audit", make_recorder)
        machine = (
            _builder(registry)
            .with_transitions([
                {"name": "submit", "to": "new", "pre-trigger": "audit"},
                {"name": "close", "from": ["new"], "to": "closed", "post-trigger": "log"},
            ])
            .create()
        )
        graph = machine.as_graph()
        assert graph["preTriggers"] == {"submit": "audit"}
        assert graph["postTriggers"] == {"close": "log"}

    def test_malformed_record(self) -> None:
        with pytest.raises(MalformedStateMachineError, match="invalid transition record #1"):
            _builder().with_transitions([{"name": "a", "to": "x"}, {"name": "b"}])


class TestWithoutTransition:
    def _builder(self) -> StateMachineBuilder:
        return (
            _builder()
            .with_transition("submit", to_state="new")
            .with_transition("fast-track", from_states="new", to_state="archived")
            .with_transition("approve", from_states="new", to_state="approved")
            .with_transition("archive", from_states="approved", to_state="archived")
        )

    def test_removing_default_promotes_next(self) -> None:
        machine = self._builder().without_transition("Fast Track").create()
        assert machine.default_transitions["new"] == "approve"
        assert "fasttrack" not in machine.transition_names

    def test_orphaned_target_state_fails_validation(self) -> None:
        builder = (
            self._builder()
            .with_transition("reject", from_states="new", to_state="rejected")
            .without_transition("reject")
        )
        with pytest.raises(MalformedStateMachineError, match="reachable.*rejected"):
            builder.create()

    def test_removing_only_transition_makes_end_state(self) -> None:
        machine = (
            _builder()
            .with_transition("submit", to_state="new")
            .with_transition("close", from_states="new", to_state="closed")
            .without_transition("close")
            .with_transition("finish", from_states="new", to_state="closed")
            .create()
        )
        assert machine.valid_transitions == {"new": ["finish"]}
        assert machine.default_transitions == {"new": "finish"}

    def test_removing_initial_transition(self) -> None:
        machine = (
            _builder()
            .with_transition("create", to_state="draft")
            .with_transition("import", to_state="draft-copy")
            .with_transition("publish", from_states=["draft", "draft-copy"], to_state="done")
            .without_transition("create")
            .with_transition("create", to_state="draft")
            .create()
        )
        assert machine.initial_transition == "import"
        assert machine.initial_transitions == ["import", "create"]

    def test_empty_name(self) -> None:
        with pytest.raises(MalformedStateMachineError, match="must provide transition name"):
            self._builder().without_transition(" ")

    def test_unknown_name(self) -> None:
        with pytest.raises(MalformedStateMachineError, match="invalid transition: teleport"):
            self._builder().without_transition(" teleport ")

    def test_without_transitions_clears_everything(self) -> None:
        builder = self._builder().without_transitions()
        with pytest.raises(MalformedStateMachineError, match="must have an initial transition"):
            builder.create()


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


class TestCreateValidation:
    def test_name_required(self) -> None:
        builder = StateMachineBuilder().with_transition("go", to_state="done")
        with pytest.raises(MalformedStateMachineError, match="named object must have a name"):
            builder.create()

    def test_initial_transition_required(self) -> None:
        with pytest.raises(MalformedStateMachineError, match="must have an initial transition"):
            _builder().create()

    def test_unreachable_state(self) -> None:
        builder = (
            _builder()
            .with_transition("submit", to_state="new")
            .with_transition("orphan", from_states="limbo", to_state="new")
        )
        with pytest.raises(MalformedStateMachineError, match="should be reachable"):
            builder.create()

    def test_no_end_state(self) -> None:
        builder = (
            _builder()
            .with_transition("submit", to_state="a")
            .with_transition("go", from_states="a", to_state="b")
            .with_transition("back", from_states="b", to_state="a")
        )
        with pytest.raises(MalformedStateMachineError, match="at least one end state"):
            builder.create()

    def test_duplicate_destinations(self) -> None:
        builder = (
            _builder()
            .with_transition("submit", to_state="new")
            .with_transition("accept", from_states="new", to_state="done")
            .with_transition("approve", from_states="new", to_state="done")
        )
        with pytest.raises(
            MalformedStateMachineError,
            match="valid transitions from 'new' cannot have the same target 'done' state",
        ):
            builder.create()

    def test_duplicate_entry_destinations(self) -> None:
        builder = (
            _builder()
            .with_transition("create", to_state="draft")
            .with_transition("import", to_state="draft")
        )
        with pytest.raises(MalformedStateMachineError, match="state machine entry points"):
            builder.create()

    def test_default_path_must_terminate(self) -> None:
        builder = (
            _builder()
            .with_transition("submit", to_state="submitted")
            .with_transition("open", from_states="submitted", to_state="opened")
            .with_transition("resubmit", from_states="opened", to_state="submitted")
            .with_transition("resolve", from_states="opened", to_state="resolved")
        )
        with pytest.raises(MalformedStateMachineError, match="should lead to end state"):
            builder.create()

    def test_unknown_selector(self, issue_tracker_builder: StateMachineBuilder) -> None:
        issue_tracker_builder.with_transition_selector("coin-flip")
        with pytest.raises(MalformedStateMachineError, match="invalid transition selector"):
            issue_tracker_builder.create()

    def test_selector_without_method(self, issue_tracker_builder: StateMachineBuilder) -> None:
        issue_tracker_builder.with_transition_selector(object())  # type: ignore[arg-type]
        with pytest.raises(MalformedStateMachineError, match="does not implement"):
            issue_tracker_builder.create()

    def test_unknown_trigger(self, registry: ComponentRegistry) -> None:
        builder = (
            _builder(registry)
            .with_transition("submit", to_state="new", post_trigger="page-someone")
            .with_transition("close", from_states="new", to_state="closed")
        )
        with pytest.raises(
            MalformedStateMachineError, match="unable to get trigger for transition 'submit'"
        ) as exc_info:
            builder.create()
        assert exc_info.value.__cause__ is not None

    def test_trigger_factory_failure(self, registry: ComponentRegistry) -> None:
        def broken() -> None:
            raise RuntimeError("no database")

        registry.register_trigger("broken", broken)
        builder = _builder(registry).with_transition("submit", to_state="new", pre_trigger="broken")
        with pytest.raises(MalformedStateMachineError, match="unable to get trigger"):
            builder.create()

    def test_trigger_without_method(self, registry: ComponentRegistry) -> None:
        registry.register_trigger("inert", object)
        builder = _builder(registry).with_transition("submit", to_state="new", pre_trigger="inert")
        with pytest.raises(MalformedStateMachineError, match="unable to get trigger"):
            builder.create()

    def test_builder_is_reusable_after_failure(self) -> None:
        builder = _builder().with_transition("submit", to_state="new")
        builder.with_transition("accept", from_states="new", to_state="done")
        builder.with_transition("approve", from_states="new", to_state="done")
        with pytest.raises(MalformedStateMachineError):
            builder.create()
        machine = builder.without_transition("approve").create()
        assert machine.transition_names == {"submit": "submit", "accept": "accept"}


class TestGraphValidation:
    """Validation of hand-written graphs, which skip the declaration checks."""

    def _graph(self) -> dict:
        return {
            "name": "m",
            "stateNames": {"new": "new", "done": "done"},
            "transitionNames": {"submit": "submit", "finish": "finish"},
            "initialTransition": "submit",
            "initialTransitions": ["submit"],
            "validTransitions": {"new": ["finish"]},
            "defaultTransitions": {"new": "finish"},
            "targetStates": {"submit": "new", "finish": "done"},
            "transitionSelector": "default",
        }

    def test_valid_graph(self) -> None:
        machine = StateMachineBuilder().from_graph(self._graph()).create()
        assert machine.end_states == ["done"]

    def test_initial_transition_must_be_defined(self) -> None:
        graph = self._graph() | {"initialTransition": "ghost"}
        with pytest.raises(MalformedStateMachineError, match="initial transition must be defined"):
            StateMachineBuilder().from_graph(graph).create()

    def test_initial_transition_must_be_an_entry(self) -> None:
        graph = self._graph() | {"initialTransitions": []}
        with pytest.raises(MalformedStateMachineError, match="initial transitions collection"):
            StateMachineBuilder().from_graph(graph).create()

    def test_initial_state_must_be_defined(self) -> None:
        graph = self._graph()
        graph["targetStates"] = {"submit": "nowhere", "finish": "done"}
        with pytest.raises(MalformedStateMachineError, match="initial state must be defined"):
            StateMachineBuilder().from_graph(graph).create()

    def test_dangling_keys_are_reported_together(self) -> None:
        graph = self._graph()
        graph["defaultTransitions"] = {"new": "finish", "ghost-state": "finish"}
        graph["preTriggers"] = {"ghost": "log"}
        with pytest.raises(MalformedStateMachineError) as exc_info:
            StateMachineBuilder().from_graph(graph).create()
        message = str(exc_info.value)
        assert "invalid default transitions. no such states: ['ghost-state']" in message
        assert "invalid pre-triggers. no such transitions: ['ghost']" in message

    def test_transition_without_target(self) -> None:
        graph = self._graph()
        graph["transitionNames"] = graph["transitionNames"] | {"extra": "extra"}
        with pytest.raises(MalformedStateMachineError, match="without target state: \\['extra'\\]"):
            StateMachineBuilder().from_graph(graph).create()

    def test_unused_transition(self) -> None:
        graph = self._graph()
        graph["transitionNames"] = graph["transitionNames"] | {"ghost": "ghost"}
        graph["targetStates"] = graph["targetStates"] | {"ghost": "done"}
        with pytest.raises(MalformedStateMachineError, match="used at least once"):
            StateMachineBuilder().from_graph(graph).create()

    def test_default_on_end_state_is_ignored(self) -> None:
        graph = self._graph()
        graph["stateNames"] = graph["stateNames"] | {"late": "late"}
        graph["transitionNames"] = graph["transitionNames"] | {"delay": "delay"}
        graph["targetStates"] = graph["targetStates"] | {"delay": "late"}
        graph["validTransitions"] = {"new": ["finish", "delay"]}
        graph["defaultTransitions"] = {"new": "finish", "late": "delay"}
        machine = StateMachineBuilder().from_graph(graph).create()
        assert machine.is_end_state("late")

    def test_side_branch_default_must_be_valid(self) -> None:
        """A default off the main default path still has to be enabled in its state."""
        graph = {
            "name": "m",
            "stateNames": {key: key for key in ("a", "b", "c", "d", "e")},
            "transitionNames": {key: key for key in ("start", "x", "y", "w", "z", "v", "q")},
            "initialTransition": "start",
            "initialTransitions": ["start"],
            "validTransitions": {"a": ["x", "w", "z"], "b": ["y"], "d": ["v"], "e": ["q"]},
            "defaultTransitions": {"a": "x", "b": "y", "d": "z", "e": "q"},
            "targetStates": {
                "start": "a",
                "x": "b",
                "y": "c",
                "w": "d",
                "z": "e",
                "v": "c",
                "q": "c",
            },
            "transitionSelector": "default",
        }
        with pytest.raises(
            MalformedStateMachineError,
            match="default transition 'z' must be included in set of valid transitions "
            "for state 'd'",
        ):
            StateMachineBuilder().from_graph(graph).create()

    def test_malformed_graph(self) -> None:
        with pytest.raises(MalformedStateMachineError, match="invalid state machine graph"):
            StateMachineBuilder().from_graph({"stateNames": ["not", "a", "mapping"]})


class TestSelectorResolution:
    def test_default_selector(self, issue_tracker) -> None:
        assert isinstance(issue_tracker.selector, DefaultTransitionSelector)
        assert issue_tracker.selector_id == "default"

    def test_selector_by_identifier(self, issue_tracker_builder: StateMachineBuilder) -> None:
        machine = issue_tracker_builder.with_transition_selector("property-match").create()
        assert isinstance(machine.selector, PropertyMatchSelector)
        assert machine.selector_id == "property-match"

    def test_selector_instance(self, issue_tracker_builder: StateMachineBuilder) -> None:
        selector = PropertyMatchSelector()
        machine = issue_tracker_builder.with_transition_selector(selector).create()
        assert machine.selector is selector
        assert machine.selector_id == "property-match"

    def test_selector_by_class_path(self, issue_tracker_builder: StateMachineBuilder) -> None:
        path = "statewright.stdlib.selectors.PropertyMatchSelector"
        machine = issue_tracker_builder.with_transition_selector(path).create()
        assert isinstance(machine.selector, PropertyMatchSelector)
        assert machine.selector_id == path

    def test_unregistered_local_selector_is_rejected(
        self, issue_tracker_builder: StateMachineBuilder
    ) -> None:
        """A selector class that cannot be imported back by path has no persistable identifier."""

        class LocalSelector(DefaultTransitionSelector):
            pass

        issue_tracker_builder.with_transition_selector(LocalSelector())
        with pytest.raises(MalformedStateMachineError, match="only module-level classes"):
            issue_tracker_builder.create()

    def test_unregistered_local_trigger_is_rejected(self) -> None:
        class LocalTrigger:
            def on_transition(self, transition, obj, *data):
                return None

        builder = _builder().with_transition("submit", to_state="new", pre_trigger=LocalTrigger)
        with pytest.raises(
            MalformedStateMachineError, match="invalid trigger for transition 'submit'"
        ):
            builder.create()
