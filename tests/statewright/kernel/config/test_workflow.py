"""Tests for loading workflow documents and building machines from them."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import pytest

from statewright.kernel.config.workflow import build_machine, load_workflow, workflow_from_data
from statewright.kernel.domain.stateful import StatefulObject
from statewright.kernel.exceptions import ConfigurationError, MalformedStateMachineError
from statewright.stdlib.selectors import PropertyMatchSelector

if TYPE_CHECKING:
    from pathlib import Path

    from statewright.kernel.resolver import ComponentRegistry


class TestWorkflowFromData:
    def test_valid_document(self, issue_tracker_transitions: list[dict[str, Any]]) -> None:
        workflow = workflow_from_data({"name": "t", "transitions": issue_tracker_transitions})
        assert [t.name for t in workflow.transitions][:2] == ["submit", "open"]

    def test_not_a_mapping(self) -> None:
        with pytest.raises(ConfigurationError, match="expected a mapping.*got list"):
            workflow_from_data([], source="flow.yaml")  # type: ignore[arg-type]

    def test_empty_document(self) -> None:
        with pytest.raises(ConfigurationError, match="got NoneType"):
            workflow_from_data(None)

    def test_problems_are_located(self) -> None:
        """Test that validation problems name the offending field."""
        data = {"name": "t", "transitions": [{"name": "a"}]}
        with pytest.raises(ConfigurationError, match="transitions.0.to") as exc_info:
            workflow_from_data(data, source="flow.yaml")
        assert exc_info.value.component == "flow.yaml"


class TestLoadWorkflow:
    def test_yaml(self, workflow_file: Path) -> None:
        workflow = load_workflow(workflow_file)
        assert workflow.name == "issue-tracker"
        assert workflow.description == "Tracks tickets"
        assert len(workflow.transitions) == 6

    def test_json(self, tmp_path: Path, issue_tracker_transitions: list[dict[str, Any]]) -> None:
        path = tmp_path / "flow.JSON"
        path.write_text(json.dumps({"name": "json-flow", "transitions": issue_tracker_transitions}))
        assert load_workflow(str(path)).name == "json-flow"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="workflow file not found"):
            load_workflow(tmp_path / "missing.yaml")

    def test_unsupported_suffix(self, tmp_path: Path) -> None:
        path = tmp_path / "flow.toml"
        path.write_text("name = 'x'")
        with pytest.raises(ConfigurationError, match="unsupported file type"):
            load_workflow(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "flow.yml"
        path.write_text("name: [unclosed")
        with pytest.raises(ConfigurationError, match="invalid YAML"):
            load_workflow(path)

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "flow.json"
        path.write_text("{name: x}")
        with pytest.raises(ConfigurationError, match="invalid JSON"):
            load_workflow(path)


class TestBuildMachine:
    def test_from_path(self, workflow_file: Path, registry: ComponentRegistry) -> None:
        machine = build_machine(workflow_file, registry=registry)
        assert machine.name == "issue-tracker"
        assert machine.registry is registry
        assert machine.end_states == ["closed"]

    def test_selector_and_conditions(self, issue_tracker_transitions: list[dict[str, Any]]) -> None:
        issue_tracker_transitions[3] = issue_tracker_transitions[3] | {"on": {"needs_info": True}}
        workflow = workflow_from_data(
            {"name": "t", "selector": "property-match", "transitions": issue_tracker_transitions}
        )
        machine = build_machine(workflow)
        assert isinstance(machine.selector, PropertyMatchSelector)

        ticket = StatefulObject("bug-1", current_state="opened")
        machine.advance(ticket, {"needs_info": True})
        assert ticket.current_state == "submitted"

    def test_invalid_machine(self, tmp_path: Path) -> None:
        path = tmp_path / "loop.yaml"
        path.write_text(
            "name: loop\n"
            "transitions:\n"
            "  - {name: start, to: a}\n"
            "  - {name: go, from: a, to: b}\n"
            "  - {name: back, from: b, to: a}\n"
        )
        with pytest.raises(MalformedStateMachineError, match="at least one end state"):
            build_machine(path)
