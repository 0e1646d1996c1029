"""Shared fixtures for statewright tests.

- registry: a fresh component registry with the built-ins
- recorder / make_recorder: recording trigger doubles
- issue_tracker_builder / issue_tracker: the issue tracker workflow
- workflow_file: the issue tracker as a YAML document on disk
"""

from __future__ import annotations

from typing import Any

import pytest
import yaml

from statewright.kernel.machine.builder import StateMachineBuilder
from statewright.kernel.resolver import ComponentRegistry

ISSUE_TRACKER_TRANSITIONS: list[dict[str, Any]] = [
    {"name": "submit", "from": [], "to": {"name": "submitted"}},
    {"name": "open", "from": ["submitted"], "to": {"name": "opened"}},
    {"name": "resolve", "from": ["opened"], "to": {"name": "resolved"}},
    {"name": "resubmit", "from": ["opened"], "to": {"name": "submitted"}},
    {"name": "close", "from": ["resolved"], "to": {"name": "closed"}},
    {"name": "reject", "from": ["resolved"], "to": {"name": "opened"}},
]


class RecordingTrigger:
    """Trigger that records each call and returns a configurable result."""

    def __init__(self, result: Any = None) -> None:
        self.result = result
        self.calls: list[tuple[str, Any, tuple[Any, ...]]] = []

    def on_transition(self, transition: str, obj: Any, *data: Any) -> Any:
        self.calls.append((transition, obj.current_state, data))
        return self.result


@pytest.fixture
def registry() -> ComponentRegistry:
    return ComponentRegistry()


@pytest.fixture
def recorder() -> RecordingTrigger:
    return RecordingTrigger()


@pytest.fixture
def make_recorder() -> type[RecordingTrigger]:
    return RecordingTrigger


@pytest.fixture
def issue_tracker_transitions() -> list[dict[str, Any]]:
    return [dict(record) for record in ISSUE_TRACKER_TRANSITIONS]


@pytest.fixture
def issue_tracker_builder(
    registry: ComponentRegistry, issue_tracker_transitions: list[dict[str, Any]]
) -> StateMachineBuilder:
    return (
        StateMachineBuilder()
        .with_name("issue-tracker")
        .with_description("Tracks tickets")
        .with_registry(registry)
        .with_transitions(issue_tracker_transitions)
    )


@pytest.fixture
def issue_tracker(issue_tracker_builder: StateMachineBuilder):
    return issue_tracker_builder.create()


@pytest.fixture
def workflow_file(tmp_path, issue_tracker_transitions):
    path = tmp_path / "issue_tracker.yaml"
    document = {
        "name": "issue-tracker",
        "description": "Tracks tickets",
        "transitions": issue_tracker_transitions,
    }
    path.write_text(yaml.safe_dump(document, sort_keys=False), encoding="utf-8")
    return path
