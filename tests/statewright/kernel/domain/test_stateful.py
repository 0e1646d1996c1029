"""Tests for stateful objects and the engine-only state handle."""

from __future__ import annotations

from datetime import datetime

import pytest

from statewright.kernel.domain.stateful import StatefulObject, StateHandle, SupportsState


class ChangeRequest(StatefulObject):
    pass


class Document:
    """Application type satisfying the protocol without the base class."""

    def __init__(self) -> None:
        self._state: str | None = None

    @property
    def current_state(self) -> str | None:
        return self._state

    def _set_current_state(self, state: str | None) -> None:
        self._state = state


class TestStatefulObject:
    def test_fresh_object_has_no_state(self) -> None:
        obj = StatefulObject("  Bug 1 ")
        assert obj.name == "Bug 1"
        assert obj.identifier == "bug"
        assert obj.current_state is None
        assert isinstance(obj.updated_on, datetime)

    def test_initial_state(self) -> None:
        assert StatefulObject("bug", current_state="opened").current_state == "opened"

    @pytest.mark.parametrize("name", ["", "   "])
    def test_name_required(self, name: str) -> None:
        with pytest.raises(ValueError, match="name"):
            StatefulObject(name)

    def test_current_state_is_read_only(self) -> None:
        obj = StatefulObject("bug")
        with pytest.raises(AttributeError):
            obj.current_state = "opened"  # type: ignore[misc]

    def test_equality_by_identifier_and_type(self) -> None:
        assert StatefulObject("Bug") == StatefulObject("bug")
        assert hash(StatefulObject("Bug")) == hash(StatefulObject("bug"))
        assert StatefulObject("bug") != StatefulObject("feature")
        assert ChangeRequest("bug") != StatefulObject("bug")
        assert StatefulObject("bug") != "bug"

    def test_repr(self) -> None:
        assert repr(ChangeRequest("bug", "opened")) == "ChangeRequest(name='bug', state='opened')"

    def test_satisfies_protocol(self) -> None:
        assert isinstance(StatefulObject("bug"), SupportsState)
        assert isinstance(Document(), SupportsState)


class TestStateHandle:
    def test_set_updates_state_and_timestamp(self) -> None:
        obj = StatefulObject("bug")
        before = obj.updated_on
        handle = StateHandle(obj)
        handle.set("opened")
        assert handle.get() == "opened"
        assert obj.current_state == "opened"
        assert obj.updated_on >= before

    def test_works_with_protocol_types(self) -> None:
        doc = Document()
        StateHandle(doc).set("draft")
        assert doc.current_state == "draft"
