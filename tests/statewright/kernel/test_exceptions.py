"""Tests for the statewright exception hierarchy."""

from __future__ import annotations

import pytest

from statewright.kernel.exceptions import (
    ConfigurationError,
    DuplicateTransitionError,
    MalformedStateMachineError,
    ResolveError,
    StatewrightError,
    StateTransitionError,
    TriggerError,
)


class TestStatewrightError:
    def test_basic_creation(self) -> None:
        error = StatewrightError("Something went wrong")
        assert str(error) == "Something went wrong"
        assert isinstance(error, Exception)

    @pytest.mark.parametrize(
        "error",
        [
            ConfigurationError("workflow", "missing"),
            MalformedStateMachineError("bad"),
            DuplicateTransitionError("a", "A"),
            StateTransitionError("nope"),
            TriggerError("boom"),
            ResolveError("x", "y"),
        ],
    )
    def test_every_error_is_a_statewright_error(self, error: Exception) -> None:
        assert isinstance(error, StatewrightError)


class TestConfigurationError:
    def test_fields_and_message(self) -> None:
        error = ConfigurationError("workflow", "YAML file not found")
        assert error.component == "workflow"
        assert error.reason == "YAML file not found"
        assert str(error) == "Configuration error in 'workflow': YAML file not found"


class TestDuplicateTransitionError:
    def test_is_malformed(self) -> None:
        error = DuplicateTransitionError("open-ticket", "Open Ticket")
        assert isinstance(error, MalformedStateMachineError)
        assert error.name == "open-ticket"
        assert error.existing == "Open Ticket"
        assert str(error) == (
            "duplicate transitions. trying to add 'open-ticket', "
            "but 'Open Ticket' already exists."
        )


class TestStateTransitionError:
    def test_without_causes(self) -> None:
        error = StateTransitionError("not allowed")
        assert error.causes == ()
        assert error.__cause__ is None

    def test_multiple_causes(self) -> None:
        first = ValueError("missing title")
        second = ValueError("missing owner")
        error = StateTransitionError("incomplete", causes=[first, second])
        assert error.causes == (first, second)
        assert error.__cause__ is first

    def test_trigger_error_is_transition_error(self) -> None:
        with pytest.raises(StateTransitionError, match="boom"):
            raise TriggerError("boom")


class TestResolveError:
    def test_message(self) -> None:
        error = ResolveError("myapp.Hook", "Module 'myapp' not found")
        assert error.kind == "myapp.Hook"
        assert error.reason == "Module 'myapp' not found"
        assert str(error) == "Cannot resolve 'myapp.Hook': Module 'myapp' not found"
