"""Workflow document models.

Two shapes of input are accepted by the builder:

- a **workflow definition**: an ordered list of transition records, as
  written by hand in YAML or JSON;
- a **machine graph**: the serialized output of
  :meth:`StateMachine.as_graph`, keyed by canonical state and transition keys.

Example workflow definition::

    name: issue-tracker
    transitions:
      - name: submit
        from: []
        to: {name: submitted}
      - name: open
        from: [submitted]
        to: opened
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TransitionTargetConfig(BaseModel):
    """Target state of a transition record."""

    model_config = ConfigDict(extra="forbid")

    name: str = Field(description="Display name of the target state")
    description: str | None = Field(default=None, description="Target state description")


class TransitionConfig(BaseModel):
    """A single declarative transition record."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str = Field(description="Display name of the transition")
    description: str | None = Field(default=None)
    from_states: list[str] = Field(
        default_factory=list,
        alias="from",
        description="Source state names; empty marks an entry transition",
    )
    to: TransitionTargetConfig
    on: dict[str, Any] = Field(
        default_factory=dict, description="Condition properties read by selectors"
    )
    pre_trigger: str | None = Field(default=None, alias="pre-trigger")
    post_trigger: str | None = Field(default=None, alias="post-trigger")

    @field_validator("from_states", mode="before")
    @classmethod
    def _coerce_from_states(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("to", mode="before")
    @classmethod
    def _coerce_target(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"name": value}
        return value

    @field_validator("on", mode="before")
    @classmethod
    def _coerce_conditions(cls, value: Any) -> Any:
        return {} if value is None else value


class WorkflowConfig(BaseModel):
    """A named workflow made of transition records."""

    model_config = ConfigDict(extra="forbid")

    name: str
    description: str | None = None
    selector: str | None = Field(default=None, description="Transition selector identifier")
    transitions: list[TransitionConfig] = Field(default_factory=list)


class MachineGraph(BaseModel):
    """Serialized state machine, as produced by ``StateMachine.as_graph()``."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    name: str | None = None
    description: str | None = None
    state_names: dict[str, str] = Field(default_factory=dict, alias="stateNames")
    state_descriptions: dict[str, str] = Field(default_factory=dict, alias="stateDescriptions")
    transition_names: dict[str, str] = Field(default_factory=dict, alias="transitionNames")
    transition_descriptions: dict[str, str] = Field(
        default_factory=dict, alias="transitionDescriptions"
    )
    transition_properties: dict[str, dict[str, Any]] = Field(
        default_factory=dict, alias="transitionProperties"
    )
    initial_transition: str | None = Field(default=None, alias="initialTransition")
    initial_transitions: list[str] = Field(default_factory=list, alias="initialTransitions")
    valid_transitions: dict[str, list[str]] = Field(
        default_factory=dict, alias="validTransitions"
    )
    default_transitions: dict[str, str] = Field(default_factory=dict, alias="defaultTransitions")
    target_states: dict[str, str] = Field(default_factory=dict, alias="targetStates")
    transition_selector: str | None = Field(default=None, alias="transitionSelector")
    pre_triggers: dict[str, str] = Field(default_factory=dict, alias="preTriggers")
    post_triggers: dict[str, str] = Field(default_factory=dict, alias="postTriggers")
