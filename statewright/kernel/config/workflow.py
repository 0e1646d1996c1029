"""Loading workflow documents and building machines from them.

Workflow documents are YAML (``.yaml``/``.yml``) or JSON (``.json``) files
holding a :class:`~statewright.kernel.domain.workflow.WorkflowConfig`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING, Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from statewright.kernel.domain.workflow import WorkflowConfig
from statewright.kernel.exceptions import ConfigurationError
from statewright.kernel.logging import get_logger
from statewright.kernel.machine.builder import StateMachineBuilder

if TYPE_CHECKING:
    from collections.abc import Mapping

    from statewright.kernel.machine.machine import StateMachine
    from statewright.kernel.resolver import ComponentRegistry

logger = get_logger(__name__)

_YAML_SUFFIXES = frozenset({".yaml", ".yml"})


def workflow_from_data(data: Mapping[str, Any] | None, source: str = "workflow") -> WorkflowConfig:
    """Validate raw document data as a workflow.

    Parameters
    ----------
    data : Mapping[str, Any] | None
        Parsed document
    source : str
        Label used in error messages (usually the file name)

    Raises
    ------
    ConfigurationError
        If the data is not a mapping or does not describe a workflow
    """
    if not isinstance(data, dict):
        raise ConfigurationError(
            source, f"expected a mapping at the top level, got {type(data).__name__}"
        )
    try:
        return WorkflowConfig.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(source, problems) from e


def load_workflow(path: str | Path) -> WorkflowConfig:
    """Read and validate a workflow document.

    Examples
    --------
    Example usage::

        workflow = load_workflow("workflows/issue_tracker.yaml")
        machine = build_machine(workflow)

    Raises
    ------
    ConfigurationError
        If the file is missing, cannot be parsed, or is not a workflow
    """
    workflow_path = Path(path)
    if not workflow_path.is_file():
        raise ConfigurationError(str(workflow_path), "workflow file not found")

    logger.debug("Loading workflow from {path}", path=workflow_path)
    text = workflow_path.read_text(encoding="utf-8")
    try:
        if workflow_path.suffix.lower() in _YAML_SUFFIXES:
            data = yaml.safe_load(text)
        elif workflow_path.suffix.lower() == ".json":
            data = json.loads(text)
        else:
            raise ConfigurationError(
                str(workflow_path), "unsupported file type, expected .yaml, .yml or .json"
            )
    except yaml.YAMLError as e:
        raise ConfigurationError(str(workflow_path), f"invalid YAML: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(str(workflow_path), f"invalid JSON: {e}") from e

    return workflow_from_data(data, source=workflow_path.name)


def build_machine(
    workflow: WorkflowConfig | str | Path, registry: ComponentRegistry | None = None
) -> StateMachine:
    """Build a state machine from a workflow (or a path to one).

    Raises
    ------
    ConfigurationError
        If a path is given and the document cannot be loaded
    MalformedStateMachineError
        If the workflow does not describe a valid machine
    """
    if not isinstance(workflow, WorkflowConfig):
        workflow = load_workflow(workflow)

    builder = (
        StateMachineBuilder()
        .with_name(workflow.name)
        .with_description(workflow.description)
        .with_transition_selector(workflow.selector)
        .with_transitions(workflow.transitions)
    )
    if registry is not None:
        builder.with_registry(registry)
    return builder.create()
