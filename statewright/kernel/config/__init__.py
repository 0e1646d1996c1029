"""Configuration loading and management for statewright."""

from statewright.kernel.config.loader import (
    ConfigLoader,
    apply_config,
    clear_config_cache,
    get_default_config,
    load_config,
)
from statewright.kernel.config.models import LoggingConfig, StatewrightConfig
from statewright.kernel.config.workflow import build_machine, load_workflow, workflow_from_data

__all__ = [
    "ConfigLoader",
    "LoggingConfig",
    "StatewrightConfig",
    "apply_config",
    "build_machine",
    "clear_config_cache",
    "get_default_config",
    "load_config",
    "load_workflow",
    "workflow_from_data",
]
