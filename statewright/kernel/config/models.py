"""Configuration data models for statewright."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from statewright.kernel.exceptions import ConfigurationError


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """The ``[tool.statewright.logging]`` table, as passed to ``configure_logging``.

    ``level`` defaults to DEBUG instead of INFO when ``dev_mode`` is on.
    ``STATEWRIGHT_LOG_LEVEL``, ``_FORMAT``, ``_FILE``, ``_COLOR`` and ``_RICH``
    override the table.

    Examples
    --------
    ```toml
    [tool.statewright.logging]
    level = "DEBUG"
    format = "json"
    output_file = "logs/transitions.jsonl"
    ```
    """

    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "structured", "rich"] = "structured"
    output_file: str | None = None
    use_color: bool = True
    include_timestamp: bool = True
    use_rich: bool = False
    backtrace: bool = True
    diagnose: bool = True


@dataclass(slots=True)
class StatewrightConfig:
    """Complete statewright configuration.

    Attributes
    ----------
    workflow_paths : list[str]
        Workflow documents (YAML or JSON) the application loads at startup
    triggers : dict[str, str]
        Trigger identifier -> ``module.path.ClassName``
    selectors : dict[str, str]
        Selector identifier -> ``module.path.ClassName``
    dev_mode : bool
        Enable development mode (debug logging by default)
    logging : LoggingConfig
        Logging configuration
    settings : dict[str, object]
        Additional application settings, passed through untouched

    Examples
    --------
    TOML configuration in pyproject.toml:

    ```toml
    [tool.statewright]
    workflow_paths = ["workflows/issue_tracker.yaml"]

    [tool.statewright.triggers]
    notify-owner = "myapp.hooks.NotifyOwner"

    [tool.statewright.selectors]
    by-severity = "myapp.routing.SeveritySelector"
    ```
    """

    workflow_paths: list[str] = field(default_factory=list)
    triggers: dict[str, str] = field(default_factory=dict)
    selectors: dict[str, str] = field(default_factory=dict)
    dev_mode: bool = False
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    settings: dict[str, object] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate registry entries.

        Raises
        ------
        ConfigurationError
            If an identifier is empty or a class path is not dotted
        """
        for section, entries in (("triggers", self.triggers), ("selectors", self.selectors)):
            for identifier, path in entries.items():
                if not identifier.strip():
                    raise ConfigurationError(section, "identifier cannot be empty")
                if "." not in path:
                    raise ConfigurationError(
                        section, f"'{identifier}' must map to a full module path, got {path!r}"
                    )
