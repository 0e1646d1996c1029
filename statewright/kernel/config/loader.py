"""Configuration loader for statewright.

Settings live in ``[tool.statewright]`` of a ``pyproject.toml`` or in a
standalone TOML file. Discovery order:

1. explicit path argument;
2. ``STATEWRIGHT_CONFIG_PATH`` environment variable;
3. ``pyproject.toml`` in the current directory;
4. ``pyproject.toml`` with a ``[tool.statewright]`` table in a parent directory.

``${VAR}`` placeholders in string values are replaced from the environment,
and ``STATEWRIGHT_LOG_*`` variables override the logging table.
"""

from __future__ import annotations

import os
import re
import tomllib
from collections.abc import Callable
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any

from statewright.kernel.config.models import LoggingConfig, StatewrightConfig
from statewright.kernel.exceptions import ConfigurationError, ResolveError
from statewright.kernel.logging import configure_logging, get_logger
from statewright.kernel.resolver import ComponentKind, default_registry, resolve

if TYPE_CHECKING:
    from statewright.kernel.resolver import ComponentRegistry

_TRUTHY_VALUES = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSY_VALUES = frozenset({"false", "0", "no", "off", "disabled"})

_LOG_LEVELS = frozenset({"TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_LOG_FORMATS = frozenset({"console", "json", "structured", "rich"})

logger = get_logger(__name__)


def _parse_bool_env(value: str) -> bool:
    """Parse boolean from environment variable value.

    Raises
    ------
    ValueError
        If value is not a recognized boolean string
    """
    normalized = value.lower().strip()
    if normalized in _TRUTHY_VALUES:
        return True
    if normalized in _FALSY_VALUES:
        return False
    expected = sorted(_TRUTHY_VALUES | _FALSY_VALUES)
    raise ValueError(f"Invalid boolean value: {value!r}. Expected one of: {expected}")


# logging field -> (environment variable, parser)
_LOG_ENV_OVERRIDES: dict[str, tuple[str, Callable[[str], Any]]] = {
    "level": ("STATEWRIGHT_LOG_LEVEL", str.upper),
    "format": ("STATEWRIGHT_LOG_FORMAT", str.lower),
    "output_file": ("STATEWRIGHT_LOG_FILE", str),
    "use_color": ("STATEWRIGHT_LOG_COLOR", _parse_bool_env),
    "use_rich": ("STATEWRIGHT_LOG_RICH", _parse_bool_env),
}


def _env_value_or_placeholder(match: re.Match[str]) -> str:
    name = match.group(1)
    value = os.environ.get(name)
    if value is None:
        logger.debug("${{{name}}} is not set, placeholder kept", name=name)
        return match.group(0)
    return value


def _declares_statewright(pyproject: Path) -> bool:
    with pyproject.open("rb") as f:
        data = tomllib.load(f)
    return "statewright" in data.get("tool", {})


class ConfigLoader:
    """Loads and processes statewright configuration files."""

    ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

    def load_config_file(self, path: str | Path | None = None) -> StatewrightConfig:
        """Load configuration from a TOML file.

        Parameters
        ----------
        path : str | Path | None
            Path to config file. If None, searches using discovery order.

        Returns
        -------
        StatewrightConfig
            Parsed configuration with environment variables substituted

        Raises
        ------
        FileNotFoundError
            If no configuration file is found
        ConfigurationError
            If the file is not valid TOML or has invalid values
        """
        config_path = self._find_config_file(path)
        return _load_and_parse_cached(str(config_path.absolute()))

    def _load_and_parse(self, config_path: Path) -> StatewrightConfig:
        logger.info("Loading configuration from {path}", path=config_path)

        try:
            with config_path.open("rb") as f:
                data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(str(config_path), f"invalid TOML: {e}") from e

        tool_data = data.get("tool", {}).get("statewright")
        if tool_data is None:
            if config_path.name == "pyproject.toml":
                logger.warning(
                    "No [tool.statewright] section found in pyproject.toml, using defaults"
                )
                return get_default_config()
            # standalone file without a tool table is flat
            tool_data = data

        return self._parse_config(self._substitute_env_vars(tool_data))

    def _find_config_file(self, path: str | Path | None) -> Path:
        """Resolve the file to read, following the discovery order above.

        Raises
        ------
        FileNotFoundError
            If an explicit path is missing or discovery finds nothing
        """
        if path:
            explicit = Path(path)
            if explicit.exists():
                return explicit
            raise FileNotFoundError(f"Configuration file not found: {explicit}")

        from_env = self._env_config_path()
        if from_env is not None:
            return from_env

        cwd = Path.cwd()
        if (cwd / "pyproject.toml").exists():
            return Path("pyproject.toml")

        for parent in cwd.parents:
            candidate = parent / "pyproject.toml"
            if candidate.exists() and _declares_statewright(candidate):
                return candidate

        raise FileNotFoundError(
            "No configuration file found. Provide a TOML path, set STATEWRIGHT_CONFIG_PATH, "
            "or add [tool.statewright] to pyproject.toml"
        )

    @staticmethod
    def _env_config_path() -> Path | None:
        raw = os.getenv("STATEWRIGHT_CONFIG_PATH")
        if not raw:
            return None
        candidate = Path(raw)
        if not candidate.exists():
            logger.warning(
                "STATEWRIGHT_CONFIG_PATH points at a missing file: {path}", path=candidate
            )
            return None
        logger.debug("Config path taken from STATEWRIGHT_CONFIG_PATH: {path}", path=candidate)
        return candidate

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively replace ``${VAR}`` placeholders; unknown variables are kept."""
        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}
        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]
        if not isinstance(data, str):
            return data
        return self.ENV_VAR_PATTERN.sub(_env_value_or_placeholder, data)

    def _parse_config(self, data: dict[str, Any]) -> StatewrightConfig:
        """Parse configuration data into StatewrightConfig.

        Raises
        ------
        ConfigurationError
            If a section has the wrong type
        """
        workflow_paths = data.get("workflow_paths", [])
        if not isinstance(workflow_paths, list):
            raise ConfigurationError("workflow_paths", "must be a list of paths")

        sections: dict[str, dict[str, str]] = {}
        for section in ("triggers", "selectors"):
            entries = data.get(section, {})
            if not isinstance(entries, dict):
                raise ConfigurationError(section, "must be a table of identifier = class path")
            sections[section] = {str(k): str(v) for k, v in entries.items()}
            logger.debug("Loaded {count} {section}", count=len(entries), section=section)

        dev_mode = bool(data.get("dev_mode", False))
        return StatewrightConfig(
            workflow_paths=[str(p) for p in workflow_paths],
            triggers=sections["triggers"],
            selectors=sections["selectors"],
            dev_mode=dev_mode,
            logging=self._parse_logging_config(data.get("logging", {}), dev_mode),
            settings=dict(data.get("settings", {})),
        )

    def _parse_logging_config(self, logging_data: dict[str, Any], dev_mode: bool) -> LoggingConfig:
        """Parse logging configuration with environment variable overrides.

        Environment variables take precedence over config file values:
        - STATEWRIGHT_LOG_LEVEL: Log level
        - STATEWRIGHT_LOG_FORMAT: Output format (console, json, structured, rich)
        - STATEWRIGHT_LOG_FILE: Optional file path for log output
        - STATEWRIGHT_LOG_COLOR: Use color output (true/false)
        - STATEWRIGHT_LOG_RICH: Use Rich for console output (true/false)

        Raises
        ------
        ConfigurationError
            If the level or format is not recognized
        """
        defaults = LoggingConfig(level="DEBUG" if dev_mode else "INFO")
        values: dict[str, Any] = {
            name: logging_data.get(name, getattr(defaults, name))
            for name in LoggingConfig.__dataclass_fields__
        }
        values["level"] = str(values["level"]).upper()
        values["format"] = str(values["format"]).lower()

        for field_name, (env_var, parse) in _LOG_ENV_OVERRIDES.items():
            raw = os.getenv(env_var)
            if not raw:
                continue
            try:
                values[field_name] = parse(raw)
            except ValueError as e:
                logger.warning("Ignoring {env_var}: {error}", env_var=env_var, error=e)
                continue
            logger.debug("{env_var} overrides logging.{field}", env_var=env_var, field=field_name)

        if values["level"] not in _LOG_LEVELS:
            raise ConfigurationError("logging", f"unknown level {values['level']!r}")
        if values["format"] not in _LOG_FORMATS:
            raise ConfigurationError("logging", f"unknown format {values['format']!r}")

        for flag in ("use_color", "include_timestamp", "use_rich", "backtrace", "diagnose"):
            values[flag] = bool(values[flag])
        return LoggingConfig(**values)


@lru_cache(maxsize=32)
def _load_and_parse_cached(path_str: str) -> StatewrightConfig:
    return ConfigLoader()._load_and_parse(Path(path_str))


def load_config(path: str | Path | None = None) -> StatewrightConfig:
    """Load the configuration at ``path``, or discover one.

    A missing explicit ``path`` is an error; when discovery finds no file
    the defaults are returned instead.
    """
    loader = ConfigLoader()
    if path:
        return loader.load_config_file(path)
    try:
        return loader.load_config_file()
    except FileNotFoundError:
        logger.info("No statewright configuration found, running with defaults")
        return get_default_config()


def clear_config_cache() -> None:
    """Forget parsed files so the next load re-reads them."""
    _load_and_parse_cached.cache_clear()


def get_default_config() -> StatewrightConfig:
    return StatewrightConfig()


def apply_config(
    config: StatewrightConfig, registry: ComponentRegistry | None = None
) -> ComponentRegistry:
    """Configure logging and register the configured triggers and selectors.

    Parameters
    ----------
    config : StatewrightConfig
        Loaded configuration
    registry : ComponentRegistry | None
        Registry to populate; the default registry when None

    Returns
    -------
    ComponentRegistry
        The populated registry

    Raises
    ------
    ConfigurationError
        If a configured class path cannot be imported
    """
    registry = registry if registry is not None else default_registry

    log = config.logging
    configure_logging(
        level=log.level,
        format=log.format,
        output_file=log.output_file,
        use_color=log.use_color,
        include_timestamp=log.include_timestamp,
        use_rich=log.use_rich,
        backtrace=log.backtrace,
        diagnose=log.diagnose,
    )

    for kind, entries in (
        (ComponentKind.TRIGGER, config.triggers),
        (ComponentKind.SELECTOR, config.selectors),
    ):
        for identifier, path in entries.items():
            try:
                registry.register(kind, identifier, resolve(path))
            except ResolveError as e:
                raise ConfigurationError(f"{kind}s", str(e)) from e
            logger.debug(
                "Registered {kind} {identifier} -> {path}",
                kind=kind,
                identifier=identifier,
                path=path,
            )

    return registry
