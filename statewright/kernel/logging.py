"""Loguru setup shared by the builder, the engine and the CLI.

Every module logs through ``get_logger(__name__)``; messages use loguru's
``{placeholder}`` style with keyword arguments so that the JSON sinks keep
the values as structured fields::

    logger = get_logger(__name__)
    logger.debug("Transition {transition} moved {obj}", transition="open", obj=ticket)

Until :func:`configure_logging` is called, the first ``get_logger`` call
installs a stderr handler using ``STATEWRIGHT_LOG_LEVEL`` and
``STATEWRIGHT_LOG_FORMAT`` (default ``INFO`` / ``structured``).
"""

import os
import sys
from contextlib import suppress
from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from loguru import Logger

from loguru import logger
from rich.logging import RichHandler

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["console", "json", "structured", "rich"]

# settings of the active configuration, None until configured
_ACTIVE: dict[str, Any] | None = None
# handlers added by this module; foreign handlers are left alone
_OWN_HANDLERS: list[int] = []


# ----------------------------------------------------------------------------
# Sinks
# ----------------------------------------------------------------------------


def _structured_sink(include_timestamp: bool, use_color: bool) -> dict[str, Any]:
    colorize = use_color and sys.stderr.isatty()
    when = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> " if include_timestamp else ""
    level = "<level>{level: <8}</level>" if colorize else "{level: <8}"
    return {
        "sink": sys.stderr,
        "format": f"{when}[{level}]<cyan>{{name}}:{{function}}:{{line}}</cyan> | {{message}}",
        "colorize": colorize,
    }


def _console_sink(include_timestamp: bool) -> dict[str, Any]:
    when = "{time:YYYY-MM-DD HH:mm:ss} " if include_timestamp else ""
    return {
        "sink": sys.stderr,
        "format": f"{when}{{level: <8}} | {{name}} | {{message}}",
        "colorize": False,
    }


def _rich_sink(include_timestamp: bool) -> dict[str, Any]:
    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=include_timestamp,
        show_level=True,
        show_path=True,
    )
    return {"sink": handler, "format": "{message}"}


def _stderr_sink(
    format: LogFormat, use_rich: bool, use_color: bool, include_timestamp: bool
) -> dict[str, Any]:
    if use_rich or format == "rich":
        return _rich_sink(include_timestamp)
    if format == "json":
        return {"sink": sys.stderr, "serialize": True}
    if format == "structured":
        return _structured_sink(include_timestamp, use_color)
    return _console_sink(include_timestamp)


def _drop_handlers() -> None:
    for handler_id in _OWN_HANDLERS:
        with suppress(ValueError):
            logger.remove(handler_id)
    _OWN_HANDLERS.clear()


# ----------------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------------


def configure_logging(
    level: LogLevel = "INFO",
    format: LogFormat = "structured",
    output_file: str | Path | None = None,
    use_color: bool = True,
    include_timestamp: bool = True,
    force_reconfigure: bool = False,
    use_rich: bool = False,
    backtrace: bool = True,
    diagnose: bool = True,
) -> None:
    """Install the statewright log handlers.

    Repeated calls with the same settings do nothing unless
    ``force_reconfigure`` is set (the CLI forces it so every invocation
    writes to the current stderr).

    Parameters
    ----------
    level : LogLevel, default="INFO"
        Minimum level written by every handler
    format : LogFormat, default="structured"
        ``console`` (plain), ``json`` (one serialized record per line),
        ``structured`` (coloured on a TTY) or ``rich``
    output_file : str | Path | None
        Extra JSON-lines file, rotated at 10 MB and kept for a week
    use_color : bool, default=True
        Colour the structured format when stderr is a TTY
    include_timestamp : bool, default=True
        Prefix console lines with the time
    force_reconfigure : bool, default=False
        Reinstall handlers even when the settings are unchanged
    use_rich : bool, default=False
        Use the rich handler whatever ``format`` says
    backtrace, diagnose : bool, default=True
        Passed to loguru; disable ``diagnose`` in production
    """
    global _ACTIVE

    settings: dict[str, Any] = {
        "level": level,
        "format": format,
        "output_file": str(output_file) if output_file else None,
        "use_color": use_color,
        "include_timestamp": include_timestamp,
        "use_rich": use_rich,
        "backtrace": backtrace,
        "diagnose": diagnose,
    }
    if settings == _ACTIVE and not force_reconfigure:
        return

    _drop_handlers()
    # loguru ships with a default stderr handler (id 0)
    with suppress(ValueError):
        logger.remove(0)

    common = {"level": level, "backtrace": backtrace, "diagnose": diagnose}
    sink = _stderr_sink(format, use_rich, use_color, include_timestamp)
    _OWN_HANDLERS.append(logger.add(**sink, **common))

    if output_file:
        path = Path(output_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        _OWN_HANDLERS.append(
            logger.add(path, serialize=True, rotation="10 MB", retention="1 week", **common)
        )

    _ACTIVE = settings


@lru_cache(maxsize=256)
def get_logger(name: str) -> "Logger":
    """Return the shared logger bound to ``name`` (usually ``__name__``)."""
    if _ACTIVE is None:
        level = os.getenv("STATEWRIGHT_LOG_LEVEL", "INFO").upper()
        format_type = os.getenv("STATEWRIGHT_LOG_FORMAT", "structured").lower()
        configure_logging(level=level, format=format_type)  # type: ignore[arg-type]
    return logger.bind(module=name)


def reset_logging() -> None:
    """Remove statewright's handlers and forget the active settings (for tests)."""
    global _ACTIVE
    _drop_handlers()
    _ACTIVE = None
