# src/strata/core/logging.py
"""Logging for strata runs.

structlog renders every event, including events from libraries that use
stdlib logging (Dynaconf, pluggy), through one handler on stderr. stdout
stays free for the JSON lines written by `strata run`.

Events carry pipeline context as key/value pairs:

- run_id: bound for the duration of a run with run_context()
- plugin, node_id: bound per transform with transform_logger()

Raw text tokens can be arbitrarily long (a whole delimited body, a huge
digit string), so string values are shortened to MAX_VALUE_CHARS before
rendering.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog
from structlog.stdlib import ProcessorFormatter

if TYPE_CHECKING:
    from strata.core.config import LoggingSettings
    from strata.plugins.base import BaseTransform

MAX_VALUE_CHARS = 200

# Libraries whose DEBUG output drowns out per-record events
_QUIET_LIBRARIES: tuple[str, ...] = ("dynaconf", "pluggy")


def _shorten_long_values(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key, value in event_dict.items():
        if key != "event" and isinstance(value, str) and len(value) > MAX_VALUE_CHARS:
            event_dict[key] = f"{value[:MAX_VALUE_CHARS]}... ({len(value)} chars)"
    return event_dict


def _drop_formatter_keys(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    event_dict.pop("_record", None)
    event_dict.pop("_from_structlog", None)
    return event_dict


def configure_logging(*, json_output: bool = False, level: str = "INFO") -> None:
    """Route structlog and stdlib logging to stderr.

    Safe to call more than once; the CLI configures early from its flags
    and again once settings are loaded.

    Args:
        json_output: Render JSON lines instead of console output
        level: DEBUG, INFO, WARNING or ERROR (any case)
    """
    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        raise ValueError(f"Unknown log level '{level}'")

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        _shorten_long_values,
    ]
    renderer: Any = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[*pre_chain, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[_drop_formatter_keys, structlog.processors.format_exc_info, renderer],
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)

    for name in _QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))


def configure_from_settings(
    settings: LoggingSettings,
    *,
    verbose: bool = False,
    json_output: bool = False,
) -> None:
    """Apply the settings file's logging section.

    Command-line flags win: verbose forces DEBUG and json_output forces
    JSON even when the settings say otherwise.
    """
    configure_logging(
        json_output=json_output or settings.json_output,
        level="DEBUG" if verbose else settings.level,
    )


@contextmanager
def run_context(run_id: str) -> Iterator[None]:
    """Bind run_id to every event logged inside the block."""
    with structlog.contextvars.bound_contextvars(run_id=run_id):
        yield


def transform_logger(transform: BaseTransform) -> structlog.stdlib.BoundLogger:
    """Logger bound with the transform's plugin name and pipeline node id."""
    return get_logger("strata.transform").bind(plugin=transform.name, node_id=transform.node_id)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger for a module."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
