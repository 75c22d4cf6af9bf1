"""Core infrastructure: settings, logging and record serialization."""

from strata.core.config import (
    LoggingSettings,
    SchemaFileError,
    StrataSettings,
    TransformSettings,
    load_settings,
)
from strata.core.logging import configure_from_settings, configure_logging, get_logger, run_context, transform_logger
from strata.core.serialization import record_from_json, serialize_record

__all__ = [
    # Config
    "LoggingSettings",
    "SchemaFileError",
    "StrataSettings",
    "TransformSettings",
    "load_settings",
    # Logging
    "configure_from_settings",
    "configure_logging",
    "get_logger",
    "run_context",
    "transform_logger",
    # Serialization
    "record_from_json",
    "serialize_record",
]
