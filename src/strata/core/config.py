# src/strata/core/config.py
"""
Configuration schema and loading for strata pipelines.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.

Example settings.yaml:

    input_schema:
      type: record
      name: raw
      fields:
        - {name: body, type: string}
    transforms:
      - plugin: parse_delimited
        options:
          source_field: body
          schema_file: schemas/people.json
    logging:
      level: INFO
"""

import re
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator

from strata.contracts.schema import TargetSchema


class TransformSettings(BaseModel):
    """One transform in the chain: plugin name plus its options."""

    model_config = {"frozen": True}

    plugin: str = Field(description="Plugin name")
    options: dict[str, Any] = Field(
        default_factory=dict,
        description="Plugin-specific configuration options",
    )


class LoggingSettings(BaseModel):
    """Logging output configuration."""

    model_config = {"frozen": True}

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(default="INFO", description="Root log level")
    json_output: bool = Field(default=False, description="Emit JSON lines instead of console output")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


class StrataSettings(BaseModel):
    """Top-level strata configuration.

    This is the single source of truth for a pipeline run.
    All settings are validated and frozen after construction.
    """

    model_config = {"frozen": True}

    input_schema: dict[str, Any] = Field(
        description="Record schema of the JSON lines fed to the first transform",
    )
    transforms: list[TransformSettings] = Field(
        description="Transform chain, applied in order",
    )
    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    @field_validator("input_schema")
    @classmethod
    def validate_input_schema(cls, v: dict[str, Any]) -> dict[str, Any]:
        # SchemaParseError is a ValueError and surfaces as a ValidationError
        TargetSchema.parse(v)
        return v

    @field_validator("transforms")
    @classmethod
    def validate_transforms_not_empty(cls, v: list[TransformSettings]) -> list[TransformSettings]:
        if not v:
            raise ValueError("At least one transform is required")
        return v

    def parsed_input_schema(self) -> TargetSchema:
        """The input schema as a TargetSchema."""
        return TargetSchema.parse(self.input_schema)


# Regex pattern for ${VAR} or ${VAR:-default} syntax
_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _expand_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Recursively expand ${VAR} and ${VAR:-default} patterns in config values.

    A reference with no environment value and no default is left as-is.
    """
    import os

    def _expand_string(value: str) -> str:
        def replacer(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            default = match.group(2)
            if default is not None:
                return default
            return match.group(0)

        return _ENV_VAR_PATTERN.sub(replacer, value)

    def _expand_value(value: Any) -> Any:
        if isinstance(value, str):
            return _expand_string(value)
        elif isinstance(value, dict):
            return {k: _expand_value(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [_expand_value(item) for item in value]
        else:
            return value

    return {k: _expand_value(v) for k, v in config.items()}


class SchemaFileError(Exception):
    """Error loading a referenced schema file."""


def _load_schema_file(schema_file: str, settings_path: Path) -> Any:
    """Load a JSON or YAML schema file, resolving relative paths against the settings file."""
    schema_path = Path(schema_file)
    if not schema_path.is_absolute():
        schema_path = (settings_path.parent / schema_path).resolve()

    if not schema_path.exists():
        raise SchemaFileError(f"Schema file not found: {schema_path}")

    try:
        # JSON is a subset of YAML, so one loader covers both
        loaded = yaml.safe_load(schema_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise SchemaFileError(f"Invalid schema file {schema_path}: {e}") from e

    if not isinstance(loaded, dict):
        raise SchemaFileError(f"Schema file {schema_path} must contain a record schema object")
    return loaded


def _expand_schema_files(raw_config: dict[str, Any], settings_path: Path) -> dict[str, Any]:
    """Replace input_schema_file and per-transform schema_file with file contents.

    Raises:
        SchemaFileError: If both an inline schema and a file are given, or a
            file is missing or invalid
    """
    config = dict(raw_config)

    if "input_schema_file" in config:
        if "input_schema" in config:
            raise SchemaFileError("Cannot specify both 'input_schema' and 'input_schema_file'")
        config["input_schema"] = _load_schema_file(config.pop("input_schema_file"), settings_path)

    if "transforms" in config and isinstance(config["transforms"], list):
        transforms = []
        for transform_config in config["transforms"]:
            if isinstance(transform_config, dict) and isinstance(transform_config.get("options"), dict):
                transform = dict(transform_config)
                options = dict(transform["options"])
                if "schema_file" in options:
                    if "schema" in options:
                        raise SchemaFileError(f"Transform '{transform.get('plugin')}': cannot specify both 'schema' and 'schema_file'")
                    options["schema"] = _load_schema_file(options.pop("schema_file"), settings_path)
                transform["options"] = options
                transforms.append(transform)
            else:
                transforms.append(transform_config)
        config["transforms"] = transforms

    return config


def _to_plain(value: Any) -> Any:
    """Convert Dynaconf boxes into plain dicts and lists."""
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_to_plain(item) for item in value]
    return value


def load_settings(config_path: Path) -> StrataSettings:
    """Load settings from YAML file with environment variable overrides.

    Uses Dynaconf for multi-source loading with precedence:
    1. Environment variables (STRATA_*) - highest priority
    2. Config file (settings.yaml)
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: STRATA_LOGGING__LEVEL for nested keys.

    Args:
        config_path: Path to YAML configuration file

    Returns:
        Validated StrataSettings instance

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
        SchemaFileError: If a referenced schema file cannot be loaded
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="STRATA",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase top-level keys; Pydantic expects lowercase
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): _to_plain(v) for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}

    raw_config = _expand_env_vars(raw_config)
    raw_config = _expand_schema_files(raw_config, settings_path=config_path)

    return StrataSettings(**raw_config)
