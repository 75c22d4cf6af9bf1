# src/strata/plugins/config_base.py
"""Base classes for typed plugin configurations.

This module provides base classes that plugins inherit from to get:
- Strict validation (reject unknown fields)
- Immutable configuration once parsed
- Factory methods with clear error messages
- Target schema parsing shared by every schema-driven transform

Example usage:
    class FieldEncoderConfig(SchemaPluginConfig):
        encode: str

    cfg = FieldEncoderConfig.from_dict(config)
    schema = cfg.target_schema  # Parsed once, read-only afterwards
"""

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from strata.contracts.schema import TargetSchema


class PluginConfigError(Exception):
    """Raised when plugin configuration is invalid.

    Always terminal for the pipeline build. Never retried.
    """

    pass


class PluginConfig(BaseModel):
    """Base class for typed plugin configurations.

    Provides common validation patterns and helpful error messages.
    All plugin configs should inherit from this class.
    """

    model_config = ConfigDict(extra="forbid", frozen=True, arbitrary_types_allowed=True)

    @classmethod
    def from_dict(cls, config: dict[str, Any]) -> Self:
        """Create config from dict with clear error on validation failure.

        Args:
            config: Dictionary of configuration values.

        Returns:
            Validated configuration instance.

        Raises:
            PluginConfigError: If configuration is invalid.
        """
        if not isinstance(config, dict):
            raise PluginConfigError(f"Invalid configuration for {cls.__name__}: config must be a dict, got {type(config).__name__}.")

        try:
            return cls.model_validate(cls._prepare(dict(config)))
        except ValidationError as e:
            raise PluginConfigError(f"Invalid configuration for {cls.__name__}: {e}") from e
        except ValueError as e:
            raise PluginConfigError(f"Invalid configuration for {cls.__name__}: {e}") from e

    @classmethod
    def _prepare(cls, config: dict[str, Any]) -> dict[str, Any]:
        """Hook for subclasses to reshape raw config before validation."""
        return config


class SchemaPluginConfig(PluginConfig):
    """Base config for transforms that build output against a target schema.

    The raw 'schema' option is a JSON record schema, either as text or as
    an already-decoded mapping (YAML settings usually give the latter).
    It is parsed into target_schema during from_dict(); a malformed schema
    is a configuration error.
    """

    target_schema: TargetSchema = Field(
        ...,
        description="Output schema. Field order defines output field order.",
    )

    @classmethod
    def _prepare(cls, config: dict[str, Any]) -> dict[str, Any]:
        if "schema" in config:
            raw = config.pop("schema")
            if not isinstance(raw, str | dict):
                raise PluginConfigError(
                    f"Invalid configuration for {cls.__name__}: "
                    f"'schema' must be JSON text or a mapping, got {type(raw).__name__}."
                )
            # SchemaParseError is a ValueError; from_dict wraps it
            config["target_schema"] = TargetSchema.parse(raw)
        return config
