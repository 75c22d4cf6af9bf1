"""Plugin configuration validation subsystem.

Validates plugin configurations BEFORE instantiation, so a settings file
can be checked completely (every transform, every problem) before a run
starts.

Design:
- Validation is separate from plugin construction
- Returns structured errors (not exceptions) for better error messages
- Validates against the Pydantic config models (ParseDelimitedConfig, etc.)
- Does NOT instantiate plugins

Usage:
    validator = PluginConfigValidator()
    errors = validator.validate_transform_config("field_encoder", options)
    if errors:
        raise ValueError(f"Invalid config: {errors}")
    encoder = FieldEncoder(options)
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

from strata.contracts.schema import SchemaParseError, TargetSchema
from strata.plugins.config_base import PluginConfigError

if TYPE_CHECKING:
    from strata.plugins.config_base import PluginConfig


@dataclass
class ValidationError:
    """Structured validation error.

    Attributes:
        field: Option name that failed validation ("config" for whole-model checks)
        message: Human-readable error message
        value: The invalid value (for debugging)
    """

    field: str
    message: str
    value: Any


class PluginConfigValidator:
    """Validates plugin configurations before instantiation."""

    def validate_transform_config(
        self,
        transform_type: str,
        config: dict[str, Any],
    ) -> list[ValidationError]:
        """Validate transform plugin configuration.

        Args:
            transform_type: Plugin name (e.g., "parse_delimited", "field_encoder")
            config: Plugin options dict

        Returns:
            List of validation errors (empty if valid)

        Raises:
            ValueError: If transform_type is not a built-in transform
        """
        config_model = self._get_transform_config_model(transform_type)

        try:
            config_model.from_dict(config)
            return []
        except PluginConfigError as e:
            return self._extract_wrapped_plugin_config_error(e, config)

    def validate_schema_config(self, schema_config: str | dict[str, Any]) -> list[ValidationError]:
        """Validate a record schema independently of any plugin."""
        try:
            TargetSchema.parse(schema_config)
            return []
        except SchemaParseError as e:
            return [ValidationError(field="schema", message=str(e), value=schema_config)]

    def _extract_wrapped_plugin_config_error(
        self,
        error: PluginConfigError,
        config: dict[str, Any],
    ) -> list[ValidationError]:
        """Convert wrapped PluginConfigError causes into structured errors.

        PluginConfig.from_dict() wraps:
        - PydanticValidationError for option and model-level failures
        - SchemaParseError (a ValueError) for schema failures before validation
        """
        cause = error.__cause__

        if isinstance(cause, PydanticValidationError):
            return self._extract_errors(cause)

        if isinstance(cause, SchemaParseError):
            return [ValidationError(field="schema", message=str(cause), value=config.get("schema"))]

        if isinstance(cause, ValueError):
            return [ValidationError(field="config", message=str(cause), value=config)]

        # Raised directly by from_dict (non-dict config, non-text schema)
        return [ValidationError(field="config", message=str(error), value=config)]

    def _get_transform_config_model(self, transform_type: str) -> type["PluginConfig"]:
        # Import here to avoid circular dependencies
        if transform_type == "parse_delimited":
            from strata.plugins.transforms.parse_delimited import ParseDelimitedConfig

            return ParseDelimitedConfig
        elif transform_type == "field_encoder":
            from strata.plugins.transforms.field_encoder import FieldEncoderConfig

            return FieldEncoderConfig
        elif transform_type == "clone_rows":
            from strata.plugins.transforms.clone_rows import CloneRowsConfig

            return CloneRowsConfig
        elif transform_type == "stream_formatter":
            from strata.plugins.transforms.stream_formatter import StreamFormatterConfig

            return StreamFormatterConfig
        else:
            raise ValueError(f"Unknown transform type: {transform_type}")

    def _extract_errors(
        self,
        pydantic_error: PydanticValidationError,
    ) -> list[ValidationError]:
        """Convert Pydantic errors to structured ValidationError list."""
        errors: list[ValidationError] = []

        for err in pydantic_error.errors():
            # Model validators report an empty location
            field_path = ".".join(str(loc) for loc in err["loc"]) or "config"
            errors.append(
                ValidationError(
                    field=field_path,
                    message=err["msg"],
                    value=err["input"],
                )
            )

        return errors
