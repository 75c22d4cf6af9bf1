"""StreamFormatter transform plugin.

Reformats a record into a header/body envelope: selected fields become a
string-to-string header map, and the body fields are serialized to one
text value (CSV, TSV, PSV or JSON).

The output schema has exactly two fields, one MAP for the headers and one
STRING for the body, in either order.
"""

from typing import Any, Self

from pydantic import Field, field_validator, model_validator

from strata.contracts import (
    FieldDefinition,
    FieldType,
    RecordBuilder,
    RecordFormat,
    StructuredRecord,
    TargetSchema,
    TransformResult,
)
from strata.core.serialization import serialize_record, to_text
from strata.plugins.base import BaseTransform
from strata.plugins.config_base import SchemaPluginConfig
from strata.plugins.context import PluginContext


def _split_field_list(value: str, option: str) -> tuple[str, ...]:
    names = tuple(name.strip() for name in value.split(","))
    if any(not name for name in names):
        raise ValueError(f"'{option}' must be a comma-separated list of field names, got {value!r}")
    return names


class StreamFormatterConfig(SchemaPluginConfig):
    """Configuration for the stream formatter.

    Attributes:
        header: Comma-separated fields copied into the header map
        body: Comma-separated fields serialized into the body; all input
            fields when unset
        format: CSV, TSV, PSV or JSON (case-insensitive)
    """

    header: tuple[str, ...] = Field(..., description="Fields to set in the header")
    body: tuple[str, ...] | None = Field(default=None, description="Fields to set in the body")
    format: RecordFormat = Field(default=RecordFormat.CSV, description="Body format")

    @field_validator("header", mode="before")
    @classmethod
    def _parse_header(cls, v: Any) -> Any:
        if isinstance(v, str):
            return _split_field_list(v, "header")
        return v

    @field_validator("body", mode="before")
    @classmethod
    def _parse_body(cls, v: Any) -> Any:
        if isinstance(v, str):
            return _split_field_list(v, "body")
        return v

    @field_validator("format", mode="before")
    @classmethod
    def _parse_format(cls, v: Any) -> Any:
        if isinstance(v, str):
            try:
                return RecordFormat.parse(v)
            except ValueError:
                raise ValueError(f"Invalid format '{v}'. Allowed values are CSV, TSV, PSV or JSON.") from None
        return v

    @model_validator(mode="after")
    def _validate_envelope_schema(self) -> Self:
        fields = self.target_schema.fields
        if len(fields) != 2:
            raise ValueError(
                "Output schema should have exactly two fields: one of type STRING for the body "
                "and one of type MAP<string, string> for the header."
            )
        for field_def in fields:
            if field_def.field_type not in (FieldType.MAP, FieldType.STRING):
                raise ValueError(f"Field '{field_def.name}' is not of type STRING or MAP<string, string>.")
        if fields[0].field_type is fields[1].field_type:
            raise ValueError(f"Output schema needs one STRING and one MAP field, got two {fields[0].field_type.name} fields.")
        return self

    def envelope_fields(self) -> tuple[FieldDefinition, FieldDefinition]:
        """Return (header field, body field) of the output schema."""
        first, second = self.target_schema.fields
        if first.field_type is FieldType.MAP:
            return first, second
        return second, first


class StreamFormatter(BaseTransform):
    """Format records into a header map and a serialized body.

    Config options:
        schema: Required. Two-field output schema (MAP header, STRING body)
        header: Required. Comma-separated header field names
        body: Comma-separated body field names (default: all input fields)
        format: CSV, TSV, PSV or JSON (default: CSV)

    Header values are rendered as text; fields missing from the input or
    holding None are left out of the header map. Body fields are matched
    against input field names case-insensitively and keep input order.
    """

    name = "stream_formatter"
    plugin_version = "1.0.0"
    config_model = StreamFormatterConfig

    def __init__(self, config: dict[str, Any]) -> None:
        super().__init__(config)
        cfg = StreamFormatterConfig.from_dict(config)
        self._schema: TargetSchema = cfg.target_schema
        self._header_fields: tuple[str, ...] = cfg.header
        self._body_fields: frozenset[str] | None = frozenset(name.lower() for name in cfg.body) if cfg.body is not None else None
        self._format: RecordFormat = cfg.format
        header_field, body_field = cfg.envelope_fields()
        self._header_field_name = header_field.name
        self._body_field_name = body_field.name

    @property
    def output_schema(self) -> TargetSchema:
        return self._schema

    def process(self, record: StructuredRecord, ctx: PluginContext) -> TransformResult:
        headers = {name: to_text(record[name]) for name in self._header_fields if record.get(name) is not None}

        body_record = self._select_body(record)
        payload = serialize_record(body_record, self._format)

        output = RecordBuilder(self._schema).set(self._header_field_name, headers).set(self._body_field_name, payload).build()
        return TransformResult.success(output, success_reason={"action": "formatted"})

    def _select_body(self, record: StructuredRecord) -> StructuredRecord:
        if self._body_fields is None:
            return record
        selected = tuple(f for f in record.schema.fields if f.name.lower() in self._body_fields)
        builder = RecordBuilder(TargetSchema.record_of("body", *selected))
        for field_def in selected:
            builder.set(field_def.name, record[field_def.name])
        return builder.build()
