"""FieldEncoder transform plugin.

Encodes selected fields of a record as Base64, Base32 or hex, passing all
other fields through unchanged, and builds the result against a target
schema.

Every input field must be declared in the target schema. A field present
in the input but missing from the output schema is a SchemaMismatchError
for that record, never silently dropped.
"""

import base64
import binascii
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Self

import structlog
from pydantic import Field, field_validator, model_validator

from strata.contracts import (
    EncodeKind,
    FieldType,
    RecordBuilder,
    SchemaMismatchError,
    StructuredRecord,
    TargetSchema,
    TransformResult,
)
from strata.plugins.base import BaseTransform
from strata.plugins.config_base import SchemaPluginConfig
from strata.plugins.context import PluginContext
from strata.plugins.field_mapping import parse_field_mapping

logger = structlog.get_logger(__name__)

ENCODE_GRAMMAR = "<fieldname>:<encode-type>"
_ENCODED_OUTPUT_TYPES = frozenset({FieldType.STRING, FieldType.BYTES})


def parse_encode_mapping(text: str) -> Mapping[str, EncodeKind]:
    """Parse 'field:kind[,field:kind]*' into a read-only field -> EncodeKind mapping."""
    return parse_field_mapping(text, EncodeKind.parse, grammar=ENCODE_GRAMMAR)


def encode_bytes(data: bytes, kind: EncodeKind) -> bytes:
    """Transcode bytes with the given encoding.

    STRING_* kinds produce the text form and reduce it to ASCII bytes, so
    every kind returns bytes; the caller decides how to store them.
    NONE returns the input unchanged.
    """
    match kind:
        case EncodeKind.BASE64:
            return base64.b64encode(data)
        case EncodeKind.STRING_BASE64:
            return base64.b64encode(data).decode("ascii").encode("ascii")
        case EncodeKind.BASE32:
            return base64.b32encode(data)
        case EncodeKind.STRING_BASE32:
            return base64.b32encode(data).decode("ascii").encode("ascii")
        case EncodeKind.HEX:
            return binascii.hexlify(data)
        case EncodeKind.NONE:
            return data


class FieldEncoderConfig(SchemaPluginConfig):
    """Configuration for the field encoder.

    Attributes:
        encode: Mapping text '<field>:<encode-type>[,<field>:<encode-type>]*'
            where encode-type is one of STRING_BASE64, STRING_BASE32,
            BASE64, BASE32, HEX or NONE
    """

    encode: dict[str, EncodeKind] = Field(..., description=f"Field encodings: {ENCODE_GRAMMAR}[,{ENCODE_GRAMMAR}]*")

    @field_validator("encode", mode="before")
    @classmethod
    def _parse_encode(cls, v: Any) -> Any:
        if isinstance(v, str):
            return dict(parse_encode_mapping(v))
        raise ValueError(f"encode must be a string of the form {ENCODE_GRAMMAR}[,{ENCODE_GRAMMAR}]*, got {type(v).__name__}")

    @model_validator(mode="after")
    def _validate_encoded_fields(self) -> Self:
        for field_name, kind in self.encode.items():
            if kind is EncodeKind.NONE:
                continue
            field_def = self.target_schema.get_field(field_name)
            if field_def is None:
                raise ValueError(f"Field '{field_name}' is configured for {kind.name} but is not defined in the output schema")
            if field_def.field_type not in _ENCODED_OUTPUT_TYPES:
                raise ValueError(
                    f"Field '{field_name}' is configured for {kind.name} but its output type is "
                    f"{field_def.field_type.name}; encoded fields must be STRING or BYTES"
                )
        return self


class FieldEncoder(BaseTransform):
    """Encode record fields using Base64, Base32 or hex.

    Config options:
        schema: Required. Output schema; must declare every input field
        encode: Required. '<field>:<encode-type>[,...]' mapping

    Fields without a mapping (or mapped to NONE) are copied unchanged.
    STRING input fields are encoded from their UTF-8 bytes, BYTES fields
    from their raw bytes. The encoded value is stored as bytes when the
    output field is BYTES and as text when it is STRING.
    """

    name = "field_encoder"
    plugin_version = "1.0.0"
    config_model = FieldEncoderConfig

    def __init__(self, config: dict[str, Any]) -> None:
        super().__init__(config)
        cfg = FieldEncoderConfig.from_dict(config)
        self._encode_map: Mapping[str, EncodeKind] = MappingProxyType(dict(cfg.encode))
        self._schema: TargetSchema = cfg.target_schema
        self._output_types: Mapping[str, FieldType] = cfg.target_schema.field_types

        logger.debug(
            "transform_configured",
            plugin=self.name,
            encode={name: kind.name for name, kind in self._encode_map.items()},
        )

    @property
    def output_schema(self) -> TargetSchema:
        return self._schema

    def process(self, record: StructuredRecord, ctx: PluginContext) -> TransformResult:
        """Encode configured fields and pass the rest through.

        Args:
            record: Input record
            ctx: Plugin context

        Returns:
            TransformResult with exactly one output record

        Raises:
            SchemaMismatchError: If an input field is not declared in the
                output schema, or the output record does not conform.
        """
        builder = RecordBuilder(self._schema)
        encoded: list[str] = []
        passed: list[str] = []

        for field_def in record.schema.fields:
            name = field_def.name
            if name not in self._output_types:
                raise SchemaMismatchError(name, f"Field '{name}' is not defined in the output schema '{self._schema.name}'")

            kind = self._encode_map.get(name, EncodeKind.NONE)
            value = record[name]
            if kind is EncodeKind.NONE or value is None:
                builder.set(name, value)
                passed.append(name)
                continue

            out_value = encode_bytes(self._to_bytes(name, field_def.field_type, value), kind)
            match self._output_types[name]:
                case FieldType.BYTES:
                    builder.set(name, out_value)
                case FieldType.STRING:
                    builder.set(name, out_value.decode("ascii"))
                case other:
                    # Config validation only admits STRING/BYTES outputs for encoded fields
                    raise SchemaMismatchError(name, f"Encoded field '{name}' cannot be stored as {other.name}")
            encoded.append(name)

        return TransformResult.success(
            builder.build(),
            success_reason={"action": "encoded", "fields_encoded": encoded, "fields_passed_through": passed},
        )

    def _to_bytes(self, name: str, source_type: FieldType, value: Any) -> bytes:
        if source_type is FieldType.STRING:
            return str(value).encode("utf-8")
        if source_type is FieldType.BYTES:
            return bytes(value)
        # Only text and bytes sources carry encodable content
        logger.warning(
            "unsupported_encode_source_type",
            plugin=self.name,
            field=name,
            source_type=source_type.name,
        )
        return b""
