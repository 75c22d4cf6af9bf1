"""ParseDelimited transform plugin.

Splits one text field of the input record into lines, splits each line on
a delimiter, and coerces the tokens positionally into the fields of a
target schema. One output record per non-blank line.

The dialect is deliberately simple: quote characters are ordinary data and
whitespace inside a token is kept verbatim. There is no quote escaping and
no multi-line field.

FAIL-FAST POLICY:
Declaring a non-STRING type for a field asserts that the field is always
populated and well-formed. An empty or malformed token for such a field
raises CoercionError and the whole invocation produces no output; the
transform never skips a bad line or substitutes a default.
"""

import math
import re
from typing import Any, Self

import structlog
from pydantic import Field, field_validator, model_validator

from strata.contracts import (
    CoercionError,
    DelimiterStyle,
    FieldDefinition,
    FieldType,
    RecordBuilder,
    SchemaMismatchError,
    StructuredRecord,
    TargetSchema,
    TransformResult,
)
from strata.contracts.record import INT_MAX, INT_MIN, LONG_MAX, LONG_MIN
from strata.plugins.base import BaseTransform
from strata.plugins.config_base import SchemaPluginConfig
from strata.plugins.context import PluginContext

logger = structlog.get_logger(__name__)

LINE_SEPARATOR = "\n"

_INTEGER_LITERAL = re.compile(r"[+-]?[0-9]+")
_DECIMAL_LITERAL = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_BOOLEAN_LITERALS = {"true": True, "false": False}


class ParseDelimitedConfig(SchemaPluginConfig):
    """Configuration for the delimited-text parser.

    Attributes:
        source_field: Input field holding the text body to parse
        delimiter_style: DelimiterStyle token selecting the delimiter
        delimiter: Single delimiter character, required for CUSTOM style only
        strict_token_count: If True, a line with more tokens than the schema
            has fields is an error instead of having its extra tokens dropped
    """

    source_field: str = Field(..., description="Name of the input text field to parse")
    delimiter_style: DelimiterStyle = Field(default=DelimiterStyle.DEFAULT, description="Delimiter style token")
    delimiter: str | None = Field(default=None, description="Delimiter character for CUSTOM style")
    strict_token_count: bool = Field(default=False, description="Reject lines with extra tokens")

    @field_validator("delimiter_style", mode="before")
    @classmethod
    def _parse_delimiter_style(cls, v: Any) -> Any:
        if isinstance(v, str):
            return DelimiterStyle.parse(v)
        return v

    @field_validator("source_field")
    @classmethod
    def _validate_source_field(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("source_field cannot be empty")
        return v

    @field_validator("delimiter")
    @classmethod
    def _validate_delimiter(cls, v: str | None) -> str | None:
        if v is None:
            return v
        if len(v) != 1:
            raise ValueError(f"delimiter must be a single character, got {v!r}")
        if v in ("\n", "\r"):
            raise ValueError("delimiter cannot be a line break character")
        return v

    @model_validator(mode="after")
    def _validate_delimiter_choice(self) -> Self:
        if self.delimiter_style is DelimiterStyle.CUSTOM and self.delimiter is None:
            raise ValueError("delimiter_style CUSTOM requires a 'delimiter' character")
        if self.delimiter_style is not DelimiterStyle.CUSTOM and self.delimiter is not None:
            raise ValueError(f"'delimiter' can only be set with delimiter_style CUSTOM, got {self.delimiter_style.name}")
        return self

    @model_validator(mode="after")
    def _validate_primitive_fields(self) -> Self:
        complex_fields = [f"{f.name} ({f.field_type.name})" for f in self.target_schema.fields if not f.field_type.is_primitive]
        if complex_fields:
            raise ValueError(
                f"Target schema fields must be primitive types (STRING, BYTES, INT, LONG, FLOAT, DOUBLE, BOOLEAN). "
                f"Unsupported: {', '.join(complex_fields)}"
            )
        return self

    @property
    def effective_delimiter(self) -> str:
        """The delimiter character this configuration splits on."""
        if self.delimiter is not None:
            return self.delimiter
        style_delimiter = self.delimiter_style.delimiter
        # CUSTOM without a delimiter is rejected by _validate_delimiter_choice
        assert style_delimiter is not None
        return style_delimiter


def coerce_token(token: str, field_def: FieldDefinition, *, line_number: int | None = None) -> Any:
    """Convert a raw text token into the field's declared type.

    STRING tokens are returned unchanged, including the empty string. For
    nullable non-STRING fields an empty token becomes None.

    Raises:
        CoercionError: If the token is empty or malformed for a numeric or
            boolean field, or out of range for INT/LONG.
    """
    field_type = field_def.field_type
    if token == "" and field_def.nullable and field_type is not FieldType.STRING:
        return None

    def fail(detail: str) -> CoercionError:
        return CoercionError(field_def.name, token, field_type, line_number=line_number, detail=detail)

    match field_type:
        case FieldType.STRING:
            return token
        case FieldType.BYTES:
            return token.encode("utf-8")
        case FieldType.INT | FieldType.LONG:
            if not _INTEGER_LITERAL.fullmatch(token):
                raise fail("not an integer literal")
            low, high = (INT_MIN, INT_MAX) if field_type is FieldType.INT else (LONG_MIN, LONG_MAX)
            try:
                value = int(token)
            except ValueError:
                # Digit strings past the interpreter's conversion limit are far out of range
                raise fail(f"out of range [{low}, {high}]") from None
            if not low <= value <= high:
                raise fail(f"out of range [{low}, {high}]")
            return value
        case FieldType.FLOAT | FieldType.DOUBLE:
            if not _DECIMAL_LITERAL.fullmatch(token):
                raise fail("not a decimal literal")
            number = float(token)
            if not math.isfinite(number):
                raise fail("value overflows to infinity")
            return number
        case FieldType.BOOLEAN:
            try:
                return _BOOLEAN_LITERALS[token.lower()]
            except KeyError:
                raise fail("expected 'true' or 'false'") from None
        case _:
            raise fail(f"{field_type.name} fields cannot be parsed from text")


class ParseDelimited(BaseTransform):
    """Parse delimited text lines from one field into typed records.

    Config options:
        schema: Required. Target schema; field order is the token order
        source_field: Required. Input field containing the text body
        delimiter_style: DEFAULT/EXCEL/RFC4180 (comma), MYSQL/TDF (tab),
            PDL (pipe) or CUSTOM (default: DEFAULT)
        delimiter: Delimiter character when delimiter_style is CUSTOM
        strict_token_count: Error on lines with extra tokens (default: False,
            extra trailing tokens are dropped)

    Example:
        Input:  {"body": "1,alpha\\n\\n2,beta"}
        Output: [{"id": 1, "name": "alpha"}, {"id": 2, "name": "beta"}]

    Lines with fewer tokens than the schema has fields are padded with
    empty tokens, which is only valid for STRING (or nullable) fields.
    """

    name = "parse_delimited"
    plugin_version = "1.0.0"
    config_model = ParseDelimitedConfig
    creates_records = True

    def __init__(self, config: dict[str, Any]) -> None:
        super().__init__(config)
        cfg = ParseDelimitedConfig.from_dict(config)
        self._source_field: str = cfg.source_field
        self._delimiter: str = cfg.effective_delimiter
        self._strict_token_count: bool = cfg.strict_token_count
        self._schema: TargetSchema = cfg.target_schema
        self._fields: tuple[FieldDefinition, ...] = cfg.target_schema.fields

        logger.debug(
            "transform_configured",
            plugin=self.name,
            source_field=self._source_field,
            delimiter=self._delimiter,
            fields=list(self._schema.field_names),
        )

    @property
    def output_schema(self) -> TargetSchema:
        return self._schema

    def process(self, record: StructuredRecord, ctx: PluginContext) -> TransformResult:
        """Parse every non-blank line of the source field.

        Args:
            record: Input record containing the text body
            ctx: Plugin context

        Returns:
            TransformResult with one record per non-blank line, in line order

        Raises:
            SchemaMismatchError: If the source field is missing or not text,
                or a line has extra tokens under strict_token_count.
            CoercionError: If any token cannot be coerced to its field type.
        """
        body = self._read_body(record)
        if body is None:
            return TransformResult.success_multi([], success_reason={"action": "parsed", "records_emitted": 0})

        output: list[StructuredRecord] = []
        skipped = 0
        for line_number, line in enumerate(body.split(LINE_SEPARATOR), start=1):
            if line.endswith("\r"):
                line = line[:-1]
            if not line.strip():
                skipped += 1
                continue
            output.append(self._parse_line(line, line_number))

        return TransformResult.success_multi(
            output,
            success_reason={"action": "parsed", "records_emitted": len(output), "lines_skipped": skipped},
        )

    def _read_body(self, record: StructuredRecord) -> str | None:
        if self._source_field not in record:
            raise SchemaMismatchError(
                self._source_field,
                f"Source field '{self._source_field}' is not present in input record '{record.schema.name}'",
            )
        body = record[self._source_field]
        if body is not None and not isinstance(body, str):
            raise SchemaMismatchError(
                self._source_field,
                f"Source field '{self._source_field}' must hold text, got {type(body).__name__}",
            )
        return body

    def _parse_line(self, line: str, line_number: int) -> StructuredRecord:
        tokens = line.split(self._delimiter)
        if self._strict_token_count and len(tokens) > len(self._fields):
            raise SchemaMismatchError(
                self._source_field,
                f"Line {line_number} has {len(tokens)} tokens but schema '{self._schema.name}' declares {len(self._fields)} fields",
            )

        builder = RecordBuilder(self._schema)
        for position, field_def in enumerate(self._fields):
            token = tokens[position] if position < len(tokens) else ""
            builder.set(field_def.name, coerce_token(token, field_def, line_number=line_number))
        return builder.build()
