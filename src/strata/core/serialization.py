"""Record serialization to and from text.

serialize_record() renders a record as delimited text or compact JSON,
always in schema field order, so the same record always produces the same
string. record_from_json() builds a record from a decoded JSON object and
is the inverse for JSON.

Value rendering:
- None: empty (delimited) / null (JSON)
- bytes: standard base64 text
- bool: "true" / "false"
- maps, arrays, nested records: compact JSON (delimited) / nested JSON
"""

import base64
import binascii
import json
from collections.abc import Mapping
from typing import Any

from strata.contracts import (
    FieldType,
    RecordBuilder,
    RecordFormat,
    SchemaMismatchError,
    StructuredRecord,
    TargetSchema,
)


def _to_json_value(value: Any) -> Any:
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, Mapping):
        return {str(k): _to_json_value(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_to_json_value(v) for v in value]
    return value


def to_text(value: Any) -> str:
    """Render a single field value as delimited-format text."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, Mapping | list | tuple):
        return json.dumps(_to_json_value(value), separators=(",", ":"))
    return str(value)


def to_delimited_string(record: StructuredRecord, delimiter: str) -> str:
    return delimiter.join(to_text(record[name]) for name in record)


def to_json_string(record: StructuredRecord) -> str:
    return json.dumps({name: _to_json_value(record[name]) for name in record}, separators=(",", ":"))


def serialize_record(record: StructuredRecord, fmt: RecordFormat) -> str:
    """Serialize a record in the given format.

    Args:
        record: Record to serialize
        fmt: Target format

    Returns:
        Text rendering with values in schema field order.
    """
    match fmt:
        case RecordFormat.JSON:
            return to_json_string(record)
        case RecordFormat.CSV | RecordFormat.TSV | RecordFormat.PSV:
            delimiter = fmt.delimiter
            assert delimiter is not None
            return to_delimited_string(record, delimiter)


def record_from_json(obj: Mapping[str, Any], schema: TargetSchema) -> StructuredRecord:
    """Build a record from a decoded JSON object.

    BYTES fields are read from base64 text. Keys not declared in the schema
    are rejected.

    Raises:
        SchemaMismatchError: If a key is undeclared, a value has the wrong
            type, or a BYTES value is not valid base64.
    """
    builder = RecordBuilder(schema)
    for name, value in obj.items():
        field_def = schema.get_field(name)
        if field_def is None:
            raise SchemaMismatchError(name, f"Field '{name}' is not defined in schema '{schema.name}'")
        if field_def.field_type is FieldType.BYTES and isinstance(value, str):
            try:
                value = base64.b64decode(value, validate=True)
            except binascii.Error as e:
                raise SchemaMismatchError(name, f"Field '{name}' is BYTES but its value is not valid base64: {e}") from e
        builder.set(name, value)
    return builder.build()
