"""Test infrastructure for strata transforms.

Factories for constructing records and schemas with sensible defaults.
When a contract type's constructor changes, update the factory here;
tests that use the factories need no changes.

Usage:
    from strata.testing import make_record, make_schema, STRING_BODY_SCHEMA

    record = make_record(STRING_BODY_SCHEMA, {"body": "1,alpha"})
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from strata.contracts import FieldDefinition, FieldType, RecordBuilder, StructuredRecord, TargetSchema
from strata.plugins.context import PluginContext

# Single text field, the usual input of parse_delimited
STRING_BODY_SCHEMA = TargetSchema.record_of("raw", FieldDefinition("body", FieldType.STRING, nullable=True))


def make_schema(name: str = "record", /, **fields: FieldType | tuple[FieldType, bool]) -> TargetSchema:
    """Build a schema from keyword field types, in keyword order.

    Usage:
        make_schema(id=FieldType.INT, name=FieldType.STRING)
        make_schema(note=(FieldType.STRING, True))  # nullable
    """
    definitions = []
    for field_name, spec in fields.items():
        if isinstance(spec, tuple):
            field_type, nullable = spec
        else:
            field_type, nullable = spec, False
        definitions.append(FieldDefinition(field_name, field_type, nullable=nullable))
    return TargetSchema.record_of(name, *definitions)


def make_record(schema: TargetSchema, values: Mapping[str, Any] | None = None) -> StructuredRecord:
    """Build a record, validating every value through RecordBuilder."""
    builder = RecordBuilder(schema)
    for field_name, value in (values or {}).items():
        builder.set(field_name, value)
    return builder.build()


def make_body_record(body: str | None) -> StructuredRecord:
    """Build a STRING_BODY_SCHEMA record carrying the given text."""
    return make_record(STRING_BODY_SCHEMA, {"body": body})


def make_context(run_id: str = "test-run", **config: Any) -> PluginContext:
    """Build a PluginContext for direct process() calls."""
    return PluginContext(run_id=run_id, config=dict(config))
