"""Structured records and their builder.

A StructuredRecord is an immutable, ordered mapping of field name to value
that conforms to its TargetSchema. Transforms never mutate an input
record; they build a new one with RecordBuilder:

    record = (
        StructuredRecord.builder(schema)
        .set("id", 10)
        .set("name", "alpha")
        .build()
    )

The builder checks every value against the declared field type as it is
set, and build() checks that every non-nullable field has a value.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from strata.contracts.enums import FieldType
from strata.contracts.errors import SchemaMismatchError
from strata.contracts.schema import FieldDefinition, TargetSchema

INT_MIN, INT_MAX = -(2**31), 2**31 - 1
LONG_MIN, LONG_MAX = -(2**63), 2**63 - 1


def _is_integer(value: Any) -> bool:
    # bool is an int subclass but never a valid INT/LONG value
    return isinstance(value, int) and not isinstance(value, bool)


def _type_error(field_def: FieldDefinition, value: Any) -> SchemaMismatchError:
    return SchemaMismatchError(
        field_def.name,
        f"Field '{field_def.name}' is declared {field_def.field_type.name}, got {type(value).__name__} value {value!r}",
    )


def check_value(field_def: FieldDefinition, value: Any) -> Any:
    """Validate a value against a field definition.

    Returns:
        The value to store. Byte-like values are frozen to bytes and
        mappings/sequences are shallow-copied so the record cannot be
        changed through the caller's reference.

    Raises:
        SchemaMismatchError: If the value is not compatible with the
            declared type, or is None for a non-nullable field.
    """
    if value is None:
        if field_def.nullable:
            return None
        raise SchemaMismatchError(field_def.name, f"Field '{field_def.name}' is not nullable but was set to None")

    match field_def.field_type:
        case FieldType.NULL:
            raise _type_error(field_def, value)
        case FieldType.STRING | FieldType.ENUM:
            if isinstance(value, str):
                return value
        case FieldType.BYTES:
            if isinstance(value, bytes | bytearray | memoryview):
                return bytes(value)
        case FieldType.INT:
            if _is_integer(value):
                if not INT_MIN <= value <= INT_MAX:
                    raise SchemaMismatchError(field_def.name, f"Field '{field_def.name}' value {value} is out of INT range")
                return value
        case FieldType.LONG:
            if _is_integer(value):
                if not LONG_MIN <= value <= LONG_MAX:
                    raise SchemaMismatchError(field_def.name, f"Field '{field_def.name}' value {value} is out of LONG range")
                return value
        case FieldType.FLOAT | FieldType.DOUBLE:
            if isinstance(value, float):
                return value
            if _is_integer(value):
                return float(value)
        case FieldType.BOOLEAN:
            if isinstance(value, bool):
                return value
        case FieldType.ARRAY:
            if isinstance(value, list | tuple):
                return list(value)
        case FieldType.MAP:
            if isinstance(value, Mapping):
                return dict(value)
        case FieldType.RECORD:
            if isinstance(value, StructuredRecord):
                return value
            if isinstance(value, Mapping):
                return dict(value)
    raise _type_error(field_def, value)


class StructuredRecord(Mapping[str, Any]):
    """Immutable record conforming to a TargetSchema.

    Iterates over field names in schema order. Compares equal to any
    mapping with the same items, which keeps test assertions readable:

        assert record == {"a": "1", "b": "2"}
    """

    __slots__ = ("_schema", "_values")

    def __init__(self, schema: TargetSchema, values: Mapping[str, Any]) -> None:
        # Callers outside this module go through RecordBuilder, which has
        # already validated every value.
        self._schema = schema
        self._values = {name: values.get(name) for name in schema.field_names}

    @staticmethod
    def builder(schema: TargetSchema) -> RecordBuilder:
        return RecordBuilder(schema)

    @property
    def schema(self) -> TargetSchema:
        return self._schema

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __setattr__(self, name: str, value: Any) -> None:
        if name in self.__slots__ and not hasattr(self, name):
            object.__setattr__(self, name, value)
            return
        raise AttributeError(f"StructuredRecord is immutable; cannot set '{name}'")

    def to_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the values as a plain dict."""
        return dict(self._values)

    def __repr__(self) -> str:
        return f"StructuredRecord({self._schema.name!r}, {self._values!r})"


class RecordBuilder:
    """Accumulates field values for one record, then finalizes it."""

    def __init__(self, schema: TargetSchema) -> None:
        self._schema = schema
        self._values: dict[str, Any] = {}

    @property
    def schema(self) -> TargetSchema:
        return self._schema

    def set(self, name: str, value: Any) -> RecordBuilder:
        """Set a field value.

        Raises:
            SchemaMismatchError: If the schema has no such field or the
                value does not fit its declared type.
        """
        field_def = self._schema.get_field(name)
        if field_def is None:
            raise SchemaMismatchError(name, f"Field '{name}' is not defined in schema '{self._schema.name}'")
        self._values[name] = check_value(field_def, value)
        return self

    def build(self) -> StructuredRecord:
        """Finalize into an immutable record.

        Raises:
            SchemaMismatchError: If a non-nullable field was never set.
        """
        for field_def in self._schema.fields:
            if field_def.name not in self._values and not field_def.nullable:
                raise SchemaMismatchError(
                    field_def.name,
                    f"Required field '{field_def.name}' of schema '{self._schema.name}' was not set",
                )
        return StructuredRecord(self._schema, self._values)
