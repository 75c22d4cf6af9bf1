"""Target schema: the ordered, typed field contract a record conforms to.

Schemas are written as JSON record schemas:

    {
        "type": "record",
        "name": "output",
        "fields": [
            {"name": "id", "type": "long"},
            {"name": "label", "type": ["string", "null"]},
            {"name": "headers", "type": {"type": "map", "keys": "string", "values": "string"}}
        ]
    }

A field type is a type token, a nullable union of one type with "null",
or a mapping describing a complex type (array, map, record, enum).
Schemas are parsed once, when a plugin is configured, and are immutable
afterwards.
"""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from functools import cached_property
from types import MappingProxyType
from typing import Any

from strata.contracts.enums import FieldType

_COMPLEX_TYPES = frozenset({FieldType.ARRAY, FieldType.MAP, FieldType.RECORD, FieldType.ENUM})


class SchemaParseError(ValueError):
    """Raised when a schema's textual representation is malformed."""


@dataclass(frozen=True)
class FieldDefinition:
    """Definition of a single field in a schema.

    Attributes:
        name: Field name, unique within its schema
        field_type: Declared type of the field
        nullable: If True, the field may hold None
        type_spec: Original JSON form for complex types (kept for to_dict)
    """

    name: str
    field_type: FieldType
    nullable: bool = False
    type_spec: Any = field(default=None, compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON schema field form."""
        base: Any = self.type_spec if self.type_spec is not None else self.field_type.value
        if self.nullable and self.field_type is not FieldType.NULL:
            return {"name": self.name, "type": [base, "null"]}
        return {"name": self.name, "type": base}


def _parse_type(spec: Any, field_name: str) -> tuple[FieldType, bool, Any]:
    """Parse a field's type spec into (type, nullable, complex spec)."""
    if isinstance(spec, str):
        try:
            field_type = FieldType.parse(spec)
        except ValueError as e:
            raise SchemaParseError(f"Field '{field_name}': {e}") from e
        if field_type in _COMPLEX_TYPES:
            raise SchemaParseError(
                f"Field '{field_name}': complex type '{spec}' must be declared as an object, e.g. {{\"type\": \"{field_type.value}\", ...}}"
            )
        return field_type, field_type is FieldType.NULL, None

    if isinstance(spec, list):
        members = [m for m in spec if m != "null"]
        if len(members) != 1 or len(spec) != 2:
            raise SchemaParseError(
                f"Field '{field_name}': only unions of a single type with \"null\" are supported, got {json.dumps(spec)}"
            )
        field_type, _, complex_spec = _parse_type(members[0], field_name)
        return field_type, True, complex_spec

    if isinstance(spec, Mapping):
        if "type" not in spec:
            raise SchemaParseError(f"Field '{field_name}': type object is missing its 'type' key")
        inner = spec["type"]
        if not isinstance(inner, str):
            raise SchemaParseError(f"Field '{field_name}': 'type' must be a string, got {type(inner).__name__}")
        try:
            field_type = FieldType.parse(inner)
        except ValueError as e:
            raise SchemaParseError(f"Field '{field_name}': {e}") from e
        if field_type not in _COMPLEX_TYPES:
            return field_type, field_type is FieldType.NULL, None
        return field_type, False, dict(spec)

    raise SchemaParseError(f"Field '{field_name}': unsupported type declaration {spec!r}")


@dataclass(frozen=True)
class TargetSchema:
    """Ordered sequence of uniquely-named, typed fields.

    Use parse() for textual schemas and record_of() to build one in code.
    Field order is significant: the delimited-text parser maps tokens to
    fields positionally, and serializers emit values in this order.
    """

    name: str
    fields: tuple[FieldDefinition, ...]

    def __post_init__(self) -> None:
        seen: set[str] = set()
        for field_def in self.fields:
            if field_def.name in seen:
                raise SchemaParseError(f"Duplicate field name '{field_def.name}' in schema '{self.name}'")
            seen.add(field_def.name)
        object.__setattr__(self, "fields", tuple(self.fields))

    @cached_property
    def _by_name(self) -> Mapping[str, FieldDefinition]:
        return MappingProxyType({f.name: f for f in self.fields})

    @classmethod
    def record_of(cls, name: str, *fields: FieldDefinition) -> TargetSchema:
        """Build a schema from field definitions."""
        return cls(name=name, fields=tuple(fields))

    @classmethod
    def parse(cls, source: str | Mapping[str, Any]) -> TargetSchema:
        """Parse a schema from JSON text or an already-decoded mapping.

        Raises:
            SchemaParseError: If the text is not JSON, is not a record
                schema, or declares a malformed or duplicate field.
        """
        if isinstance(source, str):
            try:
                decoded = json.loads(source)
            except json.JSONDecodeError as e:
                raise SchemaParseError(f"Schema is not valid JSON: {e.msg} at line {e.lineno} column {e.colno}") from e
        else:
            decoded = source

        if not isinstance(decoded, Mapping):
            raise SchemaParseError(f"Schema must be a JSON object, got {type(decoded).__name__}")

        record_type = decoded.get("type", "record")
        if not isinstance(record_type, str) or record_type.lower() != "record":
            raise SchemaParseError(f"Schema 'type' must be \"record\", got {record_type!r}")

        name = decoded.get("name", "record")
        if not isinstance(name, str) or not name.strip():
            raise SchemaParseError("Schema 'name' must be a non-empty string")

        raw_fields = decoded.get("fields")
        if not isinstance(raw_fields, list) or not raw_fields:
            raise SchemaParseError("Schema 'fields' must be a non-empty list")

        parsed: list[FieldDefinition] = []
        for i, raw in enumerate(raw_fields):
            if not isinstance(raw, Mapping):
                raise SchemaParseError(f"fields[{i}] must be an object with 'name' and 'type'")
            field_name = raw.get("name")
            if not isinstance(field_name, str) or not field_name.strip():
                raise SchemaParseError(f"fields[{i}] must have a non-empty string 'name'")
            if "type" not in raw:
                raise SchemaParseError(f"Field '{field_name}' is missing its 'type'")
            field_type, nullable, type_spec = _parse_type(raw["type"], field_name)
            parsed.append(FieldDefinition(field_name, field_type, nullable, type_spec))

        return cls(name=name, fields=tuple(parsed))

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    @property
    def field_types(self) -> Mapping[str, FieldType]:
        """Read-only mapping of field name to declared type."""
        return MappingProxyType({f.name: f.field_type for f in self.fields})

    def get_field(self, name: str) -> FieldDefinition | None:
        return self._by_name.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[FieldDefinition]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": "record",
            "name": self.name,
            "fields": [f.to_dict() for f in self.fields],
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())
