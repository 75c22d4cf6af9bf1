"""Shared contracts: schemas, records, results and error types.

These are the leaf data structures every transform builds on. They import
nothing from strata.plugins or strata.engine.
"""

from strata.contracts.emitter import Emitter, ListEmitter
from strata.contracts.enums import (
    DelimiterStyle,
    Determinism,
    EncodeKind,
    FieldType,
    RecordFormat,
)
from strata.contracts.errors import (
    CoercionError,
    ExecutionError,
    RecordTransformError,
    SchemaMismatchError,
    TransformSuccessReason,
)
from strata.contracts.record import RecordBuilder, StructuredRecord
from strata.contracts.results import TransformResult
from strata.contracts.schema import FieldDefinition, SchemaParseError, TargetSchema

__all__ = [
    # Enums
    "DelimiterStyle",
    "Determinism",
    "EncodeKind",
    "FieldType",
    "RecordFormat",
    # Schema
    "FieldDefinition",
    "SchemaParseError",
    "TargetSchema",
    # Records
    "RecordBuilder",
    "StructuredRecord",
    # Emission
    "Emitter",
    "ListEmitter",
    # Results
    "TransformResult",
    # Errors
    "CoercionError",
    "ExecutionError",
    "RecordTransformError",
    "SchemaMismatchError",
    "TransformSuccessReason",
]
