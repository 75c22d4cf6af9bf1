"""Per-record error types and reason schemas.

Configuration problems are reported with PluginConfigError (see
strata.plugins.config_base) before any record flows. The exceptions here
are raised while a record is being transformed. They are never retried or
suppressed inside a transform: the first one aborts the invocation and
propagates to the caller.
"""

from typing import NotRequired, TypedDict

from strata.contracts.enums import FieldType


class TransformSuccessReason(TypedDict):
    """Metadata a transform attaches to a successful result."""

    action: str  # What the transform did
    records_emitted: NotRequired[int]
    lines_skipped: NotRequired[int]
    fields_encoded: NotRequired[list[str]]
    fields_passed_through: NotRequired[list[str]]


class ExecutionError(TypedDict):
    """Schema for failure payloads logged by the executor."""

    exception: str  # String representation of the exception
    type: str  # Exception class name (e.g., "CoercionError")
    field: NotRequired[str]
    token: NotRequired[str]


class RecordTransformError(Exception):
    """Base class for failures while transforming a single record.

    Attributes:
        field: Name of the field that caused the failure, if known
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class CoercionError(RecordTransformError):
    """A raw text token could not be converted to the declared field type.

    Attributes:
        field: Target field name
        token: The raw token that failed to parse
        field_type: Declared type of the target field
        line_number: 1-based line of the body the token came from, if known
    """

    def __init__(
        self,
        field: str,
        token: str,
        field_type: FieldType,
        *,
        line_number: int | None = None,
        detail: str | None = None,
    ) -> None:
        location = f" on line {line_number}" if line_number is not None else ""
        message = f"Cannot coerce token {token!r} to {field_type.name} for field '{field}'{location}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message, field=field)
        self.token = token
        self.field_type = field_type
        self.line_number = line_number


class SchemaMismatchError(RecordTransformError):
    """A record does not fit the schema it is being read from or built against."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message, field=field)
