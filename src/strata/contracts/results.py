"""Operation outcomes.

A transform invocation either returns a TransformResult or raises. There
is no error-shaped result: per-record failures are exceptions from
strata.contracts.errors and propagate to the caller unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from strata.contracts.errors import TransformSuccessReason
from strata.contracts.record import StructuredRecord


@dataclass
class TransformResult:
    """Result of a transform operation.

    Use the factory methods to create instances.

    Multi-row output:
    - Single-row: success(record) sets rows=(record,), is_multi_row False
    - Multi-row: success_multi(records) sets rows to the records, which may
      be empty (a delimited body with no content lines emits nothing)

    duration_ms is an audit field set by the executor, not by plugins.
    """

    rows: tuple[StructuredRecord, ...]
    success_reason: TransformSuccessReason
    is_multi_row: bool = False
    duration_ms: float | None = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if not self.is_multi_row and len(self.rows) != 1:
            raise ValueError(
                f"Single-row TransformResult must carry exactly one record, got {len(self.rows)}. "
                f"Use TransformResult.success_multi() for zero or many records."
            )

    @property
    def row(self) -> StructuredRecord:
        """The single output record of a single-row result.

        Raises:
            ValueError: If this is a multi-row result.
        """
        if self.is_multi_row:
            raise ValueError("row is only available on single-row results; use rows")
        return self.rows[0]

    @property
    def has_output_data(self) -> bool:
        """True if this result carries at least one record."""
        return bool(self.rows)

    @classmethod
    def success(
        cls,
        record: StructuredRecord,
        *,
        success_reason: TransformSuccessReason,
    ) -> TransformResult:
        """Create successful result with a single output record.

        Example:
            return TransformResult.success(
                builder.build(),
                success_reason={"action": "encoded", "fields_encoded": ["payload"]},
            )
        """
        return cls(rows=(record,), success_reason=success_reason)

    @classmethod
    def success_multi(
        cls,
        records: list[StructuredRecord] | tuple[StructuredRecord, ...],
        *,
        success_reason: TransformSuccessReason,
    ) -> TransformResult:
        """Create successful result with zero or more output records, in emission order."""
        return cls(rows=tuple(records), success_reason=success_reason, is_multi_row=True)
