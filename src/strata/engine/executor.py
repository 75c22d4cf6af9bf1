# src/strata/engine/executor.py
"""Transform execution.

TransformExecutor wraps a single transform.process() call:
1. Time the operation
2. Populate the result's duration_ms audit field
3. Hand every output record to the emitter, in order
4. Log the failure and re-raise if the transform raises

Pipeline chains executors so that every record emitted by one transform
is fed to the next, depth-first, preserving emission order.
"""

import time
from collections.abc import Iterable, Sequence
from dataclasses import replace

from strata.contracts import (
    CoercionError,
    Emitter,
    ExecutionError,
    ListEmitter,
    RecordTransformError,
    StructuredRecord,
    TransformResult,
)
from strata.core.logging import transform_logger
from strata.plugins.base import BaseTransform
from strata.plugins.context import PluginContext


def _execution_error(error: Exception) -> ExecutionError:
    payload: ExecutionError = {"exception": str(error), "type": type(error).__name__}
    if isinstance(error, RecordTransformError) and error.field is not None:
        payload["field"] = error.field
    if isinstance(error, CoercionError):
        payload["token"] = error.token
    return payload


class TransformExecutor:
    """Executes transforms with timing and failure logging.

    There is no retry and no error routing: an exception from process()
    is logged once and propagates unchanged, and nothing from a failed
    invocation reaches the emitter.

    Example:
        executor = TransformExecutor()
        result = executor.execute(parser, record, ctx, emitter)
    """

    def execute(
        self,
        transform: BaseTransform,
        record: StructuredRecord,
        ctx: PluginContext,
        emitter: Emitter,
    ) -> TransformResult:
        """Run one transform invocation.

        Args:
            transform: Initialized transform
            record: Input record
            ctx: Plugin context
            emitter: Receives the output records in emission order

        Returns:
            The TransformResult with duration_ms set

        Raises:
            RecordTransformError: Re-raised from transform.process()
        """
        start = time.perf_counter()
        try:
            result = transform.process(record, ctx)
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            transform_logger(transform).error(
                "transform_failed",
                run_id=ctx.run_id,
                duration_ms=round(duration_ms, 3),
                **_execution_error(e),
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        result = replace(result, duration_ms=duration_ms)

        # Output is only emitted once process() has returned: a failed
        # invocation never leaves partial output behind.
        for row in result.rows:
            emitter.emit(row)

        transform_logger(transform).debug(
            "transform_completed",
            records_emitted=len(result.rows),
            duration_ms=round(duration_ms, 3),
        )
        return result


class _StageEmitter:
    """Emitter that feeds each record straight into the next pipeline stage."""

    def __init__(self, pipeline: "Pipeline", stage: int, downstream: Emitter) -> None:
        self._pipeline = pipeline
        self._stage = stage
        self._downstream = downstream

    def emit(self, record: StructuredRecord) -> None:
        self._pipeline._run_stage(self._stage, record, self._downstream)


class Pipeline:
    """An ordered chain of transforms.

    Each transform gets a node_id of the form "<index>:<name>". Records
    flow depth-first: the first output of transform N is processed by
    transform N+1 before the second output of transform N is.
    """

    def __init__(
        self,
        transforms: Sequence[BaseTransform],
        ctx: PluginContext,
        executor: TransformExecutor | None = None,
    ) -> None:
        if not transforms:
            raise ValueError("Pipeline requires at least one transform")
        self._transforms = tuple(transforms)
        self._ctx = ctx
        self._executor = executor if executor is not None else TransformExecutor()
        for index, transform in enumerate(self._transforms):
            transform.node_id = f"{index}:{transform.name}"

    @property
    def transforms(self) -> tuple[BaseTransform, ...]:
        return self._transforms

    def start(self) -> None:
        """Call on_start on every transform."""
        for transform in self._transforms:
            transform.on_start(self._ctx)

    def finish(self) -> None:
        """Call on_complete then close on every transform, in chain order."""
        for transform in self._transforms:
            transform.on_complete(self._ctx)
        for transform in self._transforms:
            transform.close()

    def process(self, record: StructuredRecord, emitter: Emitter) -> None:
        """Push one record through the whole chain into emitter."""
        self._run_stage(0, record, emitter)

    def run(self, records: Iterable[StructuredRecord]) -> list[StructuredRecord]:
        """Run records through the chain and collect the final output.

        on_start/on_complete/close are called around the run; on_complete
        and close also run when a record fails.
        """
        sink = ListEmitter()
        self.start()
        try:
            for record in records:
                self.process(record, sink)
        finally:
            self.finish()
        return sink.emitted

    def _run_stage(self, stage: int, record: StructuredRecord, downstream: Emitter) -> None:
        if stage == len(self._transforms):
            downstream.emit(record)
            return
        next_emitter = _StageEmitter(self, stage + 1, downstream)
        self._executor.execute(self._transforms[stage], record, self._ctx, next_emitter)
