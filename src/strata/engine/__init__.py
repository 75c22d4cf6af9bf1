"""Execution engine: runs transforms over records and forwards their output."""

from strata.engine.executor import Pipeline, TransformExecutor

__all__ = [
    "Pipeline",
    "TransformExecutor",
]
