"""Emission sink for transform output.

Transforms hand their output records to an Emitter in emission order. The
emitter only promises FIFO delivery to the next stage.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from strata.contracts.record import StructuredRecord


@runtime_checkable
class Emitter(Protocol):
    """Output channel accepting zero or more records per invocation."""

    def emit(self, record: StructuredRecord) -> None: ...


class ListEmitter:
    """Emitter that collects records in a list.

    Used as the terminal stage of a Pipeline and throughout the tests.
    """

    def __init__(self) -> None:
        self._emitted: list[StructuredRecord] = []

    def emit(self, record: StructuredRecord) -> None:
        self._emitted.append(record)

    @property
    def emitted(self) -> list[StructuredRecord]:
        return self._emitted

    def clear(self) -> None:
        self._emitted.clear()

    def __len__(self) -> int:
        return len(self._emitted)
