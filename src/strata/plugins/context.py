"""Plugin execution context.

The PluginContext carries run-level information a plugin might need during
execution. It is created once per run and shared read-only by every
transform invocation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any


@dataclass(frozen=True)
class PluginContext:
    """Context passed to every plugin operation.

    Attributes:
        run_id: Identifier of the current run, bound into log events
        config: Resolved run settings (read-only by convention)
        started_at: When the run started
    """

    run_id: str
    config: dict[str, Any] = field(default_factory=dict)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
