# src/strata/plugins/base.py
"""Base class for transform plugins.

Transforms MUST subclass BaseTransform. Plugin discovery uses issubclass()
checks against it, and the class attributes below are read by the plugin
manager without instantiating the plugin.

Lifecycle Contract (all hooks called by the executor's caller, in order):
    validate (configure time) -> __init__(config) (initialize time)
    -> on_start(ctx) -> process(record, ctx)* -> on_complete(ctx) -> close()

- Configure time: PluginConfigValidator parses the options against the
  plugin's config model without building the plugin. Invalid configuration
  stops the pipeline build before any record flows.
- Initialize time: __init__ parses the options again and builds every
  piece of runtime state (target schema, field mapping). That state is
  immutable; process() only reads it, so one instance may serve
  concurrent invocations once __init__ has returned.
- process: one input record in, zero or more records out. Per-record
  failures raise; nothing is retried or skipped inside a transform.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from strata.contracts import Determinism, StructuredRecord, TransformResult
from strata.plugins.config_base import PluginConfig
from strata.plugins.context import PluginContext


class BaseTransform(ABC):
    """Base class for all record transforms.

    Subclasses declare:
        name: Plugin name used in settings files
        config_model: PluginConfig subclass validating the options
        plugin_version: Version recorded with run output

    Example:
        class Upper(BaseTransform):
            name = "upper"
            config_model = UpperConfig

            def process(self, record, ctx):
                builder = StructuredRecord.builder(record.schema)
                for name in record:
                    builder.set(name, record[name].upper())
                return TransformResult.success(builder.build(), success_reason={"action": "upper"})
    """

    name: ClassVar[str]
    config_model: ClassVar[type[PluginConfig]]

    # Metadata for reproducibility
    determinism: ClassVar[Determinism] = Determinism.DETERMINISTIC
    plugin_version: ClassVar[str] = "0.0.0"

    # True when one input record can produce a number of records other than one
    creates_records: ClassVar[bool] = False

    node_id: str | None = None  # Set by the pipeline after construction

    def __init__(self, config: dict[str, Any]) -> None:
        """Initialize with configuration.

        Args:
            config: Plugin configuration
        """
        self.config = config

    @abstractmethod
    def process(self, record: StructuredRecord, ctx: PluginContext) -> TransformResult:
        """Process a single record.

        Args:
            record: Input record (immutable)
            ctx: Plugin context

        Returns:
            TransformResult with the records to emit, in order

        Raises:
            RecordTransformError: On any coercion or schema mismatch for
                this record. No partial output is returned.
        """

    # === Lifecycle Hooks ===
    # Intentionally empty - optional hooks for subclasses to override.

    def on_start(self, ctx: PluginContext) -> None:  # noqa: B027 - optional hook
        """Called once before any records are processed."""
        pass

    def on_complete(self, ctx: PluginContext) -> None:  # noqa: B027 - optional hook
        """Called after all records are processed (or after an error)."""
        pass

    def close(self) -> None:  # noqa: B027 - optional override, not abstract
        """Release resources. Built-in transforms hold none."""
        pass
