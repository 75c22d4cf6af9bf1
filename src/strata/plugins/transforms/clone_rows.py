"""CloneRows transform plugin.

Emits a configured number of field-for-field copies of every input record.
"""

from typing import Any

from pydantic import Field

from strata.contracts import StructuredRecord, TransformResult
from strata.plugins.base import BaseTransform
from strata.plugins.config_base import PluginConfig
from strata.plugins.context import PluginContext

MAX_COPIES = 2**31 - 1


class CloneRowsConfig(PluginConfig):
    """Configuration for the clone transform.

    Attributes:
        copies: Number of copies emitted per input record (1 to 2^31-1)
    """

    copies: int = Field(..., ge=1, le=MAX_COPIES, description="Number of copies of every record")


class CloneRows(BaseTransform):
    """Create copies of each record for the next stage.

    Config options:
        copies: Required. Number of copies to emit per input record

    Every copy carries the input record's schema and values.
    """

    name = "clone_rows"
    plugin_version = "1.0.0"
    config_model = CloneRowsConfig
    creates_records = True

    def __init__(self, config: dict[str, Any]) -> None:
        super().__init__(config)
        cfg = CloneRowsConfig.from_dict(config)
        self._copies: int = cfg.copies

    def process(self, record: StructuredRecord, ctx: PluginContext) -> TransformResult:
        copies = []
        for _ in range(self._copies):
            builder = StructuredRecord.builder(record.schema)
            for name in record:
                builder.set(name, record[name])
            copies.append(builder.build())
        return TransformResult.success_multi(copies, success_reason={"action": "cloned", "records_emitted": len(copies)})
