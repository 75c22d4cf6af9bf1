"""Tests for TransformExecutor and Pipeline."""

from typing import Any

import pytest
from structlog.testing import capture_logs

from strata.contracts import (
    CoercionError,
    FieldType,
    ListEmitter,
    StructuredRecord,
    TransformResult,
)
from strata.engine import Pipeline, TransformExecutor
from strata.plugins.base import BaseTransform
from strata.plugins.config_base import PluginConfig
from strata.plugins.context import PluginContext
from strata.plugins.transforms.clone_rows import CloneRows
from strata.plugins.transforms.parse_delimited import ParseDelimited
from strata.testing import make_body_record, make_record, make_schema

NUMBERED = make_schema("numbered", n=FieldType.INT)

PEOPLE_SCHEMA = {
    "name": "people",
    "fields": [
        {"name": "id", "type": "int"},
        {"name": "name", "type": "string"},
    ],
}


class _EmptyConfig(PluginConfig):
    pass


class _Recording(BaseTransform):
    """Emits 'fan_out' numbered records per input and records lifecycle calls."""

    name = "recording"
    config_model = _EmptyConfig

    def __init__(self, config: dict[str, Any], calls: list[str], fan_out: int = 1) -> None:
        super().__init__(config)
        self._calls = calls
        self._fan_out = fan_out

    def process(self, record: StructuredRecord, ctx: PluginContext) -> TransformResult:
        self._calls.append(f"{self.node_id}:{record['n']}")
        out = [make_record(NUMBERED, {"n": record["n"] * 10 + i}) for i in range(self._fan_out)]
        return TransformResult.success_multi(out, success_reason={"action": "numbered"})

    def on_start(self, ctx: PluginContext) -> None:
        self._calls.append(f"start {self.node_id}")

    def on_complete(self, ctx: PluginContext) -> None:
        self._calls.append(f"complete {self.node_id}")

    def close(self) -> None:
        self._calls.append(f"close {self.node_id}")


class _Failing(BaseTransform):
    name = "failing"
    config_model = _EmptyConfig

    def process(self, record: StructuredRecord, ctx: PluginContext) -> TransformResult:
        raise CoercionError("n", "x", FieldType.INT, detail="not a number")


class TestTransformExecutor:
    def test_sets_duration_and_emits_in_order(self, ctx: PluginContext) -> None:
        emitter = ListEmitter()
        transform = _Recording({}, [], fan_out=3)

        result = TransformExecutor().execute(transform, make_record(NUMBERED, {"n": 1}), ctx, emitter)

        assert result.duration_ms is not None
        assert result.duration_ms >= 0
        assert [r["n"] for r in emitter.emitted] == [10, 11, 12]
        assert list(result.rows) == emitter.emitted

    def test_empty_output_emits_nothing(self, ctx: PluginContext) -> None:
        emitter = ListEmitter()
        parser = ParseDelimited({"source_field": "body", "schema": PEOPLE_SCHEMA})

        result = TransformExecutor().execute(parser, make_body_record(""), ctx, emitter)

        assert result.rows == ()
        assert len(emitter) == 0

    def test_failure_propagates_and_emits_nothing(self, ctx: PluginContext) -> None:
        emitter = ListEmitter()

        with pytest.raises(CoercionError) as exc_info:
            TransformExecutor().execute(_Failing({}), make_record(NUMBERED, {"n": 1}), ctx, emitter)

        assert exc_info.value.field == "n"
        assert len(emitter) == 0

    def test_failure_is_logged_with_transform_context(self, ctx: PluginContext) -> None:
        transform = _Failing({})
        transform.node_id = "3:failing"

        with capture_logs() as logs, pytest.raises(CoercionError):
            TransformExecutor().execute(transform, make_record(NUMBERED, {"n": 1}), ctx, ListEmitter())

        failures = [entry for entry in logs if entry["event"] == "transform_failed"]
        assert len(failures) == 1
        assert failures[0]["log_level"] == "error"
        assert failures[0]["plugin"] == "failing"
        assert failures[0]["node_id"] == "3:failing"
        assert failures[0]["run_id"] == ctx.run_id
        assert failures[0]["field"] == "n"
        assert failures[0]["token"] == "x"
        assert failures[0]["type"] == "CoercionError"

    def test_partial_parse_failure_emits_nothing(self, ctx: PluginContext) -> None:
        emitter = ListEmitter()
        parser = ParseDelimited({"source_field": "body", "schema": PEOPLE_SCHEMA})

        with pytest.raises(CoercionError):
            TransformExecutor().execute(parser, make_body_record("1,ada\nbad,bob"), ctx, emitter)

        assert len(emitter) == 0


class TestPipeline:
    def test_requires_transforms(self, ctx: PluginContext) -> None:
        with pytest.raises(ValueError, match="at least one transform"):
            Pipeline([], ctx)

    def test_assigns_node_ids(self, ctx: PluginContext) -> None:
        first, second = _Recording({}, []), CloneRows({"copies": 2})

        Pipeline([first, second], ctx)

        assert first.node_id == "0:recording"
        assert second.node_id == "1:clone_rows"

    def test_chains_parse_and_clone(self, ctx: PluginContext) -> None:
        parser = ParseDelimited({"source_field": "body", "schema": PEOPLE_SCHEMA})
        pipeline = Pipeline([parser, CloneRows({"copies": 2})], ctx)

        output = pipeline.run([make_body_record("1,ada\n2,bob")])

        assert [dict(r) for r in output] == [
            {"id": 1, "name": "ada"},
            {"id": 1, "name": "ada"},
            {"id": 2, "name": "bob"},
            {"id": 2, "name": "bob"},
        ]

    def test_depth_first_order(self, ctx: PluginContext) -> None:
        calls: list[str] = []
        pipeline = Pipeline([_Recording({}, calls, fan_out=2), _Recording({}, calls, fan_out=1)], ctx)
        sink = ListEmitter()

        pipeline.process(make_record(NUMBERED, {"n": 1}), sink)

        # Second stage handles 10 before the first stage's 11 is forwarded
        assert calls == ["0:recording:1", "1:recording:10", "1:recording:11"]
        assert [r["n"] for r in sink.emitted] == [100, 110]

    def test_lifecycle_order(self, ctx: PluginContext) -> None:
        calls: list[str] = []
        pipeline = Pipeline([_Recording({}, calls), _Recording({}, calls)], ctx)

        pipeline.run([make_record(NUMBERED, {"n": 1})])

        assert calls[:2] == ["start 0:recording", "start 1:recording"]
        assert calls[-4:] == ["complete 0:recording", "complete 1:recording", "close 0:recording", "close 1:recording"]

    def test_finish_runs_after_failure(self, ctx: PluginContext) -> None:
        calls: list[str] = []
        pipeline = Pipeline([_Recording({}, calls), _Failing({})], ctx)

        with pytest.raises(CoercionError):
            pipeline.run([make_record(NUMBERED, {"n": 1})])

        assert "complete 0:recording" in calls
        assert "close 0:recording" in calls
