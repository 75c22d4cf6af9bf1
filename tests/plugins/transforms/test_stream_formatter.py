"""Tests for the StreamFormatter transform."""

import json
from typing import Any

import pytest

from strata.contracts import FieldType
from strata.plugins.config_base import PluginConfigError
from strata.plugins.context import PluginContext
from strata.plugins.transforms.stream_formatter import StreamFormatter
from strata.testing import make_record, make_schema

ENVELOPE = {
    "name": "envelope",
    "fields": [
        {"name": "headers", "type": {"type": "map", "values": "string"}},
        {"name": "body", "type": "string"},
    ],
}

INPUT_SCHEMA = make_schema(
    "input",
    id=FieldType.LONG,
    Name=FieldType.STRING,
    active=FieldType.BOOLEAN,
    note=(FieldType.STRING, True),
)


def _formatter(**options: Any) -> StreamFormatter:
    return StreamFormatter({"schema": ENVELOPE, "header": "id", **options})


def _input(**overrides: Any) -> Any:
    values = {"id": 7, "Name": "alpha", "active": True, "note": None}
    values.update(overrides)
    return make_record(INPUT_SCHEMA, values)


class TestStreamFormatterBody:
    def test_csv_body_of_all_fields_by_default(self, ctx: PluginContext) -> None:
        result = _formatter().process(_input(), ctx)

        assert result.row["body"] == "7,alpha,true,"

    @pytest.mark.parametrize(("fmt", "expected"), [("TSV", "7\talpha\ttrue\t"), ("psv", "7|alpha|true|")])
    def test_delimited_formats(self, ctx: PluginContext, fmt: str, expected: str) -> None:
        result = _formatter(format=fmt).process(_input(), ctx)

        assert result.row["body"] == expected

    def test_json_body(self, ctx: PluginContext) -> None:
        result = _formatter(format="json").process(_input(), ctx)

        assert json.loads(result.row["body"]) == {"id": 7, "Name": "alpha", "active": True, "note": None}

    def test_body_field_selection_is_case_insensitive(self, ctx: PluginContext) -> None:
        result = _formatter(body="name, ID").process(_input(), ctx)

        # Input field order is kept regardless of the order in 'body'
        assert result.row["body"] == "7,alpha"

    def test_unknown_body_field_is_ignored(self, ctx: PluginContext) -> None:
        result = _formatter(body="id,missing").process(_input(), ctx)

        assert result.row["body"] == "7"


class TestStreamFormatterHeaders:
    def test_header_values_are_text(self, ctx: PluginContext) -> None:
        result = _formatter(header="id,active,Name").process(_input(), ctx)

        assert result.row["headers"] == {"id": "7", "active": "true", "Name": "alpha"}

    def test_null_and_missing_headers_are_skipped(self, ctx: PluginContext) -> None:
        result = _formatter(header="note,absent,id").process(_input(), ctx)

        assert result.row["headers"] == {"id": "7"}

    def test_envelope_field_order_may_be_reversed(self, ctx: PluginContext) -> None:
        schema = {"name": "env", "fields": [ENVELOPE["fields"][1], ENVELOPE["fields"][0]]}

        result = StreamFormatter({"schema": schema, "header": "id"}).process(_input(), ctx)

        assert list(result.row) == ["body", "headers"]
        assert result.row["headers"] == {"id": "7"}

    def test_success_reason(self, ctx: PluginContext) -> None:
        result = _formatter().process(_input(), ctx)

        assert result.success_reason == {"action": "formatted"}
        assert not result.is_multi_row


class TestStreamFormatterConfiguration:
    def test_header_required(self) -> None:
        with pytest.raises(PluginConfigError, match="header"):
            StreamFormatter({"schema": ENVELOPE})

    def test_unknown_format(self) -> None:
        with pytest.raises(PluginConfigError, match="Invalid format 'XML'"):
            _formatter(format="XML")

    def test_empty_header_entry(self) -> None:
        with pytest.raises(PluginConfigError, match="comma-separated list"):
            _formatter(header="id,,name")

    def test_schema_must_have_two_fields(self) -> None:
        schema = {"fields": [{"name": "body", "type": "string"}]}

        with pytest.raises(PluginConfigError, match="exactly two fields"):
            StreamFormatter({"schema": schema, "header": "id"})

    def test_schema_field_types_checked(self) -> None:
        schema = {"fields": [{"name": "headers", "type": "long"}, {"name": "body", "type": "string"}]}

        with pytest.raises(PluginConfigError, match="Field 'headers' is not of type STRING"):
            StreamFormatter({"schema": schema, "header": "id"})

    def test_schema_needs_one_of_each(self) -> None:
        schema = {"fields": [{"name": "a", "type": "string"}, {"name": "b", "type": "string"}]}

        with pytest.raises(PluginConfigError, match="one STRING and one MAP"):
            StreamFormatter({"schema": schema, "header": "id"})
