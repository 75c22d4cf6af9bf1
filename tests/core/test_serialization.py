"""Tests for record serialization."""

import json

import pytest

from strata.contracts import FieldType, RecordFormat, SchemaMismatchError
from strata.core.serialization import record_from_json, serialize_record, to_text
from strata.testing import make_record, make_schema

SCHEMA = make_schema(
    "row",
    id=FieldType.LONG,
    name=FieldType.STRING,
    score=FieldType.DOUBLE,
    active=FieldType.BOOLEAN,
    raw=(FieldType.BYTES, True),
)


@pytest.fixture
def record():
    return make_record(SCHEMA, {"id": 1, "name": "ada", "score": 2.5, "active": False, "raw": b"\x01\x02"})


class TestToText:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (None, ""),
            (True, "true"),
            (False, "false"),
            (42, "42"),
            (1.5, "1.5"),
            ("text", "text"),
            (b"hi", "aGk="),
            ({"a": 1}, '{"a":1}'),
            ([1, "x"], '[1,"x"]'),
        ],
    )
    def test_renders_value(self, value, expected) -> None:
        assert to_text(value) == expected


class TestSerializeRecord:
    def test_csv_in_schema_order(self, record) -> None:
        assert serialize_record(record, RecordFormat.CSV) == "1,ada,2.5,false,AQI="

    def test_tsv(self, record) -> None:
        assert serialize_record(record, RecordFormat.TSV) == "1\tada\t2.5\tfalse\tAQI="

    def test_psv(self, record) -> None:
        assert serialize_record(record, RecordFormat.PSV) == "1|ada|2.5|false|AQI="

    def test_json_is_compact(self, record) -> None:
        text = serialize_record(record, RecordFormat.JSON)

        assert " " not in text
        assert json.loads(text) == {"id": 1, "name": "ada", "score": 2.5, "active": False, "raw": "AQI="}

    def test_json_key_order_follows_schema(self, record) -> None:
        text = serialize_record(record, RecordFormat.JSON)

        assert list(json.loads(text)) == ["id", "name", "score", "active", "raw"]

    def test_null_renders_empty_in_delimited(self) -> None:
        rec = make_record(SCHEMA, {"id": 1, "name": "a", "score": 0.0, "active": True, "raw": None})

        assert serialize_record(rec, RecordFormat.CSV) == "1,a,0.0,true,"
        assert json.loads(serialize_record(rec, RecordFormat.JSON))["raw"] is None

    def test_same_record_same_text(self, record) -> None:
        assert serialize_record(record, RecordFormat.JSON) == serialize_record(record, RecordFormat.JSON)


class TestRecordFromJson:
    def test_builds_record(self) -> None:
        rec = record_from_json({"id": 1, "name": "ada", "score": 2, "active": True, "raw": "AQI="}, SCHEMA)

        assert rec["raw"] == b"\x01\x02"
        assert rec["score"] == 2.0
        assert rec.schema == SCHEMA

    def test_inverse_of_json_serialization(self, record) -> None:
        text = serialize_record(record, RecordFormat.JSON)

        assert record_from_json(json.loads(text), SCHEMA) == record

    def test_undeclared_key_rejected(self) -> None:
        with pytest.raises(SchemaMismatchError, match="'extra' is not defined"):
            record_from_json({"id": 1, "name": "a", "score": 1.0, "active": True, "extra": 1}, SCHEMA)

    def test_invalid_base64_rejected(self) -> None:
        with pytest.raises(SchemaMismatchError, match="not valid base64") as exc_info:
            record_from_json({"id": 1, "name": "a", "score": 1.0, "active": True, "raw": "***"}, SCHEMA)

        assert exc_info.value.field == "raw"

    def test_missing_required_field_rejected(self) -> None:
        with pytest.raises(SchemaMismatchError, match="Required field 'name'"):
            record_from_json({"id": 1, "score": 1.0, "active": True}, SCHEMA)

    def test_wrong_type_rejected(self) -> None:
        with pytest.raises(SchemaMismatchError, match="declared LONG"):
            record_from_json({"id": "1", "name": "a", "score": 1.0, "active": True}, SCHEMA)
