"""Tests for settings loading and validation."""

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from strata.core.config import LoggingSettings, SchemaFileError, StrataSettings, load_settings

SETTINGS_YAML = """\
input_schema:
  name: raw
  fields:
    - {name: body, type: string}
transforms:
  - plugin: parse_delimited
    options:
      source_field: body
      delimiter: ${DELIMITER_UNDER_TEST:-COMMA}
      schema:
        name: people
        fields:
          - {name: id, type: int}
          - {name: name, type: string}
logging:
  level: debug
"""

INPUT_SCHEMA = {"name": "raw", "fields": [{"name": "body", "type": "string"}]}


def _write(tmp_path: Path, text: str, name: str = "settings.yaml") -> Path:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return path


class TestStrataSettings:
    def test_minimal(self) -> None:
        settings = StrataSettings(input_schema=INPUT_SCHEMA, transforms=[{"plugin": "clone_rows", "options": {"copies": 2}}])

        assert settings.transforms[0].plugin == "clone_rows"
        assert settings.transforms[0].options == {"copies": 2}
        assert settings.logging == LoggingSettings()
        assert settings.parsed_input_schema().field_names == ("body",)

    def test_transforms_required_non_empty(self) -> None:
        with pytest.raises(ValidationError, match="At least one transform is required"):
            StrataSettings(input_schema=INPUT_SCHEMA, transforms=[])

    def test_invalid_input_schema(self) -> None:
        with pytest.raises(ValidationError, match="non-empty list"):
            StrataSettings(input_schema={"name": "raw", "fields": []}, transforms=[{"plugin": "clone_rows"}])

    def test_frozen(self) -> None:
        settings = StrataSettings(input_schema=INPUT_SCHEMA, transforms=[{"plugin": "clone_rows"}])

        with pytest.raises(ValidationError):
            settings.transforms = []  # type: ignore[misc]

    def test_log_level_normalized(self) -> None:
        assert LoggingSettings(level="warning").level == "WARNING"

    def test_unknown_log_level(self) -> None:
        with pytest.raises(ValidationError):
            LoggingSettings(level="LOUD")


class TestLoadSettings:
    def test_loads_yaml(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DELIMITER_UNDER_TEST", raising=False)

        settings = load_settings(_write(tmp_path, SETTINGS_YAML))

        assert settings.parsed_input_schema().name == "raw"
        assert [t.plugin for t in settings.transforms] == ["parse_delimited"]
        assert settings.transforms[0].options["delimiter"] == "COMMA"
        assert settings.transforms[0].options["schema"]["name"] == "people"
        assert settings.logging.level == "DEBUG"

    def test_env_var_expansion(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DELIMITER_UNDER_TEST", "PIPE")

        settings = load_settings(_write(tmp_path, SETTINGS_YAML))

        assert settings.transforms[0].options["delimiter"] == "PIPE"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError, match="Config file not found"):
            load_settings(tmp_path / "missing.yaml")

    def test_validation_failure(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "input_schema:\n  fields:\n    - {name: body, type: string}\ntransforms: []\n")

        with pytest.raises(ValidationError, match="At least one transform is required"):
            load_settings(path)


class TestSchemaFiles:
    def test_transform_schema_file(self, tmp_path: Path) -> None:
        schema = {"name": "people", "fields": [{"name": "id", "type": "int"}]}
        (tmp_path / "schemas").mkdir()
        (tmp_path / "schemas" / "people.json").write_text(json.dumps(schema), encoding="utf-8")
        path = _write(
            tmp_path,
            "input_schema:\n  fields:\n    - {name: body, type: string}\n"
            "transforms:\n  - plugin: parse_delimited\n    options:\n      source_field: body\n      schema_file: schemas/people.json\n",
        )

        settings = load_settings(path)

        options = settings.transforms[0].options
        assert options["schema"] == schema
        assert "schema_file" not in options

    def test_input_schema_file_yaml(self, tmp_path: Path) -> None:
        _write(tmp_path, "name: raw\nfields:\n  - {name: body, type: string}\n", name="input.yaml")
        path = _write(tmp_path, "input_schema_file: input.yaml\ntransforms:\n  - plugin: clone_rows\n    options: {copies: 1}\n")

        settings = load_settings(path)

        assert settings.parsed_input_schema().field_names == ("body",)

    def test_missing_schema_file(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "input_schema_file: nowhere.json\ntransforms:\n  - plugin: clone_rows\n")

        with pytest.raises(SchemaFileError, match="Schema file not found"):
            load_settings(path)

    def test_inline_and_file_conflict(self, tmp_path: Path) -> None:
        _write(tmp_path, '{"fields": [{"name": "a", "type": "string"}]}', name="s.json")
        path = _write(
            tmp_path,
            "input_schema:\n  fields:\n    - {name: body, type: string}\n"
            "transforms:\n  - plugin: field_encoder\n    options:\n      schema: {fields: [{name: a, type: string}]}\n      schema_file: s.json\n",
        )

        with pytest.raises(SchemaFileError, match="cannot specify both 'schema' and 'schema_file'"):
            load_settings(path)

    def test_schema_file_must_hold_object(self, tmp_path: Path) -> None:
        _write(tmp_path, "- just\n- a list\n", name="bad.yaml")
        path = _write(tmp_path, "input_schema_file: bad.yaml\ntransforms:\n  - plugin: clone_rows\n")

        with pytest.raises(SchemaFileError, match="must contain a record schema object"):
            load_settings(path)
