"""All type tags, action kinds and formats used across plugin boundaries.

Every enum here is a closed set. Configuration tokens are parsed into these
values once, when a plugin is configured, so an unknown token never reaches
per-record processing.
"""

from enum import StrEnum
from typing import Self


class _TokenEnum(StrEnum):
    """StrEnum with case-insensitive parsing of configuration tokens."""

    @classmethod
    def parse(cls, token: str) -> Self:
        """Parse a configuration token into a member.

        Matches member names and values case-insensitively.

        Raises:
            ValueError: If the token names no member. The message lists
                the allowed tokens.
        """
        normalized = token.strip()
        for member in cls:
            if normalized.upper() == member.name or normalized.lower() == member.value.lower():
                return member
        allowed = ", ".join(member.name for member in cls)
        raise ValueError(f"Unknown {cls.__name__} '{token}'. Allowed values: {allowed}")


class FieldType(_TokenEnum):
    """Declared type of a schema field.

    Values follow the JSON record schema vocabulary, so they double as
    the textual type tokens accepted by TargetSchema.parse().
    """

    NULL = "null"
    BOOLEAN = "boolean"
    INT = "int"
    LONG = "long"
    FLOAT = "float"
    DOUBLE = "double"
    BYTES = "bytes"
    STRING = "string"
    ENUM = "enum"
    ARRAY = "array"
    MAP = "map"
    RECORD = "record"

    @property
    def is_primitive(self) -> bool:
        """True for types a single text token can be coerced into."""
        return self in _PRIMITIVE_TYPES


_PRIMITIVE_TYPES = frozenset(
    {
        FieldType.BOOLEAN,
        FieldType.INT,
        FieldType.LONG,
        FieldType.FLOAT,
        FieldType.DOUBLE,
        FieldType.BYTES,
        FieldType.STRING,
    }
)


class EncodeKind(_TokenEnum):
    """Byte encoding applied by the field encoder.

    STRING_* variants produce the canonical text form; the plain variants
    produce encoded bytes. Both end up stored according to the output
    field's declared type.
    """

    STRING_BASE64 = "string_base64"
    STRING_BASE32 = "string_base32"
    BASE64 = "base64"
    BASE32 = "base32"
    HEX = "hex"
    NONE = "none"


class DelimiterStyle(_TokenEnum):
    """Splitting delimiter used by the delimited-text parser.

    Quotes are never metacharacters in any style; a style only selects
    the delimiter character.
    """

    DEFAULT = "default"
    EXCEL = "excel"
    RFC4180 = "rfc4180"
    MYSQL = "mysql"
    TDF = "tdf"
    PDL = "pdl"
    CUSTOM = "custom"

    @property
    def delimiter(self) -> str | None:
        """Delimiter character, or None for CUSTOM (supplied by config)."""
        return _STYLE_DELIMITERS[self]


_STYLE_DELIMITERS: dict[DelimiterStyle, str | None] = {
    DelimiterStyle.DEFAULT: ",",
    DelimiterStyle.EXCEL: ",",
    DelimiterStyle.RFC4180: ",",
    DelimiterStyle.MYSQL: "\t",
    DelimiterStyle.TDF: "\t",
    DelimiterStyle.PDL: "|",
    DelimiterStyle.CUSTOM: None,
}


class RecordFormat(_TokenEnum):
    """Text format produced by the record serializer."""

    CSV = "csv"
    TSV = "tsv"
    PSV = "psv"
    JSON = "json"

    @property
    def delimiter(self) -> str | None:
        """Field delimiter for delimited formats, None for JSON."""
        return _FORMAT_DELIMITERS[self]


_FORMAT_DELIMITERS: dict[RecordFormat, str | None] = {
    RecordFormat.CSV: ",",
    RecordFormat.TSV: "\t",
    RecordFormat.PSV: "|",
    RecordFormat.JSON: None,
}


class Determinism(StrEnum):
    """Plugin determinism classification for reproducibility.

    Every plugin declares one of these. All built-in transforms are pure
    functions of their input record and configuration.
    """

    DETERMINISTIC = "deterministic"
    NON_DETERMINISTIC = "non_deterministic"
