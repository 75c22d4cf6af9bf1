"""Field mapping grammar shared by schema-driven transforms.

A field mapping selects a per-field action with a compact string:

    field:action[,field:action]*

e.g. "payload:BASE64,checksum:HEX". Entries are separated by commas and
split on colons. Whitespace around names and actions is ignored and
action tokens are case-insensitive. The result is an immutable mapping
built once at configuration time.
"""

from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import TypeVar

A = TypeVar("A")

ENTRY_SEPARATOR = ","
PAIR_SEPARATOR = ":"


def parse_field_mapping(
    text: str,
    parse_action: Callable[[str], A],
    *,
    grammar: str = "<fieldname>:<action>",
) -> Mapping[str, A]:
    """Parse a field mapping string into a read-only name -> action mapping.

    Args:
        text: Mapping text, e.g. "a:HEX,b:BASE64"
        parse_action: Converts an action token to its value; raises
            ValueError for unknown tokens (EncodeKind.parse, for example)
        grammar: Expected format shown in error messages

    Returns:
        Read-only mapping preserving entry order.

    Raises:
        ValueError: If an entry is malformed, names an empty field, repeats
            a field, or uses an unknown action. The message quotes the
            offending entry and the expected grammar.
    """
    if not text or not text.strip():
        raise ValueError(f"Field mapping is empty. Format should be {grammar}[,{grammar}]*")

    mapping: dict[str, A] = {}
    for entry in text.split(ENTRY_SEPARATOR):
        params = entry.split(PAIR_SEPARATOR)
        if len(params) < 2:
            raise ValueError(f"Configuration '{entry}' is incorrectly formed. Format should be {grammar}")

        field = params[0].strip()
        if not field:
            raise ValueError(f"Configuration '{entry}' has an empty field name. Format should be {grammar}")

        try:
            action = parse_action(params[1].strip())
        except ValueError as e:
            raise ValueError(f"{e} (found in mapping '{entry}')") from e

        if field in mapping:
            raise ValueError(f"Field '{field}' already has an action set. Check the mapping '{text}'.")
        mapping[field] = action

    return MappingProxyType(mapping)
