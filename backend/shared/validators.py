"""Settings helpers shared by server entry points."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

from pydantic_settings import EnvSettingsSource

if TYPE_CHECKING:
    from pydantic.fields import FieldInfo

_EMPTY_LIST_ERROR = "String list value must not be empty"


def _non_empty(items: list[str], *, allow_empty: bool) -> list[str]:
    if not items and not allow_empty:
        raise ValueError(_EMPTY_LIST_ERROR)
    return items


def parse_string_list(value: str | list[str], *, allow_empty: bool = False) -> list[str]:
    """Parse a list of strings from a settings value.

    Accepts a list (returned as-is), a JSON array string ('["a","b"]'),
    or a comma-separated string ('a, b'). Blank CSV segments are dropped.

    Raises ValueError for a blank string, malformed JSON, non-string JSON items,
    or an empty result unless allow_empty is set.
    """
    if isinstance(value, list):
        return _non_empty(value, allow_empty=allow_empty)

    text = value.strip()
    if not text:
        raise ValueError(_EMPTY_LIST_ERROR)

    if not text.startswith("["):
        return _non_empty([part.strip() for part in text.split(",") if part.strip()], allow_empty=allow_empty)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON array: {e}") from e
    if not isinstance(parsed, list) or any(not isinstance(item, str) for item in parsed):
        raise ValueError("JSON value must be an array of strings")
    return _non_empty(parsed, allow_empty=allow_empty)


class StringListEnvSettingsSource(EnvSettingsSource):
    """Env source that hands string-list fields to their validators undecoded.

    pydantic-settings JSON-decodes list-typed env values before validators run,
    which rejects the CSV form. Fields named in `string_list_fields` skip that
    step so parse_string_list sees the raw text.
    """

    string_list_fields: frozenset[str] = frozenset({"cors_origins"})

    def prepare_field_value(
        self,
        field_name: str,
        field: FieldInfo,
        value: Any,  # noqa: ANN401
        value_is_complex: bool,  # noqa: FBT001
    ) -> Any:  # noqa: ANN401
        if isinstance(value, str) and field_name in self.string_list_fields:
            return value
        return super().prepare_field_value(field_name, field, value, value_is_complex)
