"""
Helpers for moving between snake_case Python data and camelCase JSON.
"""

import re
from typing import Any, Literal

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def snake_to_camel(key: str) -> str:
    stripped = key.lstrip("_")
    prefix = key[: len(key) - len(stripped)]
    head, *rest = stripped.split("_")
    return prefix + head + "".join(part[:1].upper() + part[1:] for part in rest)


def camel_to_snake(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def convert_keys(
    data: Any,
    direction: Literal["snake_to_camel", "camel_to_snake"],
    deep: bool = True,
) -> Any:
    """
    Renames dict keys in `data`. Values are left untouched, except that
    nested dicts and lists are converted too when `deep` is set.
    """
    convert = snake_to_camel if direction == "snake_to_camel" else camel_to_snake
    if isinstance(data, dict):
        return {
            (convert(key) if isinstance(key, str) else key): (
                convert_keys(value, direction) if deep else value
            )
            for key, value in data.items()
        }
    if isinstance(data, list) and deep:
        return [convert_keys(item, direction) for item in data]
    return data
