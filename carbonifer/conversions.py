"""Loose conversions of values read from plans."""

from __future__ import annotations

import re
from collections.abc import Iterable

_INTEGER = re.compile(r"[+-]?\d+")


def parse_to_int(value: object) -> int:
    """Convert an int, a float or a numeric string to an int, truncating floats."""
    if isinstance(value, bool):
        raise TypeError(f"Cannot convert interface to int: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return _truncate(value, value)
    if isinstance(value, str):
        if _INTEGER.fullmatch(value):
            return int(value)
        if value != value.strip():
            raise ValueError(f"invalid syntax: {value!r}")
        try:
            number = float(value)
        except ValueError as exc:
            raise ValueError(f"invalid syntax: {value!r}") from exc
        return _truncate(number, value)
    raise TypeError(f"Cannot convert interface to int: {value!r}")


def _truncate(number: float, original: object) -> int:
    try:
        return int(number)
    except (OverflowError, ValueError) as exc:
        raise ValueError(f"Cannot convert to int: {original!r}") from exc


def to_string_list(items: Iterable[object]) -> list[str]:
    """Return ``items`` as a list of strings; every item must already be a string."""
    result = list(items)
    for item in result:
        if not isinstance(item, str):
            raise TypeError(f"expected a string, got {item!r}")
    return result