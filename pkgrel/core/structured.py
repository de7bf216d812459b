"""Helpers for narrowing untyped TOML/JSON data.

``package.json`` and ``pkgrel.toml`` are both parsed into plain Python
objects; these helpers validate shapes at that boundary.
"""

from __future__ import annotations

from typing import Mapping, TypeGuard, cast

StrDict = dict[str, object]
ObjList = list[object]


def is_str_dict(obj: object) -> TypeGuard[StrDict]:
    """Return True if obj is a dict with string keys."""
    if not isinstance(obj, dict):
        return False
    d = cast(dict[object, object], obj)
    return all(isinstance(k, str) for k in d.keys())


def as_str_dict(obj: object) -> StrDict | None:
    if is_str_dict(obj):
        return obj
    return None


def get_str(table: Mapping[str, object], key: str) -> str | None:
    """Get a non-empty, stripped string value from a mapping."""
    value = table.get(key)
    if not isinstance(value, str):
        return None
    s = value.strip()
    return s or None


def get_table(table: Mapping[str, object], key: str) -> StrDict | None:
    return as_str_dict(table.get(key))


def get_str_list(table: Mapping[str, object], key: str) -> list[str] | None:
    """Get a non-empty list of strings (a command line) from a mapping.

    Returns None if missing, not a list, empty, or containing non-strings.
    """
    value = table.get(key)
    if not isinstance(value, list) or not value:
        return None
    items = cast(list[object], value)
    if not all(isinstance(item, str) and item for item in items):
        return None
    return [cast(str, item) for item in items]
