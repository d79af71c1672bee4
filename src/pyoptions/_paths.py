"""Dotted key paths and structural helpers over JSON-like option values.

A key such as ``"editor.lineWrapping"`` addresses the ``lineWrapping``
entry inside the ``editor`` top-level option.  Segments are split on
``.`` with no escaping, so a segment name can never contain a dot.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

KeyPath = str | Sequence[str]


def normalize_keys(key: KeyPath) -> list[str]:
    """Return the path segments for *key*."""
    if isinstance(key, str):
        return key.split(".")
    return [str(segment) for segment in key]


def join_keys(keys: Sequence[str]) -> str:
    return ".".join(keys)


def ensure_list(data: Any) -> list[Any]:
    """Wrap a single record so callers can always iterate."""
    if isinstance(data, list | tuple):
        return list(data)
    return [data]


def object_get(obj: Any, keys: Sequence[str]) -> Any:
    """Descend into *obj*; a missing or non-mapping step yields ``None``."""
    current = obj
    for key in keys:
        if not isinstance(current, Mapping):
            return None
        current = current.get(key)
        if current is None:
            return None
    return current


def object_set(obj: Any, keys: Sequence[str], value: Any) -> dict[str, Any]:
    """Set *value* at *keys* inside *obj* and return the root mapping.

    *obj* is mutated in place when it is a dict.  Missing or non-mapping
    intermediates are replaced with fresh dicts.
    """
    root: dict[str, Any] = obj if isinstance(obj, dict) else {}
    current = root
    for key in keys[:-1]:
        child = current.get(key)
        if not isinstance(child, dict):
            child = {}
            current[key] = child
        current = child
    current[keys[-1]] = value
    return root


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality for JSON values.

    Unlike ``==`` this keeps ``True`` distinct from ``1``.
    """
    if isinstance(a, bool) or isinstance(b, bool):
        return isinstance(a, bool) and isinstance(b, bool) and a is b
    if isinstance(a, Mapping) and isinstance(b, Mapping):
        if a.keys() != b.keys():
            return False
        return all(deep_equal(a[k], b[k]) for k in a)
    if isinstance(a, list | tuple) and isinstance(b, list | tuple):
        return len(a) == len(b) and all(deep_equal(x, y) for x, y in zip(a, b, strict=True))
    if isinstance(a, Mapping | list | tuple) or isinstance(b, Mapping | list | tuple):
        return False
    return bool(a == b)
