"""Log-safe rendering of option values.

Options can carry sync credentials and long script templates.  Debug
traces pass values through :func:`redact_for_log` so neither ends up
verbatim in a log file.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

_SENSITIVE_KEYS: frozenset[str] = frozenset(
    {
        "password",
        "passwd",
        "token",
        "accesstoken",
        "refreshtoken",
        "secret",
        "authorization",
        "cookie",
    }
)


def _is_sensitive(key: str) -> bool:
    return key.rsplit(".", 1)[-1].lower() in _SENSITIVE_KEYS


def redact_for_log(value: Any, *, key: str = "", max_string: int = 120, _depth: int = 0) -> Any:
    """Return a copy of *value* with secrets masked and long strings cut.

    *key* is the dotted option key the value belongs to, if any; a
    sensitive last segment masks the whole value.
    """
    if key and _is_sensitive(key):
        return "<redacted>"
    if _depth > 10:
        return "<max-depth>"

    if value is None or isinstance(value, bool | int | float):
        return value

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<{len(value)} chars>"
        return value

    if isinstance(value, Mapping):
        return {
            str(k): redact_for_log(v, key=str(k), max_string=max_string, _depth=_depth + 1)
            for k, v in value.items()
        }

    if isinstance(value, Sequence) and not isinstance(value, bytes | bytearray):
        return [redact_for_log(v, max_string=max_string, _depth=_depth + 1) for v in value]

    return repr(value)
