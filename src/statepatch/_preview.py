"""Helpers for bounded log and error messages.

State trees can be arbitrarily large. This module renders a value into a
small, JSON-like preview so warnings and exception messages stay readable.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any


def preview_for_log(
    value: Any,
    *,
    max_string: int = 80,
    max_items: int = 10,
    max_depth: int = 3,
    _depth: int = 0,
) -> Any:
    """Return a truncated copy of *value* suitable for log messages."""
    if _depth > max_depth:
        return "<max-depth>"

    if value is None:
        return None

    if isinstance(value, str):
        if len(value) > max_string:
            return f"{value[:max_string]}…<truncated>"
        return value

    if isinstance(value, (int, float, bool)):
        return value

    if isinstance(value, (bytes, bytearray)):
        return f"<bytes:{len(value)}b>"

    kwargs = {"max_string": max_string, "max_items": max_items, "max_depth": max_depth, "_depth": _depth + 1}

    if isinstance(value, Mapping):
        preview: dict[str, Any] = {}
        for index, (k, v) in enumerate(value.items()):
            if index >= max_items:
                preview["…"] = f"<{len(value) - max_items} more>"
                break
            preview[str(k)] = preview_for_log(v, **kwargs)
        return preview

    if isinstance(value, Sequence):
        items = [preview_for_log(v, **kwargs) for v in value[:max_items]]
        if len(value) > max_items:
            items.append(f"<{len(value) - max_items} more>")
        return items

    # Fallback: represent unknown objects without dumping internals.
    return repr(value)
