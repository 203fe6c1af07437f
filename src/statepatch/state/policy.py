"""Selector validity policy.

Selectors address one element inside a sequence (integer index) or a mapping
(string key). These predicates decide which selectors are accepted by each
operation; the engine never probes containers any other way.
"""

from __future__ import annotations

from collections.abc import Hashable, Mapping, Sequence
from typing import Any


def is_index(selector: Any) -> bool:
    """Return True for integer selectors (``bool`` is not an index)."""
    return isinstance(selector, int) and not isinstance(selector, bool)


def is_valid_index(selector: Any, target: Sequence[Any], *, allow_end: bool = False) -> bool:
    """Decide whether *selector* addresses an element of *target*.

    With ``allow_end`` the position just past the last element is accepted as
    well; ``update`` uses it to append.
    """
    if not is_index(selector):
        return False
    upper = len(target) if allow_end else len(target) - 1
    return 0 <= selector <= upper


def is_present_key(selector: Any, target: Mapping[str, Any]) -> bool:
    """Decide whether *selector* is a string key present in *target*."""
    return isinstance(selector, str) and selector in target


def lookup(target: Any, selector: Any, *, is_sequence: bool) -> tuple[bool, Any]:
    """Resolve *selector* inside *target*.

    Returns ``(found, value)``; ``value`` is ``None`` when nothing is found.
    """
    if is_sequence:
        if is_valid_index(selector, target):
            return True, target[selector]
        return False, None
    if isinstance(selector, Hashable) and selector in target:
        return True, target[selector]
    return False, None
