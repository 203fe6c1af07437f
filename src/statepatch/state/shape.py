"""Value shape classification.

Every engine operation classifies the value at the addressed key exactly once
and dispatches on the resulting :class:`Shape`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum
from typing import Any

# Sequences that are treated as atomic values rather than containers.
_ATOMIC_SEQUENCES = (str, bytes, bytearray)


class Shape(StrEnum):
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    SCALAR = "scalar"


def shape_of(value: Any) -> Shape:
    """Classify *value* as an ordered sequence, a mapping, or a scalar.

    ``None`` and absent values are scalars.
    """
    if isinstance(value, Mapping):
        return Shape.MAPPING
    if isinstance(value, Sequence) and not isinstance(value, _ATOMIC_SEQUENCES):
        return Shape.SEQUENCE
    return Shape.SCALAR
