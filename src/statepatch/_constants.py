"""Shared constants for statepatch."""

from __future__ import annotations

from typing import Any, Final


class _UnsetType:
    """Marker for "no payload given"; ``None`` is a legitimate payload."""

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __copy__(self) -> _UnsetType:
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> _UnsetType:
        return self


UNSET: Final = _UnsetType()

# Environment variables read by EngineConfig.from_env().
ENV_STRICT: Final = "STATEPATCH_STRICT"
ENV_COPY_PAYLOADS: Final = "STATEPATCH_COPY_PAYLOADS"
ENV_MERGE_STRATEGY: Final = "STATEPATCH_MERGE_STRATEGY"
