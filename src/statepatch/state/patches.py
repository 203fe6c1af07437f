"""Patch descriptors and batch merge planning.

A batch merge is a list of :class:`PatchDescriptor` values. Callers may pass
plain mappings (``{"key": ..., "payload": ..., "method": ...}``); they are
validated into descriptors at this boundary.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from statepatch._constants import UNSET


class PatchMethod(StrEnum):
    ADD = "add"
    UPDATE = "update"
    REMOVE = "remove"


class MergeStrategy(StrEnum):
    FOLD = "fold"
    RECONCILE = "reconcile"


class PatchDescriptor(BaseModel):
    """One requested change within a batch merge."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., description="Top-level state key")
    method: PatchMethod
    payload: Any = Field(default=None, description="Value to add or write; omitted for removals")
    selector: StrictStr | StrictInt | None = Field(
        default=None,
        description="Sub-key (mapping) or index (sequence) inside the value at `key`.",
    )

    @field_validator("method", mode="before")
    @classmethod
    def _normalize_method(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def has_payload(self) -> bool:
        return "payload" in self.model_fields_set

    def payload_or_unset(self) -> Any:
        """Return the payload, or ``UNSET`` when none was given."""
        return self.payload if self.has_payload else UNSET

    def is_applicable(self) -> bool:
        """Whether the engine would act on this descriptor at all.

        Empty keys are ignored, and so are add/update descriptors without a
        payload.
        """
        if not self.key:
            return False
        return self.method is PatchMethod.REMOVE or self.has_payload


def coerce_patch(patch: PatchDescriptor | Mapping[str, Any]) -> PatchDescriptor:
    if isinstance(patch, PatchDescriptor):
        return patch
    return PatchDescriptor.model_validate(dict(patch))


def coerce_patches(patches: Iterable[PatchDescriptor | Mapping[str, Any]] | None) -> list[PatchDescriptor]:
    """Validate a batch of patches, preserving order."""
    if not patches:
        return []
    return [coerce_patch(patch) for patch in patches]


class MergePlan(BaseModel):
    """Classification of a batch against one snapshot.

    ``added`` holds keys absent from the snapshot, ``removed`` holds keys
    deleted outright, and ``changed`` holds every other descriptor grouped by
    key in batch order.
    """

    model_config = ConfigDict(frozen=True)

    added: dict[str, Any] = Field(default_factory=dict)
    removed: tuple[str, ...] = ()
    changed: dict[str, tuple[PatchDescriptor, ...]] = Field(default_factory=dict)
    skipped: tuple[PatchDescriptor, ...] = ()


def plan_merge(state: Mapping[str, Any], patches: Iterable[PatchDescriptor]) -> MergePlan:
    """Classify *patches* into added, removed and changed sets.

    Rules, applied in batch order:

    - a removal without selector marks the key as removed;
    - the first add/update without selector for a key absent from *state*
      becomes an addition;
    - anything else is a change for its key, folded later in batch order.
    """
    added: dict[str, Any] = {}
    removed: list[str] = []
    changed: dict[str, list[PatchDescriptor]] = {}
    skipped: list[PatchDescriptor] = []

    for patch in patches:
        if not patch.is_applicable():
            skipped.append(patch)
            continue

        key = patch.key
        if patch.method is PatchMethod.REMOVE and patch.selector is None:
            if key not in removed:
                removed.append(key)
            continue

        if (
            patch.method is not PatchMethod.REMOVE
            and patch.selector is None
            and key not in state
            and key not in added
            and key not in changed
        ):
            added[key] = patch.payload
            continue

        changed.setdefault(key, []).append(patch)

    return MergePlan(
        added=added,
        removed=tuple(removed),
        changed={key: tuple(items) for key, items in changed.items()},
        skipped=tuple(skipped),
    )
