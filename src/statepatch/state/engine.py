"""Immutable state-update engine.

:class:`StateEngine` wraps one state snapshot and returns a *new* snapshot for
every add, update, remove or merge. The input is never mutated: the top-level
mapping and the value at the touched key are rebuilt, every other top-level
value is shared with the input.

Malformed calls are reported, not raised, unless the engine is strict:

- warnings (missing key on read, empty merge, empty mapping payload) go to the
  module logger;
- error signals (:class:`~statepatch.exceptions.StateTypeError`,
  :class:`~statepatch.exceptions.StateKeyError`,
  :class:`~statepatch.exceptions.StateTargetError`) go to the ``on_error``
  callback, which logs them by default.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from statepatch._constants import UNSET
from statepatch._preview import preview_for_log
from statepatch.config import EngineConfig
from statepatch.exceptions import (
    StateEmptyInputError,
    StateError,
    StateKeyError,
    StateTargetError,
    StateTypeError,
)
from statepatch.state.patches import (
    MergeStrategy,
    PatchDescriptor,
    PatchMethod,
    coerce_patch,
    coerce_patches,
    plan_merge,
)
from statepatch.state.policy import is_present_key, is_valid_index, lookup
from statepatch.state.shape import Shape, shape_of

_logger = logging.getLogger(__name__)

State = dict[str, Any]
Selector = str | int | None
ErrorCallback = Callable[[StateError], None]
PatchLike = PatchDescriptor | Mapping[str, Any]


def _log_signal(error: StateError) -> None:
    _logger.warning("%s", error)


def _rebuild(target: Sequence[Any], items: Iterable[Any]) -> Sequence[Any]:
    """Build a new sequence of the same family as *target*."""
    if isinstance(target, tuple):
        return tuple(items)
    return list(items)


class StateEngine:
    """Produce new state snapshots from one input snapshot.

    The engine keeps no state between calls besides the snapshot and its
    configuration; use :meth:`with_state` to continue from a result.
    """

    def __init__(
        self,
        state: Mapping[str, Any] | None = None,
        *,
        config: EngineConfig | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._state: Mapping[str, Any] = state if state is not None else {}
        self._config = config or EngineConfig()
        self._on_error = on_error or _log_signal

    @property
    def state(self) -> Mapping[str, Any]:
        return self._state

    @property
    def config(self) -> EngineConfig:
        return self._config

    def with_state(self, state: Mapping[str, Any]) -> StateEngine:
        """Return an engine over *state* sharing this engine's configuration."""
        return StateEngine(state, config=self._config, on_error=self._on_error)

    # ------------------------------------------------------------------
    # Signals
    # ------------------------------------------------------------------

    def _signal(self, error: StateError, *, fatal: bool = True) -> None:
        self._on_error(error)
        if fatal and self._config.strict:
            raise error

    def _warn_empty(self, message: str, *, operation: str) -> None:
        _logger.warning(message)
        if self._config.strict:
            raise StateEmptyInputError(message, operation=operation)

    def _own(self, payload: Any) -> Any:
        if self._config.copy_payloads:
            return copy.deepcopy(payload)
        return payload

    # ------------------------------------------------------------------
    # Value-level routines
    #
    # Each routine receives the current value at a key (``UNSET`` when the key
    # is absent) and returns the new value. Returning the current value
    # unchanged means "no change"; returning ``UNSET`` means "drop the key".
    # ------------------------------------------------------------------

    def _add_value(self, current: Any, payload: Any) -> Any:
        shape = shape_of(current)

        if shape is Shape.SEQUENCE:
            return _rebuild(current, [*current, payload])

        if shape is Shape.MAPPING:
            if not isinstance(payload, Mapping):
                self._signal(StateTypeError(payload=payload, target=current))
                return current
            if not payload:
                self._warn_empty("Empty object, state unchanged.", operation="add")
                return current
            return {**current, **payload}

        return payload

    def _update_value(self, current: Any, payload: Any, selector: Selector) -> Any:
        if current is UNSET or current is None:
            return self._add_value(current, payload)

        shape = shape_of(current)

        if shape is Shape.SEQUENCE:
            if is_valid_index(selector, current, allow_end=True):
                items = list(current)
                if selector == len(items):
                    items.append(payload)
                else:
                    items[selector] = payload
                return _rebuild(current, items)
            if selector is None:
                return payload
            self._signal(StateKeyError(selector=selector, is_sequence=True, target=current))
            return current

        if shape is Shape.MAPPING:
            if is_present_key(selector, current):
                return {**current, selector: payload}
            if selector is None:
                return payload
            self._signal(StateKeyError(selector=selector, is_sequence=False, target=current))
            return current

        return payload

    def _remove_value(self, key: str, current: Any, selector: Selector) -> Any:
        if current is UNSET or current is None:
            # Reported, then handled like a scalar: the key is dropped.
            self._signal(StateTargetError(operation="remove", key=key))

        shape = shape_of(current)

        if shape is Shape.SEQUENCE:
            if is_valid_index(selector, current):
                return _rebuild(current, (item for index, item in enumerate(current) if index != selector))
            if selector is None:
                return UNSET
            self._signal(StateKeyError(selector=selector, is_sequence=True, target=current))
            return current

        if shape is Shape.MAPPING:
            if is_present_key(selector, current):
                return {k: v for k, v in current.items() if k != selector}
            if selector is None:
                return UNSET
            self._signal(StateKeyError(selector=selector, is_sequence=False, target=current))
            return current

        return UNSET

    def _apply_value(self, patch: PatchDescriptor, current: Any) -> Any:
        """Fold one descriptor into the value at its key."""
        if patch.method is PatchMethod.REMOVE:
            return self._remove_value(patch.key, current, patch.selector)

        payload = patch.payload_or_unset()
        if payload is UNSET:
            return current
        if patch.method is PatchMethod.ADD:
            return self._add_value(current, self._own(payload))
        return self._update_value(current, self._own(payload), patch.selector)

    def _commit(self, key: str, current: Any, result: Any) -> State:
        if result is current:
            return dict(self._state)
        if result is UNSET:
            return {k: v for k, v in self._state.items() if k != key}
        return {**self._state, key: result}

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    def get(self, key: str, selector: Selector = None) -> Any:
        """Read the value at *key*, or one element of it via *selector*.

        Returns ``None`` when nothing is found. Reads never raise.
        """
        if key not in self._state:
            _logger.warning("Could not get value from state, state key %r does not exist.", key)
            return None

        target = self._state[key]
        shape = shape_of(target)
        if shape is Shape.SCALAR or selector is None:
            return target

        is_sequence = shape is Shape.SEQUENCE
        found, value = lookup(target, selector, is_sequence=is_sequence)
        if not found:
            self._signal(StateKeyError(selector=selector, is_sequence=is_sequence, target=target), fatal=False)
        return value

    def add(self, key: str, payload: Any = UNSET) -> State:
        """Add *payload* at *key*.

        Sequences get *payload* appended, mappings get it shallow-merged,
        anything else is replaced.
        """
        if not key or payload is UNSET:
            return dict(self._state)

        current = self._state.get(key, UNSET)
        _logger.debug("add key=%r shape=%s payload=%r", key, shape_of(current), preview_for_log(payload))
        return self._commit(key, current, self._add_value(current, self._own(payload)))

    def update(self, key: str, payload: Any = UNSET, selector: Selector = None) -> State:
        """Replace the value at *key*, or one element of it via *selector*.

        Updating a key without a value behaves like :meth:`add`.
        """
        if not key or payload is UNSET:
            return dict(self._state)

        current = self._state.get(key, UNSET)
        _logger.debug("update key=%r selector=%r shape=%s", key, selector, shape_of(current))
        return self._commit(key, current, self._update_value(current, self._own(payload), selector))

    def remove(self, key: str, selector: Selector = None) -> State:
        """Drop *key*, or one element of its value via *selector*."""
        if not key:
            return dict(self._state)

        current = self._state.get(key, UNSET)
        _logger.debug("remove key=%r selector=%r shape=%s", key, selector, shape_of(current))
        return self._commit(key, current, self._remove_value(key, current, selector))

    def apply(self, patch: PatchLike) -> State:
        """Apply a single patch descriptor (or an equivalent mapping)."""
        descriptor = coerce_patch(patch)
        if descriptor.method is PatchMethod.REMOVE:
            return self.remove(descriptor.key, descriptor.selector)
        if descriptor.method is PatchMethod.ADD:
            return self.add(descriptor.key, descriptor.payload_or_unset())
        return self.update(descriptor.key, descriptor.payload_or_unset(), descriptor.selector)

    def merge(
        self,
        patches: Iterable[PatchLike] | None = None,
        *,
        strategy: MergeStrategy | str | None = None,
    ) -> State:
        """Apply a batch of patch descriptors in one step.

        With :attr:`MergeStrategy.FOLD` (the default) descriptors are applied
        one after another in batch order: add/update without selector writes
        the payload at its key as is, remove without selector drops the key
        (absent keys are not reported). Descriptors with a selector go through
        :meth:`apply`. :attr:`MergeStrategy.RECONCILE` delegates to
        :meth:`reconcile`.
        """
        descriptors = coerce_patches(patches)
        if not descriptors:
            self._warn_empty("No merge items provided, state unchanged.", operation="merge")
            return dict(self._state)

        resolved = MergeStrategy(strategy) if strategy is not None else self._config.merge_strategy
        if resolved is MergeStrategy.RECONCILE:
            return self._reconcile(descriptors)

        state: State = dict(self._state)
        for descriptor in descriptors:
            state = self._fold_one(state, descriptor)
        return state

    def _fold_one(self, state: State, patch: PatchDescriptor) -> State:
        if not patch.is_applicable():
            return state
        if patch.selector is not None:
            return self.with_state(state).apply(patch)
        if patch.method is PatchMethod.REMOVE:
            return {k: v for k, v in state.items() if k != patch.key}
        return {**state, patch.key: self._own(patch.payload)}

    def reconcile(self, patches: Iterable[PatchLike] | None = None) -> State:
        """Apply a batch as added, removed and changed sets against this snapshot.

        Additions are applied first, then removals, then every key's changes
        are folded in batch order (last writer wins). A key removed in the
        batch stays removed.
        """
        descriptors = coerce_patches(patches)
        if not descriptors:
            self._warn_empty("No merge items provided, state unchanged.", operation="merge")
            return dict(self._state)
        return self._reconcile(descriptors)

    def _reconcile(self, descriptors: list[PatchDescriptor]) -> State:
        plan = plan_merge(self._state, descriptors)
        _logger.debug(
            "reconcile added=%s removed=%s changed=%s skipped=%d",
            sorted(plan.added),
            list(plan.removed),
            sorted(plan.changed),
            len(plan.skipped),
        )

        working: State = {**self._state, **{key: self._own(value) for key, value in plan.added.items()}}

        removed = set(plan.removed)
        for key in plan.removed:
            working.pop(key, None)

        for key, changes in plan.changed.items():
            if key in removed:
                continue
            current = working.get(key, UNSET)
            value = current
            for change in changes:
                value = self._apply_value(change, value)
            if value is current:
                continue
            if value is UNSET:
                working.pop(key, None)
            else:
                working[key] = value

        return working
