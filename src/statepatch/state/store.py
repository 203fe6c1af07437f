"""In-memory holder for the latest state snapshot.

The store owns no merge logic of its own: every write goes through a
:class:`~statepatch.state.engine.StateEngine` and replaces the published
snapshot with the engine result. Callers only ever receive copies, so the
published snapshot cannot be mutated from outside.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from statepatch.config import EngineConfig
from statepatch.state.engine import ErrorCallback, PatchLike, Selector, State, StateEngine
from statepatch.state.patches import MergeStrategy

_logger = logging.getLogger(__name__)


class StateStore:
    """Holds the current snapshot and applies patch descriptors to it.

    This store is deterministic: given the same initial state and the same
    sequence of patches, it publishes the same snapshots. No history is kept.
    """

    def __init__(
        self,
        initial_state: Mapping[str, Any] | None = None,
        *,
        config: EngineConfig | None = None,
        on_error: ErrorCallback | None = None,
    ) -> None:
        self._engine = StateEngine(copy.deepcopy(dict(initial_state or {})), config=config, on_error=on_error)

    def snapshot(self) -> State:
        """Return a copy of the current snapshot."""
        return copy.deepcopy(dict(self._engine.state))

    def get(self, key: str, selector: Selector = None) -> Any:
        return copy.deepcopy(self._engine.get(key, selector))

    def _publish(self, state: State) -> State:
        self._engine = self._engine.with_state(state)
        return copy.deepcopy(state)

    def apply(self, patch: PatchLike) -> State:
        """Apply one patch and return a copy of the published result."""
        return self._publish(self._engine.apply(patch))

    def apply_many(
        self,
        patches: Iterable[PatchLike],
        *,
        strategy: MergeStrategy | str | None = None,
    ) -> State:
        """Apply a batch through :meth:`StateEngine.merge` and return a copy of the result."""
        state = self._engine.merge(patches, strategy=strategy)
        _logger.debug("Published snapshot with %d keys", len(state))
        return self._publish(state)
