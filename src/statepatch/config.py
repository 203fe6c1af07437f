"""Engine configuration for statepatch."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from statepatch._constants import ENV_COPY_PAYLOADS, ENV_MERGE_STRATEGY, ENV_STRICT
from statepatch.exceptions import StateConfigError
from statepatch.state.patches import MergeStrategy


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


@dataclasses.dataclass(frozen=True)
class EngineConfig:
    """Engine configuration.

    Parameters
    ----------
    strict : bool
        Raise error signals (type mismatch, invalid selector, missing target,
        empty input) instead of only reporting them. Reads through
        ``StateEngine.get`` never raise.
    copy_payloads : bool
        Deep-copy payloads before they are inserted so a new snapshot never
        shares mutable objects with the caller.
    merge_strategy : MergeStrategy
        Algorithm used by ``StateEngine.merge`` when no strategy is passed.
    """

    strict: bool = False
    copy_payloads: bool = True
    merge_strategy: MergeStrategy = MergeStrategy.FOLD

    def __post_init__(self) -> None:
        # Accept plain strings such as "reconcile".
        try:
            strategy = MergeStrategy(self.merge_strategy)
        except ValueError as exc:
            raise StateConfigError(f"Unknown merge strategy {self.merge_strategy!r}") from exc
        object.__setattr__(self, "merge_strategy", strategy)

    @classmethod
    def from_env(cls, **overrides: Any) -> EngineConfig:
        """Create configuration from ``STATEPATCH_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        StateConfigError
            If ``STATEPATCH_MERGE_STRATEGY`` names an unknown strategy.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        if "strict" not in overrides:
            config_kwargs["strict"] = _env_bool(env.get(ENV_STRICT), False)

        if "copy_payloads" not in overrides:
            config_kwargs["copy_payloads"] = _env_bool(env.get(ENV_COPY_PAYLOADS), True)

        strategy_env = env.get(ENV_MERGE_STRATEGY)
        if strategy_env is not None and "merge_strategy" not in overrides:
            config_kwargs["merge_strategy"] = strategy_env.strip().lower()

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
