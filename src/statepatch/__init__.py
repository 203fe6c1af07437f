"""statepatch - Immutable add/update/remove/merge for plain key-value state trees."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("statepatch")
except PackageNotFoundError:
    __version__ = "0+local"
from statepatch._constants import UNSET
from statepatch.config import EngineConfig
from statepatch.exceptions import (
    StateConfigError,
    StateEmptyInputError,
    StateError,
    StateKeyError,
    StateTargetError,
    StateTypeError,
)
from statepatch.state.engine import StateEngine
from statepatch.state.patches import MergePlan, MergeStrategy, PatchDescriptor, PatchMethod, plan_merge
from statepatch.state.shape import Shape, shape_of
from statepatch.state.store import StateStore

__all__ = [
    "__version__",
    "EngineConfig",
    "MergePlan",
    "MergeStrategy",
    "PatchDescriptor",
    "PatchMethod",
    "Shape",
    "StateConfigError",
    "StateEmptyInputError",
    "StateEngine",
    "StateError",
    "StateKeyError",
    "StateStore",
    "StateTargetError",
    "StateTypeError",
    "UNSET",
    "plan_merge",
    "shape_of",
]
