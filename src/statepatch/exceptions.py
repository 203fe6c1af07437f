"""Custom exception hierarchy for statepatch."""

from __future__ import annotations

from typing import Any

from statepatch._preview import preview_for_log


class StateError(Exception):
    """Base exception for all statepatch errors."""


class StateConfigError(StateError):
    """Invalid or missing configuration."""


class StateTypeError(StateError):
    """Payload shape is incompatible with the target shape.

    Raised (in strict mode) when a non-mapping payload is added to a
    mapping-valued key.
    """

    def __init__(
        self,
        message: str = "",
        *,
        payload: Any = None,
        target: Any = None,
    ) -> None:
        self.payload = payload
        self.target = target
        if not message:
            message = (
                f"Cannot merge payload {preview_for_log(payload)!r} "
                f"({type(payload).__name__}) into mapping {preview_for_log(target)!r}"
            )
        super().__init__(message)


class StateKeyError(StateError):
    """Selector does not address an existing element."""

    def __init__(
        self,
        message: str = "",
        *,
        selector: Any = None,
        is_sequence: bool = False,
        target: Any = None,
    ) -> None:
        self.selector = selector
        self.is_sequence = is_sequence
        self.target = target
        if not message:
            kind = "index" if is_sequence else "key"
            container = "sequence" if is_sequence else "mapping"
            message = f"Invalid {kind} {selector!r} for {container} {preview_for_log(target)!r}"
        super().__init__(message)


class StateTargetError(StateError):
    """Operation references a top-level key with no current value."""

    def __init__(self, message: str = "", *, operation: str = "", key: Any = None) -> None:
        self.operation = operation
        self.key = key
        if not message:
            message = f"Cannot {operation or 'access'} {key!r}: no value in state"
        super().__init__(message)


class StateEmptyInputError(StateError):
    """Nothing to apply (empty merge list or empty mapping payload).

    Only raised in strict mode; lenient engines log a warning instead.
    """

    def __init__(self, message: str = "", *, operation: str = "") -> None:
        self.operation = operation
        super().__init__(message or f"Empty input for {operation or 'operation'}, state unchanged")
