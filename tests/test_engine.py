from __future__ import annotations

import copy
import logging

import pytest

from statepatch import UNSET, EngineConfig, StateEngine


def _state() -> dict:
    return {
        "users": [{"id": 1}],
        "settings": {"theme": "dark", "lang": "en"},
        "tags": ["a", "b", "c"],
        "count": 0,
    }


# ---------------------------------------------------------------------------
# get
# ---------------------------------------------------------------------------


def test_get_returns_whole_value_without_selector() -> None:
    state = _state()
    engine = StateEngine(state)

    assert engine.get("settings") is state["settings"]
    assert engine.get("count") == 0


def test_get_with_selector_reads_nested_element() -> None:
    engine = StateEngine(_state())

    assert engine.get("settings", "theme") == "dark"
    assert engine.get("tags", 2) == "c"
    assert engine.get("tags", 0) == "a"


def test_get_missing_key_warns_and_returns_none(caplog: pytest.LogCaptureFixture) -> None:
    engine = StateEngine(_state())

    with caplog.at_level(logging.WARNING, logger="statepatch.state.engine"):
        assert engine.get("nope") is None

    assert "does not exist" in caplog.text


def test_get_invalid_selector_signals_key_error_but_never_raises() -> None:
    errors = []
    engine = StateEngine(_state(), config=EngineConfig(strict=True), on_error=errors.append)

    assert engine.get("tags", 10) is None
    assert engine.get("settings", "missing") is None

    assert [error.is_sequence for error in errors] == [True, False]
    assert errors[0].selector == 10


def test_get_selector_on_scalar_returns_scalar() -> None:
    engine = StateEngine(_state())

    assert engine.get("count", "anything") == 0


# ---------------------------------------------------------------------------
# add
# ---------------------------------------------------------------------------


def test_add_appends_to_sequence() -> None:
    state = {"users": [{"id": 1}], "count": 0}

    result = StateEngine(state).add("users", {"id": 2})

    assert result == {"users": [{"id": 1}, {"id": 2}], "count": 0}
    assert state == {"users": [{"id": 1}], "count": 0}


def test_add_shallow_merges_into_mapping() -> None:
    result = StateEngine(_state()).add("settings", {"lang": "nl", "font": "mono"})

    assert result["settings"] == {"theme": "dark", "lang": "nl", "font": "mono"}


def test_add_non_mapping_payload_to_mapping_signals_type_error() -> None:
    errors = []
    state = _state()

    result = StateEngine(state, on_error=errors.append).add("settings", ["light"])

    assert result == state
    assert len(errors) == 1
    assert errors[0].payload == ["light"]
    assert errors[0].target == {"theme": "dark", "lang": "en"}


def test_add_empty_mapping_payload_warns(caplog: pytest.LogCaptureFixture) -> None:
    state = _state()

    with caplog.at_level(logging.WARNING, logger="statepatch.state.engine"):
        result = StateEngine(state).add("settings", {})

    assert result == state
    assert "Empty object" in caplog.text


def test_add_sets_new_key_and_replaces_scalar() -> None:
    engine = StateEngine(_state())

    assert engine.add("fresh", 42)["fresh"] == 42
    assert engine.add("count", 5)["count"] == 5


def test_add_accepts_none_as_payload() -> None:
    result = StateEngine({"a": 1}).add("b", None)

    assert result == {"a": 1, "b": None}


def test_add_without_key_or_payload_is_noop() -> None:
    state = _state()
    engine = StateEngine(state)

    assert engine.add("", 1) == state
    assert engine.add("count") == state
    assert engine.add("count", UNSET) == state


def test_add_then_get_returns_payload() -> None:
    result = StateEngine(_state()).add("profile", {"name": "Ada"})

    assert StateEngine(result).get("profile") == {"name": "Ada"}


def test_add_preserves_tuple_sequences() -> None:
    result = StateEngine({"point": (1, 2)}).add("point", 3)

    assert result["point"] == (1, 2, 3)


# ---------------------------------------------------------------------------
# update
# ---------------------------------------------------------------------------


def test_update_mapping_sub_key() -> None:
    result = StateEngine({"settings": {"theme": "dark"}}).update("settings", "light", "theme")

    assert result == {"settings": {"theme": "light"}}


def test_update_sequence_element_preserves_siblings() -> None:
    state = _state()

    result = StateEngine(state).update("tags", "B", 1)

    assert result["tags"] == ["a", "B", "c"]
    assert state["tags"] == ["a", "b", "c"]


def test_update_sequence_index_at_end_appends() -> None:
    result = StateEngine(_state()).update("tags", "d", 3)

    assert result["tags"] == ["a", "b", "c", "d"]


def test_update_without_selector_replaces_whole_value() -> None:
    engine = StateEngine(_state())

    assert engine.update("tags", ["z"])["tags"] == ["z"]
    assert engine.update("settings", {"theme": "light"})["settings"] == {"theme": "light"}
    assert engine.update("count", 7)["count"] == 7


def test_update_missing_key_behaves_like_add() -> None:
    result = StateEngine({"a": None}).update("a", [1])

    assert result == {"a": [1]}
    assert StateEngine({}).update("b", 2, "ignored") == {"b": 2}


@pytest.mark.parametrize(
    ("key", "selector", "is_sequence"),
    [
        ("tags", 4, True),
        ("tags", -1, True),
        ("tags", "1", True),
        ("tags", True, True),
        ("settings", "font", False),
        ("settings", 0, False),
    ],
)
def test_update_invalid_selector_signals_and_keeps_state(key: str, selector: object, is_sequence: bool) -> None:
    errors = []
    state = _state()

    result = StateEngine(state, on_error=errors.append).update(key, "x", selector)  # type: ignore[arg-type]

    assert result == state
    assert len(errors) == 1
    assert errors[0].is_sequence is is_sequence


def test_update_without_key_or_payload_is_noop() -> None:
    state = _state()
    engine = StateEngine(state)

    assert engine.update("", 1) == state
    assert engine.update("count") == state


# ---------------------------------------------------------------------------
# remove
# ---------------------------------------------------------------------------


def test_remove_sequence_index() -> None:
    result = StateEngine({"tags": ["a", "b", "c"]}).remove("tags", 1)

    assert result == {"tags": ["a", "c"]}


def test_remove_top_level_key() -> None:
    result = StateEngine({"a": 1, "b": 2}).remove("a")

    assert result == {"b": 2}


def test_remove_mapping_sub_key() -> None:
    result = StateEngine(_state()).remove("settings", "lang")

    assert result["settings"] == {"theme": "dark"}


def test_remove_container_without_selector_drops_key() -> None:
    engine = StateEngine(_state())

    assert "tags" not in engine.remove("tags")
    assert "settings" not in engine.remove("settings")


def test_remove_index_end_is_invalid() -> None:
    errors = []
    state = _state()

    result = StateEngine(state, on_error=errors.append).remove("tags", 3)

    assert result == state
    assert errors[0].is_sequence is True


def test_remove_missing_sub_key_signals() -> None:
    errors = []
    state = _state()

    result = StateEngine(state, on_error=errors.append).remove("settings", "font")

    assert result == state
    assert errors[0].selector == "font"


def test_remove_missing_key_signals_target_error() -> None:
    errors = []
    state = _state()

    result = StateEngine(state, on_error=errors.append).remove("ghost")

    assert result == state
    assert errors[0].operation == "remove"
    assert errors[0].key == "ghost"


def test_remove_then_get_returns_none(caplog: pytest.LogCaptureFixture) -> None:
    state = _state()
    result = StateEngine(state).remove("count")

    with caplog.at_level(logging.WARNING, logger="statepatch.state.engine"):
        assert StateEngine(result).get("count") is None

    assert caplog.records
    assert {k: v for k, v in state.items() if k != "count"} == result


def test_remove_without_key_is_noop() -> None:
    state = _state()

    assert StateEngine(state).remove("") == state


# ---------------------------------------------------------------------------
# immutability
# ---------------------------------------------------------------------------


def test_operations_never_mutate_input() -> None:
    state = _state()
    before = copy.deepcopy(state)
    engine = StateEngine(state)

    engine.add("users", {"id": 2})
    engine.add("settings", {"font": "mono"})
    engine.update("tags", "x", 0)
    engine.update("settings", "light", "theme")
    engine.remove("tags", 0)
    engine.remove("settings", "lang")
    engine.remove("count")
    engine.merge([{"key": "users", "payload": {"id": 3}, "method": "add"}])
    engine.reconcile([{"key": "tags", "payload": "q", "method": "update", "selector": 1}])

    assert state == before


def test_copy_on_write_identity() -> None:
    state = _state()

    result = StateEngine(state).update("tags", "x", 0)

    assert result is not state
    assert result["tags"] is not state["tags"]
    assert result["users"] is state["users"]
    assert result["settings"] is state["settings"]


def test_noop_returns_new_top_level_mapping() -> None:
    state = _state()

    result = StateEngine(state).add("", 1)

    assert result == state
    assert result is not state


def test_payloads_are_copied_by_default() -> None:
    payload = {"id": 2, "roles": ["admin"]}

    result = StateEngine(_state()).add("users", payload)
    payload["roles"].append("owner")

    assert result["users"][-1] == {"id": 2, "roles": ["admin"]}


def test_payload_copy_can_be_disabled() -> None:
    payload = {"id": 2}

    result = StateEngine(_state(), config=EngineConfig(copy_payloads=False)).add("users", payload)

    assert result["users"][-1] is payload


def test_with_state_shares_configuration() -> None:
    config = EngineConfig(strict=True)
    engine = StateEngine({"a": 1}, config=config)

    follow_up = engine.with_state(engine.add("b", 2))

    assert follow_up.config is config
    assert follow_up.state == {"a": 1, "b": 2}


def test_update_mapping_sub_key_preserves_siblings() -> None:
    state = {"settings": {"theme": "dark", "lang": "en"}}

    result = StateEngine(state).update("settings", "light", "theme")

    assert result["settings"] == {"theme": "light", "lang": "en"}
    assert result["settings"]["lang"] == state["settings"]["lang"]
    assert state == {"settings": {"theme": "dark", "lang": "en"}}


def test_remove_key_holding_none_signals_target_error() -> None:
    errors = []

    result = StateEngine({"a": None, "b": 1}, on_error=errors.append).remove("a")

    assert result == {"b": 1}
    assert len(errors) == 1
    assert errors[0].operation == "remove"
