import pytest

from attendance_console.app.application.state.query_state import QueryState
from attendance_console.app.entities import ListingModule
from attendance_console.app.ui.filters import build_filter_definitions, clean_filters

READERS = ListingModule(
    name="readers",
    path="/api/readers",
    search_fields=("deviceName",),
    filter_fields={"status": "status", "room": "roomName"},
    filter_titles={"room": "Room"},
    sort_fields=("deviceName",),
)

ITEMS = [
    {"id": 1, "deviceName": "Lobby A", "status": "ONLINE", "roomName": "Lobby"},
    {"id": 2, "deviceName": "Lobby B", "status": "OFFLINE", "roomName": "Lobby"},
    {"id": 3, "deviceName": "Lab", "status": "ONLINE", "roomName": "lab 2"},
    {"id": 4, "deviceName": "Gym", "status": "ONLINE", "roomName": None},
]


def _by_key(definitions):
    return {definition.key: definition for definition in definitions}


def test_clean_filters_drops_unset_values() -> None:
    assert clean_filters({"status": "all", "type": "", "room": None, "priority": "HIGH"}) == {"priority": "HIGH"}


def test_global_counts_ignore_current_query() -> None:
    state = QueryState(search_text="lobby", filters={"status": frozenset({"OFFLINE"})})

    definitions = _by_key(build_filter_definitions(ITEMS, READERS, state, scope="global"))

    status = definitions["status"]
    assert [option.value for option in status.options] == ["OFFLINE", "ONLINE"]
    assert status.count_for("ONLINE") == 3
    assert status.count_for("OFFLINE") == 1
    assert status.count_for("MISSING") == 0


def test_options_sorted_case_insensitively_and_titles_resolved() -> None:
    definitions = _by_key(build_filter_definitions(ITEMS, READERS))

    room = definitions["room"]
    assert room.title == "Room"
    assert [option.label for option in room.options] == ["lab 2", "Lobby"]
    assert room.count_for("Lobby") == 2


def test_contextual_counts_apply_search_and_other_facets() -> None:
    state = QueryState(search_text="lobby", filters={"status": frozenset({"ONLINE"})})

    definitions = _by_key(build_filter_definitions(ITEMS, READERS, state, scope="contextual"))

    status = definitions["status"]
    assert status.count_for("ONLINE") == 1
    assert status.count_for("OFFLINE") == 1

    room = definitions["room"]
    assert room.count_for("Lobby") == 1
    assert room.count_for("lab 2") == 0
    assert [option.value for option in room.options] == ["lab 2", "Lobby"]


def test_unknown_scope_rejected() -> None:
    with pytest.raises(ValueError):
        build_filter_definitions(ITEMS, READERS, scope="everything")
