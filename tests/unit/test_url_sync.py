from attendance_console.app.application.state.query_state import QueryDefaults, QueryStateStore
from attendance_console.app.entities import INSTRUCTORS, SortSpec
from attendance_console.app.ui.url_sync import QueryStringPersistence, UrlSynchronizer
from attendance_console.clients.listing_sdk.models import SortOrder


def _sync(query_string: str = "", replaced: list[str] | None = None):
    store = QueryStateStore(QueryDefaults.for_module(INSTRUCTORS))
    persistence = QueryStringPersistence(query_string, on_replace=replaced.append if replaced is not None else None)
    return store, persistence, UrlSynchronizer(store, persistence, INSTRUCTORS)


def test_hydrate_reads_every_parameter() -> None:
    store, _, sync = _sync("?search=maria&status=ACTIVE,INACTIVE&sortBy=email&sortOrder=desc&page=3&pageSize=25")

    state = sync.hydrate()

    assert state.search_text == "maria"
    assert state.filters == {"status": frozenset({"ACTIVE", "INACTIVE"})}
    assert state.sort == SortSpec("email", SortOrder.DESC)
    assert state.page_size == 25
    assert state.page == 3
    assert store.state is state


def test_hydrate_falls_back_to_defaults_on_malformed_values() -> None:
    _, _, sync = _sync("sortBy=password&sortOrder=sideways&page=abc&pageSize=1000&department=")

    state = sync.hydrate()

    assert state.sort == SortSpec("lastName", SortOrder.ASC)
    assert state.page == 1
    assert state.page_size == 10
    assert state.filters == {}


def test_hydrate_rejects_non_positive_page() -> None:
    _, _, sync = _sync("page=0&pageSize=-5")

    state = sync.hydrate()

    assert state.page == 1
    assert state.page_size == 10


def test_serialize_omits_defaults() -> None:
    store, _, sync = _sync()

    assert sync.serialize(store.state) == {}

    store.set_filter("department", ["Math", "IT"])
    store.set_sort("email")
    store.set_page(2)

    assert sync.serialize(store.state) == {"department": "IT,Math", "sortBy": "email", "page": "2"}


def test_attached_sync_replaces_query_string_without_growing_history() -> None:
    replaced: list[str] = []
    store, persistence, sync = _sync(replaced=replaced)
    sync.attach()

    store.set_search_text("cruz")
    store.set_page(2)

    assert persistence.query_string == "search=cruz&page=2"
    assert replaced == ["search=cruz", "search=cruz&page=2"]
    assert persistence.history == ["search=cruz&page=2"]

    sync.detach()
    store.set_page(3)
    assert persistence.query_string == "search=cruz&page=2"


def test_state_survives_round_trip_through_query_string() -> None:
    store, persistence, sync = _sync()
    sync.attach()
    store.set_search_text("reyes")
    store.set_filter("status", ["ACTIVE"])
    store.set_sort("email")
    store.set_sort("email")
    store.set_page_size(50)
    store.set_page(2)

    restored_store, _, restored = _sync(persistence.query_string)
    restored.hydrate()

    expected = store.state
    actual = restored_store.state
    assert (actual.search_text, actual.filters, actual.sort, actual.page, actual.page_size) == (
        expected.search_text,
        expected.filters,
        expected.sort,
        expected.page,
        expected.page_size,
    )
