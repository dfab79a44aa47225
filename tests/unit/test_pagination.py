from attendance_console.app.application.state.query_state import QueryDefaults, QueryStateStore
from attendance_console.app.entities import SortSpec
from attendance_console.app.ui.listing_view import ListingPage
from attendance_console.app.ui.pagination import clamp_page, goto_page, last_page, next_page, page_summary, prev_page


def _store(page_size: int = 10) -> QueryStateStore:
    return QueryStateStore(QueryDefaults(sort=SortSpec(), page_size=page_size))


def test_last_page_never_below_one() -> None:
    assert last_page(0, 10) == 1
    assert last_page(10, 10) == 1
    assert last_page(11, 10) == 2


def test_clamp_page() -> None:
    assert clamp_page(0, 30, 10) == 1
    assert clamp_page(5, 30, 10) == 3
    assert clamp_page(2, 30, 10) == 2


def test_next_prev_and_goto() -> None:
    store = _store()

    assert next_page(store, total=25) == 2
    assert next_page(store, total=25) == 3
    assert next_page(store, total=25) == 3
    assert next_page(store, total=None) == 4
    assert prev_page(store) == 3
    assert goto_page(store, 99, total=25) == 3
    assert goto_page(store, -3) == 1
    assert prev_page(store) == 1


def test_page_summary() -> None:
    listing = ListingPage(rows=[{"id": 11}, {"id": 12}], total=12, page=2, page_size=10, total_pages=2)
    empty = ListingPage(rows=[], total=0, page=1, page_size=10, total_pages=0)

    assert page_summary(listing) == "Showing 11 to 12 of 12 entries"
    assert page_summary(empty) == "No entries"
