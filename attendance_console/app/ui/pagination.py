from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from attendance_console.app.application.state.query_state import QueryStateStore
    from attendance_console.app.ui.listing_view import ListingPage


def last_page(total: int, page_size: int) -> int:
    return max(1, math.ceil(max(0, total) / max(1, page_size)))


def clamp_page(page: int, total: int, page_size: int) -> int:
    return min(max(1, page), last_page(total, page_size))


def next_page(store: QueryStateStore, total: int | None) -> int:
    state = store.state
    if total is not None and state.page >= last_page(total, state.page_size):
        return state.page
    store.set_page(state.page + 1)
    return store.state.page


def prev_page(store: QueryStateStore) -> int:
    store.set_page(max(1, store.state.page - 1))
    return store.state.page


def goto_page(store: QueryStateStore, page: int, total: int | None = None) -> int:
    target = max(1, page)
    if total is not None:
        target = clamp_page(target, total, store.state.page_size)
    store.set_page(target)
    return store.state.page


def page_summary(listing: ListingPage) -> str:
    if listing.is_empty:
        return "No entries"
    return f"Showing {listing.first_index} to {listing.last_index} of {listing.total} entries"
