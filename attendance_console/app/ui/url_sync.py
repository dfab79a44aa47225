from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Protocol
from urllib.parse import parse_qsl, urlencode

from attendance_console.app.application.state.query_state import QueryState, QueryStateStore
from attendance_console.app.entities import ListingModule
from attendance_console.clients.listing_sdk.models import SortOrder

MAX_PAGE_SIZE = 100


class Persistence(Protocol):
    def load(self) -> dict[str, str]: ...

    def save(self, params: dict[str, str]) -> None: ...


class QueryStringPersistence:
    """Address-bar stand-in: every save replaces the current entry, history never grows."""

    def __init__(self, query_string: str = "", on_replace: Callable[[str], None] | None = None) -> None:
        self.query_string = query_string.lstrip("?")
        self.history = [self.query_string]
        self._on_replace = on_replace

    def load(self) -> dict[str, str]:
        return dict(parse_qsl(self.query_string, keep_blank_values=False))

    def save(self, params: dict[str, str]) -> None:
        self.query_string = urlencode(params)
        self.history[-1] = self.query_string
        if self._on_replace:
            self._on_replace(self.query_string)


def _parse_positive_int(raw: str | None, upper: int | None = None) -> int | None:
    if raw is None:
        return None
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return None
    if value < 1 or (upper is not None and value > upper):
        return None
    return value


class UrlSynchronizer:
    def __init__(
        self,
        store: QueryStateStore,
        persistence: Persistence,
        module: ListingModule,
        filter_keys: Iterable[str] | None = None,
    ) -> None:
        self.store = store
        self.persistence = persistence
        self.module = module
        self.filter_keys = tuple(filter_keys or module.filter_fields.keys())
        self._unsubscribe: Callable[[], None] | None = None

    def hydrate(self) -> QueryState:
        params = self.persistence.load()
        defaults = self.store.defaults

        search = params.get("search", "").strip()
        if search:
            self.store.set_search_text(search)
        for key in self.filter_keys:
            raw = params.get(key)
            if raw:
                self.store.set_filter(key, [value.strip() for value in raw.split(",") if value.strip()])

        sort_by = params.get("sortBy")
        sort_field = sort_by if sort_by in self.module.sort_fields else defaults.sort.field
        raw_order = (params.get("sortOrder") or "").lower()
        order = SortOrder(raw_order) if raw_order in {SortOrder.ASC.value, SortOrder.DESC.value} else defaults.sort.order
        self.store.set_sort_spec(sort_field, order)

        page_size = _parse_positive_int(params.get("pageSize"), upper=MAX_PAGE_SIZE)
        if page_size is not None:
            self.store.set_page_size(page_size)
        page = _parse_positive_int(params.get("page"))
        if page is not None:
            self.store.set_page(page)
        return self.store.state

    def serialize(self, state: QueryState) -> dict[str, str]:
        defaults = self.store.defaults
        params: dict[str, str] = {}
        if state.search_text:
            params["search"] = state.search_text
        for key in self.filter_keys:
            values = state.filters.get(key)
            if values:
                params[key] = ",".join(sorted(str(value) for value in values))
        if state.sort.field != defaults.sort.field:
            params["sortBy"] = str(state.sort.field or "")
        if state.sort.order != defaults.sort.order:
            params["sortOrder"] = SortOrder(state.sort.order).value
        if state.page != 1:
            params["page"] = str(state.page)
        if state.page_size != defaults.page_size:
            params["pageSize"] = str(state.page_size)
        return params

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.store.subscribe(self._on_change)

    def detach(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_change(self, state: QueryState) -> None:
        self.persistence.save(self.serialize(state))
