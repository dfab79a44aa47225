from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from typing import Any

from attendance_console.app.entities import ListingModule, SortSpec
from attendance_console.app.ui.pagination import clamp_page
from attendance_console.clients.listing_sdk.models import SortOrder

ALL_VALUES = "all"

StateListener = Callable[["QueryState"], None]


@dataclass
class QueryState:
    search_text: str = ""
    filters: dict[str, frozenset] = field(default_factory=dict)
    sort: SortSpec = SortSpec()
    page: int = 1
    page_size: int = 10
    selected_ids: set = field(default_factory=set)

    def active_filters(self) -> dict[str, frozenset]:
        return {key: values for key, values in self.filters.items() if values}

    def copy(self) -> "QueryState":
        return replace(self, filters=dict(self.filters), selected_ids=set(self.selected_ids))


@dataclass(frozen=True)
class QueryDefaults:
    sort: SortSpec = SortSpec()
    page_size: int = 10

    @classmethod
    def for_module(cls, module: ListingModule) -> "QueryDefaults":
        return cls(sort=module.default_sort, page_size=module.default_page_size)

    def build(self) -> QueryState:
        return QueryState(sort=self.sort, page_size=self.page_size)


def normalize_filter_values(values: Any) -> frozenset:
    if values is None:
        return frozenset()
    if isinstance(values, (str, int)):
        values = [values]
    return frozenset(value for value in values if value not in (None, "", ALL_VALUES))


class QueryStateStore:
    """Single owner of the query state for one list view."""

    def __init__(self, defaults: QueryDefaults | None = None) -> None:
        self.defaults = defaults or QueryDefaults()
        self._state = self.defaults.build()
        self._listeners: list[StateListener] = []

    @property
    def state(self) -> QueryState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def set_search_text(self, text: str) -> None:
        text = text or ""
        if text == self._state.search_text:
            return
        self._state.search_text = text
        self._state.page = 1
        self._invalidate_selection()
        self._notify()

    def set_filter(self, key: str, values: Iterable[Any] | str | None) -> None:
        normalized = normalize_filter_values(values)
        current = self._state.filters.get(key, frozenset())
        if normalized == current:
            return
        if normalized:
            self._state.filters[key] = normalized
        else:
            self._state.filters.pop(key, None)
        self._state.page = 1
        self._invalidate_selection()
        self._notify()

    def set_sort(self, field_name: str) -> None:
        current = self._state.sort
        if current.field == field_name:
            order = SortOrder.DESC if current.order == SortOrder.ASC else SortOrder.ASC
            self._state.sort = SortSpec(field_name, order)
        else:
            self._state.sort = SortSpec(field_name, SortOrder.ASC)
        self._invalidate_selection()
        self._notify()

    def set_sort_spec(self, field_name: str | None, order: SortOrder) -> None:
        spec = SortSpec(field_name, SortOrder(order))
        if spec == self._state.sort:
            return
        self._state.sort = spec
        self._invalidate_selection()
        self._notify()

    def set_page(self, page: int) -> None:
        page = max(1, int(page))
        if page == self._state.page:
            return
        self._state.page = page
        self._notify()

    def set_page_size(self, page_size: int) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        if page_size == self._state.page_size:
            return
        self._state.page_size = page_size
        self._state.page = 1
        self._invalidate_selection()
        self._notify()

    def clamp_page(self, total: int) -> int:
        clamped = clamp_page(self._state.page, total, self._state.page_size)
        if clamped != self._state.page:
            self._state.page = clamped
            self._notify()
        return clamped

    def reset(self) -> None:
        # The selected id set is shared with SelectionManager; keep its identity.
        selected = self._state.selected_ids
        selected.clear()
        self._state = self.defaults.build()
        self._state.selected_ids = selected
        self._notify()

    def _invalidate_selection(self) -> None:
        self._state.selected_ids.clear()

    def _notify(self) -> None:
        snapshot = self._state.copy()
        for listener in list(self._listeners):
            listener(snapshot)
