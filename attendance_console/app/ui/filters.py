from __future__ import annotations

import threading
import time
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, TypeVar

from attendance_console.app.application.state.query_state import QueryState
from attendance_console.app.entities import ListingModule
from attendance_console.app.ui.listing_view import matches_filters, matches_search

T = TypeVar("T")

FACET_SCOPES = {"global", "contextual"}


def clean_filters(filters: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in filters.items() if value not in (None, "", "all")}


def debounce_text(term: str, wait_ms: int = 300, sleeper: Callable[[float], None] | None = None) -> str:
    if wait_ms <= 0:
        return term
    (sleeper or time.sleep)(wait_ms / 1000)
    return term


class Debouncer(Generic[T]):
    """Delivers only the last pushed value once ``wait_ms`` passes without a new push."""

    def __init__(
        self,
        wait_ms: int,
        on_settle: Callable[[T], None],
        timer_factory: Callable[..., Any] = threading.Timer,
    ) -> None:
        self.wait_ms = max(0, wait_ms)
        self._on_settle = on_settle
        self._timer_factory = timer_factory
        self._lock = threading.Lock()
        self._timer: Any = None
        self._pending: T | None = None
        self._generation = 0
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def push(self, value: T) -> None:
        with self._lock:
            if self._closed:
                return
            if self._timer is not None:
                self._timer.cancel()
            self._generation += 1
            self._pending = value
            if self.wait_ms == 0:
                self._timer = None
                deliver = True
            else:
                timer = self._timer_factory(self.wait_ms / 1000, self._fire, args=(self._generation,))
                timer.daemon = True
                self._timer = timer
                deliver = False
        if deliver:
            self._on_settle(value)
        else:
            timer.start()

    def flush(self) -> None:
        with self._lock:
            if self._timer is None:
                return
            self._timer.cancel()
            generation = self._generation
        self._fire(generation)

    def discard(self) -> None:
        """Drop the pending value but keep accepting input."""
        with self._lock:
            self._drop_pending()

    def cancel(self) -> None:
        with self._lock:
            self._closed = True
            self._drop_pending()

    def _drop_pending(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        self._timer = None
        self._pending = None
        self._generation += 1

    def _fire(self, generation: int) -> None:
        with self._lock:
            if self._closed or generation != self._generation or self._timer is None:
                return
            value = self._pending
            self._timer = None
            self._pending = None
        self._on_settle(value)


@dataclass(frozen=True)
class FilterOption:
    value: Any
    label: str
    count: int


@dataclass(frozen=True)
class FilterDefinition:
    key: str
    title: str
    options: list[FilterOption]

    def count_for(self, value: Any) -> int:
        return next((option.count for option in self.options if option.value == value), 0)


def _field_values(item: dict[str, Any], field_name: str) -> list[Any]:
    value = item.get(field_name)
    if value is None or value == "":
        return []
    if isinstance(value, (list, tuple, set, frozenset)):
        return [entry for entry in value if entry not in (None, "")]
    return [value]


def build_filter_definitions(
    items: Iterable[dict[str, Any]],
    module: ListingModule,
    state: QueryState | None = None,
    scope: str | None = None,
) -> list[FilterDefinition]:
    """Facet options with counts.

    ``global`` counts over the whole collection, ``contextual`` counts over rows
    that pass the search and every other facet's selection.
    """
    scope = scope or module.facet_scope
    if scope not in FACET_SCOPES:
        raise ValueError(f"Unknown facet scope: {scope}")
    rows = list(items)
    active = state.active_filters() if state is not None else {}
    search_text = state.search_text if state is not None else ""

    definitions: list[FilterDefinition] = []
    for key, field_name in module.filter_fields.items():
        if scope == "contextual":
            others = {other: values for other, values in active.items() if other != key}
            counted = [
                row
                for row in rows
                if matches_search(row, search_text, module.search_fields)
                and matches_filters(row, others, module.filter_fields)
            ]
        else:
            counted = rows
        counts: Counter = Counter()
        for row in counted:
            counts.update(set(_field_values(row, field_name)))
        known = {value for row in rows for value in _field_values(row, field_name)}
        options = [FilterOption(value=value, label=str(value), count=counts.get(value, 0)) for value in known]
        options.sort(key=lambda option: option.label.lower())
        definitions.append(FilterDefinition(key=key, title=module.filter_title(key), options=options))
    return definitions
