from __future__ import annotations

import locale
import math
from collections.abc import Iterable
from dataclasses import dataclass
from functools import cmp_to_key
from numbers import Real
from typing import Any

from attendance_console.app.application.state.query_state import QueryState
from attendance_console.app.entities import ListingModule, SortSpec
from attendance_console.clients.listing_sdk.models import SortOrder


@dataclass(frozen=True)
class ListingPage:
    rows: list[dict[str, Any]]
    total: int
    page: int
    page_size: int
    total_pages: int

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    @property
    def first_index(self) -> int:
        return 0 if not self.rows else (self.page - 1) * self.page_size + 1

    @property
    def last_index(self) -> int:
        return 0 if not self.rows else self.first_index + len(self.rows) - 1


def matches_search(item: dict[str, Any], text: str, fields: Iterable[str]) -> bool:
    needle = (text or "").strip().lower()
    if not needle:
        return True
    for field_name in fields:
        value = item.get(field_name)
        if value is None:
            continue
        if needle in str(value).lower():
            return True
    return False


def matches_filters(item: dict[str, Any], filters: dict[str, frozenset], field_map: dict[str, str]) -> bool:
    for key, selected in filters.items():
        if not selected:
            continue
        value = item.get(field_map.get(key, key))
        candidates = value if isinstance(value, (list, tuple, set, frozenset)) else [value]
        if not any(candidate in selected for candidate in candidates):
            return False
    return True


def filter_rows(items: Iterable[dict[str, Any]], state: QueryState, module: ListingModule) -> list[dict[str, Any]]:
    active = state.active_filters()
    return [
        item
        for item in items
        if matches_search(item, state.search_text, module.search_fields)
        and matches_filters(item, active, module.filter_fields)
    ]


def compare_values(left: Any, right: Any) -> int:
    if isinstance(left, str) and isinstance(right, str):
        result = locale.strcoll(left, right)
        return (result > 0) - (result < 0)
    if isinstance(left, Real) and isinstance(right, Real):
        delta = left - right
        return (delta > 0) - (delta < 0)
    return 0


def sort_rows(items: Iterable[dict[str, Any]], sort: SortSpec) -> list[dict[str, Any]]:
    rows = list(items)
    if not sort.field:
        return rows
    sign = -1 if sort.order == SortOrder.DESC else 1

    def _compare(left: dict[str, Any], right: dict[str, Any]) -> int:
        return sign * compare_values(left.get(sort.field), right.get(sort.field))

    return sorted(rows, key=cmp_to_key(_compare))


def total_pages(total: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    return math.ceil(max(0, total) / page_size)


def paginate(items: list[dict[str, Any]], page: int, page_size: int) -> list[dict[str, Any]]:
    if page_size < 1:
        raise ValueError("page_size must be >= 1")
    if page < 1:
        return []
    start = (page - 1) * page_size
    return items[start : start + page_size]


def derive_view(items: Iterable[dict[str, Any]], state: QueryState, module: ListingModule) -> ListingPage:
    """Filter, sort and slice ``items`` for ``state``; page is clamped to the filtered total."""
    filtered = filter_rows(items, state, module)
    ordered = sort_rows(filtered, state.sort)
    pages = total_pages(len(ordered), state.page_size)
    page = min(max(1, state.page), max(1, pages))
    return ListingPage(
        rows=paginate(ordered, page, state.page_size),
        total=len(ordered),
        page=page,
        page_size=state.page_size,
        total_pages=pages,
    )
