from __future__ import annotations

from collections.abc import Hashable


class RowExpansionManager:
    def __init__(self) -> None:
        self._expanded: set = set()

    @property
    def expanded_ids(self) -> set:
        return set(self._expanded)

    def toggle(self, item_id: Hashable) -> bool:
        if item_id in self._expanded:
            self._expanded.discard(item_id)
            return False
        self._expanded.add(item_id)
        return True

    def is_expanded(self, item_id: Hashable) -> bool:
        return item_id in self._expanded

    def collapse_all(self) -> None:
        self._expanded.clear()
