from __future__ import annotations

from collections.abc import Hashable, Iterable


class SelectionManager:
    """Tracks selected row ids across pages of one list view."""

    def __init__(self, selected: set | None = None) -> None:
        self._selected = selected if selected is not None else set()

    @property
    def selected_ids(self) -> set:
        return set(self._selected)

    def __len__(self) -> int:
        return len(self._selected)

    def __contains__(self, item_id: Hashable) -> bool:
        return item_id in self._selected

    def toggle_one(self, item_id: Hashable) -> bool:
        if item_id in self._selected:
            self._selected.discard(item_id)
            return False
        self._selected.add(item_id)
        return True

    def toggle_all_on_page(self, visible_ids: Iterable[Hashable]) -> None:
        ids = list(visible_ids)
        if self.is_all_selected(ids):
            self._selected.difference_update(ids)
        else:
            self._selected.update(ids)

    def is_all_selected(self, visible_ids: Iterable[Hashable]) -> bool:
        ids = list(visible_ids)
        return bool(ids) and all(item_id in self._selected for item_id in ids)

    def is_indeterminate(self, visible_ids: Iterable[Hashable]) -> bool:
        ids = list(visible_ids)
        chosen = sum(1 for item_id in ids if item_id in self._selected)
        return 0 < chosen < len(ids)

    def clear(self) -> None:
        self._selected.clear()

    def remove_many(self, ids: Iterable[Hashable]) -> None:
        self._selected.difference_update(ids)

    def retain_existing(self, existing_ids: Iterable[Hashable]) -> set:
        """Drop ids that vanished from the authoritative result set; returns the dropped ids."""
        stale = self._selected - set(existing_ids)
        self._selected.difference_update(stale)
        return stale
