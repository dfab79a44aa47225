from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class NoDialog:
    kind: str = "none"


@dataclass(frozen=True)
class ConfirmDelete:
    item_id: Hashable
    kind: str = "confirm_delete"


@dataclass(frozen=True)
class BulkDelete:
    item_ids: tuple
    kind: str = "bulk_delete"


@dataclass(frozen=True)
class Assign:
    item_id: Hashable
    kind: str = "assign"


@dataclass(frozen=True)
class Details:
    item_id: Hashable
    kind: str = "details"


@dataclass(frozen=True)
class Restore:
    item_id: Hashable
    kind: str = "restore"


ActiveDialog = Union[NoDialog, ConfirmDelete, BulkDelete, Assign, Details, Restore]

NO_DIALOG = NoDialog()


class DialogState:
    """At most one dialog is open per view."""

    def __init__(self) -> None:
        self.active: ActiveDialog = NO_DIALOG

    def open(self, dialog: ActiveDialog) -> ActiveDialog:
        previous = self.active
        self.active = dialog
        return previous

    def close(self) -> None:
        self.active = NO_DIALOG

    def is_open(self, kind: str | None = None) -> bool:
        if kind is None:
            return not isinstance(self.active, NoDialog)
        return self.active.kind == kind
