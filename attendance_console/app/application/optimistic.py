from __future__ import annotations

from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from typing import Any, TypeVar

Items = list[dict[str, Any]]
R = TypeVar("R")


@dataclass(frozen=True)
class OptimisticCommand:
    """A local change paired with the change that undoes it."""

    apply: Callable[[Items], Items]
    invert: Callable[[Items], Items]
    changes: dict[str, Any] = field(default_factory=dict)
    description: str = ""


def _set_field(item_id: Hashable, field_name: str, value: Any, id_field: str) -> Callable[[Items], Items]:
    def _update(items: Items) -> Items:
        return [{**item, field_name: value} if item.get(id_field) == item_id else item for item in items]

    return _update


def set_field_command(item_id: Hashable, field_name: str, new_value: Any, old_value: Any, id_field: str = "id") -> OptimisticCommand:
    return OptimisticCommand(
        apply=_set_field(item_id, field_name, new_value, id_field),
        invert=_set_field(item_id, field_name, old_value, id_field),
        changes={field_name: new_value},
        description=f"set {field_name} on {item_id}",
    )


def toggle_field_command(items: Items, item_id: Hashable, field_name: str, id_field: str = "id") -> OptimisticCommand:
    current = next((item for item in items if item.get(id_field) == item_id), None)
    if current is None:
        raise KeyError(item_id)
    old_value = bool(current.get(field_name))
    return set_field_command(item_id, field_name, not old_value, old_value, id_field=id_field)


def run_optimistic(
    command: OptimisticCommand,
    items: Items,
    remote: Callable[[], R],
    commit: Callable[[Items], None],
) -> R:
    """Apply locally, call the remote, and undo the local change if the remote fails."""
    optimistic_items = command.apply(items)
    commit(optimistic_items)
    try:
        return remote()
    except Exception:
        commit(command.invert(optimistic_items))
        raise
