from __future__ import annotations

from dataclasses import dataclass, field

from attendance_console.clients.listing_sdk.models import SortOrder


@dataclass(frozen=True)
class SortSpec:
    field: str | None = None
    order: SortOrder = SortOrder.ASC


@dataclass(frozen=True)
class ListingModule:
    """Static description of one list page: what to search, filter and sort on."""

    name: str
    path: str
    search_fields: tuple[str, ...]
    filter_fields: dict[str, str]
    filter_titles: dict[str, str] = field(default_factory=dict)
    sort_fields: tuple[str, ...] = ()
    default_sort: SortSpec = SortSpec()
    default_page_size: int = 10
    id_field: str = "id"
    server_side: bool = False
    facet_scope: str = "global"

    def item_id(self, item: dict) -> str | int | None:
        return item.get(self.id_field)

    def filter_title(self, key: str) -> str:
        return self.filter_titles.get(key) or key.replace("_", " ").title()


INSTRUCTORS = ListingModule(
    name="instructors",
    path="/api/instructors",
    search_fields=("firstName", "lastName", "email", "departmentName"),
    filter_fields={"status": "status", "instructorType": "instructorType", "department": "departmentName"},
    filter_titles={"instructorType": "Type"},
    sort_fields=("lastName", "firstName", "email", "departmentName", "status", "instructorType"),
    default_sort=SortSpec("lastName", SortOrder.ASC),
)

EMAILS = ListingModule(
    name="emails",
    path="/api/emails",
    search_fields=("subject", "sender", "recipient"),
    filter_fields={"status": "status", "priority": "priority", "folder": "type"},
    sort_fields=("timestamp", "subject", "sender", "status", "priority"),
    default_sort=SortSpec("timestamp", SortOrder.DESC),
    default_page_size=20,
    server_side=True,
)

RFID_READERS = ListingModule(
    name="rfid_readers",
    path="/api/rfid/readers",
    search_fields=("deviceId", "deviceName", "ipAddress", "roomName"),
    filter_fields={"status": "status", "room": "roomName"},
    sort_fields=("deviceName", "deviceId", "status", "lastSeen", "roomName"),
    default_sort=SortSpec("deviceName", SortOrder.ASC),
)

RFID_TAGS = ListingModule(
    name="rfid_tags",
    path="/api/rfid/tags",
    search_fields=("tagId", "studentName", "studentId"),
    filter_fields={"status": "status", "tagType": "tagType"},
    filter_titles={"tagType": "Tag type"},
    sort_fields=("tagId", "studentName", "status", "assignedAt", "lastUsed"),
    default_sort=SortSpec("tagId", SortOrder.ASC),
)

BACKUPS = ListingModule(
    name="backups",
    path="/api/backups",
    search_fields=("name", "description", "type"),
    filter_fields={"status": "status", "type": "type", "location": "location"},
    sort_fields=("createdAt", "name", "size", "status", "type"),
    default_sort=SortSpec("createdAt", SortOrder.DESC),
)

MODULES = {module.name: module for module in (INSTRUCTORS, EMAILS, RFID_READERS, RFID_TAGS, BACKUPS)}


def get_module(name: str) -> ListingModule:
    try:
        return MODULES[name]
    except KeyError as exc:
        raise ValueError(f"Unknown listing module: {name}") from exc
