from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any

from attendance_console.app.infrastructure.errors.error_mapper import ErrorMapper
from attendance_console.app.infrastructure.logging.logger import get_logger, log_action


@dataclass(frozen=True)
class BulkFailure:
    item_id: Hashable
    code: str
    message: str
    trace_id: str | None = None


@dataclass
class BulkResult:
    succeeded: list = field(default_factory=list)
    failed: list[BulkFailure] = field(default_factory=list)

    @property
    def failed_ids(self) -> list:
        return [failure.item_id for failure in self.failed]

    def summary(self) -> dict[str, int]:
        return {
            "total": len(self.succeeded) + len(self.failed),
            "success": len(self.succeeded),
            "failed": len(self.failed),
        }

    def as_rows(self) -> list[dict[str, Any]]:
        rows: list[dict[str, Any]] = [{"item_id": item_id, "result": "success"} for item_id in self.succeeded]
        rows.extend(
            {
                "item_id": failure.item_id,
                "result": "error",
                "code": failure.code,
                "message": failure.message,
                "trace_id": failure.trace_id,
            }
            for failure in self.failed
        )
        return rows


def run_bulk(
    ids: Iterable[Hashable],
    action: Callable[[Hashable], Any],
    max_workers: int = 8,
    module: str = "bulk",
    action_name: str = "bulk_action",
    logger: logging.Logger | None = None,
) -> BulkResult:
    """Run ``action`` for every id concurrently; failures are tallied, never rolled back."""
    logger = logger or get_logger("attendance_console.bulk")
    unique_ids = list(dict.fromkeys(ids))
    result = BulkResult()
    if not unique_ids:
        return result

    outcomes: dict[Hashable, BulkFailure | None] = {}
    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(unique_ids)))) as executor:
        futures = {executor.submit(action, item_id): item_id for item_id in unique_ids}
        for future in as_completed(futures):
            item_id = futures[future]
            try:
                future.result()
            except Exception as exc:
                payload = ErrorMapper.to_payload(exc)
                outcomes[item_id] = BulkFailure(
                    item_id=item_id,
                    code=payload["code"],
                    message=payload["message"],
                    trace_id=payload["trace_id"],
                )
            else:
                outcomes[item_id] = None

    # Report in the caller's order, not completion order.
    for item_id in unique_ids:
        failure = outcomes[item_id]
        if failure is None:
            result.succeeded.append(item_id)
        else:
            result.failed.append(failure)

    summary = result.summary()
    log_action(
        logger,
        module,
        action_name,
        "success" if not result.failed else "partial_failure",
        level=logging.INFO if not result.failed else logging.WARNING,
        **summary,
    )
    return result
