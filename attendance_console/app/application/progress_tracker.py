from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from attendance_console.app.infrastructure.errors.error_mapper import ErrorMapper
from attendance_console.app.infrastructure.logging.logger import get_logger, log_action
from attendance_console.clients.listing_sdk.models import BackupItem

IN_PROGRESS = "IN_PROGRESS"
FINISHED_STATUSES = {"COMPLETED", "FAILED"}
BASE_DURATION_MS = {"FULL": 180_000, "INCREMENTAL": 60_000}
DEFAULT_DURATION_MS = 120_000
CLOUD_FACTOR = 1.5
SIMULATED_CAP = 95.0
STUCK_AFTER_MS = 300_000
TASK_THRESHOLDS = (
    (90, "Finalizing..."),
    (80, "Writing files..."),
    (60, "Compressing..."),
    (40, "Reading data..."),
    (20, "Scanning files..."),
)


@dataclass(frozen=True)
class BackupProgress:
    percentage: float
    estimated_time: str
    files_processed: int
    current_task: str
    start_time: datetime
    simulated: bool = True


def _parse_timestamp(raw: str | None) -> datetime | None:
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def format_time_remaining(milliseconds: float) -> str:
    if milliseconds <= 0:
        return "Less than 1 minute"
    minutes = int(milliseconds // 60_000)
    seconds = int((milliseconds % 60_000) // 1000)
    if minutes > 0:
        return f"{minutes}-{minutes + 1} minutes remaining"
    return f"{seconds}-{seconds + 30} seconds remaining"


def task_for(percentage: float) -> str:
    for threshold, label in TASK_THRESHOLDS:
        if percentage > threshold:
            return label
    return "Initializing..."


def estimated_duration_ms(backup: BackupItem) -> float:
    base = BASE_DURATION_MS.get(backup.type, DEFAULT_DURATION_MS)
    return base * (CLOUD_FACTOR if backup.location == "CLOUD" else 1)


def estimate_progress(
    backup: dict[str, Any],
    now: datetime,
    real: dict[str, Any] | None = None,
) -> BackupProgress | None:
    item = BackupItem.model_validate(backup)
    if item.status != IN_PROGRESS:
        return None
    started = _parse_timestamp(item.created_at) or now

    if real:
        percentage = min(float(real.get("percentage", 0)), 100.0)
        return BackupProgress(
            percentage=percentage,
            estimated_time="Completed" if percentage >= 100 else "Calculating...",
            files_processed=int(real.get("filesProcessed", 0)),
            current_task=str(real.get("currentTask") or task_for(percentage)),
            start_time=started,
            simulated=False,
        )

    elapsed_ms = (now - started).total_seconds() * 1000
    total_ms = estimated_duration_ms(item)
    percentage = min(SIMULATED_CAP, max(0.0, elapsed_ms / total_ms * 100))
    return BackupProgress(
        percentage=percentage,
        estimated_time=format_time_remaining(total_ms - elapsed_ms),
        files_processed=math.floor(percentage / 100 * 1000),
        current_task=task_for(percentage),
        start_time=started,
    )


class ProgressTracker:
    """Per-backup progress that only changes on a visible step."""

    def __init__(self, simulated_step: float = 5.0, real_step: float = 1.0) -> None:
        self.simulated_step = simulated_step
        self.real_step = real_step
        self.progress: dict[Any, BackupProgress] = {}
        self.real_progress: dict[Any, dict[str, Any]] = {}

    def report_real(self, backup_id: Any, payload: dict[str, Any]) -> None:
        self.real_progress[backup_id] = dict(payload)

    def tick(self, backups: list[dict[str, Any]], now: datetime) -> bool:
        changed = False
        for backup in backups:
            backup_id = backup.get("id")
            status = backup.get("status")
            if status in FINISHED_STATUSES:
                if self.progress.pop(backup_id, None) is not None:
                    changed = True
                self.real_progress.pop(backup_id, None)
                continue
            real = self.real_progress.get(backup_id)
            estimate = estimate_progress(backup, now, real=real)
            if estimate is None:
                continue
            existing = self.progress.get(backup_id)
            step = self.simulated_step if estimate.simulated else self.real_step
            if (
                existing is None
                or abs(estimate.percentage - existing.percentage) > step
                or estimate.current_task != existing.current_task
            ):
                self.progress[backup_id] = estimate
                changed = True
        return changed

    @staticmethod
    def stuck_ids(backups: list[dict[str, Any]], now: datetime) -> list[Any]:
        stuck = []
        for backup in backups:
            if backup.get("status") != IN_PROGRESS:
                continue
            started = _parse_timestamp(backup.get("createdAt"))
            if started and (now - started).total_seconds() * 1000 > STUCK_AFTER_MS:
                stuck.append(backup.get("id"))
        return stuck


class PollingTimer:
    """Repeats ``callback`` every ``interval`` seconds until cancelled."""

    def __init__(
        self,
        interval: float,
        callback: Callable[[], None],
        timer_factory: Callable[..., Any] = threading.Timer,
        module: str = "backups",
        logger: logging.Logger | None = None,
    ) -> None:
        self.interval = interval
        self._callback = callback
        self.module = module
        self._logger = logger or get_logger("attendance_console.poller")
        self._timer_factory = timer_factory
        self._timer: Any = None
        self._lock = threading.Lock()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self._schedule()

    def cancel(self) -> None:
        with self._lock:
            self._running = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _schedule(self) -> None:
        timer = self._timer_factory(self.interval, self._run)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _run(self) -> None:
        if not self._running:
            return
        try:
            self._callback()
        except Exception as exc:
            payload = ErrorMapper.to_payload(exc)
            log_action(
                self._logger,
                self.module,
                "poll",
                "error",
                trace_id=payload["trace_id"],
                level=logging.ERROR,
                code=payload["code"],
                message=payload["message"],
            )
        finally:
            with self._lock:
                if self._running:
                    self._schedule()
