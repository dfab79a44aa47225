from __future__ import annotations

import itertools
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from attendance_console.app.application.state.query_state import QueryState
from attendance_console.app.infrastructure.errors.error_mapper import ErrorMapper
from attendance_console.app.infrastructure.logging.logger import get_logger, log_action
from attendance_console.clients.listing_sdk.errors import is_auth_failure


@dataclass
class ResultSet:
    items: list[dict[str, Any]] = field(default_factory=list)
    total: int = 0
    stats: dict[str, Any] | None = None

    @classmethod
    def empty(cls) -> "ResultSet":
        return cls()

    def ids(self, id_field: str = "id") -> list[Any]:
        return [item.get(id_field) for item in self.items]


Loader = Callable[[QueryState], ResultSet]
AuthExpiredHandler = Callable[[Exception], None]


class DataFetcher:
    """Runs listing requests and keeps only the result of the newest one."""

    def __init__(
        self,
        load: Loader,
        module: str = "listing",
        on_auth_expired: AuthExpiredHandler | None = None,
        logger: logging.Logger | None = None,
        id_field: str = "id",
    ) -> None:
        self._load = load
        self.module = module
        self._on_auth_expired = on_auth_expired
        self._logger = logger or get_logger("attendance_console.fetcher")
        self.id_field = id_field
        self._sequence = itertools.count(1)
        self._latest = 0
        self._lock = threading.Lock()
        self._disposed = False
        self._last_state: QueryState | None = None
        self.result = ResultSet.empty()
        self.loading = False
        self.error: str | None = None
        self.error_payload: dict[str, Any] | None = None

    @property
    def disposed(self) -> bool:
        return self._disposed

    def fetch(self, state: QueryState) -> bool:
        """Returns True when this invocation's outcome was applied."""
        with self._lock:
            if self._disposed:
                return False
            sequence = next(self._sequence)
            self._latest = sequence
            self._last_state = state.copy()
            self.loading = True
        try:
            result = self._load(state)
        except Exception as exc:
            return self._apply_failure(sequence, exc)
        else:
            return self._apply_success(sequence, result)
        finally:
            with self._lock:
                if sequence == self._latest:
                    self.loading = False

    def refresh(self) -> bool:
        if self._last_state is None:
            return False
        return self.fetch(self._last_state)

    def dispose(self) -> None:
        with self._lock:
            self._disposed = True
            self.loading = False

    def patch_local(self, item_id: Any, changes: dict[str, Any]) -> dict[str, Any] | None:
        for index, item in enumerate(self.result.items):
            if item.get(self.id_field) == item_id:
                patched = {**item, **changes}
                self.result.items[index] = patched
                return patched
        return None

    def set_items(self, items: list[dict[str, Any]]) -> None:
        self.result = ResultSet(items=list(items), total=self.result.total, stats=self.result.stats)

    def _is_current(self, sequence: int) -> bool:
        return not self._disposed and sequence == self._latest

    def _apply_success(self, sequence: int, result: ResultSet) -> bool:
        with self._lock:
            if not self._is_current(sequence):
                log_action(self._logger, self.module, "fetch", "discarded", level=logging.DEBUG, sequence=sequence)
                return False
            self.result = result
            self.error = None
            self.error_payload = None
        log_action(self._logger, self.module, "fetch", "success", total=result.total)
        return True

    def _apply_failure(self, sequence: int, error: Exception) -> bool:
        payload = ErrorMapper.to_payload(error)
        log_action(
            self._logger,
            self.module,
            "fetch",
            "error",
            trace_id=payload["trace_id"],
            level=logging.ERROR,
            code=payload["code"],
            message=payload["message"],
        )
        with self._lock:
            if not self._is_current(sequence):
                return False
            self.result = ResultSet.empty()
            self.error = payload["message"]
            self.error_payload = payload
        if is_auth_failure(error) and self._on_auth_expired is not None:
            self._on_auth_expired(error)
        return True
