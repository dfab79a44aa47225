"""List view controller shared by the instructor, email, RFID and backup pages.

Wires the query state store, debounced search, data fetcher, local engine,
selection, expansion and URL persistence for one view instance.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from attendance_console.app.application.bulk_actions import BulkFailure, BulkResult, run_bulk
from attendance_console.app.application.data_fetcher import DataFetcher, ResultSet
from attendance_console.app.application.optimistic import run_optimistic, toggle_field_command
from attendance_console.app.application.progress_tracker import PollingTimer, ProgressTracker
from attendance_console.app.application.state.query_state import QueryDefaults, QueryState, QueryStateStore
from attendance_console.app.config import AppConfig
from attendance_console.app.entities import ListingModule, get_module
from attendance_console.app.infrastructure.errors.error_mapper import ErrorMapper
from attendance_console.app.infrastructure.logging.logger import get_logger, log_action
from attendance_console.app.listing_cache import ListingCache, cache_key
from attendance_console.app.ui.dialogs import DialogState
from attendance_console.app.ui.expansion import RowExpansionManager
from attendance_console.app.ui.filters import Debouncer, FilterDefinition, build_filter_definitions
from attendance_console.app.ui.listing_view import ListingPage, derive_view, total_pages
from attendance_console.app.ui.selection import SelectionManager
from attendance_console.app.ui.url_sync import Persistence, UrlSynchronizer
from attendance_console.clients.listing_sdk.auth_store import AuthStore
from attendance_console.clients.listing_sdk.collection_client import CollectionClient
from attendance_console.clients.listing_sdk.http_client import HttpClient
from attendance_console.clients.listing_sdk.models import SortOrder


@dataclass
class ActionOutcome:
    ok: bool
    item: dict[str, Any] | None = None
    error: dict[str, Any] | None = None
    field_errors: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EmptyState:
    reason: str
    action: str


def query_params(state: QueryState) -> dict[str, Any]:
    params: dict[str, Any] = {
        "search": state.search_text.strip(),
        "sortBy": state.sort.field,
        "sortOrder": SortOrder(state.sort.order).value,
        "page": state.page,
        "pageSize": state.page_size,
    }
    for key, values in state.active_filters().items():
        params[key] = ",".join(sorted(str(value) for value in values))
    return params


class ListViewController:
    def __init__(
        self,
        module: ListingModule,
        client: CollectionClient,
        config: AppConfig,
        persistence: Persistence | None = None,
        on_auth_expired: Callable[[Exception], None] | None = None,
        cache: ListingCache | None = None,
        timer_factory: Callable[..., Any] | None = None,
        now: Callable[[], datetime] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.module = module
        self.client = client
        self.config = config
        self.cache = cache or ListingCache()
        self._logger = logger or get_logger("attendance_console.controller")
        self._now = now or (lambda: datetime.now(timezone.utc))
        self._on_auth_expired = on_auth_expired
        self.auth_expired = False
        self._hydrating = False

        self.store = QueryStateStore(QueryDefaults.for_module(module))
        self.selection = SelectionManager(self.store.state.selected_ids)
        self.expansion = RowExpansionManager()
        self.dialogs = DialogState()
        self.fetcher = DataFetcher(
            self._load,
            module=module.name,
            on_auth_expired=self._handle_auth_expired,
            logger=self._logger,
            id_field=module.id_field,
        )
        timer_kwargs = {"timer_factory": timer_factory} if timer_factory else {}
        self.search_input: Debouncer[str] = Debouncer(config.search_debounce_ms, self.store.set_search_text, **timer_kwargs)
        self.progress = ProgressTracker()
        self._poller = PollingTimer(
            config.poll_interval_seconds,
            self.poll_progress,
            module=module.name,
            logger=self._logger,
            **timer_kwargs,
        )
        self.url_sync = UrlSynchronizer(self.store, persistence, module) if persistence is not None else None
        self._unsubscribe = self.store.subscribe(self._on_state_change)

    # lifecycle

    def mount(self) -> ListingPage:
        if self.url_sync is not None:
            self._hydrating = True
            try:
                self.url_sync.hydrate()
            finally:
                self._hydrating = False
            self.url_sync.attach()
        self.fetcher.fetch(self.store.state)
        self._after_fetch()
        return self.visible_page()

    def dispose(self) -> None:
        self.search_input.cancel()
        self._poller.cancel()
        if self.url_sync is not None:
            self.url_sync.detach()
        self._unsubscribe()
        self.fetcher.dispose()

    def refresh(self, force: bool = True) -> bool:
        if force:
            self.cache.invalidate_module(self.module.name)
        applied = self.fetcher.fetch(self.store.state)
        self._after_fetch()
        return applied

    # query state

    def type_search(self, text: str) -> None:
        self.search_input.push(text)

    def submit_search(self) -> None:
        self.search_input.flush()

    def set_filter(self, key: str, values: Any) -> None:
        if key not in self.module.filter_fields:
            raise ValueError(f"Unknown filter for {self.module.name}: {key}")
        self.store.set_filter(key, values)

    def clear_filters(self) -> None:
        for key in list(self.store.state.filters):
            self.store.set_filter(key, None)
        self.store.set_search_text("")

    def set_sort(self, field_name: str) -> None:
        if self.module.sort_fields and field_name not in self.module.sort_fields:
            raise ValueError(f"Cannot sort {self.module.name} by {field_name}")
        self.store.set_sort(field_name)

    def set_page(self, page: int) -> None:
        self.store.set_page(page)

    def set_page_size(self, page_size: int) -> None:
        self.store.set_page_size(page_size)

    def reset(self) -> None:
        self.search_input.discard()
        self.store.reset()

    # derived view

    @property
    def state(self) -> QueryState:
        return self.store.state

    @property
    def loading(self) -> bool:
        return self.fetcher.loading

    @property
    def error(self) -> str | None:
        return self.fetcher.error

    def visible_page(self) -> ListingPage:
        state = self.store.state
        result = self.fetcher.result
        if self.module.server_side:
            return ListingPage(
                rows=list(result.items),
                total=result.total,
                page=state.page,
                page_size=state.page_size,
                total_pages=total_pages(result.total, state.page_size),
            )
        listing = derive_view(result.items, state, self.module)
        if listing.page != state.page:
            self.store.set_page(listing.page)
        return listing

    def visible_ids(self) -> list[Hashable]:
        return [self.module.item_id(row) for row in self.visible_page().rows]

    def filter_definitions(self, scope: str | None = None) -> list[FilterDefinition]:
        return build_filter_definitions(self.fetcher.result.items, self.module, self.store.state, scope=scope)

    def empty_state(self) -> EmptyState | None:
        if self.fetcher.error or not self.visible_page().is_empty:
            return None
        state = self.store.state
        if state.search_text or state.active_filters():
            return EmptyState(reason="No records match the current filters.", action="clear_filters")
        return EmptyState(reason="There are no records yet.", action="create")

    # selection and expansion

    def toggle_row(self, item_id: Hashable) -> bool:
        return self.selection.toggle_one(item_id)

    def toggle_page_selection(self) -> None:
        self.selection.toggle_all_on_page(self.visible_ids())

    def page_selection_state(self) -> str:
        ids = self.visible_ids()
        if self.selection.is_all_selected(ids):
            return "all"
        if self.selection.is_indeterminate(ids):
            return "some"
        return "none"

    def toggle_expanded(self, item_id: Hashable) -> bool:
        return self.expansion.toggle(item_id)

    # mutations

    def create_item(self, payload: dict[str, Any]) -> ActionOutcome:
        return self._mutation("create", lambda: self.client.create(payload))

    def update_item(self, item_id: Hashable, changes: dict[str, Any]) -> ActionOutcome:
        return self._mutation("update", lambda: self.client.update(item_id, changes))

    def delete_item(self, item_id: Hashable) -> ActionOutcome:
        outcome = self._mutation("delete", lambda: self.client.delete(item_id))
        if outcome.ok:
            self.selection.remove_many([item_id])
            self._forget_expansion(item_id)
        return outcome

    def _forget_expansion(self, item_id: Hashable) -> None:
        if self.expansion.is_expanded(item_id):
            self.expansion.toggle(item_id)

    def toggle_flag(self, item_id: Hashable, field_name: str) -> ActionOutcome:
        """Flip a boolean field locally first, then persist it; undone if the service rejects it."""
        items = self.fetcher.result.items
        try:
            command = toggle_field_command(items, item_id, field_name, id_field=self.module.id_field)
        except KeyError:
            return ActionOutcome(ok=False, error={"code": "NOT_FOUND", "message": f"{item_id} is not loaded"})
        try:
            updated = run_optimistic(
                command,
                items,
                remote=lambda: self.client.update(item_id, command.changes),
                commit=self.fetcher.set_items,
            )
        except Exception as exc:
            return self._failed("toggle_flag", exc)
        self.cache.invalidate_module(self.module.name)
        log_action(self._logger, self.module.name, "toggle_flag", "success", item_id=item_id, field=field_name)
        return ActionOutcome(ok=True, item=updated or None)

    def bulk_delete(self, ids: list[Hashable] | None = None) -> BulkResult:
        return self.bulk_apply("bulk_delete", self.client.delete, ids)

    def bulk_update(self, changes: dict[str, Any], ids: list[Hashable] | None = None) -> BulkResult:
        return self.bulk_apply("bulk_update", lambda item_id: self.client.update(item_id, changes), ids)

    def bulk_apply(self, action_name: str, action: Callable[[Hashable], Any], ids: list[Hashable] | None = None) -> BulkResult:
        target_ids = list(ids) if ids is not None else sorted(self.selection.selected_ids, key=str)
        vanished: list[Hashable] = []
        if not self.module.server_side:
            existing = set(self.fetcher.result.ids(self.module.id_field))
            vanished = [item_id for item_id in target_ids if item_id not in existing]
            target_ids = [item_id for item_id in target_ids if item_id not in vanished]

        result = run_bulk(
            target_ids,
            action,
            max_workers=self.config.bulk_max_workers,
            module=self.module.name,
            action_name=action_name,
            logger=self._logger,
        )
        for item_id in vanished:
            result.failed.append(BulkFailure(item_id=item_id, code="NOT_FOUND", message="The record no longer exists."))

        self.selection.remove_many(result.succeeded)
        self.refresh()
        if not self.module.server_side:
            self.selection.retain_existing(self.fetcher.result.ids(self.module.id_field))
        return result

    # long running operations

    def poll_progress(self) -> bool:
        now = self._now()
        items = self.fetcher.result.items
        changed = self.progress.tick(items, now)
        if ProgressTracker.stuck_ids(items, now):
            log_action(self._logger, self.module.name, "poll_progress", "stuck_refresh", level=logging.WARNING)
            self.refresh()
        return changed

    def start_progress_polling(self) -> None:
        self._poller.start()

    def stop_progress_polling(self) -> None:
        self._poller.cancel()

    # internals

    def _load(self, state: QueryState) -> ResultSet:
        if self.module.server_side:
            response = self.client.list(query_params(state))
            return ResultSet(items=response.items, total=response.resolved_total(), stats=response.stats)
        response = self.cache.get_or_load(cache_key(self.module.name), lambda: self.client.list({}))
        return ResultSet(items=list(response.items), total=len(response.items), stats=response.stats)

    def _after_fetch(self) -> None:
        if self.fetcher.error is None and self.module.server_side:
            self.store.clamp_page(self.fetcher.result.total)

    def _on_state_change(self, state: QueryState) -> None:
        if self.module.server_side and not self._hydrating and not self.fetcher.disposed:
            self.fetcher.fetch(state)
            self._after_fetch()

    def _handle_auth_expired(self, error: Exception) -> None:
        self.auth_expired = True
        self.search_input.cancel()
        self._poller.cancel()
        if self._on_auth_expired is not None:
            self._on_auth_expired(error)

    def _mutation(self, action: str, call: Callable[[], dict[str, Any]]) -> ActionOutcome:
        try:
            item = call()
        except Exception as exc:
            return self._failed(action, exc)
        log_action(self._logger, self.module.name, action, "success")
        self.refresh()
        return ActionOutcome(ok=True, item=item or None)

    def _failed(self, action: str, error: Exception) -> ActionOutcome:
        payload = ErrorMapper.to_payload(error)
        log_action(
            self._logger,
            self.module.name,
            action,
            "error",
            trace_id=payload["trace_id"],
            level=logging.ERROR,
            code=payload["code"],
        )
        if payload["category"] == "auth":
            self._handle_auth_expired(error)
        return ActionOutcome(ok=False, error=payload, field_errors=payload["field_errors"])


def build_controller(
    module: str | ListingModule,
    config: AppConfig | None = None,
    auth_store: AuthStore | None = None,
    http: HttpClient | None = None,
    **kwargs: Any,
) -> ListViewController:
    config = config or AppConfig.from_env()
    listing = module if isinstance(module, ListingModule) else get_module(module)
    http = http or HttpClient(
        config.base_url,
        timeout_seconds=config.timeout_seconds,
        verify_ssl=config.verify_ssl,
        retry_max_attempts=config.retry_max_attempts,
        retry_backoff_ms=config.retry_backoff_ms,
    )
    client = CollectionClient(http, auth_store or AuthStore(), listing.path)
    return ListViewController(listing, client, config, **kwargs)
