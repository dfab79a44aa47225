from __future__ import annotations

from typing import Any

from attendance_console.clients.listing_sdk.auth_store import AuthStore
from attendance_console.clients.listing_sdk.http_client import HttpClient
from attendance_console.clients.listing_sdk.models import ListResponse

UNCONSTRAINED_VALUES = (None, "", "all")


def clean_params(params: dict[str, Any] | None) -> dict[str, Any]:
    return {key: value for key, value in (params or {}).items() if value not in UNCONSTRAINED_VALUES}


class CollectionClient:
    """CRUD access to one listing collection, e.g. ``/api/emails``."""

    def __init__(self, http: HttpClient, auth_store: AuthStore, path: str) -> None:
        self.http = http
        self.auth_store = auth_store
        self.path = "/" + path.strip("/")

    def list(self, params: dict[str, Any] | None = None) -> ListResponse:
        payload = self.http.request(
            "GET",
            self.path,
            token=self.auth_store.get_token(),
            params=clean_params(params),
        )
        return ListResponse.model_validate(payload)

    def get(self, item_id: str | int) -> dict[str, Any]:
        return self.http.request("GET", f"{self.path}/{item_id}", token=self.auth_store.get_token())

    def update(self, item_id: str | int, changes: dict[str, Any]) -> dict[str, Any]:
        return self._mutate("PATCH", f"{self.path}/{item_id}", json=changes)

    def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self._mutate("POST", self.path, json=payload)

    def delete(self, item_id: str | int) -> dict[str, Any]:
        return self._mutate("DELETE", f"{self.path}/{item_id}")

    def _mutate(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        return self.http.request(
            method,
            path,
            token=self.auth_store.get_token(),
            csrf_token=self.auth_store.get_csrf_token(self.http),
            **kwargs,
        )
