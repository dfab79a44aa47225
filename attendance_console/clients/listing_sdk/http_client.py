import time
from typing import Any, Callable

import httpx

from attendance_console.clients.listing_sdk.errors import APIError, TransportError, extract_trace_id, map_error

MUTATING_METHODS = {"POST", "PUT", "PATCH", "DELETE"}


class HttpClient:
    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 20,
        verify_ssl: bool = True,
        retry_max_attempts: int = 3,
        retry_backoff_ms: int = 150,
        transport: Callable[..., httpx.Response] | None = None,
        sleeper: Callable[[float], None] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.verify_ssl = verify_ssl
        self.retry_max_attempts = max(1, retry_max_attempts)
        self.retry_backoff_ms = max(0, retry_backoff_ms)
        self.transport = transport or httpx.request
        self._sleep = sleeper or time.sleep

    def request(
        self,
        method: str,
        path: str,
        token: str | None = None,
        csrf_token: str | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        method = method.upper()
        headers = dict(kwargs.pop("headers", None) or {})
        headers.setdefault("Accept", "application/json")
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if csrf_token and method in MUTATING_METHODS:
            headers["X-CSRF-Token"] = csrf_token
        url = f"{self.base_url}{path}"

        allow_retry = method == "GET"

        for attempt in range(1, self.retry_max_attempts + 1):
            try:
                response = self.transport(
                    method,
                    url,
                    timeout=self.timeout_seconds,
                    verify=self.verify_ssl,
                    headers=headers,
                    **kwargs,
                )
            except httpx.TimeoutException as exc:
                if (not allow_retry) or attempt >= self.retry_max_attempts:
                    raise TransportError(
                        code="TIMEOUT_ERROR",
                        message="The request timed out. Check your connection and try again.",
                    ) from exc
                self._backoff(attempt)
                continue
            except httpx.TransportError as exc:
                if (not allow_retry) or attempt >= self.retry_max_attempts:
                    raise TransportError(
                        code="NETWORK_ERROR",
                        message="Could not reach the listing service. Retry manually.",
                    ) from exc
                self._backoff(attempt)
                continue

            if response.status_code >= 400:
                if allow_retry and self._is_retryable_status(response.status_code) and attempt < self.retry_max_attempts:
                    self._backoff(attempt)
                    continue
                raise map_error(response.status_code, self._safe_json(response), extract_trace_id(response))
            if not response.content:
                return {}
            return self._safe_json(response)
        raise APIError(code="INTERNAL_ERROR", message="Max retry attempts reached")

    def _backoff(self, attempt: int) -> None:
        self._sleep((self.retry_backoff_ms * attempt) / 1000)

    @staticmethod
    def _is_retryable_status(status_code: int) -> bool:
        return 500 <= status_code <= 599

    @staticmethod
    def _safe_json(response: httpx.Response) -> dict[str, Any]:
        try:
            payload = response.json()
            return payload if isinstance(payload, dict) else {"items": payload}
        except ValueError:
            return {"message": response.text}
