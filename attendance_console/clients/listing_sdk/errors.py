from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

import httpx


@dataclass
class APIError(Exception):
    code: str
    message: str
    details: dict[str, Any] | list[Any] | str | None = None
    trace_id: str | None = None
    status_code: int | None = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class AuthError(APIError):
    """Session expired or missing credentials (401)."""


class PermissionError(APIError):
    """Authenticated but not allowed (403)."""


class NotFoundError(APIError):
    pass


class ValidationError(APIError):
    @property
    def field_errors(self) -> dict[str, str]:
        if not isinstance(self.details, dict):
            return {}
        fields = self.details.get("fields", self.details)
        if not isinstance(fields, dict):
            return {}
        return {str(key): str(value) for key, value in fields.items()}


class ConflictError(APIError):
    pass


class ServerError(APIError):
    pass


class TransportError(APIError):
    """Network or timeout failure before an HTTP response was returned."""


def is_auth_failure(error: Exception) -> bool:
    return isinstance(error, (AuthError, PermissionError))


def map_error(status_code: int, payload: Mapping[str, Any] | None, trace_id: str | None) -> APIError:
    payload = payload or {}
    code = str(payload.get("code") or "HTTP_ERROR")
    message = str(payload.get("message") or payload.get("error") or "Request failed")
    resolved_trace_id = payload.get("trace_id") or trace_id
    mapped: type[APIError]
    if status_code == 401:
        mapped = AuthError
    elif status_code == 403:
        mapped = PermissionError
    elif status_code == 404:
        mapped = NotFoundError
    elif status_code in {400, 422}:
        mapped = ValidationError
    elif status_code == 409:
        mapped = ConflictError
    elif status_code >= 500:
        mapped = ServerError
    else:
        mapped = APIError
    return mapped(
        code=code,
        message=message,
        details=payload.get("details"),
        trace_id=str(resolved_trace_id) if resolved_trace_id else None,
        status_code=status_code,
    )


def extract_trace_id(response: httpx.Response) -> str | None:
    return response.headers.get("X-Trace-ID") or response.headers.get("X-Trace-Id")
