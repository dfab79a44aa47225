import httpx
import pytest

from attendance_console.clients.listing_sdk import (
    AuthError,
    AuthStore,
    CollectionClient,
    HttpClient,
    NotFoundError,
    ServerError,
    TransportError,
    ValidationError,
)
from attendance_console.clients.listing_sdk.collection_client import clean_params


class _Transport:
    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def __call__(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _http(transport, attempts: int = 3) -> tuple[HttpClient, list[float]]:
    sleeps: list[float] = []
    client = HttpClient(
        "http://attendance.test/",
        retry_max_attempts=attempts,
        retry_backoff_ms=100,
        transport=transport,
        sleeper=sleeps.append,
    )
    return client, sleeps


def test_get_retries_transient_failures_with_linear_backoff() -> None:
    transport = _Transport(
        [
            httpx.ConnectError("refused"),
            httpx.Response(503, json={"message": "busy"}),
            httpx.Response(200, json={"items": [], "total": 0}),
        ]
    )
    http, sleeps = _http(transport)

    assert http.request("GET", "/api/emails") == {"items": [], "total": 0}
    assert len(transport.calls) == 3
    assert sleeps == [0.1, 0.2]
    assert transport.calls[0]["url"] == "http://attendance.test/api/emails"


def test_get_gives_up_after_max_attempts() -> None:
    transport = _Transport([httpx.ReadTimeout("slow"), httpx.ReadTimeout("slow")])
    http, _ = _http(transport, attempts=2)

    with pytest.raises(TransportError) as exc_info:
        http.request("GET", "/api/backups")

    assert exc_info.value.code == "TIMEOUT_ERROR"


def test_server_error_after_retries_keeps_trace_id() -> None:
    transport = _Transport([httpx.Response(500, json={"message": "db"}, headers={"X-Trace-ID": "tr-5"})])
    http, _ = _http(transport, attempts=1)

    with pytest.raises(ServerError) as exc_info:
        http.request("GET", "/api/backups")

    assert exc_info.value.trace_id == "tr-5"
    assert exc_info.value.status_code == 500


def test_mutations_are_never_retried() -> None:
    transport = _Transport([httpx.ConnectError("refused")])
    http, sleeps = _http(transport)

    with pytest.raises(TransportError) as exc_info:
        http.request("DELETE", "/api/rfid/tags/1")

    assert exc_info.value.code == "NETWORK_ERROR"
    assert len(transport.calls) == 1
    assert sleeps == []


def test_client_errors_are_not_retried_and_typed() -> None:
    transport = _Transport([httpx.Response(401, json={"error": "Unauthorized"})])
    http, _ = _http(transport)

    with pytest.raises(AuthError) as exc_info:
        http.request("GET", "/api/instructors")

    assert exc_info.value.message == "Unauthorized"
    assert len(transport.calls) == 1


def test_list_body_and_empty_body() -> None:
    transport = _Transport([httpx.Response(200, json=[{"id": 1}]), httpx.Response(204)])
    http, _ = _http(transport)

    assert http.request("GET", "/api/rfid/readers") == {"items": [{"id": 1}]}
    assert http.request("DELETE", "/api/rfid/readers/1") == {}


def test_clean_params_drops_unconstrained_values() -> None:
    assert clean_params({"search": "", "status": "all", "priority": None, "page": 2}) == {"page": 2}


def test_list_sends_bearer_token_and_clean_params() -> None:
    transport = _Transport([httpx.Response(200, json={"items": [{"id": "m1"}], "total": 41, "page": 2, "pageSize": 20})])
    http, _ = _http(transport)
    auth = AuthStore()
    auth.set_token("jwt-1")
    client = CollectionClient(http, auth, "api/emails/")

    response = client.list({"search": "", "status": "all", "folder": "inbox", "page": 2})

    call = transport.calls[0]
    assert call["params"] == {"folder": "inbox", "page": 2}
    assert call["headers"]["Authorization"] == "Bearer jwt-1"
    assert "X-CSRF-Token" not in call["headers"]
    assert response.total == 41
    assert response.page_size == 20
    assert response.items == [{"id": "m1"}]


def test_mutation_fetches_csrf_token_once_and_sends_it() -> None:
    transport = _Transport(
        [
            httpx.Response(200, json={"csrfToken": "csrf-abc"}),
            httpx.Response(200, json={"id": 1, "status": "INACTIVE"}),
            httpx.Response(200, json={"id": 2}),
        ]
    )
    http, _ = _http(transport)
    client = CollectionClient(http, AuthStore(), "/api/instructors")

    assert client.update(1, {"status": "INACTIVE"}) == {"id": 1, "status": "INACTIVE"}
    client.create({"firstName": "Ana"})

    assert transport.calls[0]["url"].endswith("/api/csrf-token")
    assert transport.calls[1]["method"] == "PATCH"
    assert transport.calls[1]["json"] == {"status": "INACTIVE"}
    assert transport.calls[1]["headers"]["X-CSRF-Token"] == "csrf-abc"
    assert transport.calls[2]["headers"]["X-CSRF-Token"] == "csrf-abc"
    assert len(transport.calls) == 3


def test_csrf_token_read_from_cookie() -> None:
    auth = AuthStore()

    assert auth.load_csrf_from_cookie("session=s1; csrf-token=from-cookie") == "from-cookie"
    assert auth.get_csrf_token() == "from-cookie"

    auth.clear()
    assert auth.get_csrf_token() is None


def test_validation_error_exposes_field_errors() -> None:
    transport = _Transport(
        [httpx.Response(422, json={"code": "VALIDATION_ERROR", "message": "Invalid", "details": {"fields": {"tagId": "required"}}})]
    )
    http, _ = _http(transport)
    auth = AuthStore()
    auth.csrf_token = "known"
    client = CollectionClient(http, auth, "/api/rfid/tags")

    with pytest.raises(ValidationError) as exc_info:
        client.create({})

    assert exc_info.value.field_errors == {"tagId": "required"}


def test_missing_item_raises_not_found() -> None:
    transport = _Transport([httpx.Response(404, json={"message": "Backup not found"})])
    http, _ = _http(transport)
    client = CollectionClient(http, AuthStore(), "/api/backups")

    with pytest.raises(NotFoundError):
        client.get("bk-404")
