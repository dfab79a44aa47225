from __future__ import annotations

from http.cookies import SimpleCookie
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from attendance_console.clients.listing_sdk.http_client import HttpClient

CSRF_COOKIE_NAME = "csrf-token"
CSRF_TOKEN_PATH = "/api/csrf-token"


class AuthStore:
    def __init__(self) -> None:
        self.token: str | None = None
        self.csrf_token: str | None = None

    def set_token(self, token: str) -> None:
        self.token = token

    def get_token(self) -> str | None:
        return self.token

    def clear(self) -> None:
        self.token = None
        self.csrf_token = None

    def load_csrf_from_cookie(self, cookie_header: str | None) -> str | None:
        if not cookie_header:
            return None
        cookie = SimpleCookie()
        cookie.load(cookie_header)
        morsel = cookie.get(CSRF_COOKIE_NAME)
        if morsel and morsel.value:
            self.csrf_token = morsel.value
        return self.csrf_token

    def get_csrf_token(self, http: HttpClient | None = None) -> str | None:
        """Return the cached CSRF token, asking the token endpoint once when missing."""
        if self.csrf_token or http is None:
            return self.csrf_token
        payload = http.request("GET", CSRF_TOKEN_PATH, token=self.token)
        token = payload.get("csrfToken") or payload.get("token")
        self.csrf_token = str(token) if token else None
        return self.csrf_token
