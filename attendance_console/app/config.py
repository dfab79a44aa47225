from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_BASE_URL = "http://localhost:3000"


@dataclass(frozen=True)
class AppConfig:
    base_url: str
    timeout_seconds: float
    verify_ssl: bool
    retry_max_attempts: int
    retry_backoff_ms: int
    search_debounce_ms: int = 300
    poll_interval_seconds: float = 2.0
    bulk_max_workers: int = 8

    @classmethod
    def from_env(cls, env_file: str | None = ".env") -> "AppConfig":
        load_dotenv(env_file)
        config = cls(
            base_url=os.getenv("ATTENDANCE_API_BASE_URL", DEFAULT_BASE_URL).strip(),
            timeout_seconds=float(os.getenv("ATTENDANCE_TIMEOUT_SECONDS", "20")),
            verify_ssl=os.getenv("ATTENDANCE_VERIFY_SSL", "true").lower() == "true",
            retry_max_attempts=int(os.getenv("ATTENDANCE_RETRY_MAX_ATTEMPTS", "3")),
            retry_backoff_ms=int(os.getenv("ATTENDANCE_RETRY_BACKOFF_MS", "150")),
            search_debounce_ms=int(os.getenv("ATTENDANCE_SEARCH_DEBOUNCE_MS", "300")),
            poll_interval_seconds=float(os.getenv("ATTENDANCE_POLL_INTERVAL_SECONDS", "2")),
            bulk_max_workers=int(os.getenv("ATTENDANCE_BULK_MAX_WORKERS", "8")),
        )
        config.validate()
        return config

    def validate(self) -> None:
        if not self.base_url:
            raise ValueError("ATTENDANCE_API_BASE_URL must not be empty")
        if self.timeout_seconds <= 0:
            raise ValueError("ATTENDANCE_TIMEOUT_SECONDS must be greater than 0")
        if self.retry_max_attempts < 1:
            raise ValueError("ATTENDANCE_RETRY_MAX_ATTEMPTS must be >= 1")
        if self.retry_backoff_ms < 0:
            raise ValueError("ATTENDANCE_RETRY_BACKOFF_MS must be >= 0")
        if self.search_debounce_ms < 0:
            raise ValueError("ATTENDANCE_SEARCH_DEBOUNCE_MS must be >= 0")
        if self.poll_interval_seconds <= 0:
            raise ValueError("ATTENDANCE_POLL_INTERVAL_SECONDS must be greater than 0")
        if self.bulk_max_workers < 1:
            raise ValueError("ATTENDANCE_BULK_MAX_WORKERS must be >= 1")
