import os

import pytest

from attendance_console.app.config import DEFAULT_BASE_URL, AppConfig

ENV_KEYS = (
    "ATTENDANCE_API_BASE_URL",
    "ATTENDANCE_TIMEOUT_SECONDS",
    "ATTENDANCE_VERIFY_SSL",
    "ATTENDANCE_RETRY_MAX_ATTEMPTS",
    "ATTENDANCE_RETRY_BACKOFF_MS",
    "ATTENDANCE_SEARCH_DEBOUNCE_MS",
    "ATTENDANCE_POLL_INTERVAL_SECONDS",
    "ATTENDANCE_BULK_MAX_WORKERS",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield
    # load_dotenv writes straight into os.environ
    for key in ENV_KEYS:
        os.environ.pop(key, None)


def test_defaults_without_env(tmp_path) -> None:
    config = AppConfig.from_env(str(tmp_path / "missing.env"))

    assert config.base_url == DEFAULT_BASE_URL
    assert config.timeout_seconds == 20
    assert config.verify_ssl is True
    assert config.retry_max_attempts == 3
    assert config.search_debounce_ms == 300
    assert config.poll_interval_seconds == 2.0
    assert config.bulk_max_workers == 8


def test_values_loaded_from_env_file(tmp_path) -> None:
    env_file = tmp_path / ".env"
    env_file.write_text(
        "ATTENDANCE_API_BASE_URL=https://attendance.example.edu\n"
        "ATTENDANCE_VERIFY_SSL=false\n"
        "ATTENDANCE_SEARCH_DEBOUNCE_MS=500\n",
        encoding="utf-8",
    )

    config = AppConfig.from_env(str(env_file))

    assert config.base_url == "https://attendance.example.edu"
    assert config.verify_ssl is False
    assert config.search_debounce_ms == 500


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("ATTENDANCE_TIMEOUT_SECONDS", "0"),
        ("ATTENDANCE_RETRY_MAX_ATTEMPTS", "0"),
        ("ATTENDANCE_SEARCH_DEBOUNCE_MS", "-1"),
        ("ATTENDANCE_POLL_INTERVAL_SECONDS", "0"),
        ("ATTENDANCE_BULK_MAX_WORKERS", "0"),
    ],
)
def test_invalid_values_rejected(monkeypatch, tmp_path, key, value) -> None:
    monkeypatch.setenv(key, value)

    with pytest.raises(ValueError):
        AppConfig.from_env(str(tmp_path / "missing.env"))
