from __future__ import annotations

import pytest

BASE_URL = "https://api.example.com"


@pytest.fixture(autouse=True)
def pos_env(monkeypatch: pytest.MonkeyPatch, tmp_path):
    for key in (
        "POS_ENV",
        "POS_API_BASE_URL_DEV",
        "POS_TIMEOUT_SECONDS",
        "POS_CONNECT_TIMEOUT_SECONDS",
        "POS_READ_TIMEOUT_SECONDS",
        "POS_RETRY_BACKOFF_SECONDS",
        "POS_MAX_CONNECTIONS",
        "POS_PROFILE_CACHE_TTL_SECONDS",
        "POS_BRANCH_ID",
        "POS_VERIFY_SSL",
    ):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("POS_API_BASE_URL", BASE_URL)
    monkeypatch.setenv("POS_RETRIES", "0")
    monkeypatch.setenv("POS_TELEMETRY_ENABLED", "0")
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    monkeypatch.setenv("XDG_STATE_HOME", str(tmp_path / "state"))
    return tmp_path
