import pytest

from evergreen_ai.config import get_settings

_SETTINGS_ENV = (
    "APP_ENV",
    "AI_PROVIDER",
    "AI_MODEL",
    "AI_API_KEY",
    "AI_API_ENDPOINT",
    "AI_TEMPERATURE",
    "AI_MAX_TOKENS",
    "AI_MAX_RETRIES",
    "AI_RETRY_BASE_DELAY_MS",
    "AI_RETRY_MAX_DELAY_MS",
    "AI_REQUEST_TIMEOUT_SECONDS",
    "AI_STREAM_TIMEOUT_SECONDS",
    "AI_PLATFORM",
)


@pytest.fixture(autouse=True)
def test_env(tmp_path, monkeypatch):
    # Keep a developer's .env and shell settings out of the tests.
    monkeypatch.chdir(tmp_path)
    for key in _SETTINGS_ENV:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("LOG_LEVEL", "ERROR")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
