import pytest

from evergreen_ai import platform as platform_mod
from evergreen_ai.platform import DESKTOP, MOBILE, detect_platform


def test_explicit_settings() -> None:
    assert detect_platform("mobile") is MOBILE
    assert detect_platform(" Desktop ") is DESKTOP


def test_auto_detects_restricted_runtime(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(platform_mod.sys, "platform", "ios")
    assert detect_platform("auto") is MOBILE
    monkeypatch.setattr(platform_mod.sys, "platform", "linux")
    assert detect_platform("auto") is DESKTOP


def test_capabilities() -> None:
    assert MOBILE.restricted is True
    assert MOBILE.native_streaming is False
    assert DESKTOP.restricted is False
