"""Runtime capability detection for restricted (mobile-like) platforms."""

import sys
from dataclasses import dataclass

_RESTRICTED_SYS_PLATFORMS = {"ios", "android"}


@dataclass(frozen=True, slots=True)
class PlatformCapabilities:
    name: str
    local_network: bool
    native_streaming: bool

    @property
    def restricted(self) -> bool:
        return not self.local_network


DESKTOP = PlatformCapabilities(name="desktop", local_network=True, native_streaming=True)
MOBILE = PlatformCapabilities(name="mobile", local_network=False, native_streaming=False)


def detect_platform(setting: str = "auto") -> PlatformCapabilities:
    value = str(setting or "").strip().lower()
    if value == "mobile":
        return MOBILE
    if value == "desktop":
        return DESKTOP
    if sys.platform in _RESTRICTED_SYS_PLATFORMS:
        return MOBILE
    return DESKTOP
