"""Application flags kept next to the presets in the defaults file."""

from __future__ import annotations

from typing import Optional

from .backend import DesktopBackend
from .events import EventBus
from .persistence import DefaultsFile

LAUNCH_AT_LOGIN_KEY     = "launchAtLogin"
HIDE_DOCK_ICON_KEY      = "hideDockIcon"
HAS_SEEN_ONBOARDING_KEY = "hasSeenOnboarding"
STARTUP_PRESET_KEY      = "startupPreset"


class Settings:
    def __init__(self, defaults: DefaultsFile, backend: Optional[DesktopBackend] = None,
                 events: Optional[EventBus] = None) -> None:
        self.defaults = defaults
        self.backend  = backend
        self.events   = events or EventBus()

    def _flag(self, key: str) -> bool:
        return bool(self.defaults.get(key, False))

    @property
    def launch_at_login(self) -> bool:
        return self._flag(LAUNCH_AT_LOGIN_KEY)

    def set_launch_at_login(self, enabled: bool) -> bool:
        """Register/unregister the login item; the flag keeps its old value on failure."""
        previous = self.launch_at_login
        ok = self.backend is not None and self.backend.set_login_item(enabled)
        if not ok:
            self.events.warn(
                "Launch at login",
                f"Could not {'enable' if enabled else 'disable'} launch at login.",
            )
            self.defaults.set(LAUNCH_AT_LOGIN_KEY, previous)
            return False
        self.defaults.set(LAUNCH_AT_LOGIN_KEY, bool(enabled))
        return True

    @property
    def hide_dock_icon(self) -> bool:
        return self._flag(HIDE_DOCK_ICON_KEY)

    @hide_dock_icon.setter
    def hide_dock_icon(self, value: bool) -> None:
        self.defaults.set(HIDE_DOCK_ICON_KEY, bool(value))

    @property
    def has_seen_onboarding(self) -> bool:
        return self._flag(HAS_SEEN_ONBOARDING_KEY)

    @has_seen_onboarding.setter
    def has_seen_onboarding(self, value: bool) -> None:
        self.defaults.set(HAS_SEEN_ONBOARDING_KEY, bool(value))

    @property
    def startup_preset(self) -> str:
        return str(self.defaults.get(STARTUP_PRESET_KEY, "") or "")

    @startup_preset.setter
    def startup_preset(self, value: str) -> None:
        self.defaults.set(STARTUP_PRESET_KEY, value or "")
