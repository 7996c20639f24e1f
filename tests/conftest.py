import itertools
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

import pytest

from loadout.backend import DesktopBackend
from loadout.config import Tuning
from loadout.models import Rect, RunningApplication, Screen

_handles = itertools.count(1000)


@dataclass
class FakeWindow:
    x: float
    y: float
    width: float
    height: float
    minimized: bool = False
    full_screen: bool = False
    main: bool = False
    handle: int = field(default_factory=lambda: next(_handles))


@dataclass
class FakeApp:
    bundle: str
    name: str
    pid: int
    running: bool = True
    windows: List[FakeWindow] = field(default_factory=list)
    windows_on_launch: int = 1
    can_create_windows: bool = True
    launchable: bool = True


class FakeDesktop(DesktopBackend):
    """Scripted desktop: apps, windows and screens live in plain lists."""

    def __init__(self, screens: Optional[List[Screen]] = None) -> None:
        self.apps: Dict[str, FakeApp] = {}
        self.screens = screens if screens is not None else [
            Screen(frame=Rect(0, 0, 1920, 1080), visible_frame=Rect(0, 0, 1920, 1040), is_main=True),
        ]
        self.calls: List[tuple] = []
        self.existing_paths: Set[str] = set()
        self.open_ok = True
        self.login_ok = True
        self._pids = itertools.count(500)

    # ── scripting helpers ────────────────────────────────────────────────
    def add_app(self, bundle: str, name: str, windows=(), running: bool = True, **kw) -> FakeApp:
        app = FakeApp(bundle=bundle, name=name, pid=next(self._pids), running=running,
                      windows=list(windows), **kw)
        self.apps[bundle] = app
        return app

    def _app_for_pid(self, pid: int) -> Optional[FakeApp]:
        for a in self.apps.values():
            if a.pid == pid and a.running:
                return a
        return None

    def _window(self, handle) -> Optional[FakeWindow]:
        for a in self.apps.values():
            for w in a.windows:
                if w.handle == handle:
                    return w
        return None

    def called(self, name: str) -> List[tuple]:
        return [c for c in self.calls if c[0] == name]

    # ── DesktopBackend ───────────────────────────────────────────────────
    def list_windows(self, pid):
        app = self._app_for_pid(pid)
        return [w.handle for w in app.windows] if app else []

    def get_position(self, window):
        w = self._window(window)
        return (w.x, w.y) if w else None

    def get_size(self, window):
        w = self._window(window)
        return (w.width, w.height) if w else None

    def set_position(self, window, x, y):
        self.calls.append(("set_position", window, x, y))
        w = self._window(window)
        if w is None:
            return False
        w.x, w.y = x, y
        return True

    def set_size(self, window, width, height):
        self.calls.append(("set_size", window, width, height))
        w = self._window(window)
        if w is None:
            return False
        w.width, w.height = width, height
        return True

    def is_minimized(self, window):
        w = self._window(window)
        return bool(w and w.minimized)

    def set_minimized(self, window, minimized):
        self.calls.append(("set_minimized", window, minimized))
        w = self._window(window)
        if w is None:
            return False
        w.minimized = minimized
        return True

    def is_main_window(self, window):
        w = self._window(window)
        return bool(w and w.main)

    def is_full_screen(self, window):
        w = self._window(window)
        return bool(w and w.full_screen)

    def list_running_apps(self):
        return [
            RunningApplication(pid=a.pid, name=a.name, bundle_identifier=a.bundle)
            for a in self.apps.values() if a.running
        ]

    def launch(self, bundle_identifier, activate=False):
        self.calls.append(("launch", bundle_identifier))
        app = self.apps.get(bundle_identifier)
        if app is None or not app.launchable:
            return None
        app.running = True
        app.pid = next(self._pids)
        for i in range(app.windows_on_launch):
            app.windows.append(FakeWindow(100 + 20 * i, 100 + 20 * i, 800, 600))
        return app.pid

    def activate(self, pid):
        self.calls.append(("activate", pid))
        return self._app_for_pid(pid) is not None

    def unhide(self, pid):
        self.calls.append(("unhide", pid))
        return True

    def open_application(self, bundle_identifier):
        self.calls.append(("open_application", bundle_identifier))
        return True

    def reopen(self, bundle_identifier):
        self.calls.append(("reopen", bundle_identifier))
        return True

    def open_url(self, url):
        self.calls.append(("open_url", url))
        return self.open_ok

    def open_file(self, path):
        self.calls.append(("open_file", path))
        return self.open_ok

    def path_exists(self, path):
        return path in self.existing_paths

    def request_new_window(self, pid):
        self.calls.append(("request_new_window", pid))
        app = self._app_for_pid(pid)
        if app is None:
            return False
        if app.can_create_windows:
            n = len(app.windows)
            app.windows.append(FakeWindow(200 + 20 * n, 200 + 20 * n, 800, 600))
        return True

    def request_exit_full_screen(self, window):
        self.calls.append(("request_exit_full_screen", window))
        w = self._window(window)
        if w is None:
            return False
        w.full_screen = False
        return True

    def list_screens(self):
        return list(self.screens)

    def set_login_item(self, enabled):
        self.calls.append(("set_login_item", enabled))
        return self.login_ok


@pytest.fixture
def desktop():
    return FakeDesktop()


@pytest.fixture
def tuning():
    return Tuning().instant()
