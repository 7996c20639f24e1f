"""
capture.py  -  Read live windows for an application

Key behaviours
  · Windows smaller than Tuning.min_window_size in either dimension are
    toolbars, palettes or other chrome and never captured.
  · window_index is the enumeration order of the captured window, kept as a
    matching hint for restore.  It is only stable within one enumeration.
  · Nothing here raises: an app without windows simply captures as [].
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

from .backend import DesktopBackend
from .config import Tuning
from .models import LiveWindow, Rect, RunningApplication, WindowDescriptor

logger = logging.getLogger(__name__)


def window_rect(backend: DesktopBackend, window) -> Optional[Rect]:
    pos  = backend.get_position(window)
    size = backend.get_size(window)
    if pos is None or size is None:
        return None
    return Rect(float(pos[0]), float(pos[1]), float(size[0]), float(size[1]))


def live_windows(backend: DesktopBackend, pid: int) -> List[LiveWindow]:
    """Snapshot every window of ``pid``; unreadable geometry reads as 0×0."""
    result: List[LiveWindow] = []
    for idx, handle in enumerate(backend.list_windows(pid) or []):
        rect = window_rect(backend, handle) or Rect(0, 0, 0, 0)
        result.append(LiveWindow(
            handle=handle,
            index=idx,
            rect=rect,
            is_main=bool(backend.is_main_window(handle)),
        ))
    return result


def real_windows(windows: Iterable[LiveWindow], tuning: Tuning = Tuning()) -> List[LiveWindow]:
    return [w for w in windows if w.rect.is_at_least(tuning.min_window_size)]


def _descriptor(app: RunningApplication, w: LiveWindow, index: int) -> WindowDescriptor:
    return WindowDescriptor(
        bundle_identifier=app.bundle_identifier or "",
        app_name=app.name,
        x=w.rect.x,
        y=w.rect.y,
        width=w.rect.width,
        height=w.rect.height,
        window_index=index,
    )


def capture_app_windows(backend: DesktopBackend, app: RunningApplication,
                        tuning: Tuning = Tuning()) -> List[WindowDescriptor]:
    if not app.bundle_identifier:
        return []
    captured = [
        _descriptor(app, w, w.index)
        for w in real_windows(live_windows(backend, app.pid), tuning)
    ]
    for d in captured:
        logger.debug("CAPTURE %s [%d] (%g,%g %gx%g)", app.name, d.window_index,
                     d.x, d.y, d.width, d.height)
    return captured


def capture_main_window(backend: DesktopBackend, app: RunningApplication,
                        tuning: Tuning = Tuning()) -> Optional[WindowDescriptor]:
    """Single-window capture: the OS main window, else the largest one."""
    if not app.bundle_identifier:
        return None
    windows = live_windows(backend, app.pid)
    for w in windows:
        if w.is_main:
            return _descriptor(app, w, w.index)
    tall = [w for w in windows if w.rect.height > tuning.min_window_size]
    if not tall:
        return None
    best = max(tall, key=lambda w: w.rect.area)
    return _descriptor(app, best, best.index)


def capture_selection(backend: DesktopBackend, apps: Iterable[RunningApplication],
                      tuning: Tuning = Tuning()) -> List[WindowDescriptor]:
    windows: List[WindowDescriptor] = []
    for app in apps:
        if app.is_selected:
            windows.extend(capture_app_windows(backend, app, tuning))
    return windows


# ══════════════════════════════════════════════════════════════════════════
#  Running-application list
# ══════════════════════════════════════════════════════════════════════════
def app_has_windows(backend: DesktopBackend, app: RunningApplication) -> bool:
    return bool(backend.list_windows(app.pid))


def refresh_running_apps(backend: DesktopBackend,
                         exclude_name: str = "") -> List[RunningApplication]:
    """Named apps with at least one window, this program excluded, by name."""
    apps = [
        a for a in backend.list_running_apps()
        if a.name and a.name != exclude_name and app_has_windows(backend, a)
    ]
    apps.sort(key=lambda a: a.name.lower())
    return apps


def toggle_selection(apps: List[RunningApplication], pid: int) -> None:
    for a in apps:
        if a.pid == pid:
            a.is_selected = not a.is_selected


def select_all(backend: DesktopBackend, apps: List[RunningApplication]) -> None:
    for a in apps:
        if app_has_windows(backend, a):
            a.is_selected = True


def find_running_app(apps: Iterable[RunningApplication],
                     bundle_identifier: str) -> Optional[RunningApplication]:
    for a in apps:
        if a.bundle_identifier and a.bundle_identifier == bundle_identifier:
            return a
    return None
