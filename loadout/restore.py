"""
restore.py  -  Drive live windows back to a saved preset

Per application (grouped by bundle identifier, first-appearance order):

    not running  -> launch -> wait for a window (<= launch_settle)
    running      -> activate -> wait (<= activate_settle)
    enumerate    -> empty? retry ladder:
                       0  unhide + activate
                       1  open the application again with activation
                       2  ask the application to reopen its window
                    still empty: give up on this application
    ensure count -> request new windows one at a time until the real
                    (>= min size) window count covers the preset
    match        -> matching.match_all, unmatched descriptors are skipped
    position     -> leave full screen / un-minimize first, then clamp to
                    the current screens and set position + size

Every wait is an awaited poll: it returns as soon as the OS reports the
state we wait for, and otherwise after the configured delay.  Chains for
different applications run as separate tasks; two applies that touch the
same application are serialized by a per-application lock.
"""

from __future__ import annotations

import asyncio
import copy
import logging
import os
import time
from typing import Awaitable, Callable, Dict, List, Optional, Tuple
from urllib.parse import urlparse

from .backend import DesktopBackend, WindowHandle
from .capture import find_running_app, live_windows, real_windows, window_rect
from .config import Tuning
from .events import EventBus, PresetApplied
from .matching import match_all
from .models import LaunchItem, LiveWindow, Preset, WindowDescriptor
from .screens import adjust_rect, current_configuration, is_full_screen_frame

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


async def poll_until(check: Callable[[], bool], timeout: float, interval: float,
                     sleep: Sleep = asyncio.sleep,
                     clock: Callable[[], float] = time.monotonic) -> bool:
    """Await until ``check()`` is true or ``timeout`` seconds have passed."""
    deadline = clock() + timeout
    while True:
        if check():
            return True
        remaining = deadline - clock()
        if remaining <= 0:
            return False
        await sleep(min(interval, remaining) if interval > 0 else remaining)


class RestoreOrchestrator:
    def __init__(self, backend: DesktopBackend, events: Optional[EventBus] = None,
                 tuning: Tuning = Tuning(), sleep: Optional[Sleep] = None,
                 clock: Optional[Callable[[], float]] = None) -> None:
        self.backend = backend
        self.events  = events or EventBus()
        self.tuning  = tuning
        self._sleep  = sleep or asyncio.sleep
        self._clock  = clock or time.monotonic
        self._locks: Dict[str, asyncio.Lock] = {}

    # ══════════════════════════════════════════════════════════════════════
    #  Public entry points
    # ══════════════════════════════════════════════════════════════════════
    def apply_preset(self, preset: Preset) -> "asyncio.Task[int]":
        """
        Open launch items now, then schedule window positioning on the
        running loop.  The task resolves to the number of windows placed;
        callers may ignore it.  A PresetApplied event is emitted when the
        task finishes, whatever happened to individual windows.
        """
        preset = copy.deepcopy(preset)
        loop = asyncio.get_running_loop()
        self.open_launch_items(preset.launch_items)
        return loop.create_task(self._position_all(preset))

    async def apply(self, preset: Preset) -> int:
        return await self.apply_preset(preset)

    # ══════════════════════════════════════════════════════════════════════
    #  Launch items
    # ══════════════════════════════════════════════════════════════════════
    def open_launch_items(self, items: List[LaunchItem]) -> int:
        opened = 0
        for item in items:
            if self._open_item(item):
                opened += 1
        return opened

    def _open_item(self, item: LaunchItem) -> bool:
        if item.is_url:
            if not urlparse(item.path).hostname:
                self.events.warn("Invalid URL", f"Could not open {item.path!r}: not a valid URL.")
                return False
            if not self.backend.open_url(item.path):
                self.events.warn("Could not open URL", f"Opening {item.path} failed.")
                return False
            logger.debug("Opened URL %s", item.path)
            return True

        path = os.path.expanduser(item.path)
        if not self.backend.path_exists(path):
            self.events.warn("File not found", f"{path} does not exist.")
            return False
        if not self.backend.open_file(path):
            self.events.warn("Could not open file", f"Opening {path} failed.")
            return False
        logger.debug("Opened %s", path)
        return True

    # ══════════════════════════════════════════════════════════════════════
    #  Positioning
    # ══════════════════════════════════════════════════════════════════════
    async def _position_all(self, preset: Preset) -> int:
        placed = 0
        try:
            if preset.launch_items:
                await self._sleep(self.tuning.launch_items_delay)
            tasks = [
                asyncio.ensure_future(self.restore_app(bundle_id, preset.windows_for(bundle_id)))
                for bundle_id in preset.app_order()
            ]
            for bundle_id, result in zip(preset.app_order(),
                                         await asyncio.gather(*tasks, return_exceptions=True)):
                if isinstance(result, BaseException):
                    logger.error("Restoring %s failed: %r", bundle_id, result)
                else:
                    placed += result
            logger.info("Preset %r: placed %d/%d windows", preset.name, placed, len(preset.windows))
        finally:
            self.events.emit(PresetApplied(
                preset_id=preset.id,
                preset_name=preset.name,
                window_count=len(preset.windows),
                launch_item_count=len(preset.launch_items),
                positioned=placed,
            ))
        return placed

    def _lock_for(self, bundle_id: str) -> asyncio.Lock:
        lock = self._locks.get(bundle_id)
        if lock is None:
            lock = self._locks[bundle_id] = asyncio.Lock()
        return lock

    async def _poll(self, check: Callable[[], bool], timeout: float) -> bool:
        return await poll_until(check, timeout, self.tuning.poll_interval,
                                sleep=self._sleep, clock=self._clock)

    def _has_windows(self, pid: int) -> Callable[[], bool]:
        return lambda: bool(self.backend.list_windows(pid))

    async def restore_app(self, bundle_id: str, descriptors: List[WindowDescriptor]) -> int:
        """Run one application's chain; returns how many windows were placed."""
        if not descriptors:
            return 0
        async with self._lock_for(bundle_id):
            pid = await self._bring_up(bundle_id)
            if pid is None:
                return 0

            pid, windows = await self._enumerate_with_retries(pid, bundle_id)
            if not windows:
                logger.info("No windows for %s after retries; leaving it unpositioned", bundle_id)
                return 0

            windows = await self._ensure_count(pid, windows, len(descriptors))

            placed = 0
            for d, hit in match_all(descriptors, windows, self.tuning):
                if hit is None:
                    continue
                if await self._position_one(pid, hit, d):
                    placed += 1
            return placed

    async def _bring_up(self, bundle_id: str) -> Optional[int]:
        app = find_running_app(self.backend.list_running_apps(), bundle_id)
        if app is not None:
            logger.debug("Activating %s (pid %d)", bundle_id, app.pid)
            self.backend.activate(app.pid)
            await self._poll(self._has_windows(app.pid), self.tuning.activate_settle)
            return app.pid

        pid = self.backend.launch(bundle_id, activate=False)
        if pid is None:
            self.events.warn("Could not launch application", f"{bundle_id} could not be started.")
            return None
        logger.debug("Launched %s (pid %d)", bundle_id, pid)
        await self._poll(self._owner_appeared(bundle_id, pid), self.tuning.launch_settle)
        return self._window_owner(bundle_id, pid) or pid

    def _window_owner(self, bundle_id: str, pid: int) -> Optional[int]:
        """
        Pid of the process that shows the app's windows: ``pid`` itself, else
        another process with the same bundle identifier.  Launcher stubs and
        relaunches on Windows hand the window to a new process.
        """
        if self.backend.list_windows(pid):
            return pid
        for app in self.backend.list_running_apps():
            if (app.bundle_identifier == bundle_id and app.pid != pid
                    and self.backend.list_windows(app.pid)):
                return app.pid
        return None

    def _owner_appeared(self, bundle_id: str, pid: int) -> Callable[[], bool]:
        return lambda: self._window_owner(bundle_id, pid) is not None

    def _retry_step(self, attempt: int, pid: int, bundle_id: str) -> None:
        if attempt == 0:
            self.backend.unhide(pid)
            self.backend.activate(pid)
        elif attempt == 1:
            self.backend.open_application(bundle_id)
        else:
            self.backend.reopen(bundle_id)

    async def _enumerate_with_retries(self, pid: int,
                                      bundle_id: str) -> Tuple[int, List[LiveWindow]]:
        """Returns the pid that owns the windows now, with its windows."""
        windows = live_windows(self.backend, pid)
        for attempt, delay in enumerate(self.tuning.retry_delays):
            if windows:
                break
            logger.debug("No windows for %s, retry %d", bundle_id, attempt)
            self._retry_step(attempt, pid, bundle_id)
            await self._poll(self._owner_appeared(bundle_id, pid), delay)
            owner = self._window_owner(bundle_id, pid)
            if owner is not None and owner != pid:
                logger.debug("%s windows moved from pid %d to pid %d", bundle_id, pid, owner)
                pid = owner
            windows = live_windows(self.backend, pid)
        return pid, windows

    async def _ensure_count(self, pid: int, windows: List[LiveWindow],
                            needed: int) -> List[LiveWindow]:
        real = real_windows(windows, self.tuning)
        if len(real) >= needed:
            return windows

        self.backend.activate(pid)
        while len(real) < needed:
            before = len(real)
            if not self.backend.request_new_window(pid):
                break
            await self._poll(
                lambda: len(real_windows(live_windows(self.backend, pid), self.tuning)) > before,
                self.tuning.new_window_settle,
            )
            windows = live_windows(self.backend, pid)
            real = real_windows(windows, self.tuning)
            if len(real) <= before:
                logger.debug("New-window request for pid %d created nothing", pid)
                break
        return windows

    def _looks_full_screen(self, handle: WindowHandle) -> bool:
        if self.backend.is_full_screen(handle):
            return True
        rect = window_rect(self.backend, handle)
        if rect is None:
            return False
        return is_full_screen_frame(rect, current_configuration(self.backend).screens, self.tuning)

    async def _position_one(self, pid: int, hit: LiveWindow, d: WindowDescriptor) -> bool:
        handle = hit.handle
        if self._looks_full_screen(handle):
            logger.debug("Leaving full screen for %s [%d]", d.app_name, d.window_index)
            self.backend.activate(pid)
            await self._sleep(self.tuning.fullscreen_activate_delay)
            self.backend.request_exit_full_screen(handle)
            await self._poll(lambda: not self._looks_full_screen(handle),
                             self.tuning.fullscreen_exit_settle)

        if self.backend.is_minimized(handle):
            self.backend.set_minimized(handle, False)
            await self._poll(lambda: not self.backend.is_minimized(handle),
                             self.tuning.unminimize_settle)

        return self.set_frame(handle, d)

    def set_frame(self, handle: WindowHandle, d: WindowDescriptor) -> bool:
        rect = adjust_rect(d.rect, current_configuration(self.backend).screens, self.tuning)
        moved   = self.backend.set_position(handle, rect.x, rect.y)
        resized = self.backend.set_size(handle, rect.width, rect.height)
        logger.debug("RESTORE %s [%d] -> (%g,%g %gx%g) pos=%s size=%s", d.app_name,
                     d.window_index, rect.x, rect.y, rect.width, rect.height, moved, resized)
        return bool(moved and resized)
