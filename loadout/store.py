"""
store.py  -  The authoritative, observable list of presets

Every mutation persists the full list as one blob and then notifies
subscribers with a PresetsChanged event.  Lookups of a missing preset are
silent no-ops, matching how the UI uses these operations.
"""

from __future__ import annotations

import copy
import logging
from typing import Callable, Iterable, List, Optional

from . import capture
from .backend import DesktopBackend
from .config import Tuning
from .events import EventBus, PresetsChanged
from .matching import resync
from .models import LaunchItem, Preset, RunningApplication, WindowDescriptor
from .persistence import PRESETS_KEY, DefaultsFile, decode_presets, encode_presets

logger = logging.getLogger(__name__)


class PresetStore:
    def __init__(self, defaults: DefaultsFile, backend: Optional[DesktopBackend] = None,
                 events: Optional[EventBus] = None, tuning: Tuning = Tuning()) -> None:
        self.defaults = defaults
        self.backend  = backend
        self.events   = events or EventBus()
        self.tuning   = tuning
        self._presets: List[Preset] = decode_presets(defaults.get(PRESETS_KEY))

    # ── Observation ───────────────────────────────────────────────────────
    def subscribe(self, listener: Callable[[object], None]) -> Callable[[], None]:
        return self.events.subscribe(listener)

    @property
    def presets(self) -> List[Preset]:
        return copy.deepcopy(self._presets)

    def get(self, preset_id: str) -> Optional[Preset]:
        p = self._find(preset_id)
        return copy.deepcopy(p) if p else None

    def find_by_name(self, name: str) -> Optional[Preset]:
        for p in self._presets:
            if p.name == name:
                return copy.deepcopy(p)
        return None

    def _find(self, preset_id: str) -> Optional[Preset]:
        for p in self._presets:
            if p.id == preset_id:
                return p
        return None

    def _commit(self, reason: str, preset_id: str = "") -> None:
        self.defaults.set(PRESETS_KEY, encode_presets(self._presets))
        self.events.emit(PresetsChanged(reason, preset_id))

    # ── List operations ───────────────────────────────────────────────────
    def save(self, name: str, captured: List[WindowDescriptor],
             launch_items: Iterable[LaunchItem] = ()) -> Optional[Preset]:
        if not captured:
            logger.info("Not saving %r: nothing captured", name)
            return None
        preset = Preset(name=name, windows=list(captured), launch_items=list(launch_items))
        self._presets.append(preset)
        self._commit("save", preset.id)
        return copy.deepcopy(preset)

    def delete(self, preset_id: str) -> None:
        before = len(self._presets)
        self._presets = [p for p in self._presets if p.id != preset_id]
        if len(self._presets) != before:
            self._commit("delete", preset_id)

    def rename(self, preset_id: str, new_name: str) -> None:
        p = self._find(preset_id)
        if p is None:
            return
        p.name = new_name
        self._commit("rename", preset_id)

    def reorder(self, from_index: int, to_index: int) -> None:
        """
        Move one preset.  ``to_index`` is an insertion offset into the list as
        it was before the move (``len`` appends), so moving 0 to 2 in [A, B, C]
        gives [B, A, C].
        """
        n = len(self._presets)
        if not (0 <= from_index < n):
            raise IndexError(f"preset index {from_index} out of range")
        to_index = max(0, min(to_index, n))
        item = self._presets.pop(from_index)
        if to_index > from_index:
            to_index -= 1
        self._presets.insert(to_index, item)
        self._commit("reorder", item.id)

    def sort_by_name(self) -> None:
        self._presets.sort(key=lambda p: p.name.lower())
        self._commit("sort")

    # ── Window operations ─────────────────────────────────────────────────
    def _is_duplicate(self, preset: Preset, w: WindowDescriptor) -> bool:
        tol = self.tuning.duplicate_origin_tolerance
        return any(
            e.bundle_identifier == w.bundle_identifier
            and abs(e.x - w.x) <= tol and abs(e.y - w.y) <= tol
            for e in preset.windows
        )

    def add_window(self, preset_id: str, app: RunningApplication) -> int:
        """Append the app's current windows that are not already stored."""
        p = self._find(preset_id)
        if p is None or self.backend is None:
            return 0
        added = 0
        for w in capture.capture_app_windows(self.backend, app, self.tuning):
            if self._is_duplicate(p, w):
                continue
            p.windows.append(w)
            added += 1
        if added:
            self._commit("add_window", preset_id)
        return added

    def remove_window(self, preset_id: str, window_id: str) -> None:
        p = self._find(preset_id)
        if p is None:
            return
        p.windows = [w for w in p.windows if w.id != window_id]
        self._commit("remove_window", preset_id)

    def add_launch_item(self, preset_id: str, path: str) -> Optional[LaunchItem]:
        p = self._find(preset_id)
        if p is None:
            return None
        item = LaunchItem(path=path)
        p.launch_items.append(item)
        self._commit("add_launch_item", preset_id)
        return copy.deepcopy(item)

    def remove_launch_item(self, preset_id: str, item_id: str) -> None:
        p = self._find(preset_id)
        if p is None:
            return
        p.launch_items = [i for i in p.launch_items if i.id != item_id]
        self._commit("remove_launch_item", preset_id)

    def refresh_positions(self, preset_id: str) -> None:
        """Re-read geometry for every app in the preset that is running now."""
        p = self._find(preset_id)
        if p is None or self.backend is None:
            return
        running = self.backend.list_running_apps()
        refreshed = {}
        for bundle_id in p.app_order():
            app = capture.find_running_app(running, bundle_id)
            if app is None:
                logger.debug("%s not running; keeping stored positions", bundle_id)
                continue
            fresh = capture.capture_app_windows(self.backend, app, self.tuning)
            stored = p.windows_for(bundle_id)
            refreshed.update({s.id: r for s, r in zip(stored, resync(stored, fresh))})
        p.windows = [refreshed.get(w.id, w) for w in p.windows]
        self._commit("refresh_positions", preset_id)
