"""
persistence.py  -  Preset serialization and the key-value defaults file

Blob format (key "savedPresets"):

    [ { "id", "name",
        "windows": [ {"id", "bundleIdentifier", "appName",
                      "x", "y", "width", "height", "windowIndex"} ],
        "launchItems": [ {"id", "path"} ] } ]

Decoding ignores unknown keys and defaults missing optional ones
(windowIndex -> 0, launchItems -> []).  A record that cannot be decoded
invalidates the whole blob: the caller gets no presets at all.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from typing import Any, Dict, List, Optional

from .models import LaunchItem, Preset, WindowDescriptor

logger = logging.getLogger(__name__)

PRESETS_KEY = "savedPresets"


class DecodeError(ValueError):
    pass


# ══════════════════════════════════════════════════════════════════════════
#  Encode
# ══════════════════════════════════════════════════════════════════════════
def encode_window(w: WindowDescriptor) -> Dict[str, Any]:
    return {
        "id":               w.id,
        "bundleIdentifier": w.bundle_identifier,
        "appName":          w.app_name,
        "x":                w.x,
        "y":                w.y,
        "width":            w.width,
        "height":           w.height,
        "windowIndex":      w.window_index,
    }


def encode_presets(presets: List[Preset]) -> List[Dict[str, Any]]:
    return [
        {
            "id":          p.id,
            "name":        p.name,
            "windows":     [encode_window(w) for w in p.windows],
            "launchItems": [{"id": i.id, "path": i.path} for i in p.launch_items],
        }
        for p in presets
    ]


# ══════════════════════════════════════════════════════════════════════════
#  Decode
# ══════════════════════════════════════════════════════════════════════════
def _require(d: Any, key: str, kind) -> Any:
    if not isinstance(d, dict) or key not in d:
        raise DecodeError(f"missing {key!r}")
    value = d[key]
    if kind is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise DecodeError(f"{key!r} is not a number")
        return float(value)
    if not isinstance(value, kind):
        raise DecodeError(f"{key!r} is not {kind.__name__}")
    return value


def decode_window(d: Any) -> WindowDescriptor:
    raw_index = d.get("windowIndex", 0) if isinstance(d, dict) else 0
    if isinstance(raw_index, bool) or not isinstance(raw_index, int):
        raw_index = 0
    return WindowDescriptor(
        id=_require(d, "id", str),
        bundle_identifier=_require(d, "bundleIdentifier", str),
        app_name=_require(d, "appName", str),
        x=_require(d, "x", float),
        y=_require(d, "y", float),
        width=_require(d, "width", float),
        height=_require(d, "height", float),
        window_index=raw_index,
    )


def decode_launch_item(d: Any) -> LaunchItem:
    return LaunchItem(path=_require(d, "path", str), id=_require(d, "id", str))


def decode_preset(d: Any) -> Preset:
    windows = _require(d, "windows", list)
    items = d.get("launchItems", [])
    if not isinstance(items, list):
        raise DecodeError("'launchItems' is not list")
    return Preset(
        id=_require(d, "id", str),
        name=_require(d, "name", str),
        windows=[decode_window(w) for w in windows],
        launch_items=[decode_launch_item(i) for i in items],
    )


def decode_presets(blob: Any) -> List[Preset]:
    """All-or-nothing decode; returns [] for anything malformed."""
    if blob is None:
        return []
    if isinstance(blob, (bytes, str)):
        try:
            blob = json.loads(blob)
        except ValueError as exc:
            logger.warning("Discarding unreadable presets blob: %s", exc)
            return []
    if not isinstance(blob, list):
        logger.warning("Discarding presets blob of type %s", type(blob).__name__)
        return []
    try:
        return [decode_preset(p) for p in blob]
    except DecodeError as exc:
        logger.warning("Discarding presets blob: %s", exc)
        return []


# ══════════════════════════════════════════════════════════════════════════
#  Key-value file
# ══════════════════════════════════════════════════════════════════════════
class DefaultsFile:
    """A JSON object on disk holding small values by key."""

    def __init__(self, path: str) -> None:
        self.path = path

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                d = json.load(f)
        except (OSError, ValueError) as exc:
            logger.warning("Unreadable defaults file %s: %s", self.path, exc)
            return {}
        return d if isinstance(d, dict) else {}

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self._read().get(key, default)

    def set(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        folder = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(folder, exist_ok=True)
        fd, tmp = tempfile.mkstemp(prefix=".defaults-", suffix=".json", dir=folder)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise
