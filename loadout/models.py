"""
models.py  -  Geometry types shared by capture, matching, restore and storage

All rectangles live in one top-left-origin coordinate space spanning every
connected display.  Nothing here talks to the OS.
"""

from __future__ import annotations

import os
import re
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, List, Optional
from urllib.parse import urlparse


def new_id() -> str:
    return str(uuid.uuid4())


# ══════════════════════════════════════════════════════════════════════════
#  Rectangles
# ══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    width: float
    height: float

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    @property
    def area(self) -> float:
        return self.width * self.height

    def is_at_least(self, size: float) -> bool:
        return self.width >= size and self.height >= size


# ══════════════════════════════════════════════════════════════════════════
#  Window descriptor
# ══════════════════════════════════════════════════════════════════════════
@dataclass(frozen=True)
class WindowDescriptor:
    """One captured window.  ``window_index`` is only a matching hint."""

    bundle_identifier: str
    app_name: str
    x: float
    y: float
    width: float
    height: float
    window_index: int = 0
    id: str = field(default_factory=new_id)

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)

    def with_geometry(self, rect: Rect, window_index: Optional[int] = None) -> "WindowDescriptor":
        """Copy with new geometry; the identifier is kept."""
        return replace(
            self,
            x=rect.x, y=rect.y, width=rect.width, height=rect.height,
            window_index=self.window_index if window_index is None else window_index,
        )


# ══════════════════════════════════════════════════════════════════════════
#  Launch item
# ══════════════════════════════════════════════════════════════════════════
URL_SCHEMES = ("http://", "https://")

_TLDS = (
    ".com", ".org", ".net", ".io", ".dev", ".app", ".co", ".edu", ".gov",
    ".me", ".tv", ".info", ".biz", ".uk", ".ca", ".au", ".de", ".fr", ".jp",
)

_DRIVE_ROOT = re.compile(r"^[A-Za-z]:[\\/]")


def _has_path_root(text: str) -> bool:
    return text.startswith(("/", "~", "\\")) or bool(_DRIVE_ROOT.match(text))


def looks_like_url(text: str) -> bool:
    lo = text.lower()
    if lo.startswith("www."):
        return True
    if _has_path_root(text):
        return False
    return any(tld in lo for tld in _TLDS)


def normalize_path(raw: str) -> str:
    """Prefix bare domains with https://; leave URLs and paths alone."""
    text = (raw or "").strip()
    if text.lower().startswith(URL_SCHEMES):
        return text
    if looks_like_url(text):
        return f"https://{text}"
    return text


@dataclass
class LaunchItem:
    path: str
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        self.path = normalize_path(self.path)

    @property
    def is_url(self) -> bool:
        return self.path.lower().startswith(URL_SCHEMES)

    @property
    def expanded_path(self) -> str:
        return os.path.expanduser(self.path)

    @property
    def display_name(self) -> str:
        if self.is_url:
            host = urlparse(self.path).hostname
            return host or self.path
        trimmed = self.path.rstrip("/\\")
        name = re.split(r"[\\/]", trimmed)[-1] if trimmed else ""
        return name or self.path

    @property
    def icon(self) -> str:
        if self.is_url:
            return "url"
        if self.path.endswith(("/", "\\")) or os.path.isdir(self.expanded_path):
            return "folder"
        return "file"


# ══════════════════════════════════════════════════════════════════════════
#  Preset
# ══════════════════════════════════════════════════════════════════════════
@dataclass
class Preset:
    name: str
    windows: List[WindowDescriptor] = field(default_factory=list)
    launch_items: List[LaunchItem] = field(default_factory=list)
    id: str = field(default_factory=new_id)

    def app_order(self) -> List[str]:
        """Distinct bundle identifiers in first-appearance order."""
        seen: List[str] = []
        for w in self.windows:
            if w.bundle_identifier not in seen:
                seen.append(w.bundle_identifier)
        return seen

    def windows_for(self, bundle_identifier: str) -> List[WindowDescriptor]:
        return [w for w in self.windows if w.bundle_identifier == bundle_identifier]


# ══════════════════════════════════════════════════════════════════════════
#  Ephemeral live state
# ══════════════════════════════════════════════════════════════════════════
@dataclass
class RunningApplication:
    pid: int
    name: str
    bundle_identifier: Optional[str] = None
    icon: Optional[str] = None
    is_selected: bool = False


@dataclass(frozen=True)
class LiveWindow:
    """A window as enumerated right now; ``index`` is its enumeration order."""

    handle: Any
    index: int
    rect: Rect
    is_main: bool = False


@dataclass(frozen=True)
class Screen:
    frame: Rect
    visible_frame: Optional[Rect] = None
    is_main: bool = False

    @property
    def usable(self) -> Rect:
        return self.visible_frame or self.frame


@dataclass(frozen=True)
class ScreenConfiguration:
    screens: List[Screen]

    @property
    def main(self) -> Optional[Screen]:
        for s in self.screens:
            if s.is_main:
                return s
        return self.screens[0] if self.screens else None

    @property
    def bounds(self) -> Optional[Rect]:
        if not self.screens:
            return None
        left   = min(s.frame.x for s in self.screens)
        top    = min(s.frame.y for s in self.screens)
        right  = max(s.frame.right for s in self.screens)
        bottom = max(s.frame.bottom for s in self.screens)
        return Rect(left, top, right - left, bottom - top)
