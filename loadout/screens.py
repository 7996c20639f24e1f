"""Keep restored windows usably visible on the displays connected right now."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .backend import DesktopBackend
from .config import Tuning
from .models import Rect, Screen, ScreenConfiguration

logger = logging.getLogger(__name__)


def current_configuration(backend: DesktopBackend) -> ScreenConfiguration:
    try:
        screens = list(backend.list_screens() or [])
    except Exception:
        logger.exception("Display enumeration failed")
        screens = []
    return ScreenConfiguration(screens)


def origin_visible(rect: Rect, screen: Screen, margin: float) -> bool:
    """True when at least ``margin`` px right of and below the origin is on ``screen``."""
    f = screen.frame
    return (f.x <= rect.x <= f.right - margin
            and f.y <= rect.y <= f.bottom - margin)


def adjust_rect(rect: Rect, screens: Sequence[Screen],
                tuning: Tuning = Tuning()) -> Rect:
    if not screens:
        return rect
    if any(origin_visible(rect, s, tuning.visible_margin) for s in screens):
        return rect

    target: Optional[Screen] = ScreenConfiguration(list(screens)).main
    area = target.usable
    inset, margin = tuning.relocate_inset, tuning.relocate_margin
    width  = min(rect.width,  max(area.width  - margin, 0))
    height = min(rect.height, max(area.height - margin, 0))
    moved = Rect(area.x + inset, area.y + inset, width, height)
    logger.debug("Relocated off-screen rect %s -> %s", rect, moved)
    return moved


def is_full_screen_frame(rect: Rect, screens: Sequence[Screen],
                         tuning: Tuning = Tuning()) -> bool:
    """Geometry heuristic: the window exactly covers one screen."""
    o_tol, s_tol = tuning.fullscreen_origin_tolerance, tuning.fullscreen_size_tolerance
    for s in screens:
        f = s.frame
        if (abs(rect.x - f.x) <= o_tol and abs(rect.y - f.y) <= o_tol
                and abs(rect.width - f.width) <= s_tol
                and abs(rect.height - f.height) <= s_tol):
            return True
    return False
