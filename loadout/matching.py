"""
matching.py  -  Pair saved window descriptors with live windows

Scoring (higher wins, ties go to the first candidate in scan order)

    window_index == live enumeration index   +30
    live window is the OS main window        +20   (legacy presets)

Candidates smaller than Tuning.min_window_size are excluded before scoring.
A live window is never assigned to two descriptors.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence, Set, Tuple

from .config import Tuning
from .models import LiveWindow, WindowDescriptor

logger = logging.getLogger(__name__)


def score(candidate: LiveWindow, target: WindowDescriptor,
          tuning: Tuning = Tuning()) -> int:
    total = 0
    if candidate.index == target.window_index:
        total += tuning.index_match_score
    if candidate.is_main:
        total += tuning.main_window_score
    return total


def _unused(live: Sequence[LiveWindow], used: Set[int]) -> List[LiveWindow]:
    return [w for w in live if w.index not in used]


def best_match(target: WindowDescriptor, live: Sequence[LiveWindow],
               used: Optional[Set[int]] = None,
               tuning: Tuning = Tuning()) -> Optional[LiveWindow]:
    """Best unused live window for ``target``, or the unused main window."""
    used = used if used is not None else set()
    remaining = _unused(live, used)
    best: Optional[LiveWindow] = None
    best_score = -1
    for c in remaining:
        if not c.rect.is_at_least(tuning.min_window_size):
            continue
        s = score(c, target, tuning)
        if s > best_score:
            best, best_score = c, s
    if best is not None:
        return best
    for c in remaining:
        if c.is_main:
            return c
    return None


def match_all(targets: Sequence[WindowDescriptor], live: Sequence[LiveWindow],
              tuning: Tuning = Tuning()) -> List[Tuple[WindowDescriptor, Optional[LiveWindow]]]:
    """Match in descriptor order; unmatched descriptors pair with ``None``."""
    used: Set[int] = set()
    pairs: List[Tuple[WindowDescriptor, Optional[LiveWindow]]] = []
    for t in targets:
        hit = best_match(t, live, used, tuning)
        if hit is None:
            logger.debug("No live window left for %s [%d]", t.app_name, t.window_index)
        else:
            used.add(hit.index)
        pairs.append((t, hit))
    return pairs


def resync(stored: Sequence[WindowDescriptor],
           fresh: Sequence[WindowDescriptor]) -> List[WindowDescriptor]:
    """
    Refresh stored geometry from a fresh capture of the same application.

    Pass 1 pairs by window_index equality (first fresh capture wins).  Pass 2
    fills stored slots that are still open with the leftover fresh captures
    in order.  Stored descriptors left over keep their old geometry.  The
    stored identifiers are always kept.
    """
    taken: Set[int] = set()
    assigned: Dict[int, WindowDescriptor] = {}

    for si, s in enumerate(stored):
        for fi, f in enumerate(fresh):
            if fi not in taken and f.window_index == s.window_index:
                taken.add(fi)
                assigned[si] = f
                break

    leftovers = [f for fi, f in enumerate(fresh) if fi not in taken]
    for si in range(len(stored)):
        if si in assigned or not leftovers:
            continue
        assigned[si] = leftovers.pop(0)

    result: List[WindowDescriptor] = []
    for si, s in enumerate(stored):
        f = assigned.get(si)
        result.append(s if f is None else s.with_geometry(f.rect, f.window_index))
    return result
