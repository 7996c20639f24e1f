"""Configuration: data directory, config.json and the tuning constants."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Dict, Tuple

logger = logging.getLogger(__name__)

APP_NAME      = "LoadOut"
HOME_ENV      = "LOADOUT_HOME"
CONFIG_FILE   = "config.json"
DEFAULTS_FILE = "defaults.json"


@dataclass(frozen=True)
class Tuning:
    """Empirical thresholds and delays (seconds) used by capture and restore."""

    min_window_size: int = 100
    index_match_score: int = 30
    main_window_score: int = 20
    duplicate_origin_tolerance: int = 10

    visible_margin: int = 200
    relocate_inset: int = 50
    relocate_margin: int = 100

    fullscreen_origin_tolerance: int = 2
    fullscreen_size_tolerance: int = 10

    launch_settle: float = 1.0
    activate_settle: float = 0.3
    retry_delays: Tuple[float, ...] = (0.3, 0.5, 0.5)
    new_window_settle: float = 0.4
    fullscreen_activate_delay: float = 0.2
    fullscreen_exit_settle: float = 1.0
    unminimize_settle: float = 0.3
    launch_items_delay: float = 0.5
    poll_interval: float = 0.05

    def with_overrides(self, overrides: Dict) -> "Tuning":
        known = {f.name: f for f in fields(self)}
        changes = {}
        for key, value in (overrides or {}).items():
            if key not in known:
                logger.debug("Ignoring unknown tuning key %r", key)
                continue
            if key == "retry_delays":
                # One delay per rung of the fixed retry ladder.
                if (not isinstance(value, (list, tuple))
                        or len(value) != len(self.retry_delays)):
                    logger.warning("Ignoring retry_delays override %r: expected %d values",
                                   value, len(self.retry_delays))
                    continue
                value = tuple(float(v) for v in value)
            elif isinstance(getattr(self, key), int) and not isinstance(getattr(self, key), bool):
                value = int(value)
            else:
                value = float(value)
            changes[key] = value
        return replace(self, **changes)

    def instant(self) -> "Tuning":
        """Same thresholds, every delay set to zero."""
        return replace(
            self,
            launch_settle=0.0, activate_settle=0.0,
            retry_delays=tuple(0.0 for _ in self.retry_delays),
            new_window_settle=0.0, fullscreen_activate_delay=0.0,
            fullscreen_exit_settle=0.0, unminimize_settle=0.0,
            launch_items_delay=0.0, poll_interval=0.0,
        )


def data_dir() -> str:
    root = os.environ.get(HOME_ENV, "").strip()
    if root:
        return os.path.abspath(os.path.expanduser(root))
    return os.path.join(os.path.expanduser("~"), ".loadout")


def load_config(path: str) -> Dict:
    if not os.path.exists(path):
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            d = json.load(f)
        return d if isinstance(d, dict) else {}
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable config %s: %s", path, exc)
        return {}


def load_tuning(home: str) -> Tuning:
    cfg = load_config(os.path.join(home, CONFIG_FILE))
    raw = cfg.get("tuning")
    if not isinstance(raw, dict):
        return Tuning()
    try:
        return Tuning().with_overrides(raw)
    except (TypeError, ValueError) as exc:
        logger.warning("Invalid tuning overrides in config: %s", exc)
        return Tuning()
