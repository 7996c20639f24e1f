"""Change and notification events published to observers (CLI, GUI, tests)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PresetsChanged:
    reason: str
    preset_id: str = ""


@dataclass(frozen=True)
class PresetApplied:
    preset_id: str
    preset_name: str
    window_count: int
    launch_item_count: int
    positioned: int = 0

    def summary(self) -> str:
        w = "window" if self.window_count == 1 else "windows"
        i = "item" if self.launch_item_count == 1 else "items"
        return f"{self.window_count} {w}, {self.launch_item_count} {i}"


@dataclass(frozen=True)
class Alert:
    title: str
    message: str


Listener = Callable[[object], None]


class EventBus:
    """Synchronous observer list.  A failing listener does not stop the others."""

    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def emit(self, event: object) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Listener %r failed on %r", listener, event)

    def warn(self, title: str, message: str) -> None:
        logger.info("%s: %s", title, message)
        self.emit(Alert(title, message))
