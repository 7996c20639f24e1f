"""Abstract interface for the OS capabilities the core drives.

Every call is best-effort: a failed read returns ``None``, ``False`` or an
empty list, a failed write returns ``False``.  Implementations must not let
OS errors escape.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, List, Optional, Tuple

from .models import RunningApplication, Screen

WindowHandle = Any


class DesktopBackend(ABC):
    """Window, process, shell, input and display access for one desktop."""

    # ── Window inspection / mutation ──────────────────────────────────────
    @abstractmethod
    def list_windows(self, pid: int) -> List[WindowHandle]:
        """Top-level windows of ``pid`` in the platform's enumeration order."""

    @abstractmethod
    def get_position(self, window: WindowHandle) -> Optional[Tuple[float, float]]:
        pass

    @abstractmethod
    def get_size(self, window: WindowHandle) -> Optional[Tuple[float, float]]:
        pass

    @abstractmethod
    def set_position(self, window: WindowHandle, x: float, y: float) -> bool:
        pass

    @abstractmethod
    def set_size(self, window: WindowHandle, width: float, height: float) -> bool:
        pass

    @abstractmethod
    def is_minimized(self, window: WindowHandle) -> bool:
        pass

    @abstractmethod
    def set_minimized(self, window: WindowHandle, minimized: bool) -> bool:
        pass

    @abstractmethod
    def is_main_window(self, window: WindowHandle) -> bool:
        pass

    @abstractmethod
    def is_full_screen(self, window: WindowHandle) -> bool:
        pass

    # ── Process control ───────────────────────────────────────────────────
    @abstractmethod
    def list_running_apps(self) -> List[RunningApplication]:
        pass

    @abstractmethod
    def launch(self, bundle_identifier: str, activate: bool = False) -> Optional[int]:
        """Start the application; returns its pid or ``None``."""

    @abstractmethod
    def activate(self, pid: int) -> bool:
        pass

    @abstractmethod
    def unhide(self, pid: int) -> bool:
        pass

    @abstractmethod
    def open_application(self, bundle_identifier: str) -> bool:
        """Open the application again with activation (re-open its bundle)."""

    @abstractmethod
    def reopen(self, bundle_identifier: str) -> bool:
        """Ask a running application to reopen its main window."""

    # ── Shell open ────────────────────────────────────────────────────────
    @abstractmethod
    def open_url(self, url: str) -> bool:
        pass

    @abstractmethod
    def open_file(self, path: str) -> bool:
        pass

    @abstractmethod
    def path_exists(self, path: str) -> bool:
        pass

    # ── Input synthesis ───────────────────────────────────────────────────
    @abstractmethod
    def request_new_window(self, pid: int) -> bool:
        """Ask the (activated) application for one more window."""

    @abstractmethod
    def request_exit_full_screen(self, window: WindowHandle) -> bool:
        pass

    # ── Displays ──────────────────────────────────────────────────────────
    @abstractmethod
    def list_screens(self) -> List[Screen]:
        pass

    # ── Settings ──────────────────────────────────────────────────────────
    def set_login_item(self, enabled: bool) -> bool:
        return False
