"""
win32_backend.py  -  DesktopBackend for Windows (pywin32 + psutil)

Key behaviours
  · An application is a process that owns at least one top-level,
    user-facing window.  Its bundle identifier is its normalized exe path.
  · Window enumeration follows EnumWindows, i.e. front-to-back z-order, so
    an application's "main" window is its frontmost one.
  · Minimised windows report their restored (normal) rect, not the
    off-screen -32000 parking position.
  · Accelerators are posted with keybd_event to the foreground window:
    Ctrl+N for a new window, F11 to leave full screen.
  · Every call swallows OS errors and reports "no value".
"""

import logging
import os
import subprocess
import sys
from typing import Dict, List, Optional, Set, Tuple

import psutil
import win32api
import win32con
import win32gui
import win32process

from .backend import DesktopBackend
from .models import Rect, RunningApplication, Screen

logger = logging.getLogger(__name__)

# Processes that show visible top-level windows but cannot be moved,
# relaunched or meaningfully restored.
_BLOCKED_PROC: Set[str] = {
    "textinputhost.exe",
    "applicationframehost.exe",
    "shellhost.exe",
    "startmenuexperiencehost.exe",
    "searchhost.exe",
    "searchapp.exe",
    "lockapp.exe",
    "systemsettings.exe",
    "dwm.exe",
    "fontdrvhost.exe",
    "rtkuwp.exe",
}

_BLOCKED_CLASS: Set[str] = {
    "windows.ui.core.corewindow",
    "applicationframewindow",
    "progman",
    "workerw",
}

_RUN_KEY   = r"Software\Microsoft\Windows\CurrentVersion\Run"
_RUN_VALUE = "LoadOut"


# ══════════════════════════════════════════════════════════════════════════
#  Tiny helpers
# ══════════════════════════════════════════════════════════════════════════
def _safe_text(hwnd: int) -> str:
    try:    return win32gui.GetWindowText(hwnd) or ""
    except Exception: return ""

def _safe_class(hwnd: int) -> str:
    try:    return win32gui.GetClassName(hwnd) or ""
    except Exception: return ""

def _get_pid(hwnd: int) -> int:
    try:
        _, pid = win32process.GetWindowThreadProcessId(hwnd)
        return int(pid or 0)
    except Exception: return 0

def _proc_info(pid: int) -> Tuple[str, str]:
    """Returns (process_name, exe_path)."""
    if not pid: return "", ""
    try:
        p = psutil.Process(pid)
        return (p.name() or ""), (p.exe() or "")
    except (psutil.Error, OSError): return "", ""

def _bundle_id(exe: str) -> str:
    return os.path.normcase(os.path.abspath(exe)) if exe else ""

def _display_name(proc: str, exe: str) -> str:
    base = proc or os.path.basename(exe)
    stem, ext = os.path.splitext(base)
    return stem if ext.lower() == ".exe" else base

def _window_rect(hwnd: int) -> Optional[Tuple[int, int, int, int]]:
    try:
        if win32gui.IsIconic(hwnd):
            return tuple(win32gui.GetWindowPlacement(hwnd)[4])
        return tuple(win32gui.GetWindowRect(hwnd))
    except Exception:
        return None


# ══════════════════════════════════════════════════════════════════════════
#  Window filter
# ══════════════════════════════════════════════════════════════════════════
def _is_interesting(hwnd: int) -> bool:
    """True for top-level user-facing windows a person would want placed."""
    try:
        if not win32gui.IsWindow(hwnd):        return False
        if win32gui.GetParent(hwnd):           return False
        if not win32gui.IsWindowVisible(hwnd): return False
    except Exception:
        return False

    if not _safe_text(hwnd).strip():
        return False
    if _safe_class(hwnd).strip().lower() in _BLOCKED_CLASS:
        return False

    try:
        ex_style = win32gui.GetWindowLong(hwnd, win32con.GWL_EXSTYLE)
        owner    = win32gui.GetWindow(hwnd, win32con.GW_OWNER)
    except Exception:
        ex_style, owner = 0, 0

    if (ex_style & win32con.WS_EX_TOOLWINDOW) and not (ex_style & win32con.WS_EX_APPWINDOW):
        return False
    if owner and not (ex_style & win32con.WS_EX_APPWINDOW):
        return False

    proc, _ = _proc_info(_get_pid(hwnd))
    return proc.lower() not in _BLOCKED_PROC


def _top_level_windows() -> List[int]:
    found: List[int] = []

    def _cb(hwnd, _):
        if _is_interesting(hwnd):
            found.append(hwnd)

    try:
        win32gui.EnumWindows(_cb, None)
    except Exception:
        logger.debug("EnumWindows failed", exc_info=True)
    return found


def _tap(*keys: int) -> None:
    """Press ``keys`` in order, release them in reverse."""
    for vk in keys:
        win32api.keybd_event(vk, 0, 0, 0)
    for vk in reversed(keys):
        win32api.keybd_event(vk, 0, win32con.KEYEVENTF_KEYUP, 0)


# ══════════════════════════════════════════════════════════════════════════
#  Backend
# ══════════════════════════════════════════════════════════════════════════
class Win32Desktop(DesktopBackend):
    def __init__(self, own_pid: Optional[int] = None) -> None:
        self.own_pid = os.getpid() if own_pid is None else own_pid

    # ── Windows ───────────────────────────────────────────────────────────
    def list_windows(self, pid: int) -> List[int]:
        return [h for h in _top_level_windows() if _get_pid(h) == pid]

    def get_position(self, window: int) -> Optional[Tuple[float, float]]:
        r = _window_rect(window)
        return (r[0], r[1]) if r else None

    def get_size(self, window: int) -> Optional[Tuple[float, float]]:
        r = _window_rect(window)
        return (r[2] - r[0], r[3] - r[1]) if r else None

    def _set_window_pos(self, window: int, x: int, y: int, w: int, h: int, flags: int) -> bool:
        flags |= win32con.SWP_NOZORDER | win32con.SWP_NOACTIVATE
        try:
            win32gui.SetWindowPos(window, 0, x, y, w, h, flags)
            return True
        except Exception as exc:
            logger.debug("SetWindowPos hwnd=%s failed: %s", hex(window), exc)
            return False

    def set_position(self, window: int, x: float, y: float) -> bool:
        return self._set_window_pos(window, int(x), int(y), 0, 0, win32con.SWP_NOSIZE)

    def set_size(self, window: int, width: float, height: float) -> bool:
        return self._set_window_pos(window, 0, 0, int(width), int(height), win32con.SWP_NOMOVE)

    def is_minimized(self, window: int) -> bool:
        try:    return bool(win32gui.IsIconic(window))
        except Exception: return False

    def set_minimized(self, window: int, minimized: bool) -> bool:
        cmd = win32con.SW_MINIMIZE if minimized else win32con.SW_RESTORE
        try:
            win32gui.ShowWindow(window, cmd)
            return True
        except Exception:
            return False

    def is_main_window(self, window: int) -> bool:
        siblings = self.list_windows(_get_pid(window))
        return bool(siblings) and siblings[0] == window

    def is_full_screen(self, window: int) -> bool:
        """Borderless window covering its whole monitor."""
        try:
            style = win32gui.GetWindowLong(window, win32con.GWL_STYLE)
            if style & win32con.WS_CAPTION:
                return False
            mon = win32api.MonitorFromWindow(window, win32con.MONITOR_DEFAULTTONEAREST)
            bounds = tuple(win32api.GetMonitorInfo(mon).get("Monitor") or ())
            return len(bounds) == 4 and tuple(win32gui.GetWindowRect(window)) == bounds
        except Exception:
            return False

    # ── Processes ─────────────────────────────────────────────────────────
    def list_running_apps(self) -> List[RunningApplication]:
        apps: Dict[int, RunningApplication] = {}
        for hwnd in _top_level_windows():
            pid = _get_pid(hwnd)
            if not pid or pid == self.own_pid or pid in apps:
                continue
            proc, exe = _proc_info(pid)
            if not proc and not exe:
                continue
            apps[pid] = RunningApplication(
                pid=pid,
                name=_display_name(proc, exe),
                bundle_identifier=_bundle_id(exe) or None,
                icon=exe or None,
            )
        return list(apps.values())

    def launch(self, bundle_identifier: str, activate: bool = False) -> Optional[int]:
        """Start the exe; its first window is shown without focus unless ``activate``."""
        exe = bundle_identifier
        if not exe or not os.path.exists(exe):
            logger.debug("Cannot launch %r: executable missing", exe)
            return None
        if os.path.basename(exe).lower() in _BLOCKED_PROC:
            return None
        si = subprocess.STARTUPINFO()
        si.dwFlags |= subprocess.STARTF_USESHOWWINDOW
        si.wShowWindow = win32con.SW_SHOWNORMAL if activate else win32con.SW_SHOWNOACTIVATE
        try:
            proc = subprocess.Popen([exe], cwd=os.path.dirname(exe) or None, startupinfo=si)
        except OSError as exc:
            logger.debug("Launching %s failed: %s", exe, exc)
            return None
        return proc.pid

    def activate(self, pid: int) -> bool:
        wins = self.list_windows(pid)
        if not wins:
            return False
        try:
            win32gui.SetForegroundWindow(wins[0])
            return True
        except Exception as exc:
            logger.debug("SetForegroundWindow pid=%d failed: %s", pid, exc)
            return False

    def unhide(self, pid: int) -> bool:
        """Show hidden top-level windows of ``pid`` (tray-minimised apps)."""
        shown = False

        def _cb(hwnd, _):
            nonlocal shown
            try:
                if (_get_pid(hwnd) == pid and not win32gui.GetParent(hwnd)
                        and not win32gui.IsWindowVisible(hwnd) and _safe_text(hwnd).strip()):
                    win32gui.ShowWindow(hwnd, win32con.SW_SHOW)
                    shown = True
            except Exception:
                pass

        try:
            win32gui.EnumWindows(_cb, None)
        except Exception:
            return False
        return shown

    def open_application(self, bundle_identifier: str) -> bool:
        return self.launch(bundle_identifier, activate=True) is not None

    def reopen(self, bundle_identifier: str) -> bool:
        if not bundle_identifier or not os.path.exists(bundle_identifier):
            return False
        try:
            os.startfile(bundle_identifier)
            return True
        except OSError:
            return False

    # ── Shell ─────────────────────────────────────────────────────────────
    def open_url(self, url: str) -> bool:
        try:
            os.startfile(url)
            return True
        except OSError as exc:
            logger.debug("Opening %s failed: %s", url, exc)
            return False

    def open_file(self, path: str) -> bool:
        try:
            os.startfile(path)
            return True
        except OSError as exc:
            logger.debug("Opening %s failed: %s", path, exc)
            return False

    def path_exists(self, path: str) -> bool:
        return os.path.exists(path)

    # ── Input ─────────────────────────────────────────────────────────────
    def request_new_window(self, pid: int) -> bool:
        if not self.activate(pid):
            return False
        try:
            _tap(win32con.VK_CONTROL, ord("N"))
            return True
        except Exception:
            return False

    def request_exit_full_screen(self, window: int) -> bool:
        try:
            win32gui.SetForegroundWindow(window)
            _tap(win32con.VK_F11)
            return True
        except Exception:
            return False

    # ── Displays ──────────────────────────────────────────────────────────
    def list_screens(self) -> List[Screen]:
        screens: List[Screen] = []
        try:
            monitors = win32api.EnumDisplayMonitors(None, None)
        except Exception:
            return screens
        for m in monitors:
            try:
                info = win32api.GetMonitorInfo(m[0])
            except Exception:
                continue
            mon  = info.get("Monitor")
            work = info.get("Work") or mon
            if not mon:
                continue
            screens.append(Screen(
                frame=Rect(mon[0], mon[1], mon[2] - mon[0], mon[3] - mon[1]),
                visible_frame=Rect(work[0], work[1], work[2] - work[0], work[3] - work[1]),
                is_main=bool(info.get("Flags", 0) & win32con.MONITORINFOF_PRIMARY),
            ))
        return screens

    # ── Settings ──────────────────────────────────────────────────────────
    def set_login_item(self, enabled: bool) -> bool:
        import winreg
        try:
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, _RUN_KEY, 0,
                                winreg.KEY_SET_VALUE) as key:
                if enabled:
                    command = f'"{sys.executable}" -m loadout startup'
                    winreg.SetValueEx(key, _RUN_VALUE, 0, winreg.REG_SZ, command)
                else:
                    try:
                        winreg.DeleteValue(key, _RUN_VALUE)
                    except FileNotFoundError:
                        pass
            return True
        except OSError as exc:
            logger.debug("Updating login item failed: %s", exc)
            return False
