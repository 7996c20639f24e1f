"""
cli.py  -  Command-line front end for presets

  loadout apps                          list running apps that have windows
  loadout save Dev code firefox --item github.com
  loadout list | show Dev | apply Dev
  loadout rename Dev Work | delete Work | move 3 1 | sort
  loadout add-window Dev notepad | remove-window Dev <window-id>
  loadout add-item Dev ~/notes.md | remove-item Dev <item-id>
  loadout refresh Dev
  loadout settings --launch-at-login on --startup-preset Dev
"""

import argparse
import asyncio
import logging
import os
import sys
from typing import List, Optional

from . import capture
from .backend import DesktopBackend
from .config import APP_NAME, DEFAULTS_FILE, data_dir, load_tuning
from .events import Alert, EventBus, PresetApplied
from .models import LaunchItem, Preset, RunningApplication
from .persistence import DefaultsFile
from .restore import RestoreOrchestrator
from .settings import Settings
from .store import PresetStore

logger = logging.getLogger(__name__)


class LoadoutError(Exception):
    pass


class PresetNotFound(LoadoutError):
    pass


class AppNotFound(LoadoutError):
    pass


def _default_backend() -> DesktopBackend:
    try:
        from .win32_backend import Win32Desktop
    except ImportError as exc:
        raise LoadoutError(
            f"The Windows desktop backend is unavailable ({exc}). "
            f"Install with: pip install pywin32 psutil"
        )
    return Win32Desktop()


# ══════════════════════════════════════════════════════════════════════════
#  Session wiring
# ══════════════════════════════════════════════════════════════════════════
class Session:
    def __init__(self, home: str, backend: Optional[DesktopBackend] = None) -> None:
        self.home     = home
        self.tuning   = load_tuning(home)
        self.events   = EventBus()
        self.defaults = DefaultsFile(os.path.join(home, DEFAULTS_FILE))
        self._backend = backend
        self._store: Optional[PresetStore] = None

    @property
    def backend(self) -> DesktopBackend:
        if self._backend is None:
            self._backend = _default_backend()
        return self._backend

    @property
    def store(self) -> PresetStore:
        if self._store is None:
            self._store = PresetStore(self.defaults, backend=self._backend,
                                      events=self.events, tuning=self.tuning)
        return self._store

    def live_store(self) -> PresetStore:
        """Store wired to the OS backend (capture / refresh operations)."""
        self.store.backend = self.backend
        return self.store

    @property
    def settings(self) -> Settings:
        return Settings(self.defaults, backend=self._backend, events=self.events)

    def resolve_preset(self, ref: str) -> Preset:
        presets = self.store.presets
        for p in presets:
            if p.id == ref:
                return p
        for p in presets:
            if p.name == ref:
                return p
        lowered = [p for p in presets if p.name.lower() == ref.lower()]
        if len(lowered) == 1:
            return lowered[0]
        if ref.isdigit() and 1 <= int(ref) <= len(presets):
            return presets[int(ref) - 1]
        raise PresetNotFound(f"No preset named {ref!r}")

    def resolve_app(self, ref: str, apps: List[RunningApplication]) -> RunningApplication:
        if ref.isdigit():
            for a in apps:
                if a.pid == int(ref):
                    return a
        lo = ref.lower()
        for a in apps:
            if a.name.lower() == lo:
                return a
        for a in apps:
            if lo in a.name.lower() or (a.bundle_identifier and lo in a.bundle_identifier.lower()):
                return a
        raise AppNotFound(f"No running application matches {ref!r}")


def _print_event(event: object) -> None:
    if isinstance(event, Alert):
        print(f"  Warning: {event.title}: {event.message}")
    elif isinstance(event, PresetApplied):
        print(f"Applied {event.preset_name!r}: {event.summary()} "
              f"(positioned {event.positioned})")


# ══════════════════════════════════════════════════════════════════════════
#  Commands
# ══════════════════════════════════════════════════════════════════════════
def cmd_apps(s: Session) -> int:
    apps = capture.refresh_running_apps(s.backend, exclude_name=APP_NAME)
    if not apps:
        print("No running applications with windows.")
        return 0
    for a in apps:
        n = len(capture.real_windows(capture.live_windows(s.backend, a.pid), s.tuning))
        print(f"  {a.pid:>6}  {a.name:<24} windows={n}  {a.bundle_identifier or '-'}")
    return 0


def cmd_save(s: Session, name: str, app_refs: List[str], items: List[str]) -> int:
    apps = capture.refresh_running_apps(s.backend, exclude_name=APP_NAME)
    for ref in app_refs:
        s.resolve_app(ref, apps).is_selected = True
    windows = capture.capture_selection(s.backend, apps, s.tuning)
    preset = s.live_store().save(name, windows, [LaunchItem(path=p) for p in items])
    if preset is None:
        print("Nothing to capture: the selected applications have no windows.")
        return 1
    print(f"Saved {len(preset.windows)} windows, {len(preset.launch_items)} items -> {name!r}")
    return 0


def cmd_list(s: Session) -> int:
    presets = s.store.presets
    if not presets:
        print("No presets saved.")
        return 0
    for i, p in enumerate(presets, 1):
        print(f"  [{i}] {p.name:<24} windows={len(p.windows)}  "
              f"items={len(p.launch_items)}  id={p.id}")
    return 0


def cmd_show(s: Session, ref: str) -> int:
    p = s.resolve_preset(ref)
    print(f"{p.name}  (id={p.id})")
    for w in p.windows:
        print(f"  WINDOW {w.app_name} [{w.window_index}] "
              f"({w.x:g},{w.y:g} {w.width:g}x{w.height:g})  id={w.id}")
    for item in p.launch_items:
        print(f"  ITEM   [{item.icon}] {item.display_name} -> {item.path}  id={item.id}")
    return 0


def cmd_apply(s: Session, ref: str) -> int:
    preset = s.resolve_preset(ref)
    orchestrator = RestoreOrchestrator(s.backend, events=s.events, tuning=s.tuning)
    asyncio.run(orchestrator.apply(preset))
    return 0


def cmd_startup(s: Session) -> int:
    ref = s.settings.startup_preset
    if not ref:
        return 0
    return cmd_apply(s, ref)


def cmd_settings(s: Session, launch_at_login: Optional[str],
                 startup_preset: Optional[str]) -> int:
    settings = s.settings
    ok = True
    if startup_preset is not None:
        if startup_preset:
            s.resolve_preset(startup_preset)
        settings.startup_preset = startup_preset
    if launch_at_login is not None:
        settings.backend = s.backend
        ok = settings.set_launch_at_login(launch_at_login == "on")
    print(f"  launch-at-login : {'on' if settings.launch_at_login else 'off'}")
    print(f"  startup-preset  : {settings.startup_preset or '-'}")
    return 0 if ok else 1


# ══════════════════════════════════════════════════════════════════════════
#  Entry point
# ══════════════════════════════════════════════════════════════════════════
def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="loadout",
                                description="Save and restore window presets.")
    p.add_argument("--home", default=None,
                   help="Data directory (default: $LOADOUT_HOME or ~/.loadout)")
    p.add_argument("--verbose", "-v", action="store_true")
    s = p.add_subparsers(dest="cmd", required=True)

    s.add_parser("apps", help="List running applications that have windows")

    sp = s.add_parser("save", help="Capture applications into a new preset")
    sp.add_argument("name")
    sp.add_argument("apps", nargs="+", help="Application names or pids")
    sp.add_argument("--item", action="append", default=[],
                    help="URL or path to open with the preset (repeatable)")

    s.add_parser("list")
    for name in ("show", "apply", "delete", "refresh"):
        sp = s.add_parser(name)
        sp.add_argument("preset")

    sp = s.add_parser("rename")
    sp.add_argument("preset")
    sp.add_argument("new_name")

    sp = s.add_parser("move", help="Move preset FROM in front of position TO "
                                   "(1-based; count+1 moves it to the end)")
    sp.add_argument("from_pos", type=int)
    sp.add_argument("to_pos", type=int)

    s.add_parser("sort", help="Sort presets by name")

    sp = s.add_parser("add-window")
    sp.add_argument("preset")
    sp.add_argument("app")

    sp = s.add_parser("remove-window")
    sp.add_argument("preset")
    sp.add_argument("window_id")

    sp = s.add_parser("add-item")
    sp.add_argument("preset")
    sp.add_argument("path")

    sp = s.add_parser("remove-item")
    sp.add_argument("preset")
    sp.add_argument("item_id")

    sp = s.add_parser("settings")
    sp.add_argument("--launch-at-login", choices=("on", "off"))
    sp.add_argument("--startup-preset", help="Preset applied by 'startup' ('' clears)")

    s.add_parser("startup", help="Apply the startup preset, if one is set")
    return p


def run(args: argparse.Namespace, s: Session) -> int:
    if args.cmd == "apps":
        return cmd_apps(s)
    if args.cmd == "save":
        return cmd_save(s, args.name, args.apps, args.item)
    if args.cmd == "list":
        return cmd_list(s)
    if args.cmd == "show":
        return cmd_show(s, args.preset)
    if args.cmd == "apply":
        return cmd_apply(s, args.preset)
    if args.cmd == "delete":
        s.store.delete(s.resolve_preset(args.preset).id)
        return 0
    if args.cmd == "rename":
        s.store.rename(s.resolve_preset(args.preset).id, args.new_name)
        return 0
    if args.cmd == "move":
        s.store.reorder(args.from_pos - 1, args.to_pos - 1)
        return 0
    if args.cmd == "sort":
        s.store.sort_by_name()
        return 0
    if args.cmd == "refresh":
        s.live_store().refresh_positions(s.resolve_preset(args.preset).id)
        return 0
    if args.cmd == "add-window":
        preset = s.resolve_preset(args.preset)
        app = s.resolve_app(args.app, capture.refresh_running_apps(s.backend, APP_NAME))
        added = s.live_store().add_window(preset.id, app)
        print(f"Added {added} window(s) from {app.name} -> {preset.name!r}")
        return 0
    if args.cmd == "remove-window":
        s.store.remove_window(s.resolve_preset(args.preset).id, args.window_id)
        return 0
    if args.cmd == "add-item":
        item = s.store.add_launch_item(s.resolve_preset(args.preset).id, args.path)
        if item is not None:
            print(f"Added {item.display_name} ({item.path})")
        return 0
    if args.cmd == "remove-item":
        s.store.remove_launch_item(s.resolve_preset(args.preset).id, args.item_id)
        return 0
    if args.cmd == "settings":
        return cmd_settings(s, args.launch_at_login, args.startup_preset)
    if args.cmd == "startup":
        return cmd_startup(s)
    raise LoadoutError(f"Unknown command {args.cmd!r}")


def main(argv: Optional[List[str]] = None,
         backend: Optional[DesktopBackend] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    home = os.path.abspath(os.path.expanduser(args.home)) if args.home else data_dir()
    session = Session(home, backend=backend)
    session.events.subscribe(_print_event)
    try:
        return run(args, session)
    except LoadoutError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except IndexError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
