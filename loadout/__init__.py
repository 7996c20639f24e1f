"""Save application window layouts as named presets and restore them."""

from .events import Alert, EventBus, PresetApplied, PresetsChanged
from .models import LaunchItem, Preset, RunningApplication, WindowDescriptor
from .restore import RestoreOrchestrator
from .store import PresetStore

__version__ = "0.3.0"

__all__ = [
    "Alert",
    "EventBus",
    "LaunchItem",
    "Preset",
    "PresetApplied",
    "PresetStore",
    "PresetsChanged",
    "RestoreOrchestrator",
    "RunningApplication",
    "WindowDescriptor",
]
