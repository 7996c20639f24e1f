from loadout.events import Alert, EventBus
from loadout.persistence import DefaultsFile
from loadout.settings import LAUNCH_AT_LOGIN_KEY, Settings


def _settings(tmp_path, desktop):
    events = EventBus()
    seen = []
    events.subscribe(seen.append)
    return Settings(DefaultsFile(str(tmp_path / "defaults.json")), desktop, events), seen


def test_flags_default_to_false(tmp_path, desktop):
    s, _ = _settings(tmp_path, desktop)
    assert not s.launch_at_login
    assert not s.hide_dock_icon
    assert not s.has_seen_onboarding
    assert s.startup_preset == ""


def test_launch_at_login_success(tmp_path, desktop):
    s, seen = _settings(tmp_path, desktop)
    assert s.set_launch_at_login(True)
    assert s.launch_at_login
    assert desktop.called("set_login_item") == [("set_login_item", True)]
    assert seen == []


def test_launch_at_login_failure_reverts(tmp_path, desktop):
    s, seen = _settings(tmp_path, desktop)
    s.set_launch_at_login(True)
    desktop.login_ok = False

    assert not s.set_launch_at_login(False)

    assert s.launch_at_login
    assert s.defaults.get(LAUNCH_AT_LOGIN_KEY) is True
    assert [type(e) for e in seen] == [Alert]


def test_without_backend_login_item_fails(tmp_path):
    s = Settings(DefaultsFile(str(tmp_path / "defaults.json")))
    assert not s.set_launch_at_login(True)
    assert not s.launch_at_login


def test_plain_flags_persist(tmp_path, desktop):
    s, _ = _settings(tmp_path, desktop)
    s.hide_dock_icon = True
    s.has_seen_onboarding = True
    s.startup_preset = "Dev"

    again = Settings(DefaultsFile(str(tmp_path / "defaults.json")))
    assert again.hide_dock_icon and again.has_seen_onboarding
    assert again.startup_preset == "Dev"
