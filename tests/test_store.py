import pytest
from conftest import FakeWindow

from loadout.events import PresetsChanged
from loadout.models import RunningApplication, WindowDescriptor
from loadout.persistence import PRESETS_KEY, DefaultsFile
from loadout.store import PresetStore


@pytest.fixture
def defaults(tmp_path):
    return DefaultsFile(str(tmp_path / "defaults.json"))


@pytest.fixture
def store(defaults, desktop, tuning):
    return PresetStore(defaults, backend=desktop, tuning=tuning)


def _w(bundle="com.editor.app", x=0, y=0, index=0):
    return WindowDescriptor(bundle, bundle.split(".")[1].title(), x, y, 800, 600, window_index=index)


def _running(desktop, bundle):
    a = desktop.apps[bundle]
    return RunningApplication(pid=a.pid, name=a.name, bundle_identifier=a.bundle)


def test_save_rejects_empty_capture(store, defaults):
    assert store.save("Empty", []) is None
    assert store.presets == []
    assert defaults.get(PRESETS_KEY) is None


def test_save_persists_and_notifies(store, defaults):
    seen = []
    store.subscribe(seen.append)

    p = store.save("Dev", [_w()])

    assert [e.reason for e in seen] == ["save"]
    assert isinstance(seen[0], PresetsChanged) and seen[0].preset_id == p.id
    reloaded = PresetStore(defaults)
    assert [x.name for x in reloaded.presets] == ["Dev"]
    assert reloaded.presets[0].windows[0].id == p.windows[0].id


def test_presets_are_copies(store):
    store.save("Dev", [_w()])
    store.presets[0].name = "mutated"
    assert store.presets[0].name == "Dev"


def test_missing_ids_are_silent_noops(store):
    seen = []
    store.save("Dev", [_w()])
    store.subscribe(seen.append)

    store.delete("nope")
    store.rename("nope", "X")
    store.remove_window("nope", "w")
    store.remove_launch_item("nope", "i")
    store.refresh_positions("nope")

    assert store.add_launch_item("nope", "a.com") is None
    assert seen == []
    assert [p.name for p in store.presets] == ["Dev"]


def test_delete_and_rename(store):
    a = store.save("A", [_w()])
    b = store.save("B", [_w()])
    store.rename(b.id, "Bee")
    store.delete(a.id)
    assert [(p.id, p.name) for p in store.presets] == [(b.id, "Bee")]
    assert store.find_by_name("Bee").id == b.id
    assert store.find_by_name("B") is None


def test_reorder_keeps_ids_and_moves_one(store):
    ids = [store.save(n, [_w()]).id for n in "ABCD"]

    store.reorder(0, 2)
    assert [p.name for p in store.presets] == ["B", "A", "C", "D"]

    store.reorder(0, 4)
    assert [p.name for p in store.presets] == ["A", "C", "D", "B"]
    store.reorder(3, 99)
    assert [p.name for p in store.presets] == ["A", "C", "D", "B"]
    store.reorder(3, 0)
    assert [p.name for p in store.presets] == ["B", "A", "C", "D"]
    store.reorder(1, 1)
    store.reorder(1, 2)
    assert [p.name for p in store.presets] == ["B", "A", "C", "D"]
    assert sorted(p.id for p in store.presets) == sorted(ids)

    with pytest.raises(IndexError):
        store.reorder(4, 0)


def test_sort_by_name_is_case_insensitive(store):
    for n in ["beta", "Alpha", "gamma"]:
        store.save(n, [_w()])
    store.sort_by_name()
    assert [p.name for p in store.presets] == ["Alpha", "beta", "gamma"]


def test_add_window_skips_near_duplicates(store, desktop):
    desktop.add_app("com.editor.app", "Editor", windows=[
        FakeWindow(5, 5, 800, 600),
        FakeWindow(400, 300, 800, 600),
    ])
    p = store.save("Dev", [_w(x=0, y=0)])

    added = store.add_window(p.id, _running(desktop, "com.editor.app"))

    assert added == 1
    assert [(w.x, w.y) for w in store.get(p.id).windows] == [(0, 0), (400, 300)]
    assert store.add_window(p.id, _running(desktop, "com.editor.app")) == 0


def test_add_window_same_origin_other_app_is_not_duplicate(store, desktop):
    desktop.add_app("com.browser.app", "Browser", windows=[FakeWindow(0, 0, 800, 600)])
    p = store.save("Dev", [_w(x=0, y=0)])
    assert store.add_window(p.id, _running(desktop, "com.browser.app")) == 1


def test_launch_items_are_normalized_and_removable(store):
    p = store.save("Dev", [_w()])
    item = store.add_launch_item(p.id, "example.com")
    assert item.path == "https://example.com"
    store.remove_launch_item(p.id, item.id)
    assert store.get(p.id).launch_items == []


def test_remove_window(store):
    p = store.save("Dev", [_w(), _w(index=1)])
    store.remove_window(p.id, p.windows[0].id)
    assert [w.window_index for w in store.get(p.id).windows] == [1]


def test_refresh_positions_updates_running_apps_only(store, desktop):
    desktop.add_app("com.editor.app", "Editor", windows=[
        FakeWindow(11, 12, 700, 500),
        FakeWindow(21, 22, 900, 650),
    ])
    desktop.add_app("com.mail.app", "Mail", running=False)
    p = store.save("Dev", [
        _w(index=1),
        _w("com.mail.app", x=7, y=7),
        _w(index=0),
    ])

    store.refresh_positions(p.id)

    got = store.get(p.id).windows
    assert [w.id for w in got] == [w.id for w in p.windows]
    assert (got[0].x, got[0].width) == (21, 900)
    assert (got[1].x, got[1].y) == (7, 7)
    assert (got[2].x, got[2].width) == (11, 700)
