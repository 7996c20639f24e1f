import pytest

from loadout.models import (
    LaunchItem,
    Preset,
    Rect,
    Screen,
    ScreenConfiguration,
    WindowDescriptor,
    normalize_path,
)


@pytest.mark.parametrize("raw", [
    "example.com",
    "www.example",
    "https://x.io",
    "http://plain.org/path",
    "/Users/me/example.com/file",
    "~/Documents/notes.md",
    "C:\\Users\\me\\site.com\\index.html",
    "  github.com  ",
    "report.pdf",
    "",
])
def test_normalize_is_idempotent(raw):
    once = normalize_path(raw)
    assert normalize_path(once) == once


def test_bare_domain_gets_https():
    assert normalize_path("example.com") == "https://example.com"
    assert normalize_path("www.example") == "https://www.example"


def test_path_root_suppresses_tld_heuristic():
    assert normalize_path("/Users/me/example.com/file") == "/Users/me/example.com/file"
    assert normalize_path("~/sites/blog.dev") == "~/sites/blog.dev"
    assert normalize_path("C:\\sites\\blog.dev") == "C:\\sites\\blog.dev"


def test_existing_scheme_is_unchanged():
    assert normalize_path("https://x.io") == "https://x.io"


def test_plain_filename_stays_a_path():
    assert normalize_path("report.pdf") == "report.pdf"


def test_launch_item_derived_properties(tmp_path):
    url = LaunchItem("github.com/anthropics")
    assert url.path == "https://github.com/anthropics"
    assert url.is_url
    assert url.display_name == "github.com"
    assert url.icon == "url"

    f = LaunchItem("/tmp/nowhere/notes.txt")
    assert not f.is_url
    assert f.display_name == "notes.txt"
    assert f.icon == "file"

    d = LaunchItem(str(tmp_path) + "/")
    assert d.icon == "folder"
    assert d.display_name == tmp_path.name


def test_launch_item_ids_are_unique():
    assert LaunchItem("a.com").id != LaunchItem("a.com").id


def test_with_geometry_keeps_identifier():
    w = WindowDescriptor("com.editor.app", "Editor", 0, 0, 500, 400, window_index=1)
    moved = w.with_geometry(Rect(10, 20, 300, 200))
    assert moved.id == w.id
    assert (moved.x, moved.y, moved.width, moved.height) == (10, 20, 300, 200)
    assert moved.window_index == 1
    assert moved.with_geometry(Rect(0, 0, 1, 1), window_index=3).window_index == 3


def test_preset_app_order_and_grouping():
    p = Preset("Dev", windows=[
        WindowDescriptor("b", "B", 0, 0, 200, 200),
        WindowDescriptor("a", "A", 0, 0, 200, 200),
        WindowDescriptor("b", "B", 0, 0, 200, 200, window_index=1),
    ])
    assert p.app_order() == ["b", "a"]
    assert [w.window_index for w in p.windows_for("b")] == [0, 1]


def test_screen_configuration_main_and_bounds():
    left = Screen(Rect(-1280, 0, 1280, 1024))
    main = Screen(Rect(0, 0, 1920, 1080), is_main=True)
    cfg = ScreenConfiguration([left, main])
    assert cfg.main is main
    assert cfg.bounds == Rect(-1280, 0, 3200, 1080)
    assert ScreenConfiguration([left]).main is left
    assert ScreenConfiguration([]).bounds is None
