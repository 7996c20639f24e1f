import json
import os

import pytest

from loadout.config import CONFIG_FILE, HOME_ENV, Tuning, data_dir, load_tuning


def test_defaults():
    t = Tuning()
    assert (t.min_window_size, t.index_match_score, t.main_window_score) == (100, 30, 20)
    assert t.retry_delays == (0.3, 0.5, 0.5)


def test_instant_zeroes_delays_only():
    t = Tuning().instant()
    assert t.launch_settle == 0 and t.retry_delays == (0.0, 0.0, 0.0)
    assert t.min_window_size == 100 and t.visible_margin == 200


def test_overrides_coerce_and_ignore_unknown():
    t = Tuning().with_overrides({
        "launch_settle": "2.5", "min_window_size": 80.0,
        "retry_delays": [1, 2, 3], "no_such_knob": 1,
    })
    assert t.launch_settle == 2.5
    assert t.min_window_size == 80 and isinstance(t.min_window_size, int)
    assert t.retry_delays == (1.0, 2.0, 3.0)


@pytest.mark.parametrize("delays", [[1, 2], [1, 2, 3, 4], [], 0.5])
def test_retry_ladder_length_cannot_change(delays):
    t = Tuning().with_overrides({"retry_delays": delays, "activate_settle": 0.7})
    assert t.retry_delays == (0.3, 0.5, 0.5)
    assert t.activate_settle == 0.7


def test_load_tuning_reads_config_json(tmp_path):
    (tmp_path / CONFIG_FILE).write_text(json.dumps({"tuning": {"activate_settle": 0.9}}))
    assert load_tuning(str(tmp_path)).activate_settle == 0.9


def test_load_tuning_falls_back_on_bad_config(tmp_path):
    assert load_tuning(str(tmp_path)) == Tuning()
    (tmp_path / CONFIG_FILE).write_text("{oops")
    assert load_tuning(str(tmp_path)) == Tuning()
    (tmp_path / CONFIG_FILE).write_text(json.dumps({"tuning": {"launch_settle": "slow"}}))
    assert load_tuning(str(tmp_path)) == Tuning()


def test_data_dir_honours_environment(tmp_path, monkeypatch):
    monkeypatch.setenv(HOME_ENV, str(tmp_path))
    assert data_dir() == os.path.abspath(str(tmp_path))
    monkeypatch.delenv(HOME_ENV)
    assert data_dir().endswith(".loadout")
