import json

from palmgallery.core.config import DEFAULT_PRESET, PresetName
from palmgallery.runtime.profile import apply_profile, load_profile, save_profile


def test_overrides_single_fields():
    p = apply_profile(DEFAULT_PRESET, {
        "gates": {"open_palm": {"threshold": 0.55, "hold_frames": 10}},
        "dwell": {"threshold_s": 1},
    })
    assert p.gates.open_palm.threshold == 0.55
    assert p.gates.open_palm.hold_frames == 10
    assert p.gates.victory == DEFAULT_PRESET.gates.victory
    assert p.dwell.threshold_s == 1.0
    assert p.name == PresetName.DEFAULT


def test_unknown_and_badly_typed_keys_are_skipped(caplog):
    p = apply_profile(DEFAULT_PRESET, {
        "bogus": 1,
        "navigation": {"swipe_dx": "fast", "theme_count": 4},
        "gates": {"victory": {"hold_frames": 2.5}},
    })
    assert p.navigation.swipe_dx == DEFAULT_PRESET.navigation.swipe_dx
    assert p.navigation.theme_count == 4
    assert p.gates.victory.hold_frames == 6
    assert "bogus" in caplog.text


def test_tuple_override():
    p = apply_profile(DEFAULT_PRESET, {"motion": {"zoom_range": [-10, 30]}})
    assert p.motion.zoom_range == (-10.0, 30.0)


def test_empty_profile_is_identity():
    assert apply_profile(DEFAULT_PRESET, None) is DEFAULT_PRESET
    assert apply_profile(DEFAULT_PRESET, {}) is DEFAULT_PRESET


def test_save_then_load(tmp_path):
    path = tmp_path / "profile.json"
    save_profile(DEFAULT_PRESET, path)
    data = load_profile(path)
    assert "name" not in data
    assert apply_profile(DEFAULT_PRESET, data) == DEFAULT_PRESET


def test_unreadable_profile(tmp_path):
    path = tmp_path / "profile.json"
    assert load_profile(path) is None
    path.write_text("{not json")
    assert load_profile(path) is None
    path.write_text(json.dumps([1, 2]))
    assert load_profile(path) is None
