import json

import pytest

from dremscape.preset import (
    LayerSettings,
    Preset,
    PresetError,
    load_preset,
    parse_preset,
    save_preset,
)


def test_layer_defaults_when_missing():
    preset = parse_preset('{"layers": [{"filePath": "a.wav"}]}')
    assert len(preset.layers) == 1
    layer = preset.layers[0]
    assert layer.file_path == "a.wav"
    assert layer.curve_x == pytest.approx(0.25)
    assert layer.curve_y == pytest.approx(0.75)
    assert layer.volume == pytest.approx(1.0)
    assert layer.crossfade_samples == 0
    assert layer.loop_start == 0


def test_master_defaults():
    preset = parse_preset('{"layers": []}')
    assert preset.master_volume is None
    assert preset.hpf_cutoff == pytest.approx(20.0)
    assert preset.layers == []


def test_non_object_layers_are_skipped():
    preset = parse_preset(
        '{"layers": [1, "x", {"filePath": "b.wav", "loopStart": 10, "loopEnd": 500}]}'
    )
    assert [layer.file_path for layer in preset.layers] == ["b.wav"]
    assert preset.layers[0].loop_start == 10
    assert preset.layers[0].loop_end == 500


def test_numbers_given_as_strings():
    preset = parse_preset('{"hpfCutoff": "150", "masterVolume": 0.5}')
    assert preset.hpf_cutoff == pytest.approx(150.0)
    assert preset.master_volume == pytest.approx(0.5)


def test_not_an_object_raises():
    with pytest.raises(PresetError):
        parse_preset("[1, 2]")


def test_invalid_json_raises():
    with pytest.raises(PresetError):
        parse_preset("not json")


def test_to_dict_keys():
    preset = Preset(layers=[LayerSettings("c.wav", 1, 99, 4, 0.3, 0.6, 0.8)], master_volume=1.2, hpf_cutoff=40.0)
    data = preset.to_dict()
    assert data["version"] == 1
    assert list(data) == ["version", "masterVolume", "hpfCutoff", "layers"]
    assert set(data["layers"][0]) == {
        "filePath",
        "loopStart",
        "loopEnd",
        "crossfadeSamples",
        "crossfadeCurveX",
        "crossfadeCurveY",
        "volume",
    }


def test_to_dict_omits_unset_master_volume():
    assert "masterVolume" not in Preset().to_dict()


def test_save_and_load_round_trip(tmp_path):
    preset = Preset(
        layers=[
            LayerSettings("one.wav", 0, 1000, 50, 0.4, 0.6, 0.9),
            LayerSettings("two.wav", 20, 300, 0, 0.25, 0.75, 1.1),
        ],
        master_volume=0.7,
        hpf_cutoff=120.0,
    )
    path = tmp_path / "preset.json"
    save_preset(preset, path)
    assert json.loads(path.read_text(encoding="utf-8")) == preset.to_dict()
    assert load_preset(path) == preset


def test_load_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_preset(tmp_path / "absent.json")