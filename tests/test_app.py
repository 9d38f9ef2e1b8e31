import wave

import numpy as np
import pytest

from dremscape.app import Soundscape, main
from dremscape.layer import UnsupportedAudioFile
from dremscape.preset import LayerSettings, Preset, load_preset


def _write_wav(path, num_samples=2000, rate=8000, seed=0):
    rng = np.random.default_rng(seed)
    values = (rng.uniform(-0.5, 0.5, num_samples) * 32767).astype("<i2")
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(rate)
        wav.writeframes(values.tobytes())
    return path


@pytest.fixture
def audio_file(tmp_path):
    return _write_wav(tmp_path / "tone.wav")


def test_add_layer_enables_playback(audio_file):
    scape = Soundscape(sample_rate=8000)
    assert not scape.can_play
    layer = scape.add_layer(audio_file, 100, 900, volume=0.5)
    assert scape.can_play
    assert scape.layers == [layer]
    assert layer.looping_source.loop_start == 100
    assert layer.looping_source.loop_end == 900
    assert layer.volume == pytest.approx(0.5)


def test_add_layer_rejects_non_audio(tmp_path):
    bogus = tmp_path / "bogus.wav"
    bogus.write_bytes(b"not audio at all")
    scape = Soundscape(sample_rate=8000)
    with pytest.raises(UnsupportedAudioFile):
        scape.add_layer(bogus)
    assert scape.layers == []


def test_remove_layer_via_request(audio_file):
    scape = Soundscape(sample_rate=8000)
    layer = scape.add_layer(audio_file)
    layer.request_remove()
    assert scape.layers == []
    assert not scape.can_play


def test_toggle_playback(audio_file):
    scape = Soundscape(sample_rate=8000)
    assert scape.toggle_playback() is False
    scape.add_layer(audio_file)
    assert scape.toggle_playback() is True
    assert scape.is_playing()
    assert scape.toggle_playback() is False
    assert not scape.is_playing()


def test_render_is_silent_when_stopped(audio_file):
    scape = Soundscape(sample_rate=8000)
    scape.add_layer(audio_file)
    out = scape.render(300)
    assert out.shape == (2, 300)
    assert not out.any()


def test_render_plays_and_stays_in_loop(audio_file):
    scape = Soundscape(sample_rate=8000, block_size=64)
    layer = scape.add_layer(audio_file, 200, 600)
    scape.start_playback()
    out = scape.render(1500)
    assert np.abs(out).max() > 0
    assert 200 <= layer.looping_source.position < 600


def test_master_volume_scales_output(audio_file):
    loud = Soundscape(sample_rate=8000)
    quiet = Soundscape(sample_rate=8000)
    quiet.master_volume = 0.5
    for scape in (loud, quiet):
        scape.add_layer(audio_file)
        scape.start_playback()
    a = loud.render(500)
    b = quiet.render(500)
    assert np.allclose(b, a * 0.5, atol=1e-6)


def test_to_preset_round_trip(audio_file):
    scape = Soundscape(sample_rate=8000)
    scape.hpf_cutoff = 100.0
    scape.master_volume = 0.8
    scape.add_layer(audio_file, 10, 1500, 40, 0.3, 0.6, 1.2)
    preset = scape.to_preset()

    other = Soundscape(sample_rate=8000)
    assert other.apply_preset(preset) == []
    assert other.to_preset() == preset


def test_to_preset_without_layers_raises():
    with pytest.raises(ValueError):
        Soundscape().to_preset()


def test_apply_preset_locates_missing(tmp_path, audio_file):
    replacement = _write_wav(tmp_path / "found.wav", seed=1)
    preset = Preset(
        layers=[
            LayerSettings(str(tmp_path / "gone.wav"), volume=0.4),
            LayerSettings(str(audio_file)),
        ]
    )
    asked = []

    def locate(settings):
        asked.append(settings.file_path)
        return replacement

    scape = Soundscape(sample_rate=8000)
    assert scape.apply_preset(preset, locate) == []
    assert asked == [str(tmp_path / "gone.wav")]
    assert [layer.file_path.name for layer in scape.layers] == [audio_file.name, replacement.name]
    assert scape.layers[1].volume == pytest.approx(0.4)


def test_apply_preset_skips_unlocated(tmp_path, audio_file):
    missing = LayerSettings(str(tmp_path / "gone.wav"))
    preset = Preset(layers=[missing, LayerSettings(str(audio_file))])
    scape = Soundscape(sample_rate=8000)
    assert scape.apply_preset(preset, lambda settings: None) == [missing]
    assert len(scape.layers) == 1


def test_apply_preset_without_layers_keeps_layers(audio_file):
    scape = Soundscape(sample_rate=8000)
    layer = scape.add_layer(audio_file)
    scape.apply_preset(Preset(master_volume=0.3, hpf_cutoff=50.0))
    assert scape.layers == [layer]
    assert scape.master_volume == pytest.approx(0.3)
    assert scape.hpf_cutoff == pytest.approx(50.0)


def test_main_renders_and_saves(tmp_path, audio_file):
    out = tmp_path / "out.wav"
    preset_path = tmp_path / "scape.json"
    code = main([
        str(audio_file),
        "-o", str(out),
        "--seconds", "0.05",
        "--sample-rate", "8000",
        "--save-preset", str(preset_path),
    ])
    assert code == 0
    with wave.open(str(out), "rb") as wav:
        assert wav.getnchannels() == 2
        assert wav.getnframes() == 400
    saved = load_preset(preset_path)
    assert [layer.file_path for layer in saved.layers] == [str(audio_file)]


def test_main_fails_on_missing_preset(tmp_path):
    assert main(["--preset", str(tmp_path / "absent.json")]) == 1


def test_main_fails_with_nothing_to_play(tmp_path):
    assert main(["-o", str(tmp_path / "out.wav")]) == 1
    assert not (tmp_path / "out.wav").exists()